"""HTTP surface over an Agent's tools."""
