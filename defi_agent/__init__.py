"""Multi-provider swap, staking, bridge and transfer tools for LLM agents."""

__version__ = "0.1.0"
