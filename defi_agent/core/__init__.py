"""Chain primitives, caches, errors and the agent host."""
