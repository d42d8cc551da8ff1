"""Domain and result models."""
