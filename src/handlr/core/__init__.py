"""Core handler resolution and dispatch."""
