"""Core layer: data structures, scheduling engine, entity records and events."""
