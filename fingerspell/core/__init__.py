"""Core types, events and the classification pipeline."""
