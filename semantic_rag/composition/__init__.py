"""Composition root wiring adapters into the core services."""
