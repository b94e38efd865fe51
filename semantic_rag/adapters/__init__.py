"""Inbound and outbound adapters around the core services."""
