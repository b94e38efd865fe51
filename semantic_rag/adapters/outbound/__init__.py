"""Outbound adapters for embedding and chat providers."""
