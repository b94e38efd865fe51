"""Core domain, ports, index structures and services."""
