"""Ports implemented by infrastructure (repositories, identity, OAuth, listeners)."""
