"""Utility modules for Orbital CLI."""
