"""Orbital CLI - terminal AI assistant with device-code login."""

from ._version import __version__


__all__ = ["__version__"]
