"""Utility functions for generating consistent IDs across the application."""

import shortuuid


def generate_id() -> str:
    """Generate a row identifier.

    Returns:
        str: Short URL-safe ID (22 characters)
    """
    return shortuuid.uuid()
