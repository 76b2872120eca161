"""Services module."""
