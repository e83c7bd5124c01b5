"""Worktrail MCP: activity tracking and log lifecycle for developer workflows."""

__version__ = "0.1.0"

__all__ = ["__version__"]
