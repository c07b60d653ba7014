"""Workbench: role-based access control API."""

__version__ = "0.1.0"
