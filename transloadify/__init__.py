"""Manage Transloadit templates as a local tree of JSON files."""

__version__ = "0.1.0"
