"""Test fixtures shared by unit and integration tests.

This module provides:
- FakeTemplateClient: an in-memory template service implementing the
  RemoteTemplateClient protocol, with call recording and failure injection
- Helpers for writing template files into a temporary tree
"""

from .fake_client import FakeTemplateClient
from .template_tree import write_json, read_json

__all__ = [
    'FakeTemplateClient',
    'write_json',
    'read_json',
]
