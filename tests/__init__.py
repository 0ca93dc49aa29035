"""Test suite for the reference data store.

This package contains tests for the store including:
- Unit tests for individual modules
- Integration tests that seed the packaged fixtures end to end
"""

__version__ = "0.1.0"
