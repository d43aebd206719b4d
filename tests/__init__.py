"""Test suite for the streamunpack project.

This package contains all tests for the streamunpack project, organized by module:
- cli/: Tests for command line interface functionality
- core/: Tests for extraction, decompression, configuration and downloads
- utils/: Tests for utility functions
"""
