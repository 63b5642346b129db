"""
Test Suite for ert-manifest

- Unit tests for the privacy and profiling components
- Integration tests for the scan pipeline and the CLI
"""
