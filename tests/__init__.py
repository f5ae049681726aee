"""
Test Suite
==========

Test suite matching the html_to_image/ package structure.

Test Categories:
- unit: Unit tests for individual components
- integration: HTTP API, CLI and binding tests with an in-memory layout engine
- e2e: Rendering through a real headless Chromium
"""
