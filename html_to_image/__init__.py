"""
HTML to Image
=============

Render HTML templates (Jinja2 syntax) to PNG images.

This package provides:
- A shared request-processing core: validation, font sandboxing, template expansion
- A bounded worker pool that keeps CPU-bound rendering off the event loop
- FastAPI REST endpoints for HTTP access
- A command line interface and an in-process async binding
"""

__version__ = "0.1.0"
