"""
Rendering Module
===============

Template expansion, HTML layout/paint and PNG encoding.

Components:
- template: Sandboxed Jinja2 template expansion
- engine: Layout/paint engines producing raw RGBA buffers
- codec: PNG encoding and file output
"""
