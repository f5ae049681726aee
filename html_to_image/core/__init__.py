"""
Core Business Logic
===================

Request-processing core shared by the HTTP service, the CLI and the binding.

Components:
- errors: Error taxonomy with HTTP status and exit code mappings
- validation: Request limit checks
- fonts: Sandboxed font resolution and font loading
- context: Template rendering context
- pipeline: Render pipeline orchestration
"""
