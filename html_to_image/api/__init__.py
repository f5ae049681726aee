"""
FastAPI REST Endpoints
======================

REST API endpoints for HTTP access to HTML rendering.

Endpoints:
- POST /render/png: Render an HTML template to PNG bytes
- GET /healthz: Liveness probe
- GET /health: Health status with worker pool statistics
"""
