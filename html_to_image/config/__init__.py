"""
Configuration Management
=======================

Environment-based configuration using Pydantic Settings.

Components:
- settings: Environment settings and the immutable service configuration
- logging: Structured logging configuration
"""
