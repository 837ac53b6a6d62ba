"""
Configuration Management
=======================

Environment-based configuration using Pydantic Settings.

Components:
- settings: Application settings and lint rule configuration
- logging: Structured logging configuration
"""
