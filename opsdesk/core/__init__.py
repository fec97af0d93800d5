"""
Core Module

Shared application components including:
- Configuration management
- Permission catalog and access decisions
- Dependency injection for FastAPI
- Logging configuration
- Error taxonomy
"""
