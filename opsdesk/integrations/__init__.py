"""
Integrations package for external services.

This package contains client implementations for:
- The OpsDesk access API (used by dashboard-side components)
"""

from opsdesk.integrations.api_client import (
    AccessDeniedError,
    ApiError,
    ApiSession,
    OpsDeskClient,
    SessionExpiredError,
)

__all__ = [
    "AccessDeniedError",
    "ApiError",
    "ApiSession",
    "OpsDeskClient",
    "SessionExpiredError",
]
