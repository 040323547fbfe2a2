"""
EventDrop - branded guest-upload pages for events.

This package contains the complete application:
- core: Framework-agnostic business logic (events, upload flow)
- infrastructure: External service integrations (object storage, registry file, QR)
- api: FastAPI routes and dependencies
- config: Application configuration
"""

__version__ = "0.1.0"
