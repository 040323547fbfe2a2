"""
Infrastructure layer - external service integrations.

- storage: Object storage (S3 and S3-compatible stores)
- registry: JSON-file event registry
- qr: QR code rendering

These wrappers translate between external formats and our domain models.
"""
