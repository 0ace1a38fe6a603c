"""Security tests for BuildTrack

This module contains security-focused tests including:
- Tenant escape through request payloads
- Path traversal in the tenant file store
- Injection attempts through filters and sort columns
"""
