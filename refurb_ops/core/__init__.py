"""
Core application utilities for settings and FastAPI dependencies.

This package provides:
- Application-level settings (separate from DB settings)
- Dependency helpers (current user, role gates)
- Password hashing and JWT helpers
- Domain error types mapped to HTTP responses
"""
