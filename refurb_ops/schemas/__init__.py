"""
Public Pydantic schemas used by FastAPI routes, services, and tests.

Schemas are grouped by workflow area (inward, repair, quality, etc.) and also
include common reusable models such as the error envelope.
"""

from .common import ErrorResponse, MessageResponse  # noqa: F401
