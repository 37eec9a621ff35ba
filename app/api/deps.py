"""
Shared helpers for API routers
"""

from uuid import UUID

from fastapi import HTTPException, status


def parse_uuid(value: str, label: str = "ID") -> UUID:
    """Parse a path parameter as a UUID, answering 400 on malformed input."""
    try:
        return UUID(value)
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Invalid {label} format"
        )
