"""Query-string filter parsing shared by list endpoints."""

from enum import Enum
from typing import TypeVar

from fastapi import HTTPException, status

E = TypeVar("E", bound=Enum)


def parse_enum_filter(value: str | None, enum_cls: type[E], label: str) -> E | None:
    """Parse an optional enum filter; empty or ``all`` means no filter."""
    if not value or value == "all":
        return None
    try:
        return enum_cls(value)
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Invalid {label} filter",
        )
