"""Shared Pydantic types for common API elements."""
from __future__ import annotations

from typing import Annotated

from pydantic import AfterValidator, Field

from whatswho.core.identity import normalize_identity

Identity = Annotated[
    str,
    Field(min_length=1, max_length=255, description="Email address, compared case-insensitively"),
    AfterValidator(normalize_identity),
]
