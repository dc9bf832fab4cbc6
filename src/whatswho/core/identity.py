# src/whatswho/core/identity.py
"""Identity normalization shared by every addressing path."""

from __future__ import annotations


def normalize_identity(value: object) -> str:
    """Return the canonical form of an email identity.

    Identities are compared case-insensitively, so every key used for
    addressing is stripped and lowercased first.

    Raises:
        ValueError: If the value is missing, not a string, or blank.
    """
    if not isinstance(value, str):
        raise ValueError("Identity must be a string")
    normalized = value.strip().lower()
    if not normalized:
        raise ValueError("Identity must not be empty")
    return normalized
