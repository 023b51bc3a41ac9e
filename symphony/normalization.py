"""Normalisation helpers for state names, labels and workspace keys."""

from __future__ import annotations

WORKSPACE_ALLOWED = frozenset(
    "ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz0123456789._-"
)


def normalize_state_name(raw: str) -> str:
    """Trim and lower-case a tracker state name."""
    return raw.strip().lower()


def normalize_label(raw: str) -> str:
    """Trim and lower-case a label."""
    return raw.strip().lower()


def sanitize_workspace_key(raw: str) -> str:
    """Replace characters not safe for a workspace directory name with ``_``."""
    sanitized = "".join(
        character if character in WORKSPACE_ALLOWED else "_" for character in raw.strip()
    )
    return sanitized or "issue"


def parse_comma_separated(raw: str) -> list[str]:
    """Split on commas, trimming segments and dropping empty ones."""
    return [segment.strip() for segment in raw.split(",") if segment.strip()]