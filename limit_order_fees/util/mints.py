"""Helpers for validating Solana mint addresses."""

from __future__ import annotations

import base58


def is_valid_solana_mint(s: str) -> bool:
    """Return ``True`` when ``s`` decodes to a 32-byte base58 value."""

    if not isinstance(s, str):
        return False
    text = s.strip()
    if not text or text != s:
        return False
    try:
        raw = base58.b58decode(text)
    except ValueError:
        return False
    return len(raw) == 32


__all__ = ["is_valid_solana_mint"]
