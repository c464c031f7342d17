"""Shared secret-masking utilities.

``mask_secrets`` scrubs known secret values out of free text. Both error
formatters in :mod:`harvest_mcp.utils.errors` run their output through it, so
the masking rule is defined once.
"""

from __future__ import annotations

from collections.abc import Iterable

DEFAULT_MASK = "***"


def mask_secrets(text: str, secrets: Iterable[str], *, mask: str = DEFAULT_MASK) -> str:
    """Replace every occurrence of each non-empty secret in ``text``."""
    # Longest first so a secret containing another is masked whole.
    for secret in sorted({s for s in secrets if s}, key=len, reverse=True):
        text = text.replace(secret, mask)
    return text
