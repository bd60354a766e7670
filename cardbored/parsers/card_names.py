"""
Card name normalization for lookup keys.

Only case and surrounding whitespace are normalized. Punctuation and
diacritics must match the bulk dataset's spelling exactly, so names such as
"Lim-Dul's Vault" typed without the accent miss the bulk index and fall
through to live lookup.
"""


def normalize_name(name: str) -> str:
    """Lowercase and trim a card name. Idempotent."""
    return name.strip().lower()
