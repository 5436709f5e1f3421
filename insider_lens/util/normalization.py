from __future__ import annotations


def _capitalize_token(token: str) -> str:
    return token[:1].upper() + token[1:].lower()


def normalize_display_name(raw_name: str | None) -> str | None:
    """Canonicalize a reporting person's name for display.

    SEC ownership documents usually carry the filer name as "LAST FIRST MIDDLE"
    in upper case (e.g. "MUSK ELON"). Names in that shape are reversed and
    capitalized token by token ("Elon Musk"). Anything else, including
    mixed-case names and single words, passes through unchanged.

    Returns None for a blank or missing name.
    """
    if raw_name is None:
        return None
    s = str(raw_name)
    if not s.strip():
        return None

    tokens = s.split()
    if len(tokens) < 2 or not s.isupper():
        return s

    return " ".join(_capitalize_token(tok) for tok in reversed(tokens))
