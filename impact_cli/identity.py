"""Author identity resolution.

Commits are aggregated under the *resolved display name*. Alias lookups
are exact: no case folding or whitespace trimming is applied to the
email, so callers needing case-insensitive merging must normalize the
keys before building the alias table.
"""

from typing import Dict, Mapping, Optional


def resolve_identity(email: str, name: str, aliases: Optional[Mapping[str, str]] = None) -> str:
    """Return the canonical name for an author: the alias for ``email`` if any, else ``name``."""
    if aliases and email in aliases:
        return aliases[email]
    return name


def parse_alias_lines(text: str) -> Dict[str, str]:
    """Parse ``email=Name`` mappings, one per line (commas also separate entries).

    Blank lines and entries without ``=`` are ignored; later entries win.
    """
    aliases: Dict[str, str] = {}
    if not text:
        return aliases
    for line in text.replace(",", "\n").splitlines():
        if "=" not in line:
            continue
        key, value = line.split("=", 1)
        key, value = key.strip(), value.strip()
        if key and value:
            aliases[key] = value
    return aliases
