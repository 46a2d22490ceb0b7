"""URL slugs for family names."""

import re
import unicodedata

_NON_WORD = re.compile(r"[^a-z0-9\s-]")
_SEPARATORS = re.compile(r"[\s_-]+")


def slugify(value: str) -> str:
    """'The Smiths & Co.' -> 'the-smiths-co'."""
    value = unicodedata.normalize("NFKD", value).encode("ascii", "ignore").decode("ascii")
    value = _NON_WORD.sub("", value.lower())
    return _SEPARATORS.sub("-", value).strip("-")
