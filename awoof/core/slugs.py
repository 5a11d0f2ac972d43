"""URL-safe identifiers derived from names and domains."""

import re

_NON_ALNUM = re.compile(r"[^a-z0-9]+")


def slugify(name: str) -> str:
    """'Books & Stationery' -> 'books-stationery'."""
    return _NON_ALNUM.sub("-", name.lower()).strip("-")


def shortcode_from_domain(domain: str) -> str:
    """'unilag.edu.ng' -> 'unilag'."""
    return domain.split(".")[0].lower() if domain else ""
