"""
utils/names.py
-----------------
Name canonicalization used by every insert path (manual add and bulk
import) and by the import header matcher.
"""

import re
import unicodedata

_WHITESPACE = re.compile(r"\s+")


def normalize(name):
    """Trim and case-fold a child's name for duplicate comparison."""
    if name is None:
        return ""
    return str(name).strip().casefold()


def is_duplicate(a, b):
    return normalize(a) == normalize(b)


def normalize_header(text):
    # Spreadsheet headers: "رقم التلفون 1" and "رقم التلفون1" match
    if text is None:
        return ""
    return _WHITESPACE.sub("", str(text).strip().casefold())


def sort_key(name):
    """
    Collation key for roster ordering. Decomposes the name, drops
    combining marks (Arabic harakat, Latin accents) and case-folds, so
    names sort by their base letters in any script.
    """
    decomposed = unicodedata.normalize("NFKD", (name or "").strip())
    base = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    # Tatweel is purely typographic
    return base.replace("ـ", "").casefold()


def name_set(records):
    return {normalize(r.get("name")) for r in records if normalize(r.get("name"))}
