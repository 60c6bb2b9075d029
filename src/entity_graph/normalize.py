"""Token -> entity key canonicalization.

Person names go through a small, lossy inflection reduction (Polish case
endings back to a nominative-looking stem). It is a heuristic, not a
morphological analyzer: distinct real names can collide and short names can
lose a legitimate ending. The rules are data (`InflectionRules`) so callers can
swap them out.
"""

from __future__ import annotations

import unicodedata
from dataclasses import dataclass
from typing import Literal

RoleHint = Literal["person", "place"]

# Letters that carry no combining mark under NFD.
_NON_DECOMPOSING = str.maketrans({"ł": "l", "Ł": "L", "đ": "d", "Đ": "D", "ø": "o", "Ø": "O"})


def strip_diacritics(text: str) -> str:
    decomposed = unicodedata.normalize("NFD", text.translate(_NON_DECOMPOSING))
    return "".join(c for c in decomposed if not unicodedata.combining(c))


def fold(text: str) -> str:
    """Diacritic-free uppercase form with surrounding whitespace removed."""
    # upper() can itself emit combining marks (e.g. U+01F0), so strip after it.
    return strip_diacritics(strip_diacritics(text.strip()).upper())


def match_key(name: str) -> str:
    """Case/diacritic-insensitive key used to look names up in tabular data."""
    return strip_diacritics(name.strip()).lower()


@dataclass(frozen=True, slots=True)
class InflectionRules:
    """Ordered suffix-stripping rules for person names.

    `base_forms` win over the generic suffixes: a folded name that starts with
    the prefix (or already equals the base) maps straight to the base. Suffixes
    are tried in order and stripped repeatedly until none applies without
    cutting the stem below `min_stem` characters. Whitespace exposed by a
    stripped suffix is trimmed with it.
    """

    base_forms: tuple[tuple[str, str], ...] = (
        ("ALEKSANDR", "ALEKSANDER"),
        ("BARBAR", "BARBARA"),
        ("RAFAL", "RAFAL"),
    )
    suffixes: tuple[str, ...] = ("OWI", "OW", "EM", "IE", "U", "A", "E", "Y")
    min_stem: int = 3

    def reduce(self, folded: str) -> str:
        for prefix, base in self.base_forms:
            if folded == base or folded.startswith(prefix):
                return base

        stem = folded
        changed = True
        while changed:
            changed = False
            for suffix in self.suffixes:
                if stem.endswith(suffix) and len(stem) - len(suffix) >= self.min_stem:
                    stem = stem[: -len(suffix)].rstrip()
                    changed = True
                    break
        return stem


DEFAULT_RULES = InflectionRules()


def normalize(raw: str, role_hint: RoleHint, *, rules: InflectionRules = DEFAULT_RULES) -> str:
    """Canonical entity key for `raw`.

    Places are only folded; persons are folded and then inflection-reduced.
    Pure and idempotent: normalize(normalize(x, r), r) == normalize(x, r).
    """
    folded = fold(raw)
    if role_hint == "place":
        return folded
    if role_hint != "person":
        raise ValueError(f"role_hint must be 'person' or 'place', got {role_hint!r}")
    return rules.reduce(folded)
