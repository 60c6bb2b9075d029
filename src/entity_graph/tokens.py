from __future__ import annotations

import json
import re
from dataclasses import dataclass, field
from typing import Any, Iterable, Mapping

from .normalize import DEFAULT_RULES, InflectionRules, fold, normalize

_UPPER = "A-ZĄĆĘŁŃÓŚŹŻ"
_LOWER = "a-ząćęłńóśźż"

# Uppercase runs inside an oracle reply ("KRAKOW", "BARBARA").
_UPPER_TOKEN_RE = re.compile(rf"(?<!\w)[{_UPPER}]{{3,}}(?!\w)")
# Capitalized words inside free text ("Barbara", "KRAKÓW").
_CAPITALIZED_RE = re.compile(rf"[{_UPPER}][{_LOWER}{_UPPER}]{{2,}}")


def stringify(payload: Any) -> str:
    if isinstance(payload, str):
        return payload
    if isinstance(payload, bytes):
        return payload.decode("utf-8", errors="replace")
    try:
        return json.dumps(payload, ensure_ascii=False)
    except (TypeError, ValueError):
        return str(payload)


def _unique(items: Iterable[str]) -> list[str]:
    seen: set[str] = set()
    out: list[str] = []
    for x in items:
        if x and x not in seen:
            seen.add(x)
            out.append(x)
    return out


def extract_upper_tokens(payload: Any) -> list[str]:
    """Uppercase alphabetic tokens (len >= 3) in order of first appearance.

    Schema-agnostic: the payload is stringified and scanned.
    """
    return _unique(_UPPER_TOKEN_RE.findall(stringify(payload)))


@dataclass(slots=True)
class Seeds:
    persons: list[str] = field(default_factory=list)
    places: list[str] = field(default_factory=list)


def extract_seeds(
    text: str,
    *,
    seed_persons: Iterable[str] = (),
    place_hints: Mapping[str, str] | None = None,
    rules: InflectionRules = DEFAULT_RULES,
) -> Seeds:
    """Initial frontiers from a free-text note.

    Every capitalized word is a person candidate; words written in capitals
    are place candidates too. `place_hints` maps a folded substring of the note
    to the place it implies (e.g. "WARSZAW" -> "WARSZAWA"). `seed_persons` are
    always added.
    """
    persons: list[str] = []
    places: list[str] = []

    for line in re.split(r"\n+", text or ""):
        for token in _CAPITALIZED_RE.findall(line):
            if token == token.upper():
                places.append(normalize(token, "place"))
            persons.append(normalize(token, "person", rules=rules))

    folded_note = fold(text or "")
    for needle, place in (place_hints or {}).items():
        if fold(needle) in folded_note:
            places.append(normalize(place, "place"))

    persons.extend(normalize(p, "person", rules=rules) for p in seed_persons)
    return Seeds(persons=_unique(persons), places=_unique(places))
