"""Header mapping: resolve raw spreadsheet column names to canonical field keys.

Matching is tiered. A header is first compared case-insensitively against every known
synonym, then by its normalized form (punctuation and spacing removed), and finally by
bidirectional substring containment of normalized forms. ``auto_map_headers`` claims
headers tier by tier so that a weaker match can never steal a header that a stronger
match for another key would have taken.
"""

from __future__ import annotations

import re
from typing import Callable, Iterable, Sequence

from pydantic import BaseModel, Field

from ledgerport.core.types import CanonicalKey
from ledgerport.models.schema import CANONICAL_FIELDS, HEADER_SYNONYMS

# Contained strings shorter than this never produce a fuzzy match.
FUZZY_MIN_LENGTH = 3

_NON_KEY_CHARS = re.compile(r"[^a-z0-9\u0600-\u06FF]")

_SYNONYMS: dict[CanonicalKey, tuple[str, ...]] = dict(HEADER_SYNONYMS)


def normalize_header(header: str) -> str:
    """Lower-case and strip everything but ASCII letters, digits and Arabic script."""
    return _NON_KEY_CHARS.sub("", header.lower())


def _exact(raw: str, synonym: str) -> bool:
    return raw.strip().lower() == synonym.lower()


def _normalized(raw: str, synonym: str) -> bool:
    norm = normalize_header(raw)
    return bool(norm) and norm == normalize_header(synonym)


def _fuzzy(raw: str, synonym: str) -> bool:
    norm = normalize_header(raw)
    norm_syn = normalize_header(synonym)
    if not norm or not norm_syn:
        return False
    if len(norm_syn) >= FUZZY_MIN_LENGTH and norm_syn in norm:
        return True
    return len(norm) >= FUZZY_MIN_LENGTH and norm in norm_syn


_TIERS: tuple[Callable[[str, str], bool], ...] = (_exact, _normalized, _fuzzy)


def _matches(raw: str, key: CanonicalKey, tier: Callable[[str, str], bool]) -> bool:
    return any(tier(raw, synonym) for synonym in _SYNONYMS.get(key, ()))


def map_header_to_canonical(raw_header: str) -> CanonicalKey | None:
    """Map a single raw header to a canonical key, or None when nothing matches."""
    for tier in _TIERS:
        for key, _ in HEADER_SYNONYMS:
            if _matches(raw_header, key, tier):
                return key
    return None


def auto_map_positions(raw_headers: Sequence[str]) -> dict[CanonicalKey, int]:
    """Map canonical keys to column positions, one-to-one.

    Within a tier, keys claim in schema order and each key takes the first unclaimed
    raw header (source order) that matches it. Unmatched headers are left out.
    """
    positions: dict[CanonicalKey, int] = {}
    claimed: set[int] = set()

    for tier in _TIERS:
        for key, _ in HEADER_SYNONYMS:
            if key in positions:
                continue
            for position, raw in enumerate(raw_headers):
                if position in claimed or not raw:
                    continue
                if _matches(raw, key, tier):
                    positions[key] = position
                    claimed.add(position)
                    break

    # Schema declaration order.
    order = {field.key: i for i, field in enumerate(CANONICAL_FIELDS)}
    return dict(sorted(positions.items(), key=lambda item: order.get(item[0], len(order))))


def auto_map_headers(raw_headers: Sequence[str]) -> dict[CanonicalKey, str]:
    """Map canonical keys to the raw header each one claimed."""
    return {key: raw_headers[pos] for key, pos in auto_map_positions(raw_headers).items()}


def missing_required_fields(mapping: dict[CanonicalKey, str]) -> list[CanonicalKey]:
    return [field.key for field in CANONICAL_FIELDS if field.required and field.key not in mapping]


class HeaderMappingPreview(BaseModel):
    """Mapping result shaped for a review screen."""

    mapping: dict[str, str] = Field(default_factory=dict)
    unmapped_headers: list[str] = Field(default_factory=list)
    missing_required: list[str] = Field(default_factory=list)

    @property
    def is_complete(self) -> bool:
        return not self.missing_required


def describe_mapping(raw_headers: Iterable[str]) -> HeaderMappingPreview:
    headers = list(raw_headers)
    positions = auto_map_positions(headers)
    used = set(positions.values())
    mapping = {key: headers[pos] for key, pos in positions.items()}
    return HeaderMappingPreview(
        mapping=mapping,
        unmapped_headers=[h for i, h in enumerate(headers) if i not in used and h],
        missing_required=missing_required_fields(mapping),
    )
