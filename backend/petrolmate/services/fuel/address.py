"""
Address normalization for scraped station listings

Two listing layouts are seen on the source site:
    - suburb-marked: the suburb is a tagged element inside the details block
      and the postcode is whatever follows it on the last line
    - positional: the line after the street holds "Suburb, 5000" (or the
      suburb, with the postcode on the following line)

Intersection-style streets ("Cnr Main St & Smith Rd") are kept or truncated
according to IntersectionMode. Both behaviours exist in stored data, so the
choice is configuration (INTERSECTION_MODE), not inference.
"""
import re
from enum import Enum
from typing import List, Optional

from petrolmate.schemas.fuel import Address

INTERSECTION_MARKER = re.compile(r'\b(?:cnr|corner)\b\.?', re.IGNORECASE)
INTERSECTION_JOINER = re.compile(r'\s*(?:&|/|\band\b)\s*', re.IGNORECASE)
PARENTHESIZED = re.compile(r'\s*\([^)]*\)')
TRAILING_POSTCODE = re.compile(r'^(?P<suburb>.*?)[\s,]*(?P<postcode>\d{4})$')
POSTCODE = re.compile(r'^\d{4}$')


class IntersectionMode(str, Enum):
    KEEP = "keep"
    TRUNCATE = "truncate"


def title_case(text: str) -> str:
    """Capitalise the first character of each word, lower-case the rest"""
    return ' '.join(word[:1].upper() + word[1:].lower() for word in text.split())


def _truncate_once(street: str) -> str:
    match = INTERSECTION_MARKER.search(street)
    if not match:
        return street

    # Only the comma-separated segment holding the marker is rewritten
    segment_start = street.rfind(',', 0, match.start()) + 1
    segment_end = street.find(',', match.end())
    if segment_end == -1:
        segment_end = len(street)

    replacement = street[segment_start:match.start()].strip(' &-/')
    if not replacement:
        # "Cnr X & Y" with nothing in front: keep the first road
        replacement = INTERSECTION_JOINER.split(street[match.end():segment_end], maxsplit=1)[0].strip()

    pieces = (street[:segment_start], replacement, street[segment_end:])
    return ', '.join(piece.strip(' ,') for piece in pieces if piece.strip(' ,'))


def resolve_intersection(street: str, mode: IntersectionMode = IntersectionMode.KEEP) -> str:
    """
    Apply the intersection policy to a street line.

    TRUNCATE cuts the street at the first Cnr/Corner marker. When the marker
    starts its comma segment, the first road of the intersection is kept
    instead ("Shop 2, Cnr Main St & Smith Rd" -> "Shop 2, Main St").
    Repeats until no marker is left, so the result is stable under
    re-normalization.
    """
    if IntersectionMode(mode) is IntersectionMode.KEEP:
        return street

    result = street
    while INTERSECTION_MARKER.search(result):
        truncated = _truncate_once(result)
        if truncated == result:
            break
        result = truncated
    return result


def normalize_street(street: str, mode: IntersectionMode = IntersectionMode.KEEP) -> str:
    """Street line without parenthesized asides or extra whitespace, intersection policy applied"""
    return resolve_intersection(' '.join(PARENTHESIZED.sub('', street).split()), mode)


def _street_segment_count(parts: List[str]) -> int:
    # "street, suburb, postcode": everything before the suburb is street
    if len(parts) <= 1:
        return len(parts)
    trailing = 2 if POSTCODE.match(parts[-1]) else 1
    return max(len(parts) - trailing, 0)


def normalize_full_address(text: str, mode: IntersectionMode = IntersectionMode.KEEP) -> str:
    """
    Clean a combined "street, suburb, postcode" string.

    Drops parenthesized asides, collapses whitespace and empty segments,
    applies the intersection policy to the street segments only (never the
    suburb or postcode) and title-cases every segment. Idempotent:
    normalizing the output again returns it unchanged.
    """
    text = PARENTHESIZED.sub('', text)
    parts = [' '.join(part.split()) for part in text.split(',')]
    parts = [part for part in parts if part]

    street_count = _street_segment_count(parts)
    if street_count:
        street = resolve_intersection(', '.join(parts[:street_count]), mode)
        parts = [part for part in street.split(', ') if part] + parts[street_count:]

    return ', '.join(title_case(part) for part in parts)


def _postcode_after_suburb(line: str, suburb: str) -> str:
    remainder = line.split(suburb)[-1] if suburb in line else line
    return remainder.strip().lstrip(',').strip()


def normalize_address(
    remaining_lines: List[str],
    street: str,
    suburb_text: Optional[str] = None,
    mode: IntersectionMode = IntersectionMode.KEEP,
) -> Address:
    """
    Build an Address from the details lines that follow name and street.

    Args:
        remaining_lines: Trimmed, non-empty lines after the street line
        street: Raw street line, kept verbatim in street_address
        suburb_text: Tagged suburb element text (suburb-marked layout), or None
        mode: Intersection policy applied to the street when building full_address

    Returns:
        Frozen Address with a derived full_address
    """
    if suburb_text and suburb_text.strip():
        suburb = ' '.join(suburb_text.split())
        last_line = remaining_lines[-1] if remaining_lines else ''
        postcode = _postcode_after_suburb(last_line, suburb)
    else:
        suburb_line = remaining_lines[0] if remaining_lines else ''
        match = TRAILING_POSTCODE.match(suburb_line)
        if match:
            suburb = match.group('suburb').strip(' ,')
            postcode = match.group('postcode')
        else:
            suburb = suburb_line
            postcode = remaining_lines[1].strip() if len(remaining_lines) > 1 else ''

    combined = ', '.join(part for part in (normalize_street(street, mode), suburb, postcode) if part)

    return Address(
        street_address=street,
        suburb=suburb,
        postcode=postcode,
        full_address=normalize_full_address(combined),
    )
