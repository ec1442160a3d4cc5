"""Text normalization for Swedish police-report location names."""
import re
from typing import List, Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from polisgeo.core.location_index import LocationIndex


# Locative clauses police titles put in front of the place ("i Malmö", "vid Slussen").
# Longest alternative first so "i närheten av" is not cut short at "i".
LOCATIVE_PREFIX = re.compile(r"^(i närheten av|i|på|vid|nära)\s+(.+)$", re.IGNORECASE)

# Administrative-unit suffixes. Stripped once; "x kommun län" keeps "kommun".
ADMINISTRATIVE_SUFFIX = re.compile(r"\s+(kommun|län|stad|region|landskap)$")

# Incident categories that lead many event titles ("Trafikolycka, Enköping")
INCIDENT_TYPES = (
    "trafikolycka",
    "misshandel",
    "bedrägeri",
    "stöld",
    "brand",
    "knivlagen",
    "rån",
    "inbrott",
)
INCIDENT_PREFIX = re.compile(r"^(" + "|".join(INCIDENT_TYPES) + r"),?\s+", re.IGNORECASE)

SEPARATOR_RUNS = re.compile(r"[\s\-–—]+")

# ASCII-folded spellings of place names mapped back to their diacritics
TRANSLITERATIONS = {
    "vaexjoe": "växjö",
    "vaeckelsaang": "väckelsång",
    "goeteborg": "göteborg",
    "malmoe": "malmö",
    "oerebro": "örebro",
    "aengelholm": "ängelholm",
    "gaevle": "gävle",
}
TRANSLITERATION_PATTERNS = [
    (re.compile(r"\b" + re.escape(variant) + r"\b"), canonical)
    for variant, canonical in TRANSLITERATIONS.items()
]

# Splits "a, b" and "a in b" into parts for the multi-part retry
LOCATION_PART_SEPARATOR = re.compile(r",|\sin\s")

TRAILING_WORD = re.compile(r"\s+(\w+)$")


def simple_normalize(text: Optional[str]) -> str:
    """Lowercase and trim. Used as the cache key form of a name."""
    if not text:
        return ""
    return text.lower().strip()


def normalize_location_name(location_name: Optional[str], index: Optional["LocationIndex"] = None) -> str:
    """
    Normalize a raw police-report location string into a lookup key.

    Steps, in order: strip a leading locative clause, lowercase, strip one
    administrative suffix, strip an incident-type prefix, collapse hyphen and
    whitespace runs, fix ASCII-folded spellings, and prefer a space-joined
    variant of a hyphenated name when the index knows it.

    Args:
        location_name: Raw location string
        index: Optional location index used for the hyphen variant check

    Returns:
        Normalized location name ("" for empty input)
    """
    if not location_name:
        return ""

    prefix_match = LOCATIVE_PREFIX.match(location_name)
    if prefix_match:
        location_name = prefix_match.group(2)

    normalized = location_name.lower()
    normalized = ADMINISTRATIVE_SUFFIX.sub("", normalized, count=1)
    normalized = INCIDENT_PREFIX.sub("", normalized, count=1)
    normalized = SEPARATOR_RUNS.sub(" ", normalized).strip()

    for pattern, canonical in TRANSLITERATION_PATTERNS:
        normalized = pattern.sub(canonical, normalized)

    if "-" in normalized and index is not None:
        hyphen_variant = " ".join(part.strip() for part in normalized.split("-"))
        if index.find_by_exact_name(hyphen_variant):
            return hyphen_variant

    return normalized


def split_location_parts(normalized_name: str) -> List[str]:
    """
    Split a normalized name on commas and " in ".

    Returns:
        Non-empty, trimmed parts in their original order
    """
    if not normalized_name:
        return []
    parts = (part.strip() for part in LOCATION_PART_SEPARATOR.split(normalized_name))
    return [part for part in parts if part]


def extract_location(location_name: Optional[str], index: "LocationIndex") -> Optional[str]:
    """
    Extract the place part from a police event title.

    Comma-separated titles put the place last ("Trafikolycka, personskada,
    Enköping"). Without commas, fall back to the closest fuzzy match, then to
    a trailing word that is a known place.

    Args:
        location_name: Event title or location string
        index: Location index to check candidates against

    Returns:
        The extracted place name, or None
    """
    if not location_name:
        return None

    parts = location_name.split(",")
    if len(parts) > 2:
        return parts[-1].strip()
    if len(parts) == 2:
        return parts[1].strip()

    normalized = normalize_location_name(location_name, index)
    fuzzy_matches = index.find_by_fuzzy_match(normalized, 2, 1)
    if fuzzy_matches:
        return fuzzy_matches[0].name

    trailing = TRAILING_WORD.search(location_name)
    if trailing and index.find_by_exact_name(trailing.group(1)):
        return trailing.group(1)

    return None
