"""Event-type vocabulary: the canonical NWS list and the EVTYPE normalizer.

The raw ``EVTYPE`` column holds ~900 distinct spellings for what the
National Weather Service (Directive 10-1605) defines as 48 event types.
``normalize_event_type`` folds a label through ``EVENT_TYPE_RULES``, an
ordered cascade of regex rewrites:

1. Token clean-ups rewrite abbreviations and misspellings inside the
   label (``TSTM`` → ``THUNDERSTORM``, ``FLD`` → ``FLOOD``, ...).
2. Whole-label collapses are anchored ``^...$`` and replace the entire
   label with one canonical name.

Each rule sees the output of every rule before it, so order matters.
Every canonical name is left untouched by the whole cascade, which keeps
normalization idempotent.  Labels no rule recognises pass through
(trimmed and upper-cased) and are reported as non-standard downstream.
"""

from __future__ import annotations

import logging
import re
from pathlib import Path

import pandas as pd

logger = logging.getLogger(__name__)

# "Hurricane (Typhoon) Z" → "Hurricane (Typhoon)"
_SCOPE_SUFFIX: re.Pattern = re.compile(r"\s+[CMZ]$")

Rule = tuple[re.Pattern, str]


def _rule(pattern: str, replacement: str) -> Rule:
    return re.compile(pattern), replacement


# ── Rewrite cascade (order is significant) ───────────────────────────
EVENT_TYPE_RULES: tuple[Rule, ...] = (
    # Token clean-ups
    _rule(r"\s+", " "),
    _rule(
        r"\b(TSTM|THUNDERSTORMS|THUNDERSTROM|THUNERSTORM|TUNDERSTORM"
        r"|THUNDEERSTORM|THUDERSTORM|THUNDERTORM|THUNDESTORM|THUNDERSTORMW)\b",
        "THUNDERSTORM",
    ),
    _rule(r"\b(WINDS|WND)\b", "WIND"),
    _rule(r"\b(FLD|FLOODING|FLOODIN|FLOODS)\b", "FLOOD"),
    _rule(r"\bSML\b", "SMALL"),
    _rule(r"\bCSTL\b", "COASTAL"),
    # Marine types must run before the land-based wind and hail rules
    _rule(r"^MARINE THUNDERSTORM.*$", "MARINE THUNDERSTORM WIND"),
    _rule(r"^MARINE HIGH WIND.*$", "MARINE HIGH WIND"),
    _rule(r"^MARINE STRONG WIND.*$", "MARINE STRONG WIND"),
    _rule(r"^MARINE HAIL.*$", "MARINE HAIL"),
    # Convective
    _rule(r"^WATER ?SPOUT.*$", "WATERSPOUT"),
    _rule(r"^(TORNADO|TORNDAO).*$", "TORNADO"),
    _rule(r"^(SEVERE )?THUNDERSTORM.*$", "THUNDERSTORM WIND"),
    _rule(
        r"^(GUSTNADO|DOWNBURST|MICROBURST|DRY MICROBURST|WET MICROBURST).*$",
        "THUNDERSTORM WIND",
    ),
    _rule(r"^(SMALL )?HAIL.*$", "HAIL"),
    _rule(r"^FUNNEL.*$", "FUNNEL CLOUD"),
    _rule(r"^(LIGHTNING|LIGHTING|LIGNTNING).*$", "LIGHTNING"),
    # Tropical.  HURRICANE/TYPHOON and HURRICANE (TYPHOON) stay separate keys
    _rule(r"^TYPHOON$", "HURRICANE/TYPHOON"),
    _rule(r"^HURRICANE(?!/TYPHOON$).*$", "HURRICANE (TYPHOON)"),
    _rule(r"^TROPICAL STORM.*$", "TROPICAL STORM"),
    _rule(r"^TROPICAL DEPRESSION.*$", "TROPICAL DEPRESSION"),
    _rule(
        r"^(STORM SURGE|COASTAL SURGE|STORM TIDE|ASTRONOMICAL HIGH TIDE).*$",
        "STORM SURGE/TIDE",
    ),
    # Flood family: the general collapse skips the labels refined below
    _rule(r"^(?!.*(FLASH|COASTAL|LAKE|TIDAL|BEACH)).*FLOOD.*$", "FLOOD"),
    _rule(r"^(?=.*FLASH).*FLOO.*$", "FLASH FLOOD"),
    _rule(r"^(COASTAL|TIDAL|BEACH).*FLOOD.*$", "COASTAL FLOOD"),
    _rule(r"^LAKE(SHORE)? FLOOD.*$", "LAKESHORE FLOOD"),
    # Precipitation
    _rule(
        r"^(HEAVY |EXCESSIVE |RECORD |TORRENTIAL |UNSEASONAL |HVY )?"
        r"(RAIN|RAINFALL|PRECIPITATION|PRECIP|SHOWERS?)\b.*$",
        "HEAVY RAIN",
    ),
    _rule(r"^(GLAZE|ICE STORM).*$", "ICE STORM"),
    _rule(r"^SLEET.*$", "SLEET"),
    # Visibility
    _rule(r"^(DENSE )?FOG.*$", "DENSE FOG"),
    _rule(r"^(DENSE )?SMOKE.*$", "DENSE SMOKE"),
    # Temperature
    _rule(r"^(EXCESSIVE|EXTREME|RECORD) HEAT.*$", "EXCESSIVE HEAT"),
    _rule(r"^(HEAT\b.*|.*WARM.*|HYPERTHERMIA.*)$", "HEAT"),
    _rule(
        r"^((RECORD|EXTREME|EXCESSIVE|SEVERE) (COLD|WIND ?CHILL)|HYPOTHERMIA).*$",
        "EXTREME COLD/WIND CHILL",
    ),
    _rule(
        r"^(COLD|WIND ?CHILL|LOW TEMPERATURE|UNSEASONABLY COLD|UNSEASONABLE COLD)\b.*$",
        "COLD/WIND CHILL",
    ),
    _rule(
        r"^(FROST|FREEZE|HARD FREEZE|AGRICULTURAL FREEZE|DAMAGING FREEZE"
        r"|EARLY FROST|EARLY FREEZE)\b.*$",
        "FROST/FREEZE",
    ),
    # Winter
    _rule(r"^LAKE[- ]?EFFECT SNOW.*$", "LAKE-EFFECT SNOW"),
    _rule(r"^BLIZZARD.*$", "BLIZZARD"),
    _rule(r"^WINTER STORM.*$", "WINTER STORM"),
    _rule(
        r"^(WINTER WEATHER|WINTER MIX|WINTRY|MIXED PRECIP|FREEZING RAIN"
        r"|FREEZING DRIZZLE|LIGHT SNOW|ICY ROADS|ICE ON ROAD|ICE ROADS"
        r"|BLACK ICE).*$",
        "WINTER WEATHER",
    ),
    _rule(r"^(HEAVY |EXCESSIVE |RECORD )?SNOW.*$", "HEAVY SNOW"),
    # Wind (after the thunderstorm, marine and wind-chill rules)
    _rule(r"^(HIGH|SEVERE) WIND.*$", "HIGH WIND"),
    _rule(r"^((STRONG|GUSTY|GRADIENT|NON-SEVERE) )?WIND.*$", "STRONG WIND"),
    # Coastal
    _rule(
        r"^((HIGH|HEAVY|HAZARDOUS|ROUGH) (SURF|SEAS|SWELLS|WAVES)|ROGUE WAVE).*$",
        "HIGH SURF",
    ),
    _rule(r"^RIP CURRENT.*$", "RIP CURRENT"),
    # Everything else
    _rule(r"^(WILDFIRE|.*(WILD|FOREST|BRUSH|GRASS).*FIRE).*$", "WILDFIRE"),
    _rule(
        r"^(LAND ?SLIDE|LAND ?SLUMP|MUD ?SLIDE|ROCK ?SLIDE|DEBRIS FLOW).*$",
        "DEBRIS FLOW",
    ),
    _rule(r"^AVALAN.*$", "AVALANCHE"),
    _rule(r"^DUST ?DEVIL.*$", "DUST DEVIL"),
    _rule(r"^(DUST ?STORM|BLOWING DUST).*$", "DUST STORM"),
    _rule(r"^VOLCANIC.*$", "VOLCANIC ASH"),
    _rule(r"^DROUGHT.*$", "DROUGHT"),
)


def normalize_event_type(
    label: object, rules: tuple[Rule, ...] = EVENT_TYPE_RULES
) -> str:
    """Rewrite one raw EVTYPE label into its canonical form.

    The label is trimmed and upper-cased, then folded through ``rules``
    in order.  A label that no rule recognises comes back unchanged apart
    from the clean-ups; this is a normal outcome, not an error.

    Examples:
        "TSTM WIND"            → "THUNDERSTORM WIND"
        "  Hurricane Opal  "   → "HURRICANE (TYPHOON)"
        "URBAN/SML STREAM FLD" → "FLOOD"
    """
    value = "" if pd.isna(label) else str(label).strip().upper()
    for pattern, replacement in rules:
        value = pattern.sub(replacement, value)
    return value


def normalize_event_type_series(
    labels: pd.Series, rules: tuple[Rule, ...] = EVENT_TYPE_RULES
) -> pd.Series:
    """Vectorised ``normalize_event_type`` for a whole column.

    The cascade runs once per distinct label and the result is mapped back,
    so cost scales with the vocabulary, not with the row count.
    """
    distinct = labels.dropna().unique()
    mapping = {label: normalize_event_type(label, rules) for label in distinct}
    return labels.map(mapping).fillna("")


def load_canonical_event_types(path: str | Path) -> frozenset[str]:
    """Read the reference list of canonical event types.

    One name per line, optionally followed by a single-letter scope
    designator (C = county, Z = zone, M = marine) that is stripped.
    Blank lines and ``#`` comments are ignored.

    Raises:
        FileNotFoundError: the list is missing.  Nothing downstream can
            be validated without it, so the run must stop.
    """
    path = Path(path)
    if not path.is_file():
        raise FileNotFoundError(f"Canonical event type list not found: {path}")

    names = set()
    for line in path.read_text(encoding="utf-8").splitlines():
        line = line.strip()
        if not line or line.startswith("#"):
            continue
        names.add(_SCOPE_SUFFIX.sub("", line.upper()))

    logger.info("Loaded %d canonical event types from %s", len(names), path)
    return frozenset(names)
