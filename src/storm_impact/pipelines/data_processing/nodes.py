"""Raw → normalized transformation nodes for the NOAA storm database.

Each function is a Kedro node.  Together they take the compressed
``StormData.csv.bz2`` export (1950–2011, ~900K rows, 37 columns) and
produce one row per impactful event with dollar-valued damage and a
canonical event type.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from pathlib import Path
from typing import Any

import pandas as pd
import requests

from storm_impact.event_types import normalize_event_type_series

logger = logging.getLogger(__name__)

# ── Source columns we keep, and their snake_case names ──────────────
IMPACT_COLUMNS: dict[str, str] = {
    "evtype": "event_type",
    "fatalities": "fatalities",
    "injuries": "injuries",
    "propdmg": "prop_dmg",
    "propdmgexp": "prop_dmg_exp",
    "cropdmg": "crop_dmg",
    "cropdmgexp": "crop_dmg_exp",
}

_IMPACT_MEASURES: list[str] = ["fatalities", "injuries", "prop_dmg", "crop_dmg"]

# ── Multipliers for PROPDMGEXP / CROPDMGEXP codes ───────────────────
# "0", "?", blanks and anything unlisted fall back to 1.
_EXPONENT_MULTIPLIERS: dict[str, int] = {
    "?": 1,
    "0": 1,
    **{str(power): 10**power for power in range(1, 9)},
    "H": 100,
    "K": 1_000,
    "M": 1_000_000,
    "B": 1_000_000_000,
}


# ── Node 1 ───────────────────────────────────────────────────────────
def fetch_storm_data(storm_data: dict[str, Any]) -> str:
    """Make sure the compressed storm database is on local disk.

    Reuses ``storm_data["path"]`` if it exists.  Otherwise downloads
    ``storm_data["url"]`` into a ``.part`` file and renames it once the
    transfer has finished, so an interrupted download is never mistaken
    for a cached copy.

    Args:
        storm_data: Parameters with ``url``, ``path`` and optional
            ``timeout`` (seconds).

    Returns:
        Path of the local (still compressed) file.
    """
    target = Path(storm_data["path"])
    if target.exists():
        logger.info(
            "Using cached storm data %s (%.1f MB)",
            target,
            target.stat().st_size / 1024 / 1024,
        )
        return str(target)

    url = storm_data["url"]
    target.parent.mkdir(parents=True, exist_ok=True)
    partial = target.with_name(target.name + ".part")

    logger.info("Downloading storm data from %s", url)
    with requests.get(url, stream=True, timeout=storm_data.get("timeout", 300)) as response:
        response.raise_for_status()
        with open(partial, "wb") as f:
            for chunk in response.iter_content(chunk_size=1024 * 1024):
                if chunk:
                    f.write(chunk)

    partial.replace(target)
    logger.info(
        "Saved %s (%.1f MB)", target, target.stat().st_size / 1024 / 1024
    )
    return str(target)


# ── Node 2 ───────────────────────────────────────────────────────────
def select_impact_columns(df: pd.DataFrame) -> pd.DataFrame:
    """Keep the event type and the four impact measures with their exponents.

    Args:
        df: Raw rows with the original upper-case headers.

    Returns:
        DataFrame with the seven columns in IMPACT_COLUMNS, renamed.
    """
    df = df.rename(columns=lambda c: c.strip().lower())
    missing = [c for c in IMPACT_COLUMNS if c not in df.columns]
    if missing:
        raise KeyError(f"Expected columns not found in data: {missing}")

    projected = df[list(IMPACT_COLUMNS)].rename(columns=IMPACT_COLUMNS)
    for col in _IMPACT_MEASURES:
        projected[col] = pd.to_numeric(projected[col], errors="coerce").fillna(0)
    projected["fatalities"] = projected["fatalities"].astype("int64")
    projected["injuries"] = projected["injuries"].astype("int64")
    return projected


def filter_impactful_events(df: pd.DataFrame) -> pd.DataFrame:
    """Drop events with no fatalities, injuries, property or crop damage.

    Such rows say nothing about impact; removing them shrinks the
    working set by roughly 70%.

    Args:
        df: Projected DataFrame from select_impact_columns.

    Returns:
        Rows where at least one impact measure is non-zero.
    """
    impactful = (df[_IMPACT_MEASURES] != 0).any(axis=1)
    return df[impactful].copy()


def _iter_raw_chunks(path: str, chunksize: int) -> Iterator[pd.DataFrame]:
    """Stream the source CSV in chunks; bz2/gz are decompressed on the fly."""
    with pd.read_csv(
        path,
        usecols=lambda c: c.strip().lower() in IMPACT_COLUMNS,
        chunksize=chunksize,
        dtype=str,
        keep_default_na=False,
        na_values=[""],
    ) as reader:
        yield from reader


def load_impactful_events(storm_data_path: str, chunksize: int) -> pd.DataFrame:
    """Stream the raw file, projecting and filtering every chunk.

    Only the retained rows of each chunk are kept in memory, so peak
    usage is bounded by ``chunksize`` plus the impactful subset.

    Args:
        storm_data_path: Local path returned by fetch_storm_data.
        chunksize: Rows per chunk.

    Returns:
        Impactful events with the projected columns.
    """
    frames: list[pd.DataFrame] = []
    total = 0
    for chunk in _iter_raw_chunks(storm_data_path, chunksize):
        total += len(chunk)
        frames.append(filter_impactful_events(select_impact_columns(chunk)))

    if not frames:
        raise ValueError(f"No rows found in {storm_data_path}")

    events = pd.concat(frames, ignore_index=True)
    dropped = total - len(events)
    logger.info(
        "Impact filter: kept %s of %s rows (dropped %s = %.1f%%)",
        f"{len(events):,}",
        f"{total:,}",
        f"{dropped:,}",
        (dropped / total * 100) if total > 0 else 0,
    )
    return events


# ── Node 3 ───────────────────────────────────────────────────────────
def decode_exponent(code: object) -> int:
    """Map a PROPDMGEXP/CROPDMGEXP code to its multiplier.

    Examples:
        "K" / "k" → 1,000
        "5"       → 100,000
        "?"       → 1
        "+", NaN  → 1  (unrecognised or missing)
    """
    if pd.isna(code):
        return 1
    return _EXPONENT_MULTIPLIERS.get(str(code).strip().upper(), 1)


def compute_damage_dollars(df: pd.DataFrame) -> pd.DataFrame:
    """Turn magnitude + exponent code pairs into dollar amounts.

    Creates ``property_damage_cents`` and ``crop_damage_cents`` and
    keeps the raw magnitude/exponent columns for auditability.  Amounts
    are whole cents in int64: magnitudes carry at most two decimals, so
    rounding ``magnitude * 100`` once is exact and every later sum is
    integer arithmetic (order of summation never changes a total).

    Args:
        df: Impactful events from load_impactful_events.

    Returns:
        DataFrame with the two cent columns added.
    """
    df = df.copy()

    for magnitude, code, new_col in [
        ("prop_dmg", "prop_dmg_exp", "property_damage_cents"),
        ("crop_dmg", "crop_dmg_exp", "crop_damage_cents"),
    ]:
        codes = df[code].fillna("").astype(str).str.strip().str.upper()
        unknown = (codes != "") & ~codes.isin(list(_EXPONENT_MULTIPLIERS))
        if unknown.any():
            logger.warning(
                "%s: %s rows have unrecognised codes, treated as x1: %s",
                code,
                f"{unknown.sum():,}",
                codes[unknown].value_counts().to_dict(),
            )

        multiplier = df[code].map(decode_exponent).astype("int64")
        cents = (df[magnitude].astype("float64") * 100).round().astype("int64")
        df[new_col] = cents * multiplier
        logger.info(
            "%s: total $%s across %s rows",
            new_col,
            f"{df[new_col].sum() / 100:,.2f}",
            f"{len(df):,}",
        )

    return df


# ── Node 4 ───────────────────────────────────────────────────────────
def normalize_event_types(
    df: pd.DataFrame, canonical_event_types: frozenset[str]
) -> pd.DataFrame:
    """Rewrite free-text event types onto the canonical NWS list.

    Keeps the source label as ``raw_event_type`` and flags whether the
    normalized label is canonical in ``is_standard``.  Non-standard
    labels stay in the data under their normalized spelling.

    Args:
        df: Events with damage columns in cents.
        canonical_event_types: Output of load_canonical_event_types.

    Returns:
        DataFrame with normalized ``event_type`` and ``is_standard``.
    """
    df = df.copy()
    df["raw_event_type"] = df["event_type"]
    df["event_type"] = normalize_event_type_series(df["event_type"])
    df["is_standard"] = df["event_type"].isin(canonical_event_types)

    n_raw = df["raw_event_type"].nunique()
    n_normalized = df["event_type"].nunique()
    residual = df.loc[~df["is_standard"], "event_type"]
    logger.info(
        "Event types: %s raw labels → %s normalized (%s standard, %s non-standard)",
        f"{n_raw:,}",
        f"{n_normalized:,}",
        f"{n_normalized - residual.nunique():,}",
        f"{residual.nunique():,}",
    )
    if not residual.empty:
        logger.warning(
            "%s events (%.2f%%) kept non-standard event types. Most common: %s",
            f"{len(residual):,}",
            len(residual) / len(df) * 100,
            residual.value_counts().head(10).to_dict(),
        )
    return df
