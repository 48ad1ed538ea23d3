"""Event-level → event-type aggregation nodes.

Architecture:
    aggregate → one groupby on the normalized event type
    merge     → partial aggregates (e.g. per chunk) summed again
    coverage  → how much of the data landed on canonical event types

Every aggregate is a plain integer sum (damage is held in whole cents), so
aggregating shards and merging the results gives exactly the same table
as aggregating everything at once.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

import pandas as pd

logger = logging.getLogger(__name__)

IMPACT_METRICS: list[str] = [
    "fatalities",
    "injuries",
    "property_damage_cents",
    "crop_damage_cents",
]

_SUM_COLUMNS: list[str] = ["events", *IMPACT_METRICS]


# ── Node 1: Event-type aggregation ───────────────────────────────
def aggregate_impacts(events: pd.DataFrame) -> pd.DataFrame:
    """Sum health and economic impact per normalized event type.

    Rows come out in order of first appearance of each event type
    (``sort=False``); the ranking step relies on that order to break ties.

    Args:
        events: Normalized event-level DataFrame.

    Returns:
        One row per event type with ``events`` (record count) and the
        four summed impact metrics.
    """
    aggregated = events.groupby("event_type", sort=False, as_index=False).agg(
        events=("fatalities", "size"),
        fatalities=("fatalities", "sum"),
        injuries=("injuries", "sum"),
        property_damage_cents=("property_damage_cents", "sum"),
        crop_damage_cents=("crop_damage_cents", "sum"),
    )
    aggregated = aggregated.astype(
        {
            "events": "int64",
            "fatalities": "int64",
            "injuries": "int64",
            "property_damage_cents": "int64",
            "crop_damage_cents": "int64",
        }
    )

    logger.info(
        "Aggregated %s events into %s event types "
        "(%s fatalities, %s injuries, $%s property, $%s crops)",
        f"{len(events):,}",
        f"{len(aggregated):,}",
        f"{aggregated['fatalities'].sum():,}",
        f"{aggregated['injuries'].sum():,}",
        f"{aggregated['property_damage_cents'].sum() / 100:,.2f}",
        f"{aggregated['crop_damage_cents'].sum() / 100:,.2f}",
    )
    return aggregated


def merge_aggregates(*partials: pd.DataFrame) -> pd.DataFrame:
    """Combine partial aggregates produced by aggregate_impacts.

    Event types keep the order in which they first appear across
    ``partials``, taken in argument order.
    """
    if not partials:
        raise ValueError("merge_aggregates needs at least one partial aggregate")

    combined = pd.concat(partials, ignore_index=True)
    return combined.groupby("event_type", sort=False, as_index=False)[
        _SUM_COLUMNS
    ].sum()


def aggregate_impacts_in_chunks(chunks: Iterable[pd.DataFrame]) -> pd.DataFrame:
    """Aggregate an iterable of event chunks one at a time and merge them.

    Library entry point for sharded runs, not a pipeline node: the
    ``impact_analysis`` pipeline aggregates the persisted
    ``storm_events_normalized`` table in one pass.  Callers that hold
    the events as shards (a lazy reader, per-year files, worker outputs)
    use this instead and get the same table.

    Only one raw chunk and the running partials are held at once, so
    this works on a lazy reader as well as on an in-memory split.
    """
    return merge_aggregates(*(aggregate_impacts(chunk) for chunk in chunks))


# ── Node 2: Canonical coverage ───────────────────────────────────
def summarise_coverage(
    aggregated: pd.DataFrame, canonical_event_types: frozenset[str]
) -> pd.DataFrame:
    """Report how many event types and events are outside the canonical list.

    Non-standard types are expected; this table only makes the residual
    visible.

    Args:
        aggregated: Output of aggregate_impacts.
        canonical_event_types: Output of load_canonical_event_types.

    Returns:
        Two-column table of ``measure`` / ``value``.
    """
    is_standard = aggregated["event_type"].isin(canonical_event_types)
    total_events = int(aggregated["events"].sum())
    non_standard_events = int(aggregated.loc[~is_standard, "events"].sum())

    coverage = pd.DataFrame(
        {
            "measure": [
                "event_types",
                "standard_event_types",
                "non_standard_event_types",
                "events",
                "non_standard_events",
                "pct_non_standard_events",
            ],
            "value": [
                len(aggregated),
                int(is_standard.sum()),
                int((~is_standard).sum()),
                total_events,
                non_standard_events,
                (non_standard_events / total_events * 100) if total_events else 0.0,
            ],
        }
    )

    logger.info(
        "Coverage: %d of %d event types are canonical; "
        "%s of %s events (%.2f%%) sit under non-standard types",
        int(is_standard.sum()),
        len(aggregated),
        f"{non_standard_events:,}",
        f"{total_events:,}",
        coverage["value"].iloc[-1],
    )
    return coverage
