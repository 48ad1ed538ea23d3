"""Node functions for the reporting pipeline.

Ranks event types by each impact metric, condenses the rankings into a
one-row-per-metric summary and draws the health and economic comparison
charts.

Flow:
    event_type_impacts → top-N per metric → summary table
                                          → health chart, economic chart
"""

from __future__ import annotations

import logging
from typing import Any

import matplotlib
import matplotlib.pyplot as plt
import pandas as pd

from storm_impact.pipelines.impact_analysis.nodes import IMPACT_METRICS

matplotlib.use("Agg")  # non-interactive backend for CI / headless runs

logger = logging.getLogger(__name__)

_METRIC_LABELS: dict[str, str] = {
    "fatalities": "Fatalities",
    "injuries": "Injuries",
    "property_damage_cents": "Property damage (US$)",
    "crop_damage_cents": "Crop damage (US$)",
}

_HEALTH_METRICS: list[str] = ["fatalities", "injuries"]
_ECONOMIC_METRICS: list[str] = ["property_damage_cents", "crop_damage_cents"]

# Damage is stored in cents and charted in dollars
_DISPLAY_DIVISORS: dict[str, int] = {"property_damage_cents": 100, "crop_damage_cents": 100}


# ── helper ──────────────────────────────────────────────────────
def rank_top_n(aggregated: pd.DataFrame, metric: str, n: int = 10) -> pd.DataFrame:
    """Return the ``n`` event types with the highest ``metric``.

    Sorting is stable, so event types with equal values keep their
    order in ``aggregated`` (first appearance in the data).

    Args:
        aggregated: Event-type table from aggregate_impacts.
        metric: One of IMPACT_METRICS.
        n: Maximum number of rows; 0 gives an empty table.

    Returns:
        Long-format frame with ``metric``, ``rank``, ``event_type``,
        ``value``; fewer than ``n`` rows if there are fewer event types.

    Raises:
        KeyError: ``metric`` is not one of IMPACT_METRICS.
        ValueError: ``n`` is negative.
    """
    if metric not in IMPACT_METRICS:
        raise KeyError(f"Unknown metric {metric!r}, expected one of {IMPACT_METRICS}")
    if n < 0:
        raise ValueError(f"n must be non-negative, got {n}")

    top = aggregated.sort_values(metric, ascending=False, kind="stable").head(n)
    return pd.DataFrame(
        {
            "metric": metric,
            "rank": range(1, len(top) + 1),
            "event_type": top["event_type"].to_numpy(),
            "value": top[metric].to_numpy(),
        }
    )


# ── Node 1 ──────────────────────────────────────────────────────
def build_ranked_tables(
    event_type_impacts: pd.DataFrame,
    reporting: dict[str, Any],
) -> pd.DataFrame:
    """Top-N event types for every configured metric, stacked.

    Args:
        event_type_impacts: Event-type table from aggregate_impacts.
        reporting: Parameters with ``top_n`` and ``metrics``.

    Returns:
        Concatenated rank_top_n outputs, metric by metric.
    """
    top_n = reporting.get("top_n", 10)
    metrics = reporting.get("metrics", IMPACT_METRICS)
    ranked = pd.concat(
        [rank_top_n(event_type_impacts, metric, top_n) for metric in metrics],
        ignore_index=True,
    )

    for metric in metrics:
        top = ranked[ranked["metric"] == metric]
        logger.info(
            "Top %d by %s:\n%s",
            len(top),
            metric,
            top[["rank", "event_type", "value"]].to_string(index=False),
        )
    return ranked


# ── Node 2 ──────────────────────────────────────────────────────
def build_summary_table(top_event_types: pd.DataFrame) -> pd.DataFrame:
    """One row per metric: the event type that ranks first and its value."""
    summary = (
        top_event_types.loc[top_event_types["rank"] == 1, ["metric", "event_type", "value"]]
        .reset_index(drop=True)
    )
    logger.info("Impact summary:\n%s", summary.to_string(index=False))
    return summary


# ── Node 3 ──────────────────────────────────────────────────────
def _plot_metric_panels(
    top_event_types: pd.DataFrame, metrics: list[str], title: str
) -> plt.Figure:
    """Side-by-side horizontal bar charts, one per metric, log value axis.

    The log scale and the cents-to-dollars conversion only affect
    display; ``top_event_types`` is not modified.
    """
    fig, axes = plt.subplots(1, len(metrics), figsize=(7 * len(metrics), 6), squeeze=False)
    for ax, metric in zip(axes[0], metrics):
        data = top_event_types[top_event_types["metric"] == metric]
        values = data["value"] / _DISPLAY_DIVISORS.get(metric, 1)
        # Largest at the top
        ax.barh(data["event_type"].iloc[::-1], values.iloc[::-1], color="steelblue")
        ax.set_xscale("log")
        ax.set_xlabel(f"{_METRIC_LABELS[metric]} (log scale)")
        ax.set_title(_METRIC_LABELS[metric])
    fig.suptitle(title)
    fig.tight_layout()
    return fig


def plot_health_impacts(top_event_types: pd.DataFrame) -> plt.Figure:
    """Fatalities and injuries for the top-ranked event types."""
    return _plot_metric_panels(
        top_event_types,
        _HEALTH_METRICS,
        "Most harmful event types to population health",
    )


def plot_economic_impacts(top_event_types: pd.DataFrame) -> plt.Figure:
    """Property and crop damage for the top-ranked event types."""
    return _plot_metric_panels(
        top_event_types,
        _ECONOMIC_METRICS,
        "Event types with the greatest economic consequences",
    )
