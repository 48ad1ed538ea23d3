"""Tests for event-type aggregation, shard merging and coverage."""

import pandas as pd
import pytest

from storm_impact.pipelines.data_processing.nodes import compute_damage_dollars
from storm_impact.pipelines.impact_analysis.nodes import (
    IMPACT_METRICS,
    aggregate_impacts,
    aggregate_impacts_in_chunks,
    merge_aggregates,
    summarise_coverage,
)


@pytest.fixture()
def scenario_events():
    """Three normalized records: two tornadoes around one flood."""
    return pd.DataFrame(
        {
            "event_type": ["TORNADO", "FLOOD", "TORNADO"],
            "injuries": [100, 10, 50],
            "fatalities": [5, 0, 2],
            "property_damage_cents": [0, 500_000_000, 0],
            "crop_damage_cents": [0, 100_000_000, 0],
        }
    )


@pytest.fixture()
def many_events():
    event_types = ["HAIL", "TORNADO", "FLOOD", "HEAT", "OTHER", "TORNADO", "HAIL"] * 5
    n = len(event_types)
    return pd.DataFrame(
        {
            "event_type": event_types,
            "injuries": [i % 4 for i in range(n)],
            "fatalities": [i % 3 for i in range(n)],
            "property_damage_cents": [100_000 * i for i in range(n)],
            "crop_damage_cents": [25_000 * (i % 5) for i in range(n)],
        }
    )


def _by_event_type(aggregated: pd.DataFrame) -> pd.DataFrame:
    return aggregated.set_index("event_type").sort_index()


# ── Test 1: End-to-end scenario ──────────────────────────────────
class TestAggregateImpacts:
    def test_scenario_sums(self, scenario_events):
        aggregated = _by_event_type(aggregate_impacts(scenario_events))

        assert aggregated.loc["TORNADO", "injuries"] == 150
        assert aggregated.loc["TORNADO", "fatalities"] == 7
        assert aggregated.loc["TORNADO", "property_damage_cents"] == 0
        assert aggregated.loc["TORNADO", "crop_damage_cents"] == 0
        assert aggregated.loc["FLOOD", "injuries"] == 10
        assert aggregated.loc["FLOOD", "fatalities"] == 0
        assert aggregated.loc["FLOOD", "property_damage_cents"] == 500_000_000
        assert aggregated.loc["FLOOD", "crop_damage_cents"] == 100_000_000
        assert aggregated.loc["TORNADO", "events"] == 2

    def test_first_appearance_order(self, scenario_events):
        assert aggregate_impacts(scenario_events)["event_type"].tolist() == [
            "TORNADO",
            "FLOOD",
        ]

    def test_column_types(self, scenario_events):
        aggregated = aggregate_impacts(scenario_events)
        assert aggregated["injuries"].dtype == "int64"
        assert aggregated["property_damage_cents"].dtype == "int64"

    def test_national_scale_totals_do_not_lose_precision(self):
        events = pd.DataFrame(
            {
                "event_type": ["FLOOD"] * 3,
                "injuries": [0, 0, 0],
                "fatalities": [0, 0, 0],
                "property_damage_cents": [11_500_000_000_000, 3_250_000_000, 707],
                "crop_damage_cents": [0, 0, 0],
            }
        )
        total = aggregate_impacts(events)["property_damage_cents"].iloc[0]
        assert total == 11_503_250_000_707


# ── Test 2: Associativity of partial aggregates ─────────────────
class TestMergeAggregates:
    @pytest.mark.parametrize("split", [1, 7, 13, 34])
    def test_two_partitions_merge_to_full_aggregate(self, many_events, split):
        full = aggregate_impacts(many_events)
        merged = merge_aggregates(
            aggregate_impacts(many_events.iloc[:split]),
            aggregate_impacts(many_events.iloc[split:]),
        )

        pd.testing.assert_frame_equal(_by_event_type(merged), _by_event_type(full))

    def test_merge_order_does_not_change_sums(self, many_events):
        odd = aggregate_impacts(many_events.iloc[1::2])
        even = aggregate_impacts(many_events.iloc[::2])

        pd.testing.assert_frame_equal(
            _by_event_type(merge_aggregates(odd, even)),
            _by_event_type(merge_aggregates(even, odd)),
        )

    def test_chunked_aggregation_matches_single_pass(self, many_events):
        chunks = (many_events.iloc[i : i + 4] for i in range(0, len(many_events), 4))

        chunked = aggregate_impacts_in_chunks(chunks)

        pd.testing.assert_frame_equal(chunked, aggregate_impacts(many_events))

    def test_chunked_aggregation_over_lazy_reader(self, many_events, tmp_path):
        path = tmp_path / "storm_events_normalized.csv"
        many_events.to_csv(path, index=False)

        with pd.read_csv(path, chunksize=6) as reader:
            chunked = aggregate_impacts_in_chunks(reader)

        pd.testing.assert_frame_equal(chunked, aggregate_impacts(many_events))

    def test_requires_a_partial(self):
        with pytest.raises(ValueError):
            merge_aggregates()


# ── Test 3: Exact damage totals ──────────────────────────────────
class TestExactDamageTotals:
    @pytest.fixture()
    def fractional_events(self):
        """Damage with decimal magnitudes such as 0.1, 1.55 and 0.29."""
        magnitudes = [0.1, 0.2, 0.3, 1.55, 2.07, 0.29, 12.5, 0.01] * 4
        codes = ["", "", "", "K", "M", None, "B", "H"] * 4
        n = len(magnitudes)
        raw = pd.DataFrame(
            {
                "event_type": ["FLOOD", "HAIL", "FLOOD", "TORNADO"] * (n // 4),
                "fatalities": [0] * n,
                "injuries": [0] * n,
                "prop_dmg": magnitudes,
                "prop_dmg_exp": codes,
                "crop_dmg": magnitudes[::-1],
                "crop_dmg_exp": codes[::-1],
            }
        )
        return compute_damage_dollars(raw)

    @pytest.mark.parametrize("split", [1, 3, 16, 31])
    def test_partitions_merge_to_identical_totals(self, fractional_events, split):
        full = aggregate_impacts(fractional_events)
        merged = merge_aggregates(
            aggregate_impacts(fractional_events.iloc[split:]),
            aggregate_impacts(fractional_events.iloc[:split]),
        )

        pd.testing.assert_frame_equal(
            _by_event_type(merged), _by_event_type(full), check_exact=True
        )

    def test_row_order_does_not_change_totals(self, fractional_events):
        forward = aggregate_impacts(fractional_events)
        backward = aggregate_impacts(fractional_events.iloc[::-1])

        pd.testing.assert_frame_equal(
            _by_event_type(forward), _by_event_type(backward), check_exact=True
        )

    def test_total_is_exact_in_cents(self, fractional_events):
        flood = _by_event_type(aggregate_impacts(fractional_events)).loc["FLOOD"]

        # 4 x ($0.10 + $0.30 + $2.07M + $12.5B)
        assert flood["property_damage_cents"] == 5_000_828_000_160


# ── Test 4: Canonical coverage ───────────────────────────────────
class TestSummariseCoverage:
    def test_counts_non_standard_residual(self, many_events):
        aggregated = aggregate_impacts(many_events)
        canonical = frozenset({"HAIL", "TORNADO", "FLOOD", "HEAT"})

        coverage = summarise_coverage(aggregated, canonical).set_index("measure")["value"]

        assert coverage["event_types"] == 5
        assert coverage["standard_event_types"] == 4
        assert coverage["non_standard_event_types"] == 1
        assert coverage["events"] == 35
        assert coverage["non_standard_events"] == 5
        assert coverage["pct_non_standard_events"] == pytest.approx(100 / 7)

    def test_metrics_constant(self):
        assert IMPACT_METRICS == [
            "fatalities",
            "injuries",
            "property_damage_cents",
            "crop_damage_cents",
        ]
