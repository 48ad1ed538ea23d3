"""Normalized events → event-type impact table.

Node dependency graph:
    storm_events_normalized → [aggregate_impacts] → event_type_impacts
    event_type_impacts, canonical_event_types
        → [summarise_coverage] → event_type_coverage
"""

from kedro.pipeline import Pipeline, node, pipeline

from .nodes import aggregate_impacts, summarise_coverage


def create_pipeline(**kwargs) -> Pipeline:  # noqa: ARG001
    """Create the impact_analysis pipeline."""
    return pipeline(
        [
            node(
                func=aggregate_impacts,
                inputs="storm_events_normalized",
                outputs="event_type_impacts",
                name="aggregate_impacts",
            ),
            node(
                func=summarise_coverage,
                inputs=["event_type_impacts", "canonical_event_types"],
                outputs="event_type_coverage",
                name="summarise_coverage",
            ),
        ]
    )
