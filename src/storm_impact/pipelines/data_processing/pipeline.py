"""Raw → normalized pipeline for the NOAA storm database.

Loads the canonical event-type list, fetches (or reuses) the compressed
source file, streams it through projection and the impact filter, prices
damage in dollars and normalizes event types.  The output is the
event-level table the impact_analysis pipeline aggregates.
"""

from kedro.pipeline import Pipeline, node, pipeline

from storm_impact.event_types import load_canonical_event_types

from .nodes import (
    compute_damage_dollars,
    fetch_storm_data,
    load_impactful_events,
    normalize_event_types,
)


def create_pipeline(**kwargs) -> Pipeline:  # noqa: ARG001
    """Create the data_processing pipeline.

    Node chain:
        reference list → canonical_event_types
        StormData.csv.bz2 → fetch → stream + filter → damage dollars
        → normalize event types → storm_events_normalized
    """
    return pipeline(
        [
            node(
                func=load_canonical_event_types,
                inputs="params:event_types_path",
                outputs="canonical_event_types",
                name="load_canonical_event_types",
            ),
            node(
                func=fetch_storm_data,
                inputs="params:storm_data",
                outputs="storm_data_path",
                name="fetch_storm_data",
            ),
            node(
                func=load_impactful_events,
                inputs=["storm_data_path", "params:storm_data.chunksize"],
                outputs="impactful_events",
                name="load_impactful_events",
            ),
            node(
                func=compute_damage_dollars,
                inputs="impactful_events",
                outputs="events_with_damage",
                name="compute_damage_dollars",
            ),
            node(
                func=normalize_event_types,
                inputs=["events_with_damage", "canonical_event_types"],
                outputs="storm_events_normalized",
                name="normalize_event_types",
            ),
        ]
    )
