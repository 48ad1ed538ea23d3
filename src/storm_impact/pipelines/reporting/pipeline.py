"""Reporting pipeline — event-type impacts → ranked tables and charts.

Node dependency graph:
    event_type_impacts → [build_ranked_tables] → top_event_types
    top_event_types → [build_summary_table]   → impact_summary
    top_event_types → [plot_health_impacts]   → health_impact_chart
    top_event_types → [plot_economic_impacts] → economic_impact_chart

The last three nodes are independent of each other.
"""

from kedro.pipeline import Pipeline, node, pipeline

from .nodes import (
    build_ranked_tables,
    build_summary_table,
    plot_economic_impacts,
    plot_health_impacts,
)


def create_pipeline(**kwargs) -> Pipeline:  # noqa: ARG001
    """Create the reporting pipeline."""
    return pipeline(
        [
            node(
                func=build_ranked_tables,
                inputs=["event_type_impacts", "params:reporting"],
                outputs="top_event_types",
                name="build_ranked_tables",
            ),
            node(
                func=build_summary_table,
                inputs="top_event_types",
                outputs="impact_summary",
                name="build_summary_table",
            ),
            node(
                func=plot_health_impacts,
                inputs="top_event_types",
                outputs="health_impact_chart",
                name="plot_health_impacts",
            ),
            node(
                func=plot_economic_impacts,
                inputs="top_event_types",
                outputs="economic_impact_chart",
                name="plot_economic_impacts",
            ),
        ]
    )
