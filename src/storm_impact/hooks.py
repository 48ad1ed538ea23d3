"""Project hooks.

The canonical event-type list is the one input the run cannot do
without.  ``EventTypeReferenceHooks`` checks for it before the first
node runs, so a missing file stops the run before the storm database
is downloaded or read.
"""

from __future__ import annotations

import logging
from pathlib import Path

from kedro.framework.hooks import hook_impl

logger = logging.getLogger(__name__)


class EventTypeReferenceHooks:
    """Abort the run early if ``params:event_types_path`` does not exist."""

    def __init__(self) -> None:
        self._reference_path: Path | None = None

    @hook_impl
    def after_context_created(self, context) -> None:
        configured = context.params.get("event_types_path")
        if configured is None:
            return
        path = Path(configured)
        if not path.is_absolute():
            path = Path(context.project_path) / path
        self._reference_path = path

    @hook_impl
    def before_pipeline_run(self) -> None:
        if self._reference_path is None:
            return
        if not self._reference_path.is_file():
            raise FileNotFoundError(
                f"Canonical event type list not found: {self._reference_path}. "
                "Event types cannot be normalized without it."
            )
        logger.info("Canonical event type list found at %s", self._reference_path)
