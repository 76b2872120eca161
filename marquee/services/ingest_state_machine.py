"""Ingest state machine for library paths.

Centralizes per-path state transition logic and validation. The pipeline
consults it before each cache commit to find out whether the path was
evicted while it was being processed.
"""

import logging
from enum import Enum

logger = logging.getLogger(__name__)


class IngestState(str, Enum):
    """States a library path moves through in the ingestion pipeline."""

    QUEUED = "queued"
    IDENTIFYING = "identifying"
    CACHE_COMMITTED = "cache_committed"
    SUBTITLE_ACQUIRING = "subtitle_acquiring"
    SUBTITLE_CACHE_COMMITTED = "subtitle_cache_committed"
    DONE = "done"
    SKIPPED = "skipped"  # Unsupported, missing, or already cached
    FAILED = "failed"
    EVICTED = "evicted"  # File removed or changed


class IngestStateMachine:
    """Tracks and validates the state of every path the pipeline has seen."""

    VALID_TRANSITIONS = {
        IngestState.QUEUED: {
            IngestState.IDENTIFYING,
            IngestState.SKIPPED,
            IngestState.FAILED,
            IngestState.EVICTED,
        },
        IngestState.IDENTIFYING: {
            IngestState.CACHE_COMMITTED,
            IngestState.SKIPPED,
            IngestState.FAILED,
            IngestState.EVICTED,
        },
        IngestState.CACHE_COMMITTED: {
            IngestState.SUBTITLE_ACQUIRING,
            IngestState.SUBTITLE_CACHE_COMMITTED,
            IngestState.DONE,  # Subtitles already cached for this id
            IngestState.FAILED,
            IngestState.EVICTED,
        },
        IngestState.SUBTITLE_ACQUIRING: {
            IngestState.SUBTITLE_CACHE_COMMITTED,
            IngestState.FAILED,
            IngestState.EVICTED,
        },
        IngestState.SUBTITLE_CACHE_COMMITTED: {
            IngestState.DONE,
            IngestState.FAILED,
            IngestState.EVICTED,
        },
        # Finished paths can still be evicted when their file goes away
        IngestState.DONE: {IngestState.EVICTED},
        IngestState.SKIPPED: {IngestState.EVICTED},
        IngestState.FAILED: {IngestState.EVICTED},
        IngestState.EVICTED: set(),  # Terminal until the path is queued again
    }

    def __init__(self) -> None:
        self._states: dict[str, IngestState] = {}

    def can_transition(self, from_state: IngestState, to_state: IngestState) -> bool:
        """Validate if state transition is allowed.

        Args:
            from_state: Current path state
            to_state: Desired path state

        Returns:
            True if transition is valid, False otherwise
        """
        if from_state == to_state:
            return True
        return to_state in self.VALID_TRANSITIONS.get(from_state, set())

    def begin(self, path: str) -> None:
        """Start a fresh run for ``path``; any previous state is discarded."""
        self._states[path] = IngestState.QUEUED
        logger.debug(f"{path}: queued")

    def state_of(self, path: str) -> IngestState | None:
        return self._states.get(path)

    def is_evicted(self, path: str) -> bool:
        return self._states.get(path) == IngestState.EVICTED

    def transition(self, path: str, to_state: IngestState) -> bool:
        """Perform a validated state transition.

        Returns:
            True if transition succeeded, False if invalid
        """
        from_state = self._states.get(path)
        if from_state is None:
            logger.warning(f"Transition for unknown path {path} -> {to_state.value}")
            return False

        if not self.can_transition(from_state, to_state):
            logger.warning(
                f"Invalid state transition for {path}: {from_state.value} -> {to_state.value}"
            )
            return False

        logger.info(f"{path}: {from_state.value} -> {to_state.value}")
        self._states[path] = to_state
        return True

    def evict(self, path: str) -> bool:
        """Mark ``path`` evicted if it is known; returns whether it was."""
        if path not in self._states:
            return False
        return self.transition(path, IngestState.EVICTED)
