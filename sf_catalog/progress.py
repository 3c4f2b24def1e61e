"""Resumable run checkpoint (``<root>/.catalog-progress.json``)."""

import logging
import os
from dataclasses import dataclass
from datetime import datetime, timezone

from sf_catalog.config import PROGRESS_FILE
from sf_catalog.output.json_writer import JSONWriter

logger = logging.getLogger(__name__)


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


@dataclass
class ProgressState:
    last_processed_index: int
    last_processed_object: str
    total_objects: int
    started_at: str
    last_updated_at: str
    processed_count: int

    def to_dict(self) -> dict:
        return {
            'lastProcessedIndex': self.last_processed_index,
            'lastProcessedObject': self.last_processed_object,
            'totalObjects': self.total_objects,
            'startedAt': self.started_at,
            'lastUpdatedAt': self.last_updated_at,
            'processedCount': self.processed_count,
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'ProgressState':
        return cls(
            last_processed_index=int(data['lastProcessedIndex']),
            last_processed_object=data.get('lastProcessedObject', ''),
            total_objects=int(data.get('totalObjects', 0)),
            started_at=data.get('startedAt') or _now(),
            last_updated_at=data.get('lastUpdatedAt') or _now(),
            processed_count=int(data.get('processedCount', 0)),
        )


class ProgressTracker:
    """Saves, loads and clears the checkpoint of a pipeline run."""

    def __init__(self, root: str) -> None:
        self.path = os.path.join(root, PROGRESS_FILE)
        self._writer = JSONWriter()
        self._started_at: str | None = None

    def load(self) -> ProgressState | None:
        if not os.path.isfile(self.path):
            return None
        try:
            state = ProgressState.from_dict(self._writer.read(self.path))
        except (ValueError, KeyError, TypeError) as e:
            logger.warning('Ignoring unreadable progress file %s: %s', self.path, e)
            return None
        self._started_at = state.started_at
        return state

    def resume_index(self) -> int:
        """Index of the first candidate still to process (0 without a checkpoint)."""
        state = self.load()
        if state is None:
            return 0
        logger.info(
            'Resuming after %s (index %d, %d processed)',
            state.last_processed_object, state.last_processed_index, state.processed_count,
        )
        return state.last_processed_index + 1

    def save(self, index: int, name: str, total: int, processed_count: int) -> ProgressState:
        now = _now()
        if self._started_at is None:
            self._started_at = now
        state = ProgressState(
            last_processed_index=index,
            last_processed_object=name,
            total_objects=total,
            started_at=self._started_at,
            last_updated_at=now,
            processed_count=processed_count,
        )
        self._writer.write(self.path, state.to_dict())
        return state

    def clear(self) -> None:
        if os.path.isfile(self.path):
            os.remove(self.path)
