"""Progress events published while a pipeline runs."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any


class Stage(str, Enum):
    STARTING = "starting"
    QUERY_GENERATION = "query_generation"
    QUERY_COMPLETE = "query_complete"
    RESEARCH = "research"
    RESEARCH_COMPLETE = "research_complete"
    FORMATTING = "formatting"
    COMPLETE = "complete"
    ERROR = "error"


# Progress percentage reported when a stage is entered.
STAGE_PROGRESS: dict[Stage, int] = {
    Stage.STARTING: 0,
    Stage.QUERY_GENERATION: 10,
    Stage.QUERY_COMPLETE: 30,
    Stage.RESEARCH: 40,
    Stage.RESEARCH_COMPLETE: 70,
    Stage.FORMATTING: 80,
    Stage.COMPLETE: 100,
    Stage.ERROR: -1,
}


@dataclass(frozen=True)
class ProgressEvent:
    """A fire-and-forget status update. Never persisted or replayed."""

    stage: Stage
    message: str
    progress: int
    data: dict[str, Any] | None = None
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @classmethod
    def for_stage(
        cls, stage: Stage, message: str, data: dict[str, Any] | None = None
    ) -> ProgressEvent:
        return cls(stage=stage, message=message, progress=STAGE_PROGRESS[stage], data=data)

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "stage": self.stage.value,
            "message": self.message,
            "progress": self.progress,
        }
        if self.data is not None:
            payload["data"] = self.data
        return payload
