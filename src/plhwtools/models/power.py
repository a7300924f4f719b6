"""Power sequence result models."""

from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel, Field


class PowerDirection(StrEnum):
    ON = "on"
    OFF = "off"


class StepOutcome(BaseModel):
    """Outcome of one executed power sequence step."""

    index: int
    name: str
    ok: bool
    error: str = ""


class SequenceReport(BaseModel):
    """Result of running one power sequence procedure.

    Only executed steps are listed; after a failure the remaining steps
    are absent, never marked as skipped.
    """

    sequence: str
    direction: PowerDirection
    total_steps: int
    steps: list[StepOutcome] = Field(default_factory=list)

    @property
    def ok(self) -> bool:
        return len(self.steps) == self.total_steps and all(s.ok for s in self.steps)

    @property
    def failed_step(self) -> StepOutcome | None:
        for step in self.steps:
            if not step.ok:
                return step
        return None
