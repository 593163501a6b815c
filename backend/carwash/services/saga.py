# Overview: Multi-step writes with compensating undo actions.

"""
Saga helper for writes that span several commits.

Each step pairs an action with an optional compensation. Steps run in
order; actions receive the shared context dict and their return value is
stored under the step name. When an action raises, the compensations of
the steps that already completed run in reverse order and SagaError is
raised with the original exception chained.

A compensation that itself fails is logged and recorded on the error; the
remaining compensations still run.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Optional

logger = logging.getLogger(__name__)


class SagaError(Exception):
    """A saga step failed; completed steps were compensated."""

    def __init__(self, message: str, failed_step: str, compensation_errors: Optional[list] = None):
        super().__init__(message)
        self.failed_step = failed_step
        self.compensation_errors = compensation_errors or []

    @property
    def fully_compensated(self) -> bool:
        return not self.compensation_errors


@dataclass
class SagaStep:
    name: str
    action: Callable[[dict], Any]
    compensate: Optional[Callable[[dict], None]] = None


class Saga:
    def __init__(self, name: str, on_failure: Optional[Callable[[], None]] = None):
        """
        on_failure runs once, before any compensation (e.g. a session
        rollback so the undo statements start from a clean transaction).
        """
        self.name = name
        self.on_failure = on_failure
        self.steps: list[SagaStep] = []

    def step(self, name: str, action: Callable[[dict], Any],
             compensate: Optional[Callable[[dict], None]] = None) -> "Saga":
        self.steps.append(SagaStep(name=name, action=action, compensate=compensate))
        return self

    def run(self, context: Optional[dict] = None) -> dict:
        context = {} if context is None else context
        completed: list[SagaStep] = []

        for step in self.steps:
            try:
                context[step.name] = step.action(context)
            except Exception as exc:
                logger.warning("Saga %s failed at step %s: %s", self.name, step.name, exc)
                if self.on_failure is not None:
                    self.on_failure()
                errors = self._compensate(completed, context)
                raise SagaError(
                    f"{self.name} failed at step '{step.name}': {exc}",
                    failed_step=step.name,
                    compensation_errors=errors,
                ) from exc
            completed.append(step)

        return context

    def _compensate(self, completed: list[SagaStep], context: dict) -> list:
        errors = []
        for step in reversed(completed):
            if step.compensate is None:
                continue
            try:
                step.compensate(context)
            except Exception as exc:
                logger.exception("Saga %s: compensation for step %s failed", self.name, step.name)
                if self.on_failure is not None:
                    self.on_failure()
                errors.append((step.name, str(exc)))
        return errors
