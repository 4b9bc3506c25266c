"""Resumable step sequences for action effects.

An action's effect is a short script such as "face the target, wind up for
half a second, deal damage, recover". Each line of that script is a ``Step``;
a ``StepSequence`` holds the script and a cursor and is advanced by the
combat driver's single tick loop. Waiting never blocks: a sequence that is
mid-wait simply returns control to the driver until the next tick.

Step kinds:
- INSTANT: runs a callback and completes in the same tick
- WAIT: consumes driver time until its duration has elapsed
- WAIT_UNTIL: completes once a predicate holds, or after an optional timeout
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, auto
from typing import Callable, Iterable, Optional

# Tolerance for accumulated float ticks (ten ticks of 0.1 must finish a 1.0 wait)
_TIME_EPSILON = 1e-9


class StepKind(Enum):
    """Kinds of step a sequence can hold."""
    INSTANT = auto()
    WAIT = auto()
    WAIT_UNTIL = auto()


@dataclass(frozen=True)
class Step:
    """One resumable unit of an action effect."""
    kind: StepKind
    label: str = ""
    effect: Optional[Callable[[], None]] = None
    duration: float = 0.0
    predicate: Optional[Callable[[], bool]] = None
    timeout: Optional[float] = None


def instant(label: str, effect: Callable[[], None]) -> Step:
    """A step that applies ``effect`` immediately."""
    return Step(StepKind.INSTANT, label=label, effect=effect)


def wait(duration: float, label: str = "wait") -> Step:
    """A step that lets ``duration`` seconds of driver time pass."""
    if duration < 0:
        raise ValueError(f"Wait duration cannot be negative: {duration}")
    return Step(StepKind.WAIT, label=label, duration=duration)


def wait_until(predicate: Callable[[], bool], label: str = "wait_until",
               timeout: Optional[float] = None) -> Step:
    """A step that holds until ``predicate`` is true (or ``timeout`` elapses)."""
    return Step(StepKind.WAIT_UNTIL, label=label, predicate=predicate, timeout=timeout)


class StepSequence:
    """A cursor over a list of steps, advanced one driver tick at a time."""

    def __init__(self, steps: Iterable[Step] = (), name: str = ""):
        self.name = name
        self._steps: list[Step] = list(steps)
        self._cursor = 0
        self._elapsed = 0.0  # Time spent in the current step
        self._cancelled = False
        self.completed_labels: list[str] = []

    @classmethod
    def empty(cls, name: str = "") -> "StepSequence":
        """A sequence that is finished before it starts."""
        return cls((), name)

    @property
    def finished(self) -> bool:
        return self._cancelled or self._cursor >= len(self._steps)

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    @property
    def current_step(self) -> Optional[Step]:
        if self.finished:
            return None
        return self._steps[self._cursor]

    def __len__(self) -> int:
        return len(self._steps)

    def append(self, step: Step) -> "StepSequence":
        self._steps.append(step)
        return self

    def cancel(self) -> None:
        """Abandon the remaining steps. Effects already applied stand."""
        self._cancelled = True

    def _complete_current(self) -> None:
        self.completed_labels.append(self._steps[self._cursor].label)
        self._cursor += 1
        self._elapsed = 0.0

    def tick(self, dt: float) -> bool:
        """Advance the sequence by ``dt`` seconds of driver time.

        Instant steps run back to back until a waiting step cannot finish
        within the remaining time. Leftover time from a completed wait carries
        into the following steps of the same tick.

        Returns:
            True once the sequence has finished (or was cancelled)
        """
        budget = max(0.0, dt)
        while not self.finished:
            step = self._steps[self._cursor]

            if step.kind == StepKind.INSTANT:
                if step.effect is not None:
                    step.effect()
                self._complete_current()
                continue

            if step.kind == StepKind.WAIT:
                remaining = step.duration - self._elapsed
                if budget + _TIME_EPSILON >= remaining:
                    budget = max(0.0, budget - remaining)
                    self._complete_current()
                    continue
                self._elapsed += budget
                return False

            # WAIT_UNTIL
            if step.predicate is None or step.predicate():
                self._complete_current()
                continue
            if step.timeout is not None:
                self._elapsed += budget
                budget = 0.0
                if self._elapsed + _TIME_EPSILON >= step.timeout:
                    self._complete_current()
                    continue
            return False

        return True

    def run_to_completion(self, dt: float, max_ticks: int = 10_000) -> int:
        """Tick with a fixed ``dt`` until finished.

        Returns:
            Number of ticks taken

        Raises:
            RuntimeError: If the sequence is still running after ``max_ticks``
        """
        ticks = 0
        while not self.finished:
            if ticks >= max_ticks:
                raise RuntimeError(f"Step sequence '{self.name}' did not finish in {max_ticks} ticks")
            self.tick(dt)
            ticks += 1
        return ticks
