"""Step builder shared by every trace strategy."""

from __future__ import annotations

from collections.abc import Iterable, Sequence

from playground_core.schemas import TraceFrame, TraceStep


class TraceGenerationError(Exception):
    """Raised when a trace cannot be produced for the given input."""


class TraceBuilder:
    """Accumulates steps with contiguous numbering starting at 1.

    Snapshots are copied on every ``add`` so later mutation of the caller's
    working list never leaks into recorded steps.
    """

    def __init__(self, max_steps: int | None = None) -> None:
        self.max_steps = max_steps
        self._steps: list[TraceStep] = []

    def __len__(self) -> int:
        return len(self._steps)

    def add(
        self,
        description: str,
        current_line: int,
        array_snapshot: Sequence[int | float] | None = None,
        highlighted_indices: Iterable[int] | None = None,
        frames: Sequence[TraceFrame] = (),
    ) -> None:
        if self.max_steps is not None and len(self._steps) >= self.max_steps:
            raise TraceGenerationError(f"trace exceeds {self.max_steps} steps")
        self._steps.append(
            TraceStep(
                step=len(self._steps) + 1,
                current_line=current_line,
                description=description,
                array_snapshot=list(array_snapshot) if array_snapshot is not None else None,
                highlighted_indices=list(highlighted_indices) if highlighted_indices is not None else None,
                frames=list(frames),
            )
        )

    def build(self) -> list[TraceStep]:
        return list(self._steps)
