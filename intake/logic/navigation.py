"""Step sequencing over the ordered pages of the active form.

Steps are 1-based page orders. The last page doubles as the review and
submit step.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable, List, Optional


@dataclass(frozen=True)
class ProgressStep:
    number: int
    title: str
    completed: bool
    current: bool


class StepNavigator:
    def __init__(self, total_steps: int) -> None:
        if total_steps < 0:
            raise ValueError("total_steps must be non-negative")
        self.total_steps = total_steps

    def is_valid(self, step: Any) -> bool:
        return isinstance(step, int) and not isinstance(step, bool) and 1 <= step <= self.total_steps

    def resolve(self, step: Any) -> int:
        """Return `step` as an int when valid; otherwise the first step.

        Accepts the raw route parameter, so digit strings are parsed.
        """
        if isinstance(step, str) and step.strip().isdigit():
            step = int(step.strip())
        return step if self.is_valid(step) else 1

    def is_first(self, step: int) -> bool:
        return step == 1

    def is_review(self, step: int) -> bool:
        return self.total_steps > 0 and step == self.total_steps

    def next(self, step: int) -> Optional[int]:
        return step + 1 if step < self.total_steps else None

    def previous(self, step: int) -> Optional[int]:
        return step - 1 if step > 1 else None

    def timeline(self, titles: Iterable[str], current: int, completed: Iterable[int] = ()) -> List[ProgressStep]:
        done = set(completed)
        return [
            ProgressStep(number=i, title=title, completed=i in done or i < current, current=i == current)
            for i, title in enumerate(titles, start=1)
        ]


def progress_percentage(answered: int, total: int) -> int:
    """Share of answered questions, rounded half up to a whole percent."""
    if total <= 0:
        return 0
    return int((answered * 100) / total + 0.5)


__all__ = ["ProgressStep", "StepNavigator", "progress_percentage"]
