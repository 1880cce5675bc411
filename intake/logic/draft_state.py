"""Client-side Draft State for the page being edited.

Holds question id -> AnswerValue for one page. Edits apply synchronously
and are visible immediately; observers (the auto-save controller) are
notified with an immutable snapshot after every structural change.
"""

from __future__ import annotations

import logging
from types import MappingProxyType
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Set

from intake.logic.answer_normalizer import answer_to_raw, coerce_answer, from_persisted
from intake.logic.validation import AnswerValidationError
from intake.models.answer import AnswerValue, PersistedAnswer

logger = logging.getLogger(__name__)

Snapshot = Mapping[str, Optional[AnswerValue]]
Listener = Callable[[Snapshot], None]


class DraftState:
    def __init__(self, page_id: str, kinds: Optional[Mapping[str, str]] = None) -> None:
        self.page_id = page_id
        self._kinds: Dict[str, str] = dict(kinds or {})
        self._answers: Dict[str, Optional[AnswerValue]] = {}
        self._stored: Set[str] = set()
        self._listeners: List[Listener] = []

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a change listener; returns a callable that unregisters it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def load(self, persisted: Mapping[str, Any]) -> None:
        """Replace the draft with values loaded from the store.

        Accepts PersistedAnswer rows or raw values. Loading does not notify
        listeners: the loaded state is the saved baseline, not an edit.
        """
        answers: Dict[str, Optional[AnswerValue]] = {}
        for qid, stored in persisted.items():
            if isinstance(stored, PersistedAnswer):
                answers[qid] = from_persisted(stored)
            else:
                answers[qid] = coerce_answer(stored, self._kinds.get(qid))
        self._answers = answers
        self._stored = set(answers)

    def set(self, question_id: str, value: Any) -> bool:
        """Apply an edit; returns False when nothing changed or the value is rejected.

        Clearing a question the store has never been sent removes it from
        the draft, so the snapshot matches the loaded baseline again.
        """
        try:
            answer = coerce_answer(value, self._kinds.get(question_id))
        except AnswerValidationError as exc:
            logger.warning("draft_state.value_rejected question_id=%s reason=%s", question_id, exc)
            return False
        if answer is None and question_id not in self._stored:
            if question_id not in self._answers:
                return False
            del self._answers[question_id]
        elif question_id in self._answers and self._answers[question_id] == answer:
            return False
        else:
            self._answers[question_id] = answer
        self._notify()
        return True

    def mark_stored(self, question_ids: Iterable[str]) -> None:
        """Record ids the store may now hold; clearing them keeps an explicit null."""
        self._stored.update(question_ids)

    def clear(self, question_id: str) -> bool:
        return self.set(question_id, None)

    def get(self, question_id: str) -> Optional[AnswerValue]:
        return self._answers.get(question_id)

    def raw(self, question_id: str) -> Any:
        return answer_to_raw(self._answers.get(question_id))

    def snapshot(self) -> Snapshot:
        return MappingProxyType(dict(self._answers))

    def to_payload(self) -> Dict[str, Any]:
        """Raw values keyed by question id, as sent to the persistence API."""
        return {qid: answer_to_raw(answer) for qid, answer in self._answers.items()}

    def __len__(self) -> int:
        return len(self._answers)

    def _notify(self) -> None:
        snap = self.snapshot()
        for listener in list(self._listeners):
            try:
                listener(snap)
            except Exception:
                logger.error("draft_state.listener_failed page_id=%s", self.page_id, exc_info=True)


def payload_from_snapshot(snapshot: Snapshot) -> Dict[str, Any]:
    return {qid: answer_to_raw(answer) for qid, answer in snapshot.items()}


__all__ = ["DraftState", "Snapshot", "payload_from_snapshot"]
