"""One page being edited: Draft State, auto-save and submission.

`PageSession` loads the page's saved answers before auto-save is enabled,
applies edits to the Draft State synchronously and lets the
`AutoSaveController` persist them through a `ResponsesClient`.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from functools import partial
from typing import Any, Callable, Dict, Optional

from intake.client.persistence import PersistenceError, ResponsesClient
from intake.config import AutoSaveConfig
from intake.logic.autosave import AutoSaveController
from intake.logic.draft_state import DraftState, Snapshot, payload_from_snapshot
from intake.logic.question_mapping import build_render_configs, resolve_kind
from intake.logic.validation import validate_answers
from intake.models.question import FormPage

logger = logging.getLogger(__name__)


@dataclass
class SubmitResult:
    success: bool
    submitted_at: Optional[str] = None
    errors: Dict[str, str] = field(default_factory=dict)
    message: Optional[str] = None


class PageSession:
    def __init__(
        self,
        client: ResponsesClient,
        page: FormPage,
        *,
        autosave: Optional[AutoSaveConfig] = None,
        on_status_change: Optional[Callable[[str], None]] = None,
    ) -> None:
        cfg = autosave or AutoSaveConfig()
        self.client = client
        self.page = page
        self.draft = DraftState(page.id, {q.id: resolve_kind(q.type) for q in page.questions()})
        self.autosave = AutoSaveController(
            self._save,
            delay=cfg.delay,
            saved_display=cfg.saved_display,
            error_display=cfg.error_display,
            enabled=False,
            on_status_change=on_status_change,
        )
        self._unsubscribe = self.draft.subscribe(self.autosave.on_change)
        self.opened = False

    @property
    def status(self) -> str:
        return self.autosave.status

    async def open(self) -> None:
        """Load saved answers, then enable auto-save.

        Loading never triggers a save. A failed load propagates and leaves
        auto-save disabled so an empty draft cannot overwrite stored answers.
        """
        values = await self.client.load_responses(self.page.id)
        self.draft.load(values)
        self.autosave.prime(self.draft.snapshot())
        self.autosave.set_enabled(True)
        self.opened = True
        logger.info("page_session.opened page_id=%s answers=%d", self.page.id, len(self.draft))

    async def _save(self, snapshot: Snapshot) -> None:
        # Marked before the call: a save that lands must not be orphaned by a later clear
        self.draft.mark_stored(snapshot.keys())
        await self.client.save_responses(self.page.id, payload_from_snapshot(snapshot))

    def set_answer(self, question_id: str, value: Any) -> bool:
        return self.draft.set(question_id, value)

    def render_configs(self) -> list:
        return build_render_configs(
            self.page.questions(),
            self.draft.to_payload(),
            on_change_for=lambda qid: partial(self.set_answer, qid),
        )

    async def retry_save(self) -> bool:
        return await self.autosave.save_now()

    def validate(self) -> Dict[str, str]:
        values = self.draft.to_payload()
        return validate_answers(build_render_configs(self.page.questions(), values), values)

    async def submit(self) -> SubmitResult:
        """Validate this page, flush pending edits, then submit the form."""
        errors = self.validate()
        if errors:
            return SubmitResult(success=False, errors=errors, message="Please answer the highlighted questions")
        if not await self.autosave.save_now():
            return SubmitResult(success=False, message="Your latest answers could not be saved")
        try:
            submitted_at = await self.client.submit()
        except PersistenceError as e:
            logger.warning("page_session.submit_failed page_id=%s status=%s", self.page.id, e.status_code)
            return SubmitResult(success=False, errors=e.errors, message=str(e))
        logger.info("page_session.submitted page_id=%s", self.page.id)
        return SubmitResult(success=True, submitted_at=submitted_at)

    async def close(self, *, flush: bool = False) -> None:
        """Tear auto-save down; with `flush` pending edits are saved first."""
        if flush and self.opened:
            await self.autosave.save_now()
        self._unsubscribe()
        self.autosave.teardown()


__all__ = ["PageSession", "SubmitResult"]
