"""Functional tests for the client-side page session.

A fake persistence backend behind httpx.MockTransport records every call,
so the tests can assert how many saves reached the store and with what.
One test drives the real app through httpx.ASGITransport.
"""

from __future__ import annotations

import asyncio
import json
from typing import Any, Dict, List, Optional

import httpx
import pytest

from intake.client import PageSession, PersistenceError, ResponsesClient
from intake.config import AutoSaveConfig
from intake.logic.autosave import SaveStatus
from intake.models.question import FormPage, FormSection, QuestionDefinition

pytestmark = pytest.mark.anyio

FAST = AutoSaveConfig(delay_ms=20, saved_display_ms=60, error_display_ms=60)
SETTLE = 0.15


class FakeBackend:
    def __init__(self, stored: Optional[Dict[str, Any]] = None) -> None:
        self.stored: Dict[str, Any] = dict(stored or {})
        self.puts: List[Dict[str, Any]] = []
        self.submits = 0
        self.fail_saves = 0
        self.submit_errors: Optional[Dict[str, str]] = None
        self.submit_response: Optional[httpx.Response] = None

    def __call__(self, request: httpx.Request) -> httpx.Response:
        path = request.url.path
        if path.endswith("/responses") and request.method == "GET":
            return httpx.Response(200, json={"page_id": "p1", "responses": self.stored})
        if path.endswith("/responses") and request.method == "PUT":
            if self.fail_saves:
                self.fail_saves -= 1
                return httpx.Response(500, json={"title": "Internal Server Error", "status": 500})
            responses = json.loads(request.content)["responses"]
            self.puts.append(responses)
            for qid, value in responses.items():
                if value is None:
                    self.stored.pop(qid, None)
                else:
                    self.stored[qid] = value
            return httpx.Response(200, json={"success": True, "saved": list(responses), "skipped": []})
        if path.endswith("/submit"):
            self.submits += 1
            if self.submit_errors:
                return httpx.Response(
                    422,
                    json={"title": "Submission incomplete", "status": 422, "code": "SUBMISSION_INVALID", "errors": self.submit_errors},
                )
            if self.submit_response is not None:
                return self.submit_response
            return httpx.Response(200, json={"success": True, "submitted_at": "2026-10-19T10:00:00Z"})
        return httpx.Response(404, json={"title": "Not found", "status": 404})


def _page() -> FormPage:
    return FormPage(
        id="p1",
        form_id="f1",
        order=1,
        sections=[
            FormSection(
                id="s1",
                order=1,
                questions=[
                    QuestionDefinition(id="q-name", type="SHORT_TEXT", text="Name", required=True, order=1),
                    QuestionDefinition(
                        id="q-rating", type="RATING", text="Rating", order=2, validationRules={"min": 0, "max": 10}
                    ),
                ],
            )
        ],
    )


def _session(
    backend: FakeBackend, statuses: Optional[list] = None, autosave: AutoSaveConfig = FAST
) -> PageSession:
    http = httpx.AsyncClient(transport=httpx.MockTransport(backend), base_url="http://testserver/api/v1")
    client = ResponsesClient("user-1", "f1", client=http)
    return PageSession(client, _page(), autosave=autosave, on_status_change=statuses.append if statuses is not None else None)


async def test_open_loads_saved_answers_without_saving():
    backend = FakeBackend({"q-name": "Ada"})
    session = _session(backend)
    await session.open()
    await asyncio.sleep(SETTLE)
    assert session.draft.raw("q-name") == "Ada"
    assert backend.puts == []
    await session.close()


async def test_burst_of_edits_is_saved_once_with_latest_values():
    backend = FakeBackend()
    session = _session(backend)
    await session.open()
    for text in ("A", "Ad", "Ada"):
        session.set_answer("q-name", text)
    await asyncio.sleep(SETTLE)
    assert backend.puts == [{"q-name": "Ada"}]
    await session.close()


async def test_status_moves_through_saving_and_saved_back_to_idle():
    backend = FakeBackend()
    statuses: list = []
    session = _session(backend, statuses)
    await session.open()
    session.set_answer("q-rating", 7)
    await asyncio.sleep(SETTLE)
    assert statuses == [SaveStatus.SAVING, SaveStatus.SAVED, SaveStatus.IDLE]
    assert backend.stored == {"q-rating": 7}
    await session.close()


async def test_failed_save_shows_error_and_retry_recovers():
    backend = FakeBackend()
    backend.fail_saves = 1
    session = _session(backend, autosave=AutoSaveConfig(delay_ms=20, error_display_ms=5000))
    await session.open()
    session.set_answer("q-name", "Ada")
    await asyncio.sleep(SETTLE)
    assert session.status == SaveStatus.ERROR
    assert session.draft.raw("q-name") == "Ada"

    assert await session.retry_save() is True
    assert backend.stored == {"q-name": "Ada"}
    assert session.status == SaveStatus.SAVED
    await session.close()


async def test_render_config_change_callback_edits_draft():
    backend = FakeBackend()
    session = _session(backend)
    await session.open()
    rating = {c.id: c for c in session.render_configs()}["q-rating"]
    rating.emit(4)
    assert session.draft.raw("q-rating") == 4
    assert {c.id: c for c in session.render_configs()}["q-rating"].value == 4
    await session.close()


async def test_submit_flushes_pending_edit_before_submitting():
    backend = FakeBackend()
    session = _session(backend)
    await session.open()
    session.set_answer("q-name", "Ada")
    result = await session.submit()
    assert result.success is True
    assert result.submitted_at == "2026-10-19T10:00:00Z"
    assert backend.puts == [{"q-name": "Ada"}]
    assert backend.submits == 1
    await session.close()


async def test_submit_with_missing_required_answer_does_not_call_store():
    backend = FakeBackend()
    session = _session(backend)
    await session.open()
    result = await session.submit()
    assert result.success is False
    assert result.errors == {"q-name": "This question is required"}
    assert backend.submits == 0
    await session.close()


async def test_submit_rejected_by_store_returns_errors():
    backend = FakeBackend({"q-name": "Ada"})
    backend.submit_errors = {"q-start": "This question is required"}
    session = _session(backend)
    await session.open()
    result = await session.submit()
    assert result.success is False
    assert result.errors == {"q-start": "This question is required"}
    await session.close()


async def test_submit_with_unreadable_success_body_reports_failure():
    backend = FakeBackend({"q-name": "Ada"})
    backend.submit_response = httpx.Response(200, content=b"<html>gateway</html>")
    session = _session(backend)
    await session.open()
    result = await session.submit()
    assert result.success is False
    assert result.submitted_at is None
    assert backend.submits == 1
    await session.close()


async def test_submit_without_timestamp_reports_failure():
    backend = FakeBackend({"q-name": "Ada"})
    backend.submit_response = httpx.Response(200, json={"success": True})
    session = _session(backend)
    await session.open()
    result = await session.submit()
    assert result.success is False
    assert "submitted_at" in (result.message or "")
    await session.close()


async def test_client_rejects_non_object_success_body():
    backend = FakeBackend()
    backend.submit_response = httpx.Response(200, json=["2026-10-19T10:00:00Z"])
    transport = httpx.MockTransport(backend)
    async with httpx.AsyncClient(transport=transport, base_url="http://testserver/api/v1") as http:
        client = ResponsesClient("user-1", "f1", client=http)
        with pytest.raises(PersistenceError) as excinfo:
            await client.submit()
    assert excinfo.value.status_code == 200


async def test_edit_then_clear_before_debounce_sends_nothing():
    backend = FakeBackend()
    statuses: list = []
    session = _session(backend, statuses)
    await session.open()
    session.set_answer("q-name", "Ada")
    session.set_answer("q-name", None)
    await asyncio.sleep(SETTLE)
    assert backend.puts == []
    assert statuses == []
    assert session.draft.to_payload() == {}
    await session.close()


async def test_clearing_a_saved_answer_removes_it_from_the_store():
    backend = FakeBackend()
    session = _session(backend)
    await session.open()
    session.set_answer("q-name", "Ada")
    await asyncio.sleep(SETTLE)
    session.set_answer("q-name", None)
    await asyncio.sleep(SETTLE)
    assert backend.puts == [{"q-name": "Ada"}, {"q-name": None}]
    assert backend.stored == {}
    await session.close()


async def test_close_drops_pending_edit():
    backend = FakeBackend()
    session = _session(backend)
    await session.open()
    session.set_answer("q-name", "Ada")
    await session.close()
    await asyncio.sleep(SETTLE)
    assert backend.puts == []


async def test_close_with_flush_saves_pending_edit():
    backend = FakeBackend()
    session = _session(backend)
    await session.open()
    session.set_answer("q-name", "Ada")
    await session.close(flush=True)
    assert backend.puts == [{"q-name": "Ada"}]


async def test_failed_load_leaves_autosave_disabled():
    def broken(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    http = httpx.AsyncClient(transport=httpx.MockTransport(broken), base_url="http://testserver/api/v1")
    session = PageSession(ResponsesClient("user-1", "f1", client=http), _page(), autosave=FAST)
    with pytest.raises(PersistenceError):
        await session.open()
    assert session.autosave.enabled is False
    assert session.set_answer("q-name", "Ada") is True
    assert session.autosave.has_pending_timer() is False
    await session.close()


async def test_client_against_live_app(app, user_id):
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://testserver/api/v1") as http:
        client = ResponsesClient(user_id, client=http)
        form = await client.load_form()
        assert client.form_id == form.id == "intake-main"

        page, total = await client.load_page_by_order(2)
        assert (page.id, total) == ("page-preferences", 2)

        await client.save_responses(page.id, {"q-rating": 7, "q-consent": False})
        assert await client.load_responses(page.id) == {"q-rating": 7, "q-consent": False}

        with pytest.raises(PersistenceError) as excinfo:
            await client.submit()
        assert excinfo.value.status_code == 422
        assert "q-name" in excinfo.value.errors

        progress = await client.get_progress()
        assert progress["answered"] == 2
