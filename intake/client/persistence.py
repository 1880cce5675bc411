"""HTTP client for the intake persistence API.

`ResponsesClient` talks to the `/api/v1` surface on behalf of one user and
one form. Transport failures and non-2xx answers surface as
`PersistenceError`; the auto-save controller and `PageSession` turn those
into a status or a result at their boundary.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Mapping, Optional, Tuple

import httpx

from intake.config import DEFAULT_USER_HEADER, ClientConfig
from intake.models.question import Form, FormPage

logger = logging.getLogger(__name__)


class PersistenceError(Exception):
    """A persistence call failed.

    `status_code` is None for transport failures. `errors` carries the
    per-question messages of a rejected submission.
    """

    def __init__(
        self,
        message: str,
        *,
        status_code: Optional[int] = None,
        code: Optional[str] = None,
        errors: Optional[Dict[str, str]] = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.code = code
        self.errors = errors or {}


class ResponsesClient:
    def __init__(
        self,
        user_id: str,
        form_id: Optional[str] = None,
        *,
        config: Optional[ClientConfig] = None,
        user_header: str = DEFAULT_USER_HEADER,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        cfg = config or ClientConfig()
        self.user_id = user_id
        self.form_id = form_id
        self.user_header = user_header
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(base_url=cfg.base_url.rstrip("/"), timeout=cfg.timeout_s)

    async def __aenter__(self) -> "ResponsesClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    def _form_path(self, suffix: str = "") -> str:
        if not self.form_id:
            raise PersistenceError("No form selected; call load_form() first")
        return f"/forms/{self.form_id}{suffix}"

    async def _request(self, method: str, path: str, json: Any = None) -> Dict[str, Any]:
        try:
            response = await self._client.request(
                method, path, json=json, headers={self.user_header: self.user_id}
            )
        except httpx.HTTPError as e:
            logger.warning("persistence.transport_failed method=%s path=%s error=%s", method, path, e)
            raise PersistenceError(f"Request failed: {e}") from e

        if response.status_code >= 400:
            try:
                body = response.json()
            except ValueError:
                body = {}
            if not isinstance(body, dict):
                body = {}
            errors = body.get("errors")
            raise PersistenceError(
                str(body.get("detail") or body.get("title") or f"HTTP {response.status_code}"),
                status_code=response.status_code,
                code=body.get("code"),
                errors=errors if isinstance(errors, dict) else None,
            )
        try:
            body = response.json()
        except ValueError as e:
            logger.warning(
                "persistence.malformed_body method=%s path=%s status=%s", method, path, response.status_code
            )
            raise PersistenceError("Malformed response body", status_code=response.status_code) from e
        if not isinstance(body, dict):
            raise PersistenceError("Malformed response body", status_code=response.status_code)
        return body

    async def load_form(self) -> Form:
        """Fetch the active form and select it when no form id was given."""
        body = await self._request("GET", "/forms/active")
        form = Form.model_validate(body["form"])
        if self.form_id is None:
            self.form_id = form.id
        elif self.form_id != form.id:
            logger.warning("persistence.form_mismatch selected=%s active=%s", self.form_id, form.id)
        return form

    async def load_page(self, page_id: str) -> Tuple[FormPage, int]:
        body = await self._request("GET", self._form_path(f"/pages/{page_id}"))
        return FormPage.model_validate(body["page"]), int(body["total_pages"])

    async def load_page_by_order(self, order: int) -> Tuple[FormPage, int]:
        body = await self._request("GET", self._form_path(f"/pages/by-order/{int(order)}"))
        return FormPage.model_validate(body["page"]), int(body["total_pages"])

    async def load_responses(self, page_id: str) -> Dict[str, Any]:
        body = await self._request("GET", self._form_path(f"/pages/{page_id}/responses"))
        return dict(body.get("responses") or {})

    async def save_responses(self, page_id: str, responses: Mapping[str, Any]) -> Dict[str, Any]:
        body = await self._request(
            "PUT", self._form_path(f"/pages/{page_id}/responses"), json={"responses": dict(responses)}
        )
        if body.get("skipped"):
            logger.warning("persistence.responses_skipped page_id=%s ids=%s", page_id, body["skipped"])
        return body

    async def submit(self) -> str:
        body = await self._request("POST", self._form_path("/submit"))
        submitted_at = body.get("submitted_at")
        if not isinstance(submitted_at, str) or not submitted_at:
            raise PersistenceError("Submission response lacks submitted_at")
        return submitted_at

    async def get_progress(self) -> Dict[str, int]:
        return await self._request("GET", self._form_path("/progress"))


__all__ = ["PersistenceError", "ResponsesClient"]
