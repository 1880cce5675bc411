"""Caller identity dependency.

Identity is the opaque value of a configured request header; the upstream
authentication layer is trusted to set it.
"""

from __future__ import annotations

import logging

from fastapi import Request

from intake.config import DEFAULT_USER_HEADER
from intake.http.error_mapping import raise_problem

logger = logging.getLogger(__name__)


def current_user(request: Request) -> str:
    cfg = getattr(request.app.state, "config", None)
    header = cfg.auth.user_header if cfg is not None else DEFAULT_USER_HEADER
    user_id = (request.headers.get(header) or "").strip()
    if not user_id:
        logger.info("identity_missing header=%s path=%s", header, request.url.path)
        raise_problem("IDENTITY_MISSING", f"{header} header is required")
    return user_id


__all__ = ["current_user"]
