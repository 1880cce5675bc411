"""Client-side half: persistence client and page editing session."""

from intake.client.page_session import PageSession, SubmitResult
from intake.client.persistence import PersistenceError, ResponsesClient

__all__ = ["PageSession", "SubmitResult", "PersistenceError", "ResponsesClient"]
