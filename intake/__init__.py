"""Multi-page intake questionnaire: catalog, auto-save and submission."""

from intake.main import create_app

__all__ = ["create_app"]
