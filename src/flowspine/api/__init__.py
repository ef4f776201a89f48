"""flow-spine REST API (FastAPI)."""

from flowspine.api.app import create_app

__all__ = ["create_app"]
