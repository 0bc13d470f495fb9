"""Application services."""

from iostack.application.services.iostack_client import IOStackClient, new_client

__all__ = ["IOStackClient", "new_client"]
