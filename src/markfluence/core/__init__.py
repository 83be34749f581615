"""Confluence client and async helpers shared by the CLI and sync engine."""

from .async_utils import gather_settled, run_sync
from .client import ConfluenceApiError, ConfluenceClient
from .models import RemoteAttachment, RemoteDocument

__all__ = [
    "ConfluenceApiError",
    "ConfluenceClient",
    "RemoteAttachment",
    "RemoteDocument",
    "gather_settled",
    "run_sync",
]
