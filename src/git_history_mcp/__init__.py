"""Decode git commit history into typed commit records."""

from .fetcher import HistoryFetcher
from .models import Commit, HistoryRequest, HistoryResponse

__all__ = ["Commit", "HistoryFetcher", "HistoryRequest", "HistoryResponse"]
__version__ = "0.1.0"
