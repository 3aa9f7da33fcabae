"""content_guard.db – persisted history of accepted videos."""
from .database import HistoryEntry, HistoryStore, MAX_HISTORY

__all__ = ["HistoryEntry", "HistoryStore", "MAX_HISTORY"]
