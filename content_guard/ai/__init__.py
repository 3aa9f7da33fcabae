"""content_guard.ai – verdict model and judgment-service client."""
from .verdict_model import ComparisonDetails, HistoryCheck, PolicyVerdict
from .verdict_requester import GeminiVerdictRequester, build_history_context

__all__ = [
    "ComparisonDetails",
    "HistoryCheck",
    "PolicyVerdict",
    "GeminiVerdictRequester",
    "build_history_context",
]
