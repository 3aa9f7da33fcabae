"""content_guard.forensic – verdict evidence rendering."""
from .explainability import build_verdict_evidence

__all__ = ["build_verdict_evidence"]
