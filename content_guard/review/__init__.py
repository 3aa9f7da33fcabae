"""content_guard.review – staged uploads and the analysis workflow."""
from .staging import StagedVideo, VideoRegistry
from .workflow import InFlightGuard, ReviewOutcome, ReviewWorkflow

__all__ = [
    "StagedVideo",
    "VideoRegistry",
    "InFlightGuard",
    "ReviewOutcome",
    "ReviewWorkflow",
]
