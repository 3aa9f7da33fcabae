"""
content_guard.errors – domain exceptions raised by the review pipeline.

Route handlers in ``content_guard.main`` translate these into
``HTTPException`` responses.  Upload intake is the exception: it sits at the
HTTP edge, so ``monitor.video_intake`` raises ``HTTPException`` directly.
"""
from __future__ import annotations


class ContentGuardError(Exception):
    """Base class for every error raised by the review pipeline."""


class FrameSamplingError(ContentGuardError):
    """The uploaded video could not be opened, decoded, or sampled in time."""


class VerdictServiceError(ContentGuardError):
    """
    The external judgment service was unreachable or answered with
    something that does not parse as a PolicyVerdict.

    Network, authentication, and schema failures are deliberately not
    distinguished; callers surface all of them as one generic message.
    """


class AnalysisInProgressError(ContentGuardError):
    """Another analysis already holds the single in-flight slot."""
