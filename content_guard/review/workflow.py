"""
content_guard.review.workflow – the history-backed verdict workflow.

ReviewWorkflow samples a staged video, asks the judgment service for a
verdict against a snapshot of the history, folds novel videos into the
history, and resolves the matched thumbnail for repetitive ones.
"""
from __future__ import annotations

import time
from contextlib import contextmanager
from typing import Callable, Iterator, Literal, Protocol

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from content_guard.ai.verdict_model import PolicyVerdict
from content_guard.db.database import HistoryEntry, HistoryStore
from content_guard.errors import AnalysisInProgressError
from content_guard.forensic.explainability import build_verdict_evidence
from content_guard.monitor.frame_sampler import FrameSampler
from content_guard.monitor.video_intake import VideoUploadValidator
from content_guard.review.staging import StagedVideo


class VerdictRequester(Protocol):
    async def request_verdict(
        self, frames_base64: list[str], history: list[HistoryEntry]
    ) -> PolicyVerdict: ...


class ReviewOutcome(BaseModel):
    """Everything the operator sees after one analysis run."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    video_id:          str
    mode:              Literal["save", "check"]
    verdict:           PolicyVerdict
    evidence:          list[str]
    current_thumbnail: str
    matched_thumbnail: str | None
    saved_to_history:  bool
    history_size:      int


# ---------------------------------------------------------------------------
# In-flight guard
# ---------------------------------------------------------------------------

class InFlightGuard:
    """
    Single-slot guard around the analysis operation.

    A second claim while one is held raises AnalysisInProgressError; there
    is no queue.  The check-and-set runs without an ``await`` in between,
    so it is atomic on the event loop.
    """

    def __init__(self) -> None:
        self._busy = False

    @property
    def busy(self) -> bool:
        return self._busy

    @contextmanager
    def claim(self) -> Iterator[None]:
        if self._busy:
            raise AnalysisInProgressError("an analysis is already running")
        self._busy = True
        try:
            yield
        finally:
            self._busy = False


def resolve_matched_thumbnail(
    verdict: PolicyVerdict, snapshot: list[HistoryEntry]
) -> str | None:
    """
    Map ``historyCheck.matchedVideoIndex`` (1-based) onto *snapshot*.

    The index is only a hint from the service; out-of-range or missing
    indices resolve to None.
    """
    check = verdict.history_check
    if not check.is_similar_to_past or check.matched_video_index is None:
        return None
    position = check.matched_video_index - 1
    if 0 <= position < len(snapshot):
        return snapshot[position].preview_thumbnail
    return None


# ---------------------------------------------------------------------------
# Workflow
# ---------------------------------------------------------------------------

class ReviewWorkflow:
    """
    Orchestrates sampling, judgment, and history fold-in.

    Failures from the sampler or the requester propagate unchanged; the
    history is only mutated after a verdict has been parsed.
    """

    def __init__(
        self,
        store: HistoryStore,
        sampler: FrameSampler,
        requester: VerdictRequester,
        guard: InFlightGuard | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.store = store
        self.sampler = sampler
        self.requester = requester
        self.guard = guard or InFlightGuard()
        self._clock = clock

    def mode(self) -> Literal["save", "check"]:
        """'save' for the first submission, 'check' once history exists."""
        return "check" if len(self.store) else "save"

    async def analyze(self, video: StagedVideo) -> ReviewOutcome:
        """
        Run one analysis for *video*.

        Raises:
            AnalysisInProgressError  Another analysis holds the guard.
            FrameSamplingError       Video unreadable or sampling timed out.
            VerdictServiceError      Service unreachable or malformed answer.
        """
        with self.guard.claim():
            snapshot = self.store.entries()
            mode = "check" if snapshot else "save"

            frame_set = await self.sampler.sample(
                video.data, suffix=VideoUploadValidator.suffix_for(video.content_type)
            )
            verdict = await self.requester.request_verdict(frame_set.frames, snapshot)

            saved = not verdict.history_check.is_similar_to_past
            if saved:
                self.store.append(
                    HistoryEntry(
                        timestamp=int(self._clock() * 1000),
                        visual_signature=verdict.visual_signature,
                        preview_thumbnail=frame_set.thumbnail,
                    )
                )

            return ReviewOutcome(
                video_id=video.video_id,
                mode=mode,
                verdict=verdict,
                evidence=build_verdict_evidence(verdict),
                current_thumbnail=frame_set.thumbnail,
                matched_thumbnail=resolve_matched_thumbnail(verdict, snapshot),
                saved_to_history=saved,
                history_size=len(self.store),
            )
