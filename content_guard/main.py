"""
content_guard.main – FastAPI application entry point.

Initialises singleton service instances and registers all API routes.

Start the server:
    uvicorn content_guard.main:app --reload --port 8000
"""
from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Literal

from fastapi import FastAPI, File, HTTPException, UploadFile
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from content_guard.ai.verdict_requester import GeminiVerdictRequester
from content_guard.config import Settings
from content_guard.db.database import HistoryStore
from content_guard.errors import (
    AnalysisInProgressError,
    FrameSamplingError,
    VerdictServiceError,
)
from content_guard.monitor.frame_sampler import FrameSampler
from content_guard.monitor.video_intake import VideoUploadValidator
from content_guard.review.staging import VideoRegistry
from content_guard.review.workflow import ReviewOutcome, ReviewWorkflow

GENERIC_SERVICE_ERROR = (
    "စစ်ဆေးမှု ပြုလုပ်ရာတွင် အခက်အခဲရှိနေပါသည်။ အင်တာနက်ကို ပြန်စစ်ကြည့်ပါ။"
)

# ---------------------------------------------------------------------------
# Singleton service instances
# ---------------------------------------------------------------------------

settings  = Settings.from_env()
store     = HistoryStore(settings.history_path)
registry  = VideoRegistry()
validator = VideoUploadValidator(max_bytes=settings.max_video_bytes)
workflow  = ReviewWorkflow(
    store=store,
    sampler=FrameSampler(timeout_seconds=settings.sampling_timeout_seconds),
    requester=GeminiVerdictRequester(
        api_key=settings.api_key,
        model=settings.model,
        api_base=settings.api_base,
        timeout_seconds=settings.request_timeout_seconds,
    ),
)


@asynccontextmanager
async def lifespan(_: FastAPI):
    workflow.store.load()
    print(f"[main] Loaded {len(workflow.store)} history entries from {workflow.store.path}")
    if not settings.api_key:
        print("[main] GEMINI_API_KEY is not set; analyses will fail until it is")
    yield


# ---------------------------------------------------------------------------
# Application
# ---------------------------------------------------------------------------

app = FastAPI(
    title="Content Guard – Repetitive Content Checker API",
    version="1.0.0",
    description=(
        "Samples uploaded videos, compares them with previously accepted "
        "videos via a multimodal model, and returns a repetitive-content "
        "policy verdict."
    ),
    lifespan=lifespan,
)

# ---------------------------------------------------------------------------
# Pydantic response models
# ---------------------------------------------------------------------------

class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class StagedVideoResponse(_CamelModel):
    video_id:     str
    filename:     str
    content_type: str
    size_bytes:   int
    uploaded_at:  int
    mode:         Literal["save", "check"]


class HistoryItem(_CamelModel):
    position:          int
    label:             str
    timestamp:         int
    visual_signature:  str
    preview_thumbnail: str


class HistoryResponse(_CamelModel):
    records: list[HistoryItem]
    total:   int


# ---------------------------------------------------------------------------
# Routes
# ---------------------------------------------------------------------------

@app.get("/api/health")
async def health() -> dict[str, str]:
    """Liveness probe — returns {"status": "ok"} when the server is up."""
    return {"status": "ok"}


@app.post("/api/videos", response_model=StagedVideoResponse, status_code=201)
async def upload_video(file: UploadFile = File(...)) -> StagedVideoResponse:
    """Validate and stage an uploaded video for analysis."""
    data = await validator.read_upload(file)
    content_type = validator.validate(data, file.content_type)
    video = registry.stage(data, file.filename or "video", content_type)

    return StagedVideoResponse(
        video_id=video.video_id,
        filename=video.filename,
        content_type=video.content_type,
        size_bytes=video.size_bytes,
        uploaded_at=video.uploaded_at,
        mode=workflow.mode(),
    )


@app.delete("/api/videos/{video_id}", status_code=204)
async def reset_video(video_id: str) -> None:
    """Discard a staged video (the "next video" reset)."""
    if not registry.discard(video_id):
        raise HTTPException(status_code=404, detail="Unknown video")


@app.post("/api/videos/{video_id}/analyze", response_model=ReviewOutcome)
async def analyze_video(video_id: str) -> ReviewOutcome:
    """
    Run the repetitive-content check for a staged video.

    "save" on the first submission, "check" once history exists.  On any
    failure the history is untouched and the video stays staged for retry.
    """
    video = registry.get(video_id)
    if video is None:
        raise HTTPException(status_code=404, detail="Unknown video")

    try:
        return await workflow.analyze(video)
    except AnalysisInProgressError as exc:
        print(f"[main] Rejected concurrent analysis for {video_id}")
        raise HTTPException(
            status_code=409, detail="An analysis is already running"
        ) from exc
    except FrameSamplingError as exc:
        print(f"[main] Sampling failed for {video_id}: {exc}")
        raise HTTPException(
            status_code=422, detail="Video could not be read"
        ) from exc
    except VerdictServiceError as exc:
        print(f"[main] Verdict failed for {video_id}: {exc}")
        raise HTTPException(
            status_code=502, detail=GENERIC_SERVICE_ERROR
        ) from exc


@app.get("/api/history", response_model=HistoryResponse)
async def get_history() -> HistoryResponse:
    """Return stored history entries, newest first, with display labels."""
    entries = workflow.store.entries()
    total = len(entries)
    return HistoryResponse(
        records=[
            HistoryItem(
                position=i,
                label=f"ID #{total - i}",
                timestamp=entry.timestamp,
                visual_signature=entry.visual_signature,
                preview_thumbnail=entry.preview_thumbnail,
            )
            for i, entry in enumerate(entries)
        ],
        total=total,
    )


@app.delete("/api/history/{position}", status_code=204)
async def delete_history_entry(position: int) -> None:
    """Delete one history entry by its current 0-based position."""
    try:
        workflow.store.remove_at(position)
    except IndexError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc


@app.delete("/api/history", status_code=204)
async def clear_history(confirm: bool = False) -> None:
    """Delete every history entry; requires ``?confirm=true``."""
    if not confirm:
        raise HTTPException(
            status_code=400,
            detail="Clearing history requires confirm=true",
        )
    workflow.store.clear_all()
