"""Shared fixtures and fakes for the content_guard test suite."""

from pathlib import Path

import cv2
import numpy as np
import pytest

from content_guard.ai.verdict_model import PolicyVerdict
from content_guard.db.database import HistoryEntry, HistoryStore
from content_guard.monitor.frame_sampler import FrameSet

CURRENT_THUMBNAIL = "data:image/jpeg;base64,Q1VSUkVOVA=="

# Minimal ISO-BMFF header: size + "ftyp" + brand.
MP4_BYTES = b"\x00\x00\x00\x18ftypmp42" + b"\x00" * 64


def make_verdict(
    similar: bool = False,
    matched_index: int | None = None,
    signature: str = "Golden Buddha statue, dark red backdrop, slow push-in",
) -> PolicyVerdict:
    """Build a verdict the way the judgment service would return it."""
    history_check = {"isSimilarToPast": similar, "details": "comparison note"}
    if matched_index is not None:
        history_check["matchedVideoIndex"] = matched_index
    return PolicyVerdict.model_validate({
        "similarityScore": 92 if similar else 12,
        "isRepetitive": similar,
        "status": "High Risk" if similar else "Safe",
        "policyViolations": ["Repetitive content"] if similar else [],
        "recommendations": "မတင်သင့်ပါ။" if similar else "တင်ရန်သင့်တော်ပါသည်။",
        "visualSignature": signature,
        "comparisonDetails": {
            "composition": "centered subject",
            "colors": "warm gold",
            "subjectMatter": "statue",
            "motionAnalysis": "slow zoom",
        },
        "historyCheck": history_check,
    })


def make_entry(n: int) -> HistoryEntry:
    return HistoryEntry(
        timestamp=1_700_000_000_000 + n,
        visual_signature=f"signature {n}",
        preview_thumbnail=f"data:image/jpeg;base64,THUMB{n}",
    )


class FakeSampler:
    """Returns a fixed FrameSet without decoding anything."""

    def __init__(self, thumbnail: str = CURRENT_THUMBNAIL):
        self.thumbnail = thumbnail
        self.calls = 0

    async def sample(self, video_bytes: bytes, suffix: str = ".mp4") -> FrameSet:
        self.calls += 1
        return FrameSet(frames=["f1", "f2", "f3", "f4"], thumbnail=self.thumbnail)


class FakeRequester:
    """Returns a configured verdict (or raises) and records the history sent."""

    def __init__(self, verdict: PolicyVerdict | None = None, error: Exception | None = None):
        self.verdict = verdict or make_verdict()
        self.error = error
        self.histories: list[list[HistoryEntry]] = []

    async def request_verdict(self, frames_base64, history):
        self.histories.append(list(history))
        if self.error is not None:
            raise self.error
        return self.verdict


@pytest.fixture
def history_path(tmp_path: Path) -> Path:
    return tmp_path / "history" / "records.json"


@pytest.fixture
def store(history_path: Path) -> HistoryStore:
    return HistoryStore(history_path)


def make_synthetic_video(path: Path, num_frames: int = 90, fps: float = 30.0) -> Path:
    """Write a short MP4 whose colour changes every 30 frames."""
    width, height = 320, 240
    fourcc = cv2.VideoWriter_fourcc(*"mp4v")
    writer = cv2.VideoWriter(str(path), fourcc, fps, (width, height))

    colours = [
        (0, 0, 255),    # red  (BGR)
        (0, 255, 0),    # green
        (255, 0, 0),    # blue
    ]
    for i in range(num_frames):
        colour = colours[(i // 30) % len(colours)]
        frame = np.full((height, width, 3), colour, dtype=np.uint8)
        writer.write(frame)

    writer.release()
    return path
