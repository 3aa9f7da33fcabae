"""
content_guard.review.staging – transient handles for uploaded videos.

An uploaded video stays staged until the operator resets it, so a failed
analysis can be retried without uploading the file again.
"""
from __future__ import annotations

import time
import uuid
from collections import OrderedDict
from dataclasses import dataclass, field

MAX_STAGED_VIDEOS = 16  # oldest staged upload is dropped beyond this


@dataclass(frozen=True)
class StagedVideo:
    """One uploaded video awaiting (or re-awaiting) analysis."""
    data:         bytes = field(repr=False)
    filename:     str
    content_type: str
    video_id:     str = field(default_factory=lambda: uuid.uuid4().hex)
    uploaded_at:  int = field(default_factory=lambda: int(time.time() * 1000))

    @property
    def size_bytes(self) -> int:
        return len(self.data)


class VideoRegistry:
    """In-process registry of staged uploads, capped at *max_videos*."""

    def __init__(self, max_videos: int = MAX_STAGED_VIDEOS) -> None:
        self.max_videos = max_videos
        self._videos: OrderedDict[str, StagedVideo] = OrderedDict()

    def __len__(self) -> int:
        return len(self._videos)

    def stage(self, data: bytes, filename: str, content_type: str) -> StagedVideo:
        video = StagedVideo(data=data, filename=filename, content_type=content_type)
        self._videos[video.video_id] = video
        while len(self._videos) > self.max_videos:
            evicted_id, _ = self._videos.popitem(last=False)
            print(f"[staging] Evicted staged video {evicted_id}")
        return video

    def get(self, video_id: str) -> StagedVideo | None:
        return self._videos.get(video_id)

    def discard(self, video_id: str) -> bool:
        """Drop a staged video; returns False if it was not staged."""
        return self._videos.pop(video_id, None) is not None
