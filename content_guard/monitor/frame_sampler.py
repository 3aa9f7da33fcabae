"""
content_guard.monitor.frame_sampler – fixed-offset frame sampling.

FrameSampler seeks one OpenCV capture handle to four relative positions,
encodes each frame as a JPEG for the judgment service, and derives a
smaller preview thumbnail from the second position.
"""
from __future__ import annotations

import asyncio
import base64
import io
import math
import os
import tempfile
from dataclasses import dataclass

import cv2
import numpy as np
from PIL import Image

from content_guard.config import DEFAULT_SAMPLING_TIMEOUT_SECONDS
from content_guard.errors import FrameSamplingError

FALLBACK_DURATION_SECONDS = 8.0
FIRST_SAMPLE_SECONDS = 0.1
SAMPLE_FRACTIONS = (0.4, 0.7, 0.9)

FRAME_JPEG_QUALITY = 60
THUMBNAIL_JPEG_QUALITY = 50
THUMBNAIL_WIDTH = 480
THUMBNAIL_SAMPLE_INDEX = 1


@dataclass(frozen=True)
class FrameSet:
    """Four base64 JPEG frames (sample order) plus a data-URI thumbnail."""
    frames:    list[str]
    thumbnail: str


def sample_offsets(duration: float | None) -> list[float]:
    """
    Return the four seek offsets (seconds) for a clip of *duration*.

    Missing, zero, negative or non-finite durations fall back to
    FALLBACK_DURATION_SECONDS.
    """
    if not duration or not math.isfinite(duration) or duration <= 0:
        duration = FALLBACK_DURATION_SECONDS
    return [FIRST_SAMPLE_SECONDS, *(duration * f for f in SAMPLE_FRACTIONS)]


def thumbnail_size(width: int, height: int) -> tuple[int, int]:
    """Scale (*width*, *height*) to THUMBNAIL_WIDTH keeping the aspect ratio."""
    scale = THUMBNAIL_WIDTH / width
    return THUMBNAIL_WIDTH, max(1, round(height * scale))


def _fill_missing(decoded: list[np.ndarray | None]) -> list[np.ndarray]:
    """
    Replace failed positions with the previous decoded frame, or with the
    first decoded frame for leading gaps.

    Raises:
        FrameSamplingError  No position decoded at all.
    """
    first = next((rgb for rgb in decoded if rgb is not None), None)
    if first is None:
        raise FrameSamplingError("no decodable frame in video")

    filled: list[np.ndarray] = []
    previous = first
    for rgb in decoded:
        if rgb is not None:
            previous = rgb
        filled.append(previous)
    return filled


def _encode_jpeg(image: Image.Image, quality: int) -> bytes:
    buffer = io.BytesIO()
    image.save(buffer, format="JPEG", quality=quality)
    return buffer.getvalue()


class FrameSampler:
    """
    Sample representative frames from an uploaded video.

    Decoding is blocking, so ``sample`` runs it in a worker thread and
    bounds it with *timeout_seconds*; a video that cannot be opened or
    decoded raises FrameSamplingError instead of stalling the caller.

    Usage::

        sampler = FrameSampler()
        frame_set = await sampler.sample(video_bytes)
    """

    def __init__(self, timeout_seconds: float = DEFAULT_SAMPLING_TIMEOUT_SECONDS) -> None:
        self.timeout_seconds = timeout_seconds

    # ------------------------------------------------------------------
    # Public interface
    # ------------------------------------------------------------------

    async def sample(self, video_bytes: bytes, suffix: str = ".mp4") -> FrameSet:
        """
        Sample *video_bytes* and return a FrameSet.

        Raises:
            FrameSamplingError  Unreadable video or timeout.
        """
        try:
            return await asyncio.wait_for(
                asyncio.to_thread(self._sample_bytes, video_bytes, suffix),
                timeout=self.timeout_seconds,
            )
        except asyncio.TimeoutError as exc:
            print(f"[sampler] Sampling exceeded {self.timeout_seconds:.0f}s")
            raise FrameSamplingError("video sampling timed out") from exc

    def sample_file(self, video_path: str) -> FrameSet:
        """Synchronously sample a video file on disk."""
        capture = cv2.VideoCapture(video_path)
        try:
            if not capture.isOpened():
                raise FrameSamplingError("video could not be opened")

            fps = capture.get(cv2.CAP_PROP_FPS)
            frame_count = capture.get(cv2.CAP_PROP_FRAME_COUNT)
            duration = frame_count / fps if fps and fps > 0 else None

            # Same handle for every seek, so strictly sequential.
            decoded: list[np.ndarray | None] = []
            for offset in sample_offsets(duration):
                capture.set(cv2.CAP_PROP_POS_MSEC, offset * 1000.0)
                ok, bgr = capture.read()
                if ok and bgr is not None:
                    decoded.append(cv2.cvtColor(bgr, cv2.COLOR_BGR2RGB))
                else:
                    print(f"[sampler] No frame at {offset:.2f}s, reusing a neighbour")
                    decoded.append(None)

            frames: list[str] = []
            thumbnail = ""
            for index, rgb in enumerate(_fill_missing(decoded)):
                image = Image.fromarray(rgb)
                frames.append(
                    base64.b64encode(
                        _encode_jpeg(image, FRAME_JPEG_QUALITY)
                    ).decode("ascii")
                )

                if index == THUMBNAIL_SAMPLE_INDEX:
                    thumb = image.resize(
                        thumbnail_size(*image.size), Image.Resampling.BILINEAR
                    )
                    thumbnail = "data:image/jpeg;base64," + base64.b64encode(
                        _encode_jpeg(thumb, THUMBNAIL_JPEG_QUALITY)
                    ).decode("ascii")

            return FrameSet(frames=frames, thumbnail=thumbnail)
        finally:
            capture.release()

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _sample_bytes(self, video_bytes: bytes, suffix: str) -> FrameSet:
        # OpenCV only reads from paths, so spool the upload to disk.
        fd, path = tempfile.mkstemp(suffix=suffix, prefix="content_guard_")
        try:
            with os.fdopen(fd, "wb") as handle:
                handle.write(video_bytes)
            return self.sample_file(path)
        finally:
            try:
                os.unlink(path)
            except OSError as exc:
                print(f"[sampler] Could not remove temp file {path}: {exc}")
