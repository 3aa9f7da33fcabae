"""Tests for fixed-offset frame sampling."""

import base64
import io
import math
import time
from pathlib import Path

import cv2
import numpy as np
import pytest
from PIL import Image

from content_guard.errors import FrameSamplingError
from content_guard.monitor.frame_sampler import (
    FALLBACK_DURATION_SECONDS,
    THUMBNAIL_WIDTH,
    FrameSampler,
    sample_offsets,
    thumbnail_size,
)

from .conftest import make_synthetic_video


class _FlakyCapture:
    """Stand-in capture whose reads succeed only where *frames* has an image."""

    def __init__(self, frames):
        self._frames = list(frames)
        self.released = False

    def isOpened(self):
        return True

    def get(self, prop):
        return 30.0 if prop == cv2.CAP_PROP_FPS else 300.0

    def set(self, prop, value):
        return True

    def read(self):
        frame = self._frames.pop(0)
        return frame is not None, frame

    def release(self):
        self.released = True


def _solid_bgr(bgr) -> np.ndarray:
    frame = np.zeros((240, 320, 3), dtype=np.uint8)
    frame[:] = bgr
    return frame


def _decode(b64: str) -> Image.Image:
    return Image.open(io.BytesIO(base64.b64decode(b64)))


class TestSampleOffsets:
    def test_relative_offsets(self):
        assert sample_offsets(10.0) == pytest.approx([0.1, 4.0, 7.0, 9.0])

    @pytest.mark.parametrize("duration", [None, 0.0, -3.0, math.nan, math.inf])
    def test_unknown_duration_falls_back(self, duration):
        expected = [0.1, *(FALLBACK_DURATION_SECONDS * f for f in (0.4, 0.7, 0.9))]
        assert sample_offsets(duration) == pytest.approx(expected)


class TestThumbnailSize:
    def test_preserves_aspect_ratio(self):
        assert thumbnail_size(1920, 1080) == (THUMBNAIL_WIDTH, 270)

    def test_portrait_video(self):
        assert thumbnail_size(1080, 1920) == (THUMBNAIL_WIDTH, 853)


class TestSampleFile:
    def test_four_frames_and_thumbnail(self, tmp_path: Path):
        video = make_synthetic_video(tmp_path / "clip.mp4")

        frame_set = FrameSampler().sample_file(str(video))

        assert len(frame_set.frames) == 4
        for b64 in frame_set.frames:
            image = _decode(b64)
            assert image.format == "JPEG"
            assert image.size == (320, 240)

        prefix = "data:image/jpeg;base64,"
        assert frame_set.thumbnail.startswith(prefix)
        thumb = _decode(frame_set.thumbnail[len(prefix):])
        assert thumb.size == (THUMBNAIL_WIDTH, 360)

    def test_frames_follow_sample_positions(self, tmp_path: Path):
        # 3 s clip: red, green, blue seconds; samples at 0.1, 1.2, 2.1, 2.7 s.
        video = make_synthetic_video(tmp_path / "clip.mp4")

        frame_set = FrameSampler().sample_file(str(video))

        first = _decode(frame_set.frames[0]).convert("RGB").getpixel((160, 120))
        last = _decode(frame_set.frames[3]).convert("RGB").getpixel((160, 120))
        assert first[0] > 200 and first[2] < 60   # red
        assert last[2] > 200 and last[0] < 60     # blue

    def test_unreadable_file_raises(self, tmp_path: Path):
        bogus = tmp_path / "bogus.mp4"
        bogus.write_bytes(b"this is not a video")

        with pytest.raises(FrameSamplingError):
            FrameSampler().sample_file(str(bogus))

    def test_failed_first_seek_backfilled_from_later_frame(self, monkeypatch):
        green, blue = _solid_bgr((0, 255, 0)), _solid_bgr((255, 0, 0))
        capture = _FlakyCapture([None, green, None, blue])
        monkeypatch.setattr(cv2, "VideoCapture", lambda path: capture)

        frame_set = FrameSampler().sample_file("clip.mp4")

        colours = [
            _decode(b64).convert("RGB").getpixel((160, 120)) for b64 in frame_set.frames
        ]
        assert colours[0][1] > 200 and colours[0][2] < 60   # green, backfilled
        assert colours[2][1] > 200 and colours[2][2] < 60   # green, carried forward
        assert colours[3][2] > 200 and colours[3][1] < 60   # blue
        assert frame_set.thumbnail.startswith("data:image/jpeg;base64,")
        assert capture.released

    def test_no_decodable_frame_raises(self, monkeypatch):
        capture = _FlakyCapture([None, None, None, None])
        monkeypatch.setattr(cv2, "VideoCapture", lambda path: capture)

        with pytest.raises(FrameSamplingError):
            FrameSampler().sample_file("clip.mp4")
        assert capture.released


class TestSampleAsync:
    @pytest.mark.asyncio
    async def test_sample_bytes(self, tmp_path: Path):
        video = make_synthetic_video(tmp_path / "clip.mp4")

        frame_set = await FrameSampler().sample(video.read_bytes())

        assert len(frame_set.frames) == 4

    @pytest.mark.asyncio
    async def test_timeout_raises_instead_of_hanging(self, monkeypatch):
        sampler = FrameSampler(timeout_seconds=0.05)

        def slow(video_bytes, suffix):
            time.sleep(0.5)

        monkeypatch.setattr(sampler, "_sample_bytes", slow)

        with pytest.raises(FrameSamplingError, match="timed out"):
            await sampler.sample(b"\x00")
