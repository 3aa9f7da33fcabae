"""content_guard.monitor – upload intake and frame sampling sub-package."""
from .frame_sampler import FrameSampler, FrameSet
from .video_intake import VideoUploadValidator

__all__ = [
    "FrameSampler",
    "FrameSet",
    "VideoUploadValidator",
]
