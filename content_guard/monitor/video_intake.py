"""
content_guard.monitor.video_intake – uploaded video validation.

VideoUploadValidator enforces the size cap, checks the declared content
type, and falls back to container magic bytes when the client sent no
content type at all.
"""
from __future__ import annotations

from fastapi import HTTPException, UploadFile

from content_guard.config import DEFAULT_MAX_VIDEO_BYTES

ALLOWED_CONTENT_TYPES = {
    "video/mp4",
    "video/quicktime",
    "video/webm",
    "video/x-matroska",
    "video/x-msvideo",
    "video/mpeg",
    "video/mp2t",
    "video/x-flv",
    "video/ogg",
    "video/3gpp",
    "application/octet-stream",  # browsers send this for unknown extensions
}

READ_CHUNK_BYTES = 64 * 1024

SUFFIX_BY_CONTENT_TYPE = {
    "video/quicktime":  ".mov",
    "video/webm":       ".webm",
    "video/x-matroska": ".mkv",
    "video/x-msvideo":  ".avi",
    "video/mpeg":       ".mpg",
    "video/mp2t":       ".ts",
    "video/x-flv":      ".flv",
    "video/ogg":        ".ogv",
    "video/3gpp":       ".3gp",
}


class VideoUploadValidator:
    """
    Validate raw upload bytes before they are staged for analysis.

    Content mitigations:
    - Empty payloads are rejected.
    - Payloads over *max_bytes* are rejected.
    - Declared content types must be a video type.
    - Without a declared content type, container magic bytes are checked.
    """

    def __init__(self, max_bytes: int = DEFAULT_MAX_VIDEO_BYTES) -> None:
        self.max_bytes = max_bytes

    # ------------------------------------------------------------------
    # Public
    # ------------------------------------------------------------------

    async def read_upload(self, upload: UploadFile) -> bytes:
        """
        Read *upload* in chunks, stopping as soon as it passes the size cap.

        Raises:
            HTTPException(413)  Video exceeds size cap.
        """
        if upload.size is not None and upload.size > self.max_bytes:
            raise HTTPException(
                status_code=413, detail="Video exceeds maximum allowed size"
            )

        collected = bytearray()
        while True:
            chunk = await upload.read(READ_CHUNK_BYTES)
            if not chunk:
                break
            collected.extend(chunk)
            if len(collected) > self.max_bytes:
                raise HTTPException(
                    status_code=413, detail="Video exceeds maximum allowed size"
                )
        return bytes(collected)

    def validate(self, data: bytes, content_type: str | None) -> str:
        """
        Validate *data* and return the normalised content type.

        Raises:
            HTTPException(413)  Video exceeds size cap.
            HTTPException(415)  Unsupported content type or unknown container.
            HTTPException(422)  Empty payload.
        """
        if not data:
            raise HTTPException(status_code=422, detail="Uploaded video is empty")

        if len(data) > self.max_bytes:
            raise HTTPException(
                status_code=413, detail="Video exceeds maximum allowed size"
            )

        normalized = self.normalize_content_type(content_type)
        if normalized and normalized not in ALLOWED_CONTENT_TYPES:
            raise HTTPException(
                status_code=415,
                detail="Content type is not a supported video format",
            )

        if (
            not normalized or normalized == "application/octet-stream"
        ) and not self._looks_like_video_bytes(data):
            raise HTTPException(
                status_code=415,
                detail="Uploaded payload does not appear to be a video",
            )

        return normalized or "application/octet-stream"

    @staticmethod
    def normalize_content_type(content_type: str | None) -> str:
        return (content_type or "").split(";")[0].strip().lower()

    @staticmethod
    def suffix_for(content_type: str) -> str:
        """File suffix used when spooling the video for decoding."""
        return SUFFIX_BY_CONTENT_TYPE.get(content_type, ".mp4")

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _looks_like_video_bytes(blob: bytes) -> bool:
        if len(blob) >= 12 and blob[4:8] == b"ftyp":
            return True                           # MP4 / MOV / 3GP
        if len(blob) >= 12 and blob[:4] == b"RIFF" and blob[8:12] == b"AVI ":
            return True                           # AVI
        signatures = (
            b"\x1A\x45\xDF\xA3",  # WebM / Matroska (EBML)
            b"\x00\x00\x01\xBA",  # MPEG program stream
            b"\x00\x00\x01\xB3",  # MPEG video
            b"FLV",
            b"OggS",
        )
        if any(blob.startswith(sig) for sig in signatures):
            return True
        # MPEG-TS: sync byte every 188 bytes
        return len(blob) >= 377 and blob[0] == 0x47 and blob[188] == 0x47
