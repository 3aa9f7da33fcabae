"""
content_guard.db – persisted history of accepted videos.

HistoryStore keeps the newest-first list of HistoryEntry records in memory
and rewrites the whole JSON record on every mutation, so the in-memory and
on-disk copies never diverge.
"""
from __future__ import annotations

import os
import tempfile
from pathlib import Path

from pydantic import BaseModel, ConfigDict, TypeAdapter, ValidationError
from pydantic.alias_generators import to_camel

# ---------------------------------------------------------------------------
# Data model
# ---------------------------------------------------------------------------

MAX_HISTORY = 200  # newest entries kept; older ones are dropped on append


class HistoryEntry(BaseModel):
    """
    One previously accepted video.

    Record schema (camelCase on disk and on the wire)::

        {
            "timestamp":        int,   # ms epoch
            "visualSignature":  str,
            "previewThumbnail": str,   # data:image/jpeg;base64,...
        }
    """
    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, frozen=True
    )

    timestamp:         int
    visual_signature:  str
    preview_thumbnail: str


_ENTRIES_ADAPTER = TypeAdapter(list[HistoryEntry])


# ---------------------------------------------------------------------------
# Store
# ---------------------------------------------------------------------------

class HistoryStore:
    """
    Capped, insertion-ordered history backed by a single JSON file.

    There is one writer (the request handlers on the event loop) and every
    method is synchronous, so no lock is held.

    Usage::

        store = HistoryStore(Path("history.json"))
        store.load()
        store.append(HistoryEntry(timestamp=..., visual_signature=..., preview_thumbnail=...))
    """

    def __init__(self, path: Path, max_entries: int = MAX_HISTORY) -> None:
        self.path = Path(path)
        self.max_entries = max_entries
        self._entries: list[HistoryEntry] = []

    def __len__(self) -> int:
        return len(self._entries)

    # ------------------------------------------------------------------
    # Public interface
    # ------------------------------------------------------------------

    def load(self) -> None:
        """
        Hydrate the in-memory list from the persisted record.

        A missing record yields an empty store.  A record that is not valid
        JSON, or not a list of HistoryEntry objects, is logged and ignored;
        the store stays empty and the file is left untouched.
        """
        self._entries = []
        if not self.path.exists():
            return

        try:
            raw = self.path.read_text(encoding="utf-8")
            entries = _ENTRIES_ADAPTER.validate_json(raw)
        except (OSError, ValueError, ValidationError) as exc:
            print(f"[history] History parse error in {self.path}: {exc}")
            return

        self._entries = entries[: self.max_entries]

    def entries(self) -> list[HistoryEntry]:
        """Return a snapshot of the current entries, newest first."""
        return list(self._entries)

    def append(self, entry: HistoryEntry) -> None:
        """Insert *entry* at the front, truncate to the cap, and persist."""
        entries = [entry, *self._entries][: self.max_entries]
        self._persist(entries)
        self._entries = entries

    def remove_at(self, position: int) -> HistoryEntry:
        """Delete the entry at 0-based *position*, persist, and return it."""
        self._check_position(position)
        removed = self._entries[position]
        entries = [e for i, e in enumerate(self._entries) if i != position]
        self._persist(entries)
        self._entries = entries
        return removed

    def clear_all(self) -> None:
        """Empty the store and delete the persisted record."""
        self._entries = []
        try:
            self.path.unlink()
        except FileNotFoundError:
            pass
        print(f"[history] Cleared history record at {self.path}")

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _check_position(self, position: int) -> None:
        if not 0 <= position < len(self._entries):
            raise IndexError(
                f"history position {position} out of range "
                f"(size {len(self._entries)})"
            )

    def _persist(self, entries: list[HistoryEntry]) -> None:
        """
        Overwrite the record with *entries* via a temp file + rename.

        Callers swap their in-memory list only after this returns, so a
        failed write leaves both copies on the previous state.
        """
        self.path.parent.mkdir(parents=True, exist_ok=True)
        payload = _ENTRIES_ADAPTER.dump_json(entries, by_alias=True)

        fd, tmp_name = tempfile.mkstemp(
            dir=self.path.parent, prefix=f".{self.path.name}.", suffix=".tmp"
        )
        try:
            with os.fdopen(fd, "wb") as handle:
                handle.write(payload)
            os.replace(tmp_name, self.path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise

