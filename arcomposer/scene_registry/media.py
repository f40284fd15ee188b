"""Session-scoped media handles for reassembled image/video payloads."""
from __future__ import annotations

import logging
import uuid
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict

logger = logging.getLogger(__name__)


class MediaHandle(BaseModel):
    model_config = ConfigDict(arbitrary_types_allowed=True)

    id: str
    mime_type: str
    data: Optional[bytes] = None
    playing: bool = False
    released: bool = False

    @property
    def size(self) -> int:
        return len(self.data) if self.data is not None else 0

    def release(self) -> None:
        """Stop playback and drop the buffered bytes."""
        self.playing = False
        self.data = None
        self.released = True


class MediaStore:
    """In-memory handle table, the local stand-in for blob URLs."""

    def __init__(self) -> None:
        self._handles: Dict[str, MediaHandle] = {}

    def register(self, data: bytes, mime_type: str, is_video: Optional[bool] = None) -> MediaHandle:
        handle = MediaHandle(id=f"blob:{uuid.uuid4()}", mime_type=mime_type, data=data)
        if is_video is None:
            is_video = mime_type.startswith("video/")
        if is_video:
            handle.playing = True
        self._handles[handle.id] = handle
        logger.debug(f"Registered media handle {handle.id} ({handle.size} bytes, {mime_type})")
        return handle

    def get(self, handle_id: str) -> Optional[MediaHandle]:
        return self._handles.get(handle_id)

    def release(self, handle_id: Optional[str]) -> bool:
        if not handle_id:
            return False
        handle = self._handles.pop(handle_id, None)
        if handle is None:
            return False
        handle.release()
        logger.debug(f"Released media handle {handle_id}")
        return True

    def release_all(self) -> int:
        ids: List[str] = list(self._handles.keys())
        for handle_id in ids:
            self.release(handle_id)
        return len(ids)

    def __len__(self) -> int:
        return len(self._handles)
