from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, Field, model_validator


def _is_video(media_type: Optional[str], mime_type: str) -> bool:
    if media_type is not None:
        return media_type == "video"
    return mime_type.startswith("video/")


class TransferSession(BaseModel):
    """Receive-side state for one chunked payload; slots are index-addressed."""
    id: str
    total_chunks: int = Field(ge=0)
    mime_type: str
    # "image" or "video" when the sender declared it; otherwise inferred from mime_type
    media_type: Optional[str] = None
    original_uri: Optional[str] = None
    chunks: List[Optional[bytes]] = Field(default_factory=list)
    received_count: int = 0

    @model_validator(mode="after")
    def _allocate_slots(self) -> TransferSession:
        if not self.chunks:
            self.chunks = [None] * self.total_chunks
        return self

    def is_complete(self) -> bool:
        return self.received_count == self.total_chunks

    def missing_indices(self) -> List[int]:
        return [i for i, chunk in enumerate(self.chunks) if chunk is None]

    def assemble(self) -> bytes:
        """Concatenate slots in index order (arrival order is irrelevant)."""
        if not self.is_complete():
            raise ValueError(f"transfer {self.id} is missing chunks {self.missing_indices()}")
        return b"".join(chunk for chunk in self.chunks if chunk is not None)

    @property
    def is_video(self) -> bool:
        return _is_video(self.media_type, self.mime_type)


class TransferResult(BaseModel):
    """A fully reassembled payload, registered as a session media handle."""
    id: str
    handle_id: str
    mime_type: str
    size: int
    media_type: Optional[str] = None
    original_uri: Optional[str] = None
    width: Optional[int] = None
    height: Optional[int] = None
    resolved: bool = True

    @property
    def is_video(self) -> bool:
        return _is_video(self.media_type, self.mime_type)

    @property
    def aspect(self) -> Optional[float]:
        if self.width and self.height:
            return self.width / self.height
        return None
