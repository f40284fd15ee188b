"""Transfer Channel receiver.

stream-start allocates a session with one slot per chunk, stream-chunk
decodes base64 immediately into its slot, stream-end reassembles in index
order once every slot is filled. Chunks may arrive in any order.
"""
from __future__ import annotations

import base64
import binascii
import io
import logging
from typing import Callable, Dict, List, Optional, Tuple

from PIL import Image

from arcomposer.scene_registry.media import MediaStore
from arcomposer.transfer.models import TransferResult, TransferSession

logger = logging.getLogger(__name__)

CompletionCallback = Callable[[TransferResult], None]


def probe_image(data: bytes) -> Optional[Tuple[int, int]]:
    """Pixel size of an encoded image, or None when it cannot be decoded."""
    try:
        with Image.open(io.BytesIO(data)) as img:
            size = img.size
            img.verify()
        return size
    except (OSError, SyntaxError, ValueError, Image.DecompressionBombError) as exc:
        logger.error(f"Image decode failed: {exc}")
        return None


class TransferChannel:
    def __init__(self, media_store: MediaStore, on_complete: Optional[CompletionCallback] = None):
        self._media = media_store
        self._on_complete = on_complete
        self._sessions: Dict[str, TransferSession] = {}

    def start(
        self,
        transfer_id: str,
        total_chunks: int,
        mime_type: str,
        original_uri: Optional[str] = None,
        media_type: Optional[str] = None,
    ) -> TransferSession:
        if transfer_id in self._sessions:
            logger.warning(f"stream-start: restarting transfer {transfer_id}, previous chunks dropped")
        session = TransferSession(
            id=transfer_id,
            total_chunks=total_chunks,
            mime_type=mime_type,
            media_type=media_type,
            original_uri=original_uri,
        )
        self._sessions[transfer_id] = session
        logger.info(f"Transfer {transfer_id} started: {total_chunks} chunks of {mime_type}")
        return session

    def chunk(self, transfer_id: str, chunk_index: int, data: str) -> bool:
        """Store one chunk. Returns False when the chunk was ignored."""
        session = self._sessions.get(transfer_id)
        if session is None:
            logger.warning(f"stream-chunk: unknown transfer {transfer_id}")
            return False
        if not 0 <= chunk_index < session.total_chunks:
            logger.warning(
                f"stream-chunk: index {chunk_index} out of range for {transfer_id} ({session.total_chunks} chunks)"
            )
            return False
        if session.chunks[chunk_index] is not None:
            logger.warning(f"stream-chunk: duplicate chunk {chunk_index} for {transfer_id} ignored")
            return False
        try:
            raw = base64.b64decode(data, validate=True)
        except (binascii.Error, ValueError) as exc:
            logger.warning(f"stream-chunk: chunk {chunk_index} of {transfer_id} is not valid base64: {exc}")
            return False
        session.chunks[chunk_index] = raw
        session.received_count += 1
        return True

    def end(self, transfer_id: str) -> Optional[TransferResult]:
        session = self._sessions.get(transfer_id)
        if session is None:
            logger.warning(f"stream-end: unknown transfer {transfer_id}")
            return None
        if not session.is_complete():
            logger.warning(
                f"stream-end: transfer {transfer_id} incomplete "
                f"({session.received_count}/{session.total_chunks}), missing {session.missing_indices()}"
            )
            return None

        payload = session.assemble()
        del self._sessions[transfer_id]
        handle = self._media.register(payload, session.mime_type, is_video=session.is_video)

        width = height = None
        resolved = True
        if not session.is_video:
            size = probe_image(payload)
            if size is None:
                resolved = False
            else:
                width, height = size

        result = TransferResult(
            id=transfer_id,
            handle_id=handle.id,
            mime_type=session.mime_type,
            size=len(payload),
            media_type=session.media_type,
            original_uri=session.original_uri,
            width=width,
            height=height,
            resolved=resolved,
        )
        logger.info(f"Transfer {transfer_id} complete: {result.size} bytes -> {handle.id}")
        if self._on_complete is not None:
            self._on_complete(result)
        return result

    def cancel(self, transfer_id: str) -> bool:
        session = self._sessions.pop(transfer_id, None)
        if session is None:
            logger.warning(f"stream-cancel: unknown transfer {transfer_id}")
            return False
        logger.info(f"Transfer {transfer_id} cancelled at {session.received_count}/{session.total_chunks}")
        return True

    def clear(self) -> int:
        """Drop every in-flight session (scene reset)."""
        count = len(self._sessions)
        self._sessions.clear()
        return count

    def session(self, transfer_id: str) -> Optional[TransferSession]:
        session = self._sessions.get(transfer_id)
        return session.model_copy(deep=True) if session is not None else None

    def pending_ids(self) -> List[str]:
        return list(self._sessions.keys())
