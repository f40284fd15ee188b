"""Sending side of the Transfer Channel."""
from __future__ import annotations

import asyncio
import base64
import inspect
import logging
from typing import Any, Awaitable, Callable, Dict, List, Optional, Union

from arcomposer.config.runtime_config import get_transfer_chunk_bytes, get_transfer_yield_every

logger = logging.getLogger(__name__)

PostMessage = Callable[[Dict[str, Any]], Union[None, Awaitable[None]]]


def split_chunks(data: bytes, chunk_bytes: int) -> List[bytes]:
    if chunk_bytes <= 0:
        raise ValueError("chunk_bytes must be positive")
    return [data[i:i + chunk_bytes] for i in range(0, len(data), chunk_bytes)]


class ChunkedSender:
    """Posts a payload as stream-start, N stream-chunk messages, stream-end.

    Yields to the event loop every few chunks so the receiver's message loop
    keeps running during large transfers.
    """

    def __init__(
        self,
        post: PostMessage,
        chunk_bytes: Optional[int] = None,
        yield_every: Optional[int] = None,
    ):
        self._post = post
        self.chunk_bytes = chunk_bytes if chunk_bytes is not None else get_transfer_chunk_bytes()
        self.yield_every = yield_every if yield_every is not None else get_transfer_yield_every()
        if self.chunk_bytes <= 0:
            raise ValueError("chunk_bytes must be positive")
        if self.yield_every <= 0:
            raise ValueError("yield_every must be positive")

    async def _emit(self, message: Dict[str, Any]) -> None:
        result = self._post(message)
        if inspect.isawaitable(result):
            await result

    async def send(
        self,
        transfer_id: str,
        data: bytes,
        mime_type: str,
        original_uri: Optional[str] = None,
    ) -> int:
        """Send data; returns the number of chunks posted."""
        chunks = split_chunks(data, self.chunk_bytes)
        start: Dict[str, Any] = {
            "type": "stream-start",
            "id": transfer_id,
            "totalChunks": len(chunks),
            "mimeType": mime_type,
        }
        if original_uri:
            start["originalUri"] = original_uri
        await self._emit(start)

        for index, chunk in enumerate(chunks):
            await self._emit(
                {
                    "type": "stream-chunk",
                    "id": transfer_id,
                    "chunkIndex": index,
                    "data": base64.b64encode(chunk).decode("ascii"),
                }
            )
            if (index + 1) % self.yield_every == 0:
                await asyncio.sleep(0)

        await self._emit({"type": "stream-end", "id": transfer_id})
        logger.info(f"Sent {len(data)} bytes as {len(chunks)} chunks for {transfer_id}")
        return len(chunks)
