import asyncio

import pytest

from arcomposer.scene_registry.media import MediaStore
from arcomposer.transfer import sender as sender_module
from arcomposer.transfer.sender import ChunkedSender, split_chunks
from arcomposer.transfer.service import TransferChannel


def test_split_chunks():
    assert split_chunks(b"abcdefg", 3) == [b"abc", b"def", b"g"]
    assert split_chunks(b"", 3) == []
    with pytest.raises(ValueError):
        split_chunks(b"abc", 0)


def test_message_sequence():
    posted = []
    sender = ChunkedSender(posted.append, chunk_bytes=4, yield_every=2)

    count = asyncio.run(sender.send("t1", b"0123456789", "image/png", original_uri="file:///a.png"))

    assert count == 3
    assert [m["type"] for m in posted] == ["stream-start", "stream-chunk", "stream-chunk", "stream-chunk", "stream-end"]
    assert posted[0] == {
        "type": "stream-start",
        "id": "t1",
        "totalChunks": 3,
        "mimeType": "image/png",
        "originalUri": "file:///a.png",
    }
    assert [m["chunkIndex"] for m in posted[1:4]] == [0, 1, 2]
    assert posted[3]["data"] == "ODk="


def test_yields_every_n_chunks(monkeypatch):
    sleeps = []

    async def fake_sleep(delay):
        sleeps.append(delay)

    monkeypatch.setattr(sender_module.asyncio, "sleep", fake_sleep)
    sender = ChunkedSender(lambda _m: None, chunk_bytes=1, yield_every=4)
    asyncio.run(sender.send("t", b"x" * 10, "video/mp4"))
    assert sleeps == [0, 0]


def test_chunk_size_from_config(monkeypatch):
    monkeypatch.setenv("TRANSFER_CHUNK_BYTES", "2")
    assert ChunkedSender(lambda _m: None).chunk_bytes == 2


def test_feeds_receiver_with_async_post():
    media = MediaStore()
    channel = TransferChannel(media)
    results = []
    payload = bytes(range(256)) * 40

    async def post(message):
        kind = message["type"]
        if kind == "stream-start":
            channel.start(message["id"], message["totalChunks"], message["mimeType"])
        elif kind == "stream-chunk":
            channel.chunk(message["id"], message["chunkIndex"], message["data"])
        else:
            results.append(channel.end(message["id"]))

    asyncio.run(ChunkedSender(post, chunk_bytes=1000).send("v", payload, "video/webm"))

    assert len(results) == 1
    assert media.get(results[0].handle_id).data == payload
