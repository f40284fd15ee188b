"""FastAPI routes exposing the composer bridge."""
from __future__ import annotations

from typing import Any, Dict, List, Optional, Union

from fastapi import APIRouter, Body, Depends
from pydantic import BaseModel, ConfigDict, Field

from arcomposer.bridge.messages import InvalidMessage, parse_inbound
from arcomposer.bridge.service import ComposerBridge
from arcomposer.common.error_envelope import invalid_message_error

router = APIRouter()

_bridge: Optional[ComposerBridge] = None


def get_bridge() -> ComposerBridge:
    global _bridge
    if _bridge is None:
        _bridge = ComposerBridge()
    return _bridge


def set_bridge(bridge: Optional[ComposerBridge]) -> None:
    """Swap the process-wide bridge (tests, app factory)."""
    global _bridge
    _bridge = bridge


class TickRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    now_ms: Optional[float] = Field(default=None, alias="nowMs")


@router.post("/bridge/messages")
def post_messages(
    payload: Union[Dict[str, Any], List[Dict[str, Any]]] = Body(...),
    bridge: ComposerBridge = Depends(get_bridge),
):
    """Accept one message or a batch; responds with the outbound messages produced."""
    raw_messages = payload if isinstance(payload, list) else [payload]
    try:
        messages = [parse_inbound(raw) for raw in raw_messages]
    except InvalidMessage as exc:
        raise invalid_message_error(exc.reason, exc.details)
    outbound = []
    for message in messages:
        outbound.extend(bridge.handle(message))
    return {"outbound": [m.to_wire() for m in outbound]}


@router.get("/scene")
def get_scene(bridge: ComposerBridge = Depends(get_bridge)):
    snapshot = bridge.registry.snapshot()
    return snapshot.model_dump(mode="json")


@router.post("/scene/tick")
def tick_scene(req: Optional[TickRequest] = None, bridge: ComposerBridge = Depends(get_bridge)):
    now_ms = req.now_ms if req is not None else None
    written = bridge.animation.tick(now_ms)
    return {"revision": bridge.registry.revision, "updated": written}
