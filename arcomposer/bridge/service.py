"""Engine-side message dispatcher.

Routes every inbound message kind to exactly one handler and collects the
outbound messages it produces. The handler table is checked against the
inbound union when this module is imported.
"""
from __future__ import annotations

import asyncio
import logging
import random
from typing import Any, Callable, Dict, List, Mapping, Optional, Type, Union

from arcomposer.animation.service import AnimationEngine
from arcomposer.bridge.messages import (
    INBOUND_TYPES,
    AddImageMessage,
    AddModelMessage,
    AddObjectAnimationMessage,
    AddPrimitiveMessage,
    AddVideoMessage,
    ArrangeFormationMessage,
    BatchTransformMessage,
    ExportCompleteMessage,
    InboundMessage,
    InvalidMessage,
    LoadSceneMessage,
    LogMessage,
    ObjectSelectedMessage,
    OutboundMessage,
    RemoveObjectMessage,
    RequestExportMessage,
    ResetSceneMessage,
    SelectObjectMessage,
    StreamCancelMessage,
    StreamChunkMessage,
    StreamEndMessage,
    StreamStartMessage,
    UpdateObjectAnimationMessage,
    UpdateObjectMaterialMessage,
    parse_inbound,
)
from arcomposer.curve_authoring.service import CurveAuthoringService
from arcomposer.scene_registry.arrange import arrange_formation, batch_transform
from arcomposer.scene_registry.commands import AddObject, RemoveObject, UpdateMaterial
from arcomposer.scene_registry.models import MediaRef, ObjectKind
from arcomposer.scene_registry.placement import BoundsResolver, auto_scale
from arcomposer.scene_registry.serializer import export_scene, load_scene
from arcomposer.scene_registry.service import SceneRegistry
from arcomposer.transfer.models import TransferResult
from arcomposer.transfer.service import TransferChannel

logger = logging.getLogger(__name__)

CoverImageProvider = Callable[[], Optional[str]]


class ComposerBridge:
    def __init__(
        self,
        registry: Optional[SceneRegistry] = None,
        clock: Optional[Callable[[], float]] = None,
        cover_image_provider: Optional[CoverImageProvider] = None,
        bounds_resolver: Optional[BoundsResolver] = None,
        rng: Optional[random.Random] = None,
    ):
        self.registry = registry or SceneRegistry(rng=rng)
        self.transfer = TransferChannel(self.registry.media, on_complete=self._on_transfer_complete)
        self.animation = AnimationEngine(self.registry, clock=clock)
        self.curves = CurveAuthoringService(self.registry)
        self._rng = rng
        self._cover_image = cover_image_provider
        self._bounds_resolver = bounds_resolver
        self._placement_tasks: Dict[str, asyncio.Task] = {}
        self._outbox: List[OutboundMessage] = []

    # --- entry points ---

    def handle(self, message: InboundMessage) -> List[OutboundMessage]:
        """Dispatch one typed message; returns the outbound messages it produced."""
        start = len(self._outbox)
        handler = _HANDLERS[type(message)]
        handler(self, message)
        return list(self._outbox[start:])

    def handle_raw(self, raw: Union[str, bytes, Mapping[str, Any]]) -> List[OutboundMessage]:
        """Parse then dispatch; malformed or unknown messages are logged and dropped."""
        try:
            message = parse_inbound(raw)
        except InvalidMessage as exc:
            logger.warning(f"Ignoring inbound message: {exc.reason}")
            return []
        return self.handle(message)

    def post(self, message: OutboundMessage) -> None:
        self._outbox.append(message)

    def drain_outbox(self) -> List[OutboundMessage]:
        messages, self._outbox = self._outbox, []
        return messages

    def log_sink(self, message: str, level: str) -> None:
        """Sink for BridgeLogHandler: forwards a log line to the host."""
        self.post(LogMessage(message=message, level=level))

    async def place_model(self, object_id: str) -> bool:
        if self._bounds_resolver is None:
            return False
        return await auto_scale(self.registry, object_id, self._bounds_resolver)

    # --- scene objects ---

    def _on_add_primitive(self, msg: AddPrimitiveMessage) -> None:
        self.registry.apply(
            AddObject(id=msg.id, object_kind=ObjectKind.PRIMITIVE, primitive_type=msg.primitive, color=msg.color)
        )

    def _add_media(self, object_id: str, kind: ObjectKind, uri: str, original_uri: Optional[str]) -> None:
        media = MediaRef(uri=uri, original_uri=original_uri, resolved=True)
        self.registry.apply(AddObject(id=object_id, object_kind=kind, media=media))

    def _on_add_image(self, msg: AddImageMessage) -> None:
        self._add_media(msg.id, ObjectKind.IMAGE, msg.uri, msg.original_uri)

    def _on_add_video(self, msg: AddVideoMessage) -> None:
        self._add_media(msg.id, ObjectKind.VIDEO, msg.uri, msg.original_uri)

    def _on_add_model(self, msg: AddModelMessage) -> None:
        self._add_media(msg.id, ObjectKind.MODEL, msg.uri, msg.original_uri)
        self._schedule_placement(msg.id)

    def _on_remove_object(self, msg: RemoveObjectMessage) -> None:
        task = self._placement_tasks.pop(msg.id, None)
        if task is not None:
            task.cancel()
        self.registry.apply(RemoveObject(id=msg.id))

    def _on_reset_scene(self, msg: ResetSceneMessage) -> None:
        self._reset()

    def _on_load_scene(self, msg: LoadSceneMessage) -> None:
        self._cancel_placements()
        dropped = self.transfer.clear()
        if dropped:
            logger.info(f"Dropped {dropped} unfinished transfers before loading scene")
        load_scene(self.registry, msg.scene)

    def _on_update_material(self, msg: UpdateObjectMaterialMessage) -> None:
        self.registry.apply(UpdateMaterial(id=msg.id, patch=msg.material))

    def _on_add_animation(self, msg: AddObjectAnimationMessage) -> None:
        spec = msg.animation
        self.registry.set_animation_layer(msg.id, spec.type, spec.params, active=spec.active)

    def _on_update_animation(self, msg: UpdateObjectAnimationMessage) -> None:
        self.registry.set_animation_layer(msg.id, msg.animation_id, msg.params)

    def _on_select_object(self, msg: SelectObjectMessage) -> None:
        obj = self.registry.select(msg.id)
        if obj is None:
            return
        animations = {t.value: layer.to_params() for t, layer in obj.animations.items()}
        self.post(ObjectSelectedMessage(id=obj.id, animations=animations))

    def _on_request_export(self, msg: RequestExportMessage) -> None:
        cover = self._cover_image() if self._cover_image is not None else None
        self.post(ExportCompleteMessage(scene=export_scene(self.registry), cover_image_uri=cover))
        logger.info(f"Exported scene with {len(self.registry)} objects")

    def _on_arrange_formation(self, msg: ArrangeFormationMessage) -> None:
        arrange_formation(self.registry, msg.formation, msg.params, self._rng)

    def _on_batch_transform(self, msg: BatchTransformMessage) -> None:
        batch_transform(self.registry, msg.transform_type, msg.params, self._rng)

    # --- transfer channel ---

    def _on_stream_start(self, msg: StreamStartMessage) -> None:
        self.transfer.start(msg.id, msg.total_chunks, msg.mime_type, msg.original_uri, msg.media_type)

    def _on_stream_chunk(self, msg: StreamChunkMessage) -> None:
        self.transfer.chunk(msg.id, msg.chunk_index, msg.data)

    def _on_stream_end(self, msg: StreamEndMessage) -> None:
        self.transfer.end(msg.id)

    def _on_stream_cancel(self, msg: StreamCancelMessage) -> None:
        self.transfer.cancel(msg.id)

    def _on_transfer_complete(self, result: TransferResult) -> None:
        kind = ObjectKind.VIDEO if result.is_video else ObjectKind.IMAGE
        if not result.resolved:
            logger.error(f"Media for {result.id} could not be decoded; object has no resolved visual")
        media = MediaRef(
            uri=result.handle_id,
            original_uri=result.original_uri,
            handle_id=result.handle_id,
            mime_type=result.mime_type,
            width=result.width,
            height=result.height,
            resolved=result.resolved,
        )
        self.registry.apply(AddObject(id=result.id, object_kind=kind, media=media))

    # --- helpers ---

    def _reset(self) -> None:
        self._cancel_placements()
        dropped = self.transfer.clear()
        self.registry.reset()
        if dropped:
            logger.info(f"Dropped {dropped} unfinished transfers on reset")

    def _schedule_placement(self, object_id: str) -> None:
        if self._bounds_resolver is None:
            return
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.debug(f"No running loop, skipping deferred placement for {object_id}")
            return
        task = loop.create_task(self.place_model(object_id))
        self._placement_tasks[object_id] = task
        task.add_done_callback(lambda _t, oid=object_id: self._placement_tasks.pop(oid, None))

    def _cancel_placements(self) -> None:
        for task in self._placement_tasks.values():
            task.cancel()
        self._placement_tasks.clear()


_HANDLERS: Dict[Type[Any], Callable[[ComposerBridge, Any], None]] = {
    AddPrimitiveMessage: ComposerBridge._on_add_primitive,
    AddImageMessage: ComposerBridge._on_add_image,
    AddVideoMessage: ComposerBridge._on_add_video,
    AddModelMessage: ComposerBridge._on_add_model,
    RemoveObjectMessage: ComposerBridge._on_remove_object,
    ResetSceneMessage: ComposerBridge._on_reset_scene,
    LoadSceneMessage: ComposerBridge._on_load_scene,
    UpdateObjectMaterialMessage: ComposerBridge._on_update_material,
    AddObjectAnimationMessage: ComposerBridge._on_add_animation,
    UpdateObjectAnimationMessage: ComposerBridge._on_update_animation,
    SelectObjectMessage: ComposerBridge._on_select_object,
    StreamStartMessage: ComposerBridge._on_stream_start,
    StreamChunkMessage: ComposerBridge._on_stream_chunk,
    StreamEndMessage: ComposerBridge._on_stream_end,
    StreamCancelMessage: ComposerBridge._on_stream_cancel,
    RequestExportMessage: ComposerBridge._on_request_export,
    ArrangeFormationMessage: ComposerBridge._on_arrange_formation,
    BatchTransformMessage: ComposerBridge._on_batch_transform,
}


def _check_handlers() -> None:
    missing = [cls.__name__ for cls in INBOUND_TYPES if cls not in _HANDLERS]
    if missing:
        raise RuntimeError(f"ComposerBridge has no handler for: {', '.join(missing)}")


_check_handlers()
