"""Inbound message dispatch: notify, route to a response backend, reply."""
from __future__ import annotations

import logging
from typing import Any, Mapping

from pydantic import ValidationError as PydanticValidationError

from gateway_service.application.dto.auto_response import AutoResponseSettings
from gateway_service.application.exceptions import AppError, BackendError, StorageError
from gateway_service.application.ports.activity import ActivityLog
from gateway_service.application.ports.backend import BackendReply, ResponseBackend
from gateway_service.application.ports.broadcast import MessageBroadcaster
from gateway_service.application.ports.clock import Clock
from gateway_service.application.repositories.message import FlagStore, MessageStore
from gateway_service.domain.entities.message import InboundMessage, MessageRecord
from gateway_service.domain.value_objects.constants import MEDIA_PLACEHOLDER
from gateway_service.services import message_service
from gateway_service.services.supervisor import ConnectionSupervisor

logger = logging.getLogger(__name__)


class DispatchPipeline:
    """Handles each inbound notification once.

    Re-delivery of an already recorded message id is a no-op, so a retried
    event never produces a second broadcast or a second reply.
    """

    def __init__(
        self,
        session: ConnectionSupervisor,
        store: MessageStore,
        flags: FlagStore,
        activity: ActivityLog,
        broadcaster: MessageBroadcaster,
        backends: Mapping[str, ResponseBackend],
        config: AutoResponseSettings,
        clock: Clock,
        *,
        address_suffix: str,
    ) -> None:
        self._session = session
        self._store = store
        self._flags = flags
        self._activity = activity
        self._broadcaster = broadcaster
        self._backends = dict(backends)
        self._clock = clock
        self._address_suffix = address_suffix
        self.config = config

    @property
    def backend_names(self) -> list[str]:
        return sorted(self._backends)

    def update_config(self, config: AutoResponseSettings) -> None:
        self.config = config
        if config.active_backend not in self._backends:
            logger.warning(
                "Active backend %r is not registered (available: %s)",
                config.active_backend, ", ".join(self.backend_names) or "none",
            )

    async def dispatch(self, message: InboundMessage) -> None:
        sender = message.sender
        content = message.content or MEDIA_PLACEHOLDER

        record = MessageRecord(
            id=message.id,
            sender=sender,
            content=content,
            timestamp=message.received_at,
            read=False,
            outgoing=False,
        )
        try:
            _, created = await self._store.create_if_not_exists(record)
        except (StorageError, OSError) as exc:
            logger.error(
                "Recording message %s from %s failed, dispatching anyway: %s",
                message.id, sender, exc,
            )
            created = True
        if not created:
            logger.info("Message %s from %s already dispatched, skipping", message.id, sender)
            return

        logger.info("New message from %s: %s", sender, content)
        try:
            await self._activity.record("received", sender, content)
        except Exception:
            logger.exception("Activity log write failed for message %s", message.id)
        try:
            await self._flags.mark(message.id, message.received_at)
        except Exception:
            logger.exception("New-message flag update failed for message %s", message.id)

        try:
            await self._broadcaster.publish_message(record)
        except Exception:
            logger.exception("Broadcast of message %s failed", message.id)

        config = self.config
        if config.ai_enabled:
            if await self._reply_with_backend(config, sender, content):
                return
        else:
            logger.debug("AI auto-reply disabled")

        if config.auto_reply_enabled and config.auto_reply_message:
            logger.info("Sending static auto-reply to %s", sender)
            await self._reply(sender, config.auto_reply_message, "auto_reply")

    async def _reply_with_backend(
        self, config: AutoResponseSettings, sender: str, content: str,
    ) -> bool:
        """Try the active backend, or the fallback when it is unknown. True once replied."""
        name = config.active_backend
        backend = self._backends.get(name)
        if backend is None:
            fallback = config.fallback_backend
            logger.warning(
                "Unknown AI backend %r, falling back to %r", name, fallback,
            )
            if not fallback or fallback not in self._backends:
                logger.warning("Fallback backend %r is not available, no AI reply", fallback)
                return False
            name, backend = fallback, self._backends[fallback]

        try:
            reply = await self._invoke(name, backend, config, sender, content)
        except BackendError as exc:
            logger.error("Backend %s failed for %s: %s", name, sender, exc.detail)
            return False

        if not reply.usable:
            logger.info(
                "No usable reply from %s (success=%s, error=%s)", name, reply.success, reply.error,
            )
            return False

        await self._reply(sender, reply.text or "", f"ai_response_{name}")
        return True

    async def _invoke(
        self,
        name: str,
        backend: ResponseBackend,
        config: AutoResponseSettings,
        sender: str,
        content: str,
    ) -> BackendReply:
        instructions = config.instructions_for(name)
        model = config.backend_models.get(name)
        logger.debug("Invoking backend %s (model=%s) for %s", name, model, sender)
        try:
            raw: Any = await backend.respond(content, sender, instructions, model)
        except Exception as exc:
            raise BackendError(f"{type(exc).__name__}: {exc}") from exc
        try:
            if isinstance(raw, BackendReply):
                return raw
            return BackendReply.model_validate(raw, from_attributes=True)
        except PydanticValidationError as exc:
            raise BackendError(f"malformed reply {raw!r}") from exc

    async def _reply(self, sender: str, text: str, kind: str) -> None:
        try:
            await message_service.send_text(
                self._session, self._store, self._activity, self._clock,
                sender, text, address_suffix=self._address_suffix,
            )
        except AppError as exc:
            logger.error("Reply (%s) to %s failed: %s", kind, sender, exc.detail)
            return
        if kind != "auto_reply":
            await self._activity.record(kind, sender, text)
        logger.info("Reply (%s) sent to %s", kind, sender)
