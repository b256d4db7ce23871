"""Shared plumbing for the school ride WebSocket consumers."""

import logging
from typing import Dict, Any, Set

from channels.generic.websocket import AsyncJsonWebsocketConsumer

from realtime.notifications import user_group

logger = logging.getLogger(__name__)

# Close code sent to authenticated users whose role has no realtime surface
CLOSE_FORBIDDEN = 4003


class BaseConsumer(AsyncJsonWebsocketConsumer):
    """
    Authenticated consumer that keeps every socket in user_<id>.

    Incoming messages are dispatched through ``handlers``, a mapping of
    message type to method name. Subclasses extend the mapping rather than
    overriding ``receive_json``.
    """

    allowed_roles = ("parent", "driver", "admin")
    greeting = "Connected"
    handlers: Dict[str, str] = {
        "ping": "handle_ping",
    }

    async def connect(self):
        self.user = self.scope.get("user")
        self.joined_groups: Set[str] = set()

        if self.user is None or self.user.is_anonymous:
            await self.close()
            return

        self.user_id = self.user.id
        self.role = getattr(self.user, "role", None)
        if self.role not in self.allowed_roles:
            logger.info("Rejecting socket for user %s with role %s", self.user_id, self.role)
            await self.close(code=CLOSE_FORBIDDEN)
            return

        await self.join(user_group(self.user_id))
        await self.accept()
        await self.send_json({
            "type": "connection_established",
            "user_id": self.user_id,
            "role": self.role,
            "message": self.greeting,
        })

    async def disconnect(self, close_code):
        for group in list(self.joined_groups):
            try:
                await self.leave(group)
            except Exception:
                logger.exception("Could not leave %s for user %s", group, getattr(self, "user_id", None))

    async def receive_json(self, content: Dict[str, Any], **kwargs):
        msg_type = content.get("type") if isinstance(content, dict) else None
        if not msg_type:
            await self.send_error("Message type is required")
            return

        method_name = self.handlers.get(msg_type)
        if method_name is None:
            await self.send_error(f"Unknown message type: {msg_type}")
            return

        try:
            await getattr(self, method_name)(content)
        except Exception:
            logger.exception("Error handling %s from user %s", msg_type, self.user_id)
            await self.send_error(f"Error processing {msg_type}")

    async def handle_ping(self, content):
        await self.send_json({"type": "pong"})

    # Groups

    async def join(self, group: str):
        await self.channel_layer.group_add(group, self.channel_name)
        self.joined_groups.add(group)

    async def leave(self, group: str):
        await self.channel_layer.group_discard(group, self.channel_name)
        self.joined_groups.discard(group)

    # Replies

    async def send_error(self, message: str):
        await self.send_json({"type": "error", "message": message})

    async def reply(self, event_type: str, **fields):
        await self.send_json({"type": event_type, **fields})

    # Group events

    async def notification(self, event):
        """In-app notification stored by notifications.services."""
        await self.send_json({
            "type": "notification",
            "notification_id": event.get("notification_id"),
            "notification_type": event.get("notification_type"),
            "title": event.get("title"),
            "message": event.get("message"),
            "data": event.get("data", {}),
        })
