import json

from channels.generic.websocket import AsyncWebsocketConsumer
from django.contrib.auth.models import AnonymousUser

from registry.services.notifications import BROADCAST_GROUP


class NotificationsConsumer(AsyncWebsocketConsumer):
    """Pushes ``notification.created`` events to connected staff clients.

    Every event carries the ids of the users it was addressed to; a client
    only receives events that name its user.
    """

    async def connect(self):
        user = self.scope.get("user") or AnonymousUser()
        if not user.is_authenticated:
            await self.close(code=4001)
            return
        self.user_id = user.id
        await self.channel_layer.group_add(BROADCAST_GROUP, self.channel_name)
        await self.accept()

    async def disconnect(self, close_code):
        if hasattr(self, "user_id"):
            await self.channel_layer.group_discard(BROADCAST_GROUP, self.channel_name)

    async def notification_created(self, event):
        if self.user_id not in event.get("recipientIds", []):
            return
        await self.send(text_data=json.dumps({
            "type": "notification.created",
            "notificationId": event["notificationId"],
            "locationId": event["locationId"],
            "createdAt": event["createdAt"],
        }))
