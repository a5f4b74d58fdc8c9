from __future__ import annotations

from channels.generic.websocket import AsyncJsonWebsocketConsumer

from apps.core.signals import squad_group


class SquadFeedConsumer(AsyncJsonWebsocketConsumer):
    """
    Streams squad changes (events, stats, rewards, challenges) to members.
    Group: f"squad.{squad_id}"
    """

    async def connect(self):
        user = self.scope.get("user")
        if user is None or not user.is_authenticated:
            await self.close()
            return
        squad_id = self.scope["url_route"]["kwargs"]["id"]
        if not await self._is_member(user.id, squad_id):
            await self.close()
            return
        self.group_name = squad_group(squad_id)
        await self.channel_layer.group_add(self.group_name, self.channel_name)
        await self.accept()

    async def disconnect(self, close_code):
        if hasattr(self, "group_name"):
            await self.channel_layer.group_discard(self.group_name, self.channel_name)

    async def squad_update(self, event):
        # event: { "type": "squad.update", "kind": "...", "payload": { ... } }
        await self.send_json({"type": event.get("kind"), "payload": event.get("payload", {})})

    @staticmethod
    async def _is_member(user_id: int, squad_id: int) -> bool:
        from apps.core.models import Membership

        return await Membership.objects.filter(user_id=user_id, squad_id=squad_id).aexists()
