# engine/consumers.py
import logging

from channels.db import database_sync_to_async
from channels.generic.websocket import AsyncJsonWebsocketConsumer

from wallets.services import get_balance
from .actions import default_controllers, perform, rejected
from .broadcast import CASINO_GROUP, get_broadcaster, user_group
from .errors import GameError, InvalidInput
from .sessions import get_session_store
from .sweeper import get_sweeper

logger = logging.getLogger(__name__)


class GameConsumer(AsyncJsonWebsocketConsumer):
    """
    One socket per player for every game. Messages from a connection are
    handled one at a time, in order.
    """

    def __init__(self, *args, pool=None, controllers=None, sweeper=None, **kwargs):
        super().__init__(*args, **kwargs)
        self._pool = pool
        self._controllers = controllers
        self._sweeper = sweeper

    @property
    def pool(self):
        if self._pool is None:
            from jackpot.pool import get_pool
            self._pool = get_pool()
        return self._pool

    @property
    def controllers(self):
        if self._controllers is None:
            self._controllers = default_controllers(get_broadcaster(), get_session_store())
        return self._controllers

    async def connect(self):
        if self.scope["user"].is_anonymous:
            await self.close()
            return

        self.user = self.scope["user"]
        self.user_group_name = user_group(self.user.id)

        await self.channel_layer.group_add(CASINO_GROUP, self.channel_name)
        await self.channel_layer.group_add(self.user_group_name, self.channel_name)
        await self.accept()

        (self._sweeper or get_sweeper()).ensure_running()
        await self.send_json({"event": "connected", "data": {"jackpot": self.pool.snapshot()}})

    async def disconnect(self, close_code):
        if not hasattr(self, "user"):
            return
        await self.pool.leave(self.channel_name)
        await self.channel_layer.group_discard(CASINO_GROUP, self.channel_name)
        await self.channel_layer.group_discard(self.user_group_name, self.channel_name)

    async def receive_json(self, content, **kwargs):
        if not isinstance(content, dict):
            balance = await database_sync_to_async(get_balance)(self.user.id)
            await self.send_json({"event": "error", "data": rejected(InvalidInput("Malformed message"), balance)})
            return

        if content.get("game_type") == "jackpot":
            result = await self.handle_jackpot(content)
        else:
            result = await database_sync_to_async(perform)(self.user.id, content, self.controllers)

        if result["accepted"]:
            await self.send_json({"event": "action_result", "data": result})
        else:
            await self.send_json({"event": "error", "data": result})

    async def handle_jackpot(self, content):
        try:
            if content.get("action") == "stake":
                result = await self.pool.join(
                    self.user.id, content.get("amount"), self.channel_name, self.user.username
                )
            else:
                raise InvalidInput("Jackpot settles automatically")
        except GameError as e:
            return rejected(e, await database_sync_to_async(get_balance)(self.user.id))
        return {"accepted": True, **result}

    async def casino_event(self, event):
        await self.send_json({"event": event["event"], "data": event["data"]})
