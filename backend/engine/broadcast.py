# engine/broadcast.py
"""
Outbound notifications. Delivery is best effort: a failed send is logged
and never undoes a committed settlement.
"""
import logging

from asgiref.sync import async_to_sync
from channels.layers import get_channel_layer
from django.conf import settings

logger = logging.getLogger(__name__)

CASINO_GROUP = "casino"


def user_group(user_id) -> str:
    return f"casino_user_{user_id}"


class Broadcaster:
    async def notify(self, user_id, event: str, data: dict) -> None:
        raise NotImplementedError

    async def broadcast(self, event: str, data: dict) -> None:
        raise NotImplementedError

    # sync entry points for controllers running in worker threads
    def notify_sync(self, user_id, event, data):
        async_to_sync(self.notify)(user_id, event, data)

    def broadcast_sync(self, event, data):
        async_to_sync(self.broadcast)(event, data)


class ChannelsBroadcaster(Broadcaster):
    def __init__(self, channel_layer=None):
        self._layer = channel_layer

    @property
    def layer(self):
        if self._layer is None:
            self._layer = get_channel_layer()
        return self._layer

    async def _send(self, group, event, data):
        try:
            await self.layer.group_send(group, {"type": "casino.event", "event": event, "data": data})
        except Exception as e:
            logger.warning(f"Failed to deliver {event} to {group}: {e}")

    async def notify(self, user_id, event, data):
        await self._send(user_group(user_id), event, data)

    async def broadcast(self, event, data):
        await self._send(CASINO_GROUP, event, data)


def settlement_events(settlement) -> list:
    """(target, event, data) triples for a finished wager; target None means everyone."""
    payload = settlement.as_payload()
    events = [
        (settlement.user_id, "game_result", payload),
        (settlement.user_id, "balance_update", {"balance": payload["new_balance"]}),
    ]
    if settlement.won and settlement.multiplier >= settings.HIGH_WIN_MULTIPLIER:
        events.append((None, "high_win", {
            "username": settlement.username,
            "game_type": settlement.game_type,
            "amount": payload["amount"],
            "payout": payload["payout"],
            "multiplier": payload["multiplier"],
        }))
    return events


async def publish_settlement(broadcaster: Broadcaster, settlement) -> None:
    for target, event, data in settlement_events(settlement):
        if target is None:
            await broadcaster.broadcast(event, data)
        else:
            await broadcaster.notify(target, event, data)


def publish_settlement_sync(broadcaster: Broadcaster, settlement) -> None:
    async_to_sync(publish_settlement)(broadcaster, settlement)


_default = None


def get_broadcaster() -> Broadcaster:
    global _default
    if _default is None:
        _default = ChannelsBroadcaster()
    return _default
