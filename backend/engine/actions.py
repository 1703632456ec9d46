# engine/actions.py
"""
Transport-neutral action surface.

    {"action": "stake" | "advance" | "settle", "game_type": ..., ...params}
        -> {"accepted": bool, "new_balance": ..., "outcome"?, "multiplier"?, "error"?}

Jackpot joins are asynchronous and handled by the consumer directly.
"""
import logging

from wallets.services import get_balance
from .errors import GameError, InvalidInput

logger = logging.getLogger(__name__)

ACTIONS = ("stake", "advance", "settle")


def default_controllers(broadcaster=None, store=None) -> dict:
    from coinflip.game import CoinflipController
    from limbo.game import LimboController
    from mines.game import MinesController
    from roulette.game import RouletteController
    from upgrader.game import UpgraderController

    controllers = (
        CoinflipController, MinesController, LimboController, RouletteController, UpgraderController,
    )
    return {c.game_type: c(broadcaster=broadcaster, store=store) for c in controllers}


def rejected(exc: GameError, balance=None) -> dict:
    result = {"accepted": False, **exc.as_dict()}
    if balance is not None:
        result["new_balance"] = str(balance)
    return result


def perform(user_id, message: dict, controllers: dict) -> dict:
    try:
        action = message.get("action")
        if action not in ACTIONS:
            raise InvalidInput(f"Unknown action {action!r}")
        controller = controllers.get(message.get("game_type"))
        if controller is None:
            raise InvalidInput(f"Unknown game type {message.get('game_type')!r}")

        if action == "stake":
            result = controller.place_stake(user_id, message.get("amount"), message)
        elif action == "advance":
            result = controller.advance(user_id, message)
        else:
            result = controller.settle(user_id, message)
    except GameError as e:
        logger.info(f"Rejected {message.get('action')} from user {user_id}: {e.code}")
        return rejected(e, get_balance(user_id))

    return {"accepted": True, **result}
