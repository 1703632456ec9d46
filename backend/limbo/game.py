# limbo/game.py
"""
Limbo: choose a target, draw a result from the inverse-power curve. A
result at or above the target wins stake * target, collected on cashout.
"""
from decimal import Decimal

from django.conf import settings

from engine import fairness
from engine.controller import SessionGameController, parse_multiplier, settlement_result
from engine.errors import InvalidInput
from wallets.services import get_balance
from wagers.models import Wager

MIN_TARGET = Decimal("1.01")


class LimboController(SessionGameController):
    game_type = Wager.GAME_LIMBO

    def place_stake(self, user_id, amount, params):
        target = parse_multiplier(
            params.get("target"), MIN_TARGET, settings.LIMBO_MAX_MULTIPLIER, "target"
        )
        seeds = self.new_seeds(params)
        session, receipt = self.open_session(
            user_id,
            amount,
            seeds,
            config={
                "target": str(target),
                "server_seed_hash": seeds["server_seed_hash"],
                "client_seed": seeds["client_seed"],
                "nonce": seeds["nonce"],
            },
            progress={"result": None},
        )
        return {
            "new_balance": str(receipt.new_balance),
            "wager_id": receipt.wager_id,
            "session": session.public_state(),
        }

    def advance(self, user_id, params):
        session = self.get_session(user_id)
        if session.progress.get("result") is not None:
            raise InvalidInput("This round has already been played")

        outcome = fairness.resolve(
            self.game_type,
            {
                "target": session.config["target"],
                "house_edge": settings.LIMBO_HOUSE_EDGE,
                "cap": settings.LIMBO_MAX_MULTIPLIER,
            },
            session.secret["server_seed"],
            session.config["client_seed"],
            session.config["nonce"],
        )
        result = str(outcome["result"])

        if not outcome["win"]:
            settlement = self.close_session(
                session,
                won=False,
                multiplier=0,
                result_hash=outcome["result_hash"],
                game_data={"result": result},
            )
            return settlement_result(settlement, result=result, win=False)

        session.progress.update(result=result, result_hash=outcome["result_hash"])
        session.current_multiplier = Decimal(session.config["target"])
        self.store.save(session)
        return {
            "new_balance": str(get_balance(user_id)),
            "result": result,
            "win": True,
            "multiplier": str(session.current_multiplier),
        }

    def settle(self, user_id, params):
        session = self.get_session(user_id)
        if session.progress.get("result") is None:
            raise InvalidInput("Play the round before cashing out")
        settlement = self.close_session(
            session,
            won=True,
            multiplier=Decimal(session.config["target"]),
            result_hash=session.progress["result_hash"],
            game_data={"result": session.progress["result"]},
        )
        return settlement_result(settlement, result=session.progress["result"], win=True)

    def play(self, user_id, amount, params):
        """Stake, draw and collect in one call."""
        self.place_stake(user_id, amount, params)
        result = self.advance(user_id, params)
        if not result["win"]:
            return result
        return self.settle(user_id, params)
