# upgrader/game.py
from decimal import Decimal

from django.conf import settings

from engine import fairness
from engine.controller import GameController, parse_multiplier, settlement_result
from wagers.models import Wager

MIN_MULTIPLIER = Decimal("1.01")
MAX_MULTIPLIER = Decimal("1000")


class UpgraderController(GameController):
    """Pick a target multiplier; win chance is 100 / multiplier less the edge."""

    game_type = Wager.GAME_UPGRADER

    def place_stake(self, user_id, amount, params):
        multiplier = parse_multiplier(params.get("multiplier"), MIN_MULTIPLIER, MAX_MULTIPLIER)
        config = {"multiplier": str(multiplier), "house_edge": str(settings.UPGRADER_HOUSE_EDGE)}
        seeds = self.new_seeds(params)
        receipt = self.stake(user_id, amount, seeds, game_data=config)

        outcome = fairness.resolve(
            self.game_type, config, seeds["server_seed"], seeds["client_seed"], seeds["nonce"]
        )
        settlement = self.finish(
            receipt.wager_id,
            won=outcome["win"],
            multiplier=outcome["multiplier"],
            result_hash=outcome["result_hash"],
            game_data={"roll": str(outcome["roll"]), "chance": str(outcome["chance"])},
        )
        return settlement_result(
            settlement, roll=str(outcome["roll"]), chance=str(outcome["chance"])
        )
