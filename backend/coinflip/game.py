# coinflip/game.py
from engine import fairness
from engine.controller import GameController, parse_choice, settlement_result
from wagers.models import Wager

SIDES = ("heads", "tails")


class CoinflipController(GameController):
    game_type = Wager.GAME_COINFLIP

    def place_stake(self, user_id, amount, params):
        choice = parse_choice(params.get("choice"), SIDES, "side")
        seeds = self.new_seeds(params)
        receipt = self.stake(user_id, amount, seeds, game_data={"choice": choice})

        outcome = fairness.resolve(
            self.game_type, {"choice": choice},
            seeds["server_seed"], seeds["client_seed"], seeds["nonce"],
        )
        settlement = self.finish(
            receipt.wager_id,
            won=outcome["win"],
            multiplier=outcome["multiplier"],
            result_hash=outcome["result_hash"],
            game_data={"side": outcome["side"], "roll": str(outcome["roll"])},
        )
        return settlement_result(
            settlement, choice=choice, side=outcome["side"], roll=str(outcome["roll"])
        )
