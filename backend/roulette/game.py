# roulette/game.py
"""
Single-zero wheel, one bet per spin. Payouts are total return:
color and even/odd 2x, straight number 35x.
"""
from engine import fairness
from engine.controller import GameController, parse_choice, parse_int, settlement_result
from wagers.models import Wager

BET_VALUES = {
    "color": ("red", "black"),
    "even_odd": ("even", "odd"),
}


def parse_bet(params):
    bet_type = parse_choice(params.get("bet_type"), ("color", "even_odd", "number"), "bet type")
    if bet_type == "number":
        return bet_type, parse_int(params.get("bet_value"), 0, fairness.ROULETTE_POCKETS - 1, "number")
    return bet_type, parse_choice(params.get("bet_value"), BET_VALUES[bet_type], "bet value")


class RouletteController(GameController):
    game_type = Wager.GAME_ROULETTE

    def place_stake(self, user_id, amount, params):
        bet_type, bet_value = parse_bet(params)
        config = {"bet_type": bet_type, "bet_value": bet_value}
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
            game_data={"number": outcome["number"], "color": outcome["color"]},
        )
        return settlement_result(settlement, number=outcome["number"], color=outcome["color"])
