# mines/game.py
"""
Mines on a 5x5 board. The mine layout is fixed from the seeds when the
stake is placed; the multiplier grows with every safe reveal and the
player may cash out at any point after the first one.
"""
from django.conf import settings

from engine import fairness
from engine.controller import SessionGameController, parse_int, settlement_result
from engine.errors import InvalidInput
from wallets.services import get_balance
from wagers.models import Wager

CELLS = fairness.MINES_CELLS
MIN_MINES = 1
MAX_MINES = CELLS - 1


class MinesController(SessionGameController):
    game_type = Wager.GAME_MINES

    def place_stake(self, user_id, amount, params):
        mines = parse_int(params.get("mines"), MIN_MINES, MAX_MINES, "mines")
        seeds = self.new_seeds(params)
        positions = fairness.mine_positions(
            seeds["server_seed"], seeds["client_seed"], seeds["nonce"], mines, CELLS
        )
        session, receipt = self.open_session(
            user_id,
            amount,
            seeds,
            config={
                "mines": mines,
                "cells": CELLS,
                "server_seed_hash": seeds["server_seed_hash"],
                "client_seed": seeds["client_seed"],
                "nonce": seeds["nonce"],
            },
            secret={"mine_positions": sorted(positions)},
            progress={"revealed": []},
        )
        return {
            "new_balance": str(receipt.new_balance),
            "wager_id": receipt.wager_id,
            "multiplier": str(session.current_multiplier),
            "next_multiplier": str(self._multiplier(1, mines)),
            "session": session.public_state(),
        }

    def advance(self, user_id, params):
        session = self.get_session(user_id)
        position = parse_int(params.get("position"), 0, CELLS - 1, "position")
        revealed = session.progress["revealed"]
        if position in revealed:
            raise InvalidInput("Tile already revealed")

        mines = session.config["mines"]
        mine_positions = session.secret["mine_positions"]

        if position in mine_positions:
            settlement = self.close_session(
                session,
                won=False,
                multiplier=0,
                result_hash=self._result_hash(session),
                game_data={"revealed": revealed, "hit": position, "mine_positions": mine_positions},
            )
            return settlement_result(
                settlement, hit_mine=True, position=position, mine_positions=mine_positions
            )

        revealed.append(position)
        session.current_multiplier = self._multiplier(len(revealed), mines)

        if len(revealed) == CELLS - mines:
            return self._cash_out(session, board_cleared=True)

        self.store.save(session)
        return {
            "new_balance": str(get_balance(user_id)),
            "hit_mine": False,
            "position": position,
            "revealed": revealed,
            "multiplier": str(session.current_multiplier),
            "next_multiplier": str(self._multiplier(len(revealed) + 1, mines)),
        }

    def settle(self, user_id, params):
        session = self.get_session(user_id)
        if not session.progress["revealed"]:
            raise InvalidInput("Reveal at least one tile before cashing out")
        return self._cash_out(session)

    def _cash_out(self, session, board_cleared=False):
        revealed = session.progress["revealed"]
        multiplier = self._multiplier(len(revealed), session.config["mines"])
        mine_positions = session.secret["mine_positions"]
        settlement = self.close_session(
            session,
            won=True,
            multiplier=multiplier,
            result_hash=self._result_hash(session),
            game_data={"revealed": revealed, "mine_positions": mine_positions},
        )
        return settlement_result(
            settlement,
            hit_mine=False,
            revealed=revealed,
            mine_positions=mine_positions,
            board_cleared=board_cleared,
        )

    @staticmethod
    def _multiplier(revealed, mines):
        return fairness.mines_multiplier(revealed, mines, CELLS, settings.MINES_HOUSE_EDGE)

    @staticmethod
    def _result_hash(session):
        return fairness.result_hash(
            session.secret["server_seed"], session.config["client_seed"], session.config["nonce"]
        )
