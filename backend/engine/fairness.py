# engine/fairness.py
"""
Provably fair outcome generation.

Every draw is derived from HMAC_SHA256(server_seed, "client_seed:nonce:cursor").
The first 52 bits of the digest become a uniform value in [0, 1). Games
that need several draws (mines) advance the cursor. Given the revealed
server seed anyone can recompute an outcome with ``resolve``.
"""
from __future__ import annotations

import hmac
import hashlib
import secrets
from decimal import Decimal, InvalidOperation, ROUND_DOWN, getcontext
from typing import Optional

from django.conf import settings

getcontext().prec = 28

D0 = Decimal("0")
D1 = Decimal("1")
D100 = Decimal("100")
MAX_INT = Decimal(2 ** 52)

MINES_CELLS = 25
ROULETTE_POCKETS = 37
RED_NUMBERS = frozenset({
    1, 3, 5, 7, 9, 12, 14, 16, 18, 19, 21, 23, 25, 27, 30, 32, 34, 36,
})
ROULETTE_PAYOUTS = {
    "color": Decimal("2"),
    "even_odd": Decimal("2"),
    "number": Decimal("35"),
}


def q2(x: Decimal) -> Decimal:
    return x.quantize(Decimal("0.01"), rounding=ROUND_DOWN)


def sha256_hex(value: str) -> str:
    return hashlib.sha256(value.encode("utf-8")).hexdigest()


def generate_server_seed() -> str:
    return secrets.token_hex(32)


def generate_client_seed() -> str:
    return secrets.token_hex(8)


def new_seeds(client_seed: Optional[str] = None, nonce: int = 0) -> dict:
    server_seed = generate_server_seed()
    return {
        "server_seed": server_seed,
        "server_seed_hash": sha256_hex(server_seed),
        "client_seed": client_seed or generate_client_seed(),
        "nonce": nonce,
    }


def hmac_sha256(server_seed: str, message: str) -> str:
    return hmac.new(
        key=server_seed.encode("utf-8"),
        msg=message.encode("utf-8"),
        digestmod=hashlib.sha256,
    ).hexdigest()


def result_hash(server_seed: str, client_seed: str, nonce: int, cursor: int = 0) -> str:
    return hmac_sha256(server_seed, f"{client_seed}:{nonce}:{cursor}")


def rng_u(server_seed: str, client_seed: str, nonce: int, cursor: int = 0) -> Decimal:
    """Uniform value in [0, 1)."""
    h = int(result_hash(server_seed, client_seed, nonce, cursor)[:13], 16)
    return Decimal(h) / MAX_INT


# ======================================================
# PER-GAME MAPPINGS
# ======================================================
def coinflip_roll(u: Decimal) -> Decimal:
    return q2(u * D100)


def coinflip_side(roll: Decimal, choice: str, win_chance: Decimal) -> str:
    if roll < win_chance:
        return choice
    return "tails" if choice == "heads" else "heads"


def limbo_result(u: Decimal, house_edge: Decimal, cap: Decimal) -> Decimal:
    """
    Inverse-power transform: P(result >= t) = (1 - house_edge) / t.
    """
    crash = (D1 - house_edge) / (D1 - u)
    if crash < D1:
        crash = D1
    return min(q2(crash), cap)


def mine_positions(
    server_seed: str, client_seed: str, nonce: int, mines: int, cells: int = MINES_CELLS
) -> frozenset:
    """Seeded partial Fisher-Yates; K distinct cells out of ``cells``."""
    deck = list(range(cells))
    for i in range(mines):
        u = rng_u(server_seed, client_seed, nonce, cursor=i)
        j = i + int(u * (cells - i))
        deck[i], deck[j] = deck[j], deck[i]
    return frozenset(deck[:mines])


def mines_multiplier(
    revealed: int, mines: int, cells: int = MINES_CELLS, house_edge: Optional[Decimal] = None
) -> Decimal:
    """
    Fair odds of surviving ``revealed`` picks, less the house edge.
    Each factor is total-remaining / safe-remaining, so it grows with
    every reveal. Past the last safe tile the full-board value is returned.
    """
    if house_edge is None:
        house_edge = settings.MINES_HOUSE_EDGE
    safe = cells - mines
    if revealed <= 0 or safe <= 0:
        return Decimal("1.00")

    steps = min(revealed, safe)
    multiplier = D1
    for i in range(steps):
        multiplier *= Decimal(cells - i) / Decimal(safe - i)
    return q2(multiplier * (D1 - house_edge))


def roulette_number(u: Decimal) -> int:
    return int(u * ROULETTE_POCKETS)


def roulette_color(number: int) -> str:
    if number == 0:
        return "green"
    return "red" if number in RED_NUMBERS else "black"


def roulette_wins(bet_type: str, bet_value, number: int) -> bool:
    if bet_type == "color":
        return bet_value == roulette_color(number)
    if bet_type == "even_odd":
        if number == 0:
            return False
        return bet_value == ("even" if number % 2 == 0 else "odd")
    if bet_type == "number":
        return int(bet_value) == number
    return False


def upgrader_chance(multiplier: Decimal, house_edge: Decimal) -> Decimal:
    """Win chance in percent."""
    return q2(D100 / multiplier * (D1 - house_edge))


# ======================================================
# DISPATCH
# ======================================================
def resolve(
    game_type: str,
    config: dict,
    server_seed: str,
    client_seed: Optional[str] = None,
    nonce: int = 0,
) -> dict:
    client_seed = client_seed or ""
    u = rng_u(server_seed, client_seed, nonce)
    outcome = {"result_hash": result_hash(server_seed, client_seed, nonce)}

    if game_type == "coinflip":
        roll = coinflip_roll(u)
        win_chance = Decimal(config.get("win_chance", settings.COINFLIP_WIN_CHANCE))
        side = coinflip_side(roll, config["choice"], win_chance)
        win = side == config["choice"]
        outcome.update(roll=roll, side=side, win=win, multiplier=Decimal("2.00") if win else D0)

    elif game_type == "limbo":
        result = limbo_result(
            u,
            Decimal(config.get("house_edge", settings.LIMBO_HOUSE_EDGE)),
            Decimal(config.get("cap", settings.LIMBO_MAX_MULTIPLIER)),
        )
        target = Decimal(config["target"])
        win = result >= target
        outcome.update(result=result, win=win, multiplier=target if win else D0)

    elif game_type == "mines":
        cells = int(config.get("cells", MINES_CELLS))
        positions = mine_positions(server_seed, client_seed, nonce, int(config["mines"]), cells)
        outcome.update(mine_positions=sorted(positions))

    elif game_type == "roulette":
        number = roulette_number(u)
        win = roulette_wins(config["bet_type"], config["bet_value"], number)
        outcome.update(
            number=number,
            color=roulette_color(number),
            win=win,
            multiplier=ROULETTE_PAYOUTS[config["bet_type"]] if win else D0,
        )

    elif game_type == "upgrader":
        multiplier = Decimal(config["multiplier"])
        roll = q2(u * D100)
        chance = upgrader_chance(
            multiplier, Decimal(config.get("house_edge", settings.UPGRADER_HOUSE_EDGE))
        )
        win = roll < chance
        outcome.update(roll=roll, chance=chance, win=win, multiplier=multiplier if win else D0)

    elif game_type == "jackpot":
        outcome.update(ticket=u * Decimal(config["total_pot"]))

    else:
        raise ValueError(f"Unknown game type {game_type!r}")

    return outcome


def verify(game_type: str, config: dict, server_seed: str, client_seed: str, nonce: int, expected: dict) -> bool:
    """True when every field in ``expected`` matches a fresh resolution."""
    actual = resolve(game_type, config, server_seed, client_seed, nonce)
    for key, value in expected.items():
        if key not in actual:
            return False
        got = actual[key]
        if isinstance(got, Decimal):
            try:
                value = Decimal(str(value))
            except (InvalidOperation, ValueError):
                return False
        if got != value:
            return False
    return True
