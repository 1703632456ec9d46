from decimal import Decimal

import pytest
from rest_framework.test import APIClient

from accounts.models import User
from engine import fairness
from engine.broadcast import Broadcaster
from engine.sessions import InMemorySessionStore, reset_session_store
from wallets.models import Wallet


class RecordingBroadcaster(Broadcaster):
    def __init__(self):
        self.sent = []

    async def notify(self, user_id, event, data):
        self.sent.append((user_id, event, data))

    async def broadcast(self, event, data):
        self.sent.append((None, event, data))

    def events(self, name):
        return [(target, data) for target, event, data in self.sent if event == name]


@pytest.fixture(autouse=True)
def fresh_session_store():
    reset_session_store()
    yield
    reset_session_store()


@pytest.fixture
def broadcaster():
    return RecordingBroadcaster()


@pytest.fixture
def store():
    return InMemorySessionStore()


@pytest.fixture
def make_user(db):
    counter = {"n": 0}

    def _make(username=None, balance="0.00", **kwargs):
        counter["n"] += 1
        user = User.objects.create_user(
            username=username or f"player{counter['n']}",
            email=f"{username or 'player' + str(counter['n'])}@example.com",
            password="secret123",
            **kwargs,
        )
        Wallet.objects.filter(user=user).update(balance=Decimal(balance))
        return user

    return _make


@pytest.fixture
def api_client():
    return APIClient()


@pytest.fixture
def force_roll(monkeypatch):
    """Pin the uniform draw so single-shot games resolve predictably."""

    def _force(u):
        monkeypatch.setattr(fairness, "rng_u", lambda *args, **kwargs: Decimal(u))

    return _force


@pytest.fixture
def balance_of(db):
    def _balance(user):
        return Wallet.objects.get(user=user).balance

    return _balance


@pytest.fixture
def fixed_server_seed(monkeypatch):
    """Every new round uses this server seed; outcomes then follow from the client seed."""
    seed = "a" * 64
    monkeypatch.setattr(fairness, "generate_server_seed", lambda: seed)
    return seed
