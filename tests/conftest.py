import os
import sys
from pathlib import Path

import pytest

sys.path.append(str(Path(__file__).resolve().parents[1]))
os.environ["DATABASE_URL"] = "sqlite://"
os.environ.setdefault("LOG_LEVEL", "WARNING")


class StaticRNG:
    """Deterministic RNG used to control battle and encounter rolls in tests."""

    def __init__(self, random_values=None):
        self.random_values = list(random_values or [])

    def random(self):
        if not self.random_values:
            return 0.0
        return self.random_values.pop(0)


@pytest.fixture
def static_rng():
    return StaticRNG


@pytest.fixture
def client():
    from fastapi.testclient import TestClient

    from monster_app.backend.database import Base, engine
    from monster_app.backend.main import app
    from monster_app.backend.models.domain import BattleStore

    Base.metadata.drop_all(bind=engine)
    app.state.battles = BattleStore()
    app.state.maps = {}
    with TestClient(app) as test_client:
        yield test_client
