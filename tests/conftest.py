"""
Shared fixtures.

Nothing here touches the network: the database is in-memory sqlite and HTTP
goes through stub sessions (see tests/helpers.py).
"""
import pytest

from livedash.services.storage import Database
from tests.helpers import FakeClock


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def db():
    database = Database(":memory:")
    yield database
    database.close()
