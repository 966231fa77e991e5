import pytest

from farescope.schemas.flight import SearchContext
from tests.helpers import FakeSleep, day


@pytest.fixture
def fake_sleep():
    return FakeSleep()


@pytest.fixture
def context():
    return SearchContext(
        origin="JFK",
        destination="LAX",
        departure_date=day("2024-06-01"),
        passengers=2,
    )
