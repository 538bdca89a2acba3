import pytest

from tests.fakes import FakeGuildClient


@pytest.fixture
def fake_client() -> FakeGuildClient:
    """Return an empty guild which only has the '@everyone' role."""
    return FakeGuildClient()
