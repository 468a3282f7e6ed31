# tests/conftest.py
import pytest

from nearby_search.models import SearchOrigin

from fakes import RecordingSleep


@pytest.fixture
def origin():
    # Around Tower Bridge, London
    return SearchOrigin(latitude=51.5055, longitude=-0.0754)


@pytest.fixture
def recording_sleep():
    return RecordingSleep()
