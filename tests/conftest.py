from __future__ import annotations

import pytest

from requests_mock import Mocker

from surfcast.entities import Coordinate, CredentialSet


@pytest.fixture
def requests_mock():
    with Mocker() as mock:
        yield mock


@pytest.fixture
def coordinate() -> Coordinate:
    return Coordinate(35.3, 139.5)


@pytest.fixture
def credentials() -> CredentialSet:
    return CredentialSet({"stormglass": "sg-key", "openweathermap": "owm-key", "windy": "windy-key"})
