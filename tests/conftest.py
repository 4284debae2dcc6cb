import itertools
from datetime import date

import pytest

from weeklog.store import LogStore
from weeklog.storage import Storage


@pytest.fixture(autouse=True)
def data_home(tmp_path, monkeypatch):
    """Keep every test away from the real ~/.weeklog."""
    home = tmp_path / 'weeklog-home'
    monkeypatch.setenv('WEEKLOG_HOME', str(home))
    return home


@pytest.fixture
def clock():
    counter = itertools.count(1_700_000_000_000, 1000)
    return lambda: next(counter)


@pytest.fixture
def store(clock):
    return LogStore(clock=clock)


@pytest.fixture
def storage(data_home):
    return Storage(data_home / 'worklog.json')


@pytest.fixture
def monday():
    return date(2024, 6, 3)
