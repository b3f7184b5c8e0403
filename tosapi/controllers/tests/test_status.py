"""Tests for :mod:`tosapi.controllers.status`."""

import pytest

from tosapi.controllers.status import StatusCache, StatusReporter
from tosapi.domain import StatusCheckResponse, SubsystemStatus


class FakeClock:
    def __init__(self, now=1000.0):
        self.now = now

    def __call__(self):
        return self.now


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def reporter(clock):
    return StatusReporter(StatusCache(ttl=60, clock=clock))


def test_healthy(mocker, reporter):
    datastore = mocker.MagicMock()
    datastore.health_check_query.return_value = [{}]
    status = reporter.check_health(datastore)
    assert status.ok
    assert status.to_dict() == {'ok': True, 'systems': {'datastore': {'ok': True}}}


def test_no_entities(mocker, reporter):
    datastore = mocker.MagicMock()
    datastore.health_check_query.return_value = []
    status = reporter.check_health(datastore)
    assert not status.ok
    assert status.to_dict() == {
        'ok': False,
        'systems': {'datastore': {
            'ok': False,
            'messages': ['0 entities returned from Datastore.']
        }}
    }


def test_too_many_entities(mocker, reporter):
    datastore = mocker.MagicMock()
    datastore.health_check_query.return_value = [{}, {}]
    status = reporter.check_health(datastore)
    assert not status.ok
    assert status.systems['datastore'].messages == \
        ['2 entities returned from Datastore.']


def test_probe_raises(mocker, reporter):
    datastore = mocker.MagicMock()
    datastore.health_check_query.side_effect = RuntimeError('no datastore')
    status = reporter.check_health(datastore)
    assert not status.ok
    assert status.systems['datastore'] == SubsystemStatus(False, ['no datastore'])


def test_cached_within_ttl(mocker, reporter, clock):
    """The datastore is probed at most once a minute."""
    datastore = mocker.MagicMock()
    datastore.health_check_query.return_value = [{}]
    first = reporter.check_health(datastore)

    clock.now += 59
    datastore.health_check_query.side_effect = RuntimeError('down')
    assert reporter.check_health(datastore) is first
    assert datastore.health_check_query.call_count == 1


def test_refreshed_after_ttl(mocker, reporter, clock):
    datastore = mocker.MagicMock()
    datastore.health_check_query.return_value = [{}]
    reporter.check_health(datastore)

    clock.now += 60
    datastore.health_check_query.return_value = []
    status = reporter.check_health(datastore)
    assert not status.ok
    assert datastore.health_check_query.call_count == 2


def test_unhealthy_results_are_cached(mocker, reporter, clock):
    datastore = mocker.MagicMock()
    datastore.health_check_query.return_value = []
    reporter.check_health(datastore)
    clock.now += 30
    reporter.check_health(datastore)
    assert datastore.health_check_query.call_count == 1


def test_cache_slot_replaced(clock):
    cache = StatusCache(ttl=60, clock=clock)
    assert cache.get() is None
    healthy = StatusCheckResponse(True, {'datastore': SubsystemStatus(True)})
    unhealthy = StatusCheckResponse(False, {'datastore': SubsystemStatus(False)})
    cache.put(healthy)
    clock.now += 1
    cache.put(unhealthy)
    assert cache.get() is unhealthy
    assert cache.last_refresh == clock.now
