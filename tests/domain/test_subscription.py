import pytest

from locus.shared.domain.location import (
    Coordinate,
    LocationSubscription,
    ProviderUnavailableError,
    SubscriptionHandle,
)


class LeakyProvider:
    """Keeps calling old listeners after unregister, like a late OS callback."""

    def __init__(self, deliver_on_register: Coordinate | None = None):
        self.listeners = []
        self.unregistered = []
        self.deliver_on_register = deliver_on_register

    def register(self, listener):
        self.listeners.append(listener)
        if self.deliver_on_register is not None:
            listener(self.deliver_on_register)
        return len(self.listeners) - 1

    def unregister(self, token):
        self.unregistered.append(token)


def _fix(lat: float, lon: float) -> Coordinate:
    return Coordinate(latitude=lat, longitude=lon)


def test_start_twice_leaves_one_registration_bound_to_latest(provider, subscription):
    first, second = [], []

    handle_one = subscription.start(first.append)
    handle_two = subscription.start(second.append)

    assert handle_one != handle_two
    assert provider.registrations == 1
    assert subscription.active_handle == handle_two
    assert not subscription.is_active(handle_one)

    provider.emit(_fix(1.0, 2.0))
    provider.emit(_fix(1.0, 2.0))

    assert first == []
    assert second == [_fix(1.0, 2.0), _fix(1.0, 2.0)]


def test_late_events_from_stopped_registration_are_dropped():
    provider = LeakyProvider()
    subscription = LocationSubscription(provider)
    first, second = [], []

    subscription.start(first.append)
    subscription.start(second.append)
    old_listener, new_listener = provider.listeners

    old_listener(_fix(5.0, 5.0))
    new_listener(_fix(6.0, 6.0))

    assert provider.unregistered == [0]
    assert first == []
    assert second == [_fix(6.0, 6.0)]


def test_fix_delivered_during_register_is_kept():
    provider = LeakyProvider(deliver_on_register=_fix(3.0, 4.0))
    received = []

    LocationSubscription(provider).start(received.append)

    assert received == [_fix(3.0, 4.0)]


def test_stop_unknown_or_stopped_handle_is_noop(provider, subscription):
    received = []
    handle = subscription.start(received.append)

    subscription.stop(SubscriptionHandle())
    assert subscription.active_handle == handle
    assert provider.registrations == 1

    subscription.stop(handle)
    subscription.stop(handle)

    assert subscription.active_handle is None
    assert provider.registrations == 0
    provider.emit(_fix(1.0, 1.0))
    assert received == []


def test_start_fails_when_provider_unavailable(provider, subscription):
    provider.enabled = False

    with pytest.raises(ProviderUnavailableError):
        subscription.start(lambda _fix: None)

    assert subscription.active_handle is None

    provider.enabled = True
    handle = subscription.start(lambda _fix: None)
    assert subscription.is_active(handle)


def test_failed_restart_drops_previous_registration(provider, subscription):
    subscription.start(lambda _fix: None)
    provider.enabled = False

    with pytest.raises(ProviderUnavailableError):
        subscription.start(lambda _fix: None)

    assert subscription.active_handle is None
    assert provider.registrations == 0


def test_events_pass_through_in_order(provider, subscription):
    received = []
    subscription.start(received.append)

    fixes = [_fix(10.0, 20.0), _fix(10.1, 20.1), _fix(10.0, 20.0)]
    for fix in fixes:
        provider.emit(fix)

    assert received == fixes
