"""Unit tests for auth/throttle.py -- failed-login lockout per client."""

from auth.throttle import LoginThrottle


def test_blocks_after_max_failures():
    throttle = LoginThrottle(max_failures=5, window_seconds=300)
    for _ in range(4):
        throttle.record_failure("10.0.0.1")
    assert not throttle.is_blocked("10.0.0.1")
    throttle.record_failure("10.0.0.1")
    assert throttle.is_blocked("10.0.0.1")
    assert 1 <= throttle.retry_after("10.0.0.1") <= 300


def test_success_resets_the_count():
    throttle = LoginThrottle(max_failures=5, window_seconds=300)
    for _ in range(4):
        throttle.record_failure("10.0.0.1")
    throttle.record_success("10.0.0.1")
    for _ in range(4):
        throttle.record_failure("10.0.0.1")
    assert not throttle.is_blocked("10.0.0.1")


def test_clients_are_counted_separately():
    throttle = LoginThrottle(max_failures=2, window_seconds=300)
    throttle.record_failure("10.0.0.1")
    throttle.record_failure("10.0.0.1")
    assert throttle.is_blocked("10.0.0.1")
    assert not throttle.is_blocked("10.0.0.2")


def test_reset_clears_everything():
    throttle = LoginThrottle(max_failures=1, window_seconds=300)
    throttle.record_failure("10.0.0.1")
    assert throttle.is_blocked("10.0.0.1")
    throttle.reset()
    assert not throttle.is_blocked("10.0.0.1")
