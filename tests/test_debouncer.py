"""Tests for the scan debouncer."""
from gatepass.services.debouncer import ScanDebouncer

from conftest import FakeMonotonic


def make(cooldown_ms=750, max_devices=512):
    clock = FakeMonotonic()
    return ScanDebouncer(cooldown_ms=cooldown_ms, max_devices=max_devices, clock=clock), clock


def test_first_scan_is_processed():
    debouncer, _ = make()
    assert debouncer.should_process("tablet-1", "payload") is True


def test_repeat_frames_within_cooldown_are_suppressed():
    debouncer, clock = make()
    assert debouncer.should_process("tablet-1", "payload")
    clock.advance(0.1)
    assert debouncer.should_process("tablet-1", "payload") is False
    clock.advance(0.5)
    assert debouncer.should_process("tablet-1", "other") is False


def test_cooldown_elapses():
    debouncer, clock = make()
    assert debouncer.should_process("tablet-1", "payload")
    clock.advance(0.75)
    assert debouncer.should_process("tablet-1", "payload") is True


def test_devices_are_independent():
    debouncer, _ = make()
    assert debouncer.should_process("tablet-1", "payload")
    assert debouncer.should_process("tablet-2", "payload")


def test_reset_one_device():
    debouncer, _ = make()
    debouncer.should_process("tablet-1", "payload")
    debouncer.should_process("tablet-2", "payload")
    debouncer.reset("tablet-1")
    assert debouncer.should_process("tablet-1", "payload") is True
    assert debouncer.should_process("tablet-2", "payload") is False


def test_reset_all_devices():
    debouncer, _ = make()
    debouncer.should_process("tablet-1", "payload")
    debouncer.should_process("tablet-2", "payload")
    debouncer.reset()
    assert debouncer.should_process("tablet-1", "payload")
    assert debouncer.should_process("tablet-2", "payload")


def test_oldest_device_is_evicted():
    debouncer, _ = make(max_devices=2)
    debouncer.should_process("tablet-1", "a")
    debouncer.should_process("tablet-2", "b")
    debouncer.should_process("tablet-3", "c")
    # evicted device is treated as fresh
    assert debouncer.should_process("tablet-1", "a") is True
    assert debouncer.should_process("tablet-3", "c") is False


def test_held_pass_stays_suppressed():
    debouncer, clock = make()
    assert debouncer.should_process("tablet-1", "pass-a")
    for _ in range(5):
        clock.advance(0.5)
        assert debouncer.should_process("tablet-1", "pass-a") is False
    clock.advance(0.75)
    assert debouncer.should_process("tablet-1", "pass-a") is True


def test_other_payload_does_not_extend_cooldown():
    debouncer, clock = make()
    assert debouncer.should_process("tablet-1", "pass-a")
    clock.advance(0.5)
    assert debouncer.should_process("tablet-1", "pass-b") is False
    clock.advance(0.25)
    assert debouncer.should_process("tablet-1", "pass-b") is True


def test_zero_cooldown_processes_every_frame():
    debouncer, _ = make(cooldown_ms=0)
    assert debouncer.should_process("tablet-1", "pass-a")
    assert debouncer.should_process("tablet-1", "pass-a")
