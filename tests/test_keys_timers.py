"""Tests for the key-wait state machine and the timers."""

import pytest
from chip8.errors import InvalidState


class TestKeyboard:
    """Key events and key-conditional skips."""

    def test_press_and_release(self, machine, c8):
        """Key events set and clear bits in the keyboard mask."""
        c8.press_key(0x3)
        c8.press_key(0xF)
        assert machine.keyboard == 0x8008
        c8.release_key(0x3)
        assert machine.keyboard == 0x8000

    def test_invalid_key(self, c8):
        """Only keys 0x0..0xF exist."""
        with pytest.raises(ValueError):
            c8.press_key(16)
        with pytest.raises(ValueError):
            c8.release_key(-1)

    def test_skip_if_pressed(self, run, machine, c8):
        """EX9E skips only while the key in VX is down."""
        m = run(0x6105, 0xE19E, steps=2)
        assert m.PC == 0x204
        c8.press_key(0x5)
        m = run(0x6105, 0xE19E, steps=2)
        assert m.PC == 0x206

    def test_skip_if_not_pressed(self, run, machine, c8):
        """EXA1 skips only while the key in VX is up."""
        m = run(0x6105, 0xE1A1, steps=2)
        assert m.PC == 0x206
        c8.press_key(0x5)
        m = run(0x6105, 0xE1A1, steps=2)
        assert m.PC == 0x204


class TestWaitForKey:
    """FX0A state machine."""

    def test_enter_wait(self, run, c8):
        """FX0A suspends the machine and rewinds PC onto itself."""
        m = run(0xF30A)
        assert c8.waiting_for_key is True
        assert m.PC == 0x200

    def test_step_while_waiting(self, run, c8):
        """Stepping while waiting fails and leaves PC alone."""
        m = run(0xF30A)
        for _ in range(3):
            with pytest.raises(InvalidState):
                c8.step(16666, 0)
        assert m.PC == 0x200
        assert c8.waiting_for_key is True

    def test_key_resumes(self, run, c8):
        """A key press stores the key in VX and continues after the FX0A."""
        m = run(0xF30A, 0x6101, steps=1)
        assert m.PC == 0x200
        c8.press_key(0xB)
        assert c8.waiting_for_key is False
        assert m.V[3] == 0xB
        assert m.PC == 0x202
        assert m.key_is_pressed(0xB)
        c8.step(16666, 0)
        assert m.V[1] == 0x01

    def test_key_up_does_not_resume(self, run, c8):
        """Releasing a key is not a key press."""
        m = run(0xF30A)
        c8.release_key(0x2)
        assert c8.waiting_for_key is True
        assert m.PC == 0x200

    def test_press_when_running(self, machine, c8):
        """Key presses while running only touch the keyboard mask."""
        machine.load_program(b"\x61\x01")
        c8.press_key(0x4)
        assert machine.PC == 0x200
        assert list(machine.V) == [0] * 16


class TestTimers:
    """Delay and sound timers."""

    def test_set_and_read_delay(self, run):
        """FX15 sets the delay timer and FX07 reads it back."""
        m = run(0x6142, 0xF115, 0xF207)
        assert m.delay_register == 0x42
        assert m.V[2] == 0x42

    def test_set_sound(self, run):
        """FX18 sets the sound timer."""
        m = run(0x6120, 0xF118)
        assert m.sound_register == 0x20

    def test_delay_decrements_after_threshold(self, machine, c8):
        """The delay timer drops by one once more than a tick of host time has passed."""
        machine.load_program(b"\x12\x00")
        machine.delay_register = 3
        c8.step(100, 0)
        assert machine.delay_register == 3
        c8.step(100, 100)
        assert machine.delay_register == 3
        c8.step(100, 101)
        assert machine.delay_register == 2
        c8.step(100, 150)
        assert machine.delay_register == 2
        c8.step(100, 202)
        assert machine.delay_register == 1

    def test_delay_one_per_step(self, machine, c8):
        """A long gap still only costs one decrement per step."""
        machine.load_program(b"\x12\x00")
        machine.delay_register = 10
        c8.step(100, 0)
        c8.step(100, 10000)
        assert machine.delay_register == 9

    def test_delay_stops_at_zero(self, machine, c8):
        """The delay timer never goes below zero."""
        machine.load_program(b"\x12\x00")
        machine.delay_register = 1
        c8.step(100, 0)
        c8.step(100, 1000)
        c8.step(100, 2000)
        assert machine.delay_register == 0

    def test_step_does_not_touch_sound(self, machine, c8):
        """The sound timer is counted down by the audio side only."""
        machine.load_program(b"\x12\x00")
        machine.sound_timer.set(5)
        c8.step(100, 0)
        c8.step(100, 1000)
        assert machine.sound_register == 5
