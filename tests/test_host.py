"""Tests for the pygame host helpers that do not need a window."""

import datetime
import os

import pygame
import pytest
from chip8 import host
from chip8.errors import ProgramLoadFailed, ProgramTooLarge
from chip8.machine import C8Machine, SoundTimer
from chip8.screen import C8Framebuffer


class FakeBeep:

    def __init__(self):
        self.calls = []

    def play(self, loops):
        self.calls.append(("play", loops))

    def stop(self):
        self.calls.append(("stop",))


class TestKeymapping:
    """Host keyboard layout."""

    def test_all_keys_mapped_once(self):
        """Every keypad value has exactly one host key."""
        assert sorted(host.KEYMAPPING.values()) == list(range(16))

    def test_layout(self):
        """The left-hand block of the keyboard maps onto the keypad grid."""
        assert host.KEYMAPPING[pygame.K_1] == 0x1
        assert host.KEYMAPPING[pygame.K_4] == 0xC
        assert host.KEYMAPPING[pygame.K_x] == 0x0
        assert host.KEYMAPPING[pygame.K_v] == 0xF


class TestLoadRom:
    """ROM file loading."""

    def test_load(self, tmp_path):
        """File contents land at 0x200."""
        rom = tmp_path / "test.ch8"
        rom.write_bytes(b"\x00\xE0\x12\x00")
        m = C8Machine()
        assert host.load_rom(m, str(rom)) == 4
        assert bytes(m.RAM[0x200:0x204]) == b"\x00\xE0\x12\x00"

    def test_missing_file(self, tmp_path):
        """Unreadable files raise ProgramLoadFailed."""
        with pytest.raises(ProgramLoadFailed) as excinfo:
            host.load_rom(C8Machine(), str(tmp_path / "missing.ch8"))
        assert excinfo.value.path.endswith("missing.ch8")
        assert isinstance(excinfo.value.__cause__, OSError)

    def test_too_large(self, tmp_path):
        """Oversized files raise ProgramTooLarge."""
        rom = tmp_path / "big.ch8"
        rom.write_bytes(bytes(4000))
        with pytest.raises(ProgramTooLarge):
            host.load_rom(C8Machine(), str(rom))


class TestBeeper:
    """Sound timer countdown on the audio side."""

    def test_beep_while_nonzero(self):
        """The beep starts with the timer and stops when it runs out."""
        beep = FakeBeep()
        beeper = host.C8Beeper(beep)
        timer = SoundTimer()
        beeper.tick(timer)
        assert beep.calls == []
        timer.set(2)
        beeper.tick(timer)
        assert beep.calls == [("play", -1)]
        assert timer.value == 1
        beeper.tick(timer)
        assert beep.calls == [("play", -1)]
        assert timer.value == 0
        beeper.tick(timer)
        assert beep.calls == [("play", -1), ("stop",)]
        assert beeper.playing is False

    def test_set_between_ticks(self):
        """A timer set after the last tick keeps the beep going."""
        beep = FakeBeep()
        beeper = host.C8Beeper(beep)
        timer = SoundTimer()
        timer.set(1)
        beeper.tick(timer)
        timer.set(1)
        beeper.tick(timer)
        assert beep.calls == [("play", -1)]
        assert beeper.playing is True


class TestDisplay:
    """Dirty-pixel tracking."""

    def test_first_frame_repaints_everything(self):
        """With nothing presented yet every row is dirty."""
        display = host.C8Display(window=None)
        _, spans = display.changed_spans(C8Framebuffer())
        assert len(spans) == 32
        assert all(len(xs) == 64 for _, xs in spans)

    def test_only_changes(self):
        """After a frame is presented only changed pixels are dirty."""
        fb = C8Framebuffer()
        display = host.C8Display(window=None)
        display.presented = fb.export()
        fb.vram[7 * fb.xsize + 3] = 1
        fb.vram[7 * fb.xsize + 9] = 1
        _, spans = display.changed_spans(fb)
        assert spans == [(7, [3, 9])]


class TestArgs:
    """Command line."""

    def test_defaults(self):
        """Options fall back to the module constants."""
        args = host.parse_args(["game.ch8"])
        assert args.rom == "game.ch8"
        assert args.scale == host.SCALE_FACTOR
        assert args.delay == host.INSTRUCTION_DELAY
        assert args.dump_file == host.DUMP_FILE
        assert args.verbose is False

    def test_default_rom(self):
        """Without a ROM argument the bundled sample is used."""
        args = host.parse_args([])
        assert args.rom == os.path.join("roms", "sample.ch8")
        assert args.rom == host.DEFAULT_ROM

    def test_overrides(self):
        """Options override the constants."""
        args = host.parse_args(["game.ch8", "--scale", "4", "--delay", "500", "-v"])
        assert args.scale == 4
        assert args.delay == 500
        assert args.verbose is True

    def test_elapsed_microseconds(self):
        """Host time is counted in microseconds."""
        start = datetime.datetime(2024, 1, 1)
        assert host.elapsed_microseconds(start, start + datetime.timedelta(milliseconds=17)) == 17000
