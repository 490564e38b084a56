import os
import random

import pytest

# pygame is imported by the host tests; never open a real window or audio device
os.environ.setdefault("SDL_VIDEODRIVER", "dummy")
os.environ.setdefault("SDL_AUDIODRIVER", "dummy")
os.environ.setdefault("PYGAME_HIDE_SUPPORT_PROMPT", "1")

from chip8.cpu import C8Computer
from chip8.machine import C8Machine


@pytest.fixture
def machine():
    return C8Machine()


@pytest.fixture
def c8(machine):
    return C8Computer(machine, rng=random.Random(1234))


@pytest.fixture
def run(machine, c8):
    """Load words as a program and execute the given number of steps."""

    def _run(*words, steps=None, ticks_per_60hz=16666, now=0):
        program = b"".join(word.to_bytes(2, "big") for word in words)
        machine.load_program(program)
        for _ in range(len(words) if steps is None else steps):
            c8.step(ticks_per_60hz, now)
        return machine

    return _run
