"""CHIP-8 interpreter core: machine state, instruction interpreter and sprite compositor."""

from .cpu import C8Computer
from .errors import (
    Chip8Error,
    InvalidState,
    MemoryAccessError,
    ProgramLoadError,
    ProgramLoadFailed,
    ProgramTooLarge,
    StackOverflow,
    StackUnderflow,
    UnsupportedOpcode,
)
from .machine import C8Machine, SoundTimer
from .screen import C8Framebuffer
from .sprite import draw_sprite

__all__ = [
    "C8Computer",
    "C8Machine",
    "C8Framebuffer",
    "SoundTimer",
    "draw_sprite",
    "Chip8Error",
    "InvalidState",
    "MemoryAccessError",
    "ProgramLoadError",
    "ProgramLoadFailed",
    "ProgramTooLarge",
    "StackOverflow",
    "StackUnderflow",
    "UnsupportedOpcode",
]
