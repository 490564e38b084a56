"""Exceptions raised by the CHIP-8 core."""


class Chip8Error(Exception):
    """Base exception for all CHIP-8 errors."""

    def __init__(self, message, address=None):
        super().__init__(message)
        self.message = message
        self.address = address


class UnsupportedOpcode(Chip8Error):
    """The fetched word does not decode to any instruction."""

    def __init__(self, opcode, address=None):
        message = "Unsupported opcode 0x{:04X}".format(opcode)
        if address is not None:
            message += " at 0x{:03X}".format(address)
        super().__init__(message, address)
        self.opcode = opcode


class InvalidState(Chip8Error):
    """Step was called while the machine is waiting for a key press."""
    pass


class ProgramLoadError(Chip8Error):
    """A program could not be placed in memory."""
    pass


class ProgramTooLarge(ProgramLoadError):

    def __init__(self, size, limit):
        super().__init__("Program of {} bytes exceeds the {} byte limit".format(size, limit))
        self.size = size
        self.limit = limit


class ProgramLoadFailed(ProgramLoadError):

    def __init__(self, path, reason):
        super().__init__("Could not load {}: {}".format(path, reason))
        self.path = path


class StackOverflow(Chip8Error):
    """Subroutine call with all 16 stack entries in use."""
    pass


class StackUnderflow(Chip8Error):
    """Subroutine return with an empty stack."""
    pass


class MemoryAccessError(Chip8Error):
    """Address outside the 4096 byte memory."""
    pass
