from array import array
import threading

from .errors import ProgramTooLarge
from .screen import C8Framebuffer

MEMORY_SIZE = 4096
PROGRAM_START = 0x200
STACK_DEPTH = 16
NUM_KEYS = 16

# Video in the CHIP-8 is sprite-driven.  Each sprite is 8 pixels wide, and from 1-15 pixels high.
# A font representing 0..9 + A..F is required for proper operation.  Example for the character 2:
#
#            ****....
#            ...*....
#            ****....
#            *.......
#            ****....
#
# The font lives at 0x000, in the area reserved for the interpreter.
FONT = bytes([
    0xF0, 0x90, 0x90, 0x90, 0xF0,  # 0
    0x20, 0x60, 0x20, 0x20, 0x70,  # 1
    0xF0, 0x10, 0xF0, 0x80, 0xF0,  # 2
    0xF0, 0x10, 0xF0, 0x10, 0xF0,  # 3
    0x90, 0x90, 0xF0, 0x10, 0x10,  # 4
    0xF0, 0x80, 0xF0, 0x10, 0xF0,  # 5
    0xF0, 0x80, 0xF0, 0x90, 0xF0,  # 6
    0xF0, 0x10, 0x20, 0x40, 0x40,  # 7
    0xF0, 0x90, 0xF0, 0x90, 0xF0,  # 8
    0xF0, 0x90, 0xF0, 0x10, 0xF0,  # 9
    0xF0, 0x90, 0xF0, 0x90, 0x90,  # A
    0xE0, 0x90, 0xE0, 0x90, 0xE0,  # B
    0xF0, 0x80, 0x80, 0x80, 0xF0,  # C
    0xE0, 0x90, 0x90, 0x90, 0xE0,  # D
    0xF0, 0x80, 0xF0, 0x80, 0xF0,  # E
    0xF0, 0x80, 0xF0, 0x80, 0x80,  # F
])
FONT_GLYPH_SIZE = 5

# The font is counted on top of the 512 byte load offset when sizing a program.
MAX_PROGRAM_SIZE = MEMORY_SIZE - PROGRAM_START - len(FONT)


class SoundTimer:
    '''
    The sound timer is written by the interpreter (Fx18) but counted down by the audio side at its
    own cadence, possibly from another thread, so every access goes through a lock.
    '''

    def __init__(self):
        self._lock = threading.Lock()
        self._value = 0

    @property
    def value(self):
        with self._lock:
            return self._value

    def set(self, value):
        with self._lock:
            self._value = value & 0xFF

    def tick(self):
        # returns the value before the decrement: nonzero means the sound was on for this tick
        with self._lock:
            value = self._value
            if value > 0:
                self._value = value - 1
            return value


class C8Machine:
    '''
    Everything the CHIP-8 program can observe: RAM, registers, stack, timers, keypad and screen.
    Created by the caller and handed to a C8Computer, which is the only thing that mutates it.
    '''

    def __init__(self):
        # 4096 Bytes of RAM
        self.RAM = array('B', [0 for i in range(MEMORY_SIZE)])
        # The 16 registers are named V0..VF
        self.V = array('B', [0 for i in range(16)])
        # Special-purpose 16-bit register; low 12 are used for an address
        self.I = 0
        # Program Counter
        self.PC = PROGRAM_START
        # A python list is the stack; its length is the stack pointer.
        self.stack = []
        self.delay_register = 0
        self.delay_register_last_tick_time = None
        self.sound_timer = SoundTimer()
        # bit k is set while key k is held down
        self.keyboard = 0
        self.blocking_on_fx0a = False
        self.screen = C8Framebuffer()
        self.RAM[0:len(FONT)] = array('B', FONT)

    @property
    def SP(self):
        return len(self.stack)

    @property
    def sound_register(self):
        return self.sound_timer.value

    def key_is_pressed(self, key):
        return bool((self.keyboard >> key) & 0x1)

    def load_program(self, program):
        '''
        Copy program into RAM at 0x200.  The font is rewritten at 0x000, the rest of the interpreter
        area and everything past the end of the program are zeroed.  RAM is untouched if the program
        does not fit.
        '''
        program = bytes(program)
        if len(program) > MAX_PROGRAM_SIZE:
            raise ProgramTooLarge(len(program), MAX_PROGRAM_SIZE)
        end = PROGRAM_START + len(program)
        self.RAM[0:len(FONT)] = array('B', FONT)
        self.RAM[len(FONT):PROGRAM_START] = array('B', bytes(PROGRAM_START - len(FONT)))
        self.RAM[PROGRAM_START:end] = array('B', program)
        self.RAM[end:] = array('B', bytes(MEMORY_SIZE - end))
        self.PC = PROGRAM_START
        self.stack = []
        self.blocking_on_fx0a = False

    def debug_dump(self, outfile):
        outfile.write("PC: 0x{}\n".format(hex(self.PC).upper()[2:]))
        if self.PC + 1 < MEMORY_SIZE:
            outfile.write("Next instr.: 0x{}\n".format(hex(self.RAM[self.PC] << 8 | self.RAM[self.PC + 1]).upper()[2:]))
        outfile.write("I: 0x{}\n".format(hex(self.I).upper()[2:]))
        for i in range(16):
            outfile.write("V{}: 0x{}".format(hex(i).upper()[2], hex(self.V[i])[2:].zfill(2).upper()))
            if i % 4 == 3:
                outfile.write('\n')
            else:
                outfile.write('\t')
        outfile.write("delay register: 0x{}\n".format(hex(self.delay_register).upper()[2:]))
        outfile.write("sound register: 0x{}\n".format(hex(self.sound_register).upper()[2:]))
        outfile.write("keyboard: 0x{}\n".format(hex(self.keyboard)[2:].zfill(4).upper()))
        outfile.write("waiting for key: {}\n".format(self.blocking_on_fx0a))
        outfile.write("stack: [")
        outfile.write(", ".join("0x{}".format(hex(addr).upper()[2:]) for addr in self.stack))
        outfile.write("]\n")
        outfile.write("\n\nRAM:\n")
        for i in range(MEMORY_SIZE):
            if i % 32 == 0:
                outfile.write("0x{} - 0x{}:  ".format(hex(i)[2:].zfill(3).upper(), hex(i+31)[2:].zfill(3).upper()))
            outfile.write(hex(self.RAM[i])[2:].zfill(2).upper())
            if i % 32 == 31:
                outfile.write("\n")
        outfile.write("\n\nScreen:\n")
        outfile.write(str(self.screen))
        outfile.write("\n")
