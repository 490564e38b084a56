import random

from .errors import (
    InvalidState,
    MemoryAccessError,
    StackOverflow,
    StackUnderflow,
    UnsupportedOpcode,
)
from .machine import FONT_GLYPH_SIZE, MEMORY_SIZE, NUM_KEYS, STACK_DEPTH
from .sprite import draw_sprite


class C8Computer:
    '''
    Fetch-decode-execute for a caller-owned C8Machine.

    The host calls step() once per instruction at whatever cadence it likes and forwards key
    events through press_key() / release_key().  While an Fx0A is waiting for a key, step() must
    not be called; press_key() completes the Fx0A and resumes the machine.
    '''

    def __init__(self, machine, rng=None):
        self.machine = machine
        self.rng = rng if rng is not None else random.Random()

        # Using a list of functions to speed the lookup, vs. doing a big nested
        # if/else.  There is one instruction for each of the high-order nibbles
        # 1, 2, 3, 4, 5, 6, 7, 9, A, B, C and D.  The others (0, 8, E, F) have
        # multiple.
        self.operation_list = [
            self._0_opcodes, self._1nnn, self._2nnn, self._3xkk, self._4xkk, self._5xy0,
            self._6xkk, self._7xkk, self._8_opcodes, self._9xy0, self._Annn, self._Bnnn,
            self._Cxkk, self._Dxyn, self._E_opcodes, self._F_opcodes
        ]

        # opcodes beginning with 8 can be determined based on the least-significant
        # nibble (0..7 and E)
        self._8_operations = [
            self._8xy0, self._8xy1, self._8xy2, self._8xy3, self._8xy4, self._8xy5,
            self._8xy6, self._8xy7, None, None, None, None, None, None, self._8xyE, None
        ]

        # opcodes beginning with F can be determined based on the least_significant
        # byte (07, 0A, 15, 18, 1E, 29, 33, 55, and 65).  Since this is sparse,
        # will use a dictionary.
        self._F_operations = {
            0x07: self._Fx07,
            0x0A: self._Fx0A,
            0x15: self._Fx15,
            0x18: self._Fx18,
            0x1E: self._Fx1E,
            0x29: self._Fx29,
            0x33: self._Fx33,
            0x55: self._Fx55,
            0x65: self._Fx65
        }

    @property
    def waiting_for_key(self):
        return self.machine.blocking_on_fx0a

    def fetch(self):
        m = self.machine
        # Instructions are two bytes, big-endian
        if not 0 <= m.PC < MEMORY_SIZE - 1:
            raise MemoryAccessError("Program counter 0x{:04X} is outside memory".format(m.PC), m.PC)
        return m.RAM[m.PC] << 8 | m.RAM[m.PC + 1]

    def decrement_delay_register(self, ticks_per_60hz, now):
        m = self.machine
        if m.delay_register_last_tick_time is None:
            m.delay_register_last_tick_time = now
        if m.delay_register > 0 and now - m.delay_register_last_tick_time > ticks_per_60hz:
            m.delay_register -= 1
            m.delay_register_last_tick_time = now

    def step(self, ticks_per_60hz, now):
        '''
        Execute one instruction and return its opcode.

        now is the host's current time and ticks_per_60hz the number of its time units in 1/60
        second; together they drive the delay timer.  The core never reads a clock itself.

        Instructions have one of 6 patterns:
        All 4 bytes fixed:
            00E0, 00EE
        Operation + nnn (address)
            1nnn, 2nnn, Annn, Bnnn
        Operation + Vx + kk (byte)
            3xkk, 4xkk, 6xkk, 7xkk, Cxkk
        Operation + Vx + Vy + nibble-type
            5xy0, 8xy0, 8xy1, 8xy2, 8xy3,
            8xy4, 8xy5, 8xy6, 8xy7, 8xye, 9xy0
        Operation + Vx + Vy + n (nibble)
            Dxyn
        Operation + Vx + byte-type
            Ex9E, ExA1, Fx07, Fx0A, Fx15,
            Fx18, Fx1E, Fx29, Fx33, Fx55,
            Fx65

        To minimize redundant code, calculate all the possible ways
        to parse the opcode and then later use only the ones that are needed
        '''
        if self.machine.blocking_on_fx0a:
            raise InvalidState("step called while waiting for a key press", self.machine.PC)

        self.decrement_delay_register(ticks_per_60hz, now)

        opcode = self.fetch()
        # PC points at the following instruction before dispatch; jumps and skips work from there
        self.machine.PC += 2
        operation = opcode >> 12
        vx = opcode >> 8 & 0xF
        vy = opcode >> 4 & 0xF
        n = opcode & 0xF
        nnn = opcode & 0xFFF
        kk = opcode & 0xFF
        self.operation_list[operation](opcode, vx, vy, n, kk, nnn)
        return opcode

    def press_key(self, key):
        '''
        Key down.  If an Fx0A is pending, the key value lands in its Vx and execution resumes with
        the instruction after the Fx0A.
        '''
        self._check_key(key)
        m = self.machine
        m.keyboard |= 1 << key
        if m.blocking_on_fx0a:
            # PC was rewound onto the Fx0A, so its x nibble is still there to read
            opcode = self.fetch()
            m.V[opcode >> 8 & 0xF] = key
            m.PC += 2
            m.blocking_on_fx0a = False

    def release_key(self, key):
        self._check_key(key)
        self.machine.keyboard &= ~(1 << key) & 0xFFFF

    def _check_key(self, key):
        if not 0 <= key < NUM_KEYS:
            raise ValueError("Key must be in 0x0..0xF, got {}".format(key))

    def _instruction_address(self):
        return self.machine.PC - 2

    def invalid_op(self, opcode):
        raise UnsupportedOpcode(opcode, self._instruction_address())

    def _check_memory_range(self, start, count):
        if start + count > MEMORY_SIZE:
            raise MemoryAccessError(
                "Access to 0x{:04X}-0x{:04X} is outside memory".format(start, start + count - 1),
                self._instruction_address())

    def _0_opcodes(self, opcode, vx, vy, n, kk, nnn):
        m = self.machine
        if opcode == 0x00E0:
            # 00E0 - CLS
            # clear the screen
            m.screen.clear()
        elif opcode == 0x00EE:
            # 00EE - RET
            # Return from a subroutine
            if not m.stack:
                raise StackUnderflow("Return with an empty stack", self._instruction_address())
            m.PC = m.stack.pop()
        else:
            self.invalid_op(opcode)

    def _1nnn(self, opcode, vx, vy, n, kk, nnn):
        # 1nnn - JP addr
        # Jump to location nnn
        self.machine.PC = nnn

    def _2nnn(self, opcode, vx, vy, n, kk, nnn):
        # 2nnn - CALL addr
        # Call subroutine at nnn
        m = self.machine
        if len(m.stack) >= STACK_DEPTH:
            raise StackOverflow("Call with {} return addresses on the stack".format(STACK_DEPTH),
                                self._instruction_address())
        m.stack.append(m.PC)
        m.PC = nnn

    def _3xkk(self, opcode, vx, vy, n, kk, nnn):
        # 3xkk - SE Vx, byte
        # Skip next instruction if Vx == kk
        if self.machine.V[vx] == kk:
            self.machine.PC += 2

    def _4xkk(self, opcode, vx, vy, n, kk, nnn):
        # 4xkk - SNE Vx, byte
        # Skip next instruction if Vx != kk
        if self.machine.V[vx] != kk:
            self.machine.PC += 2

    def _5xy0(self, opcode, vx, vy, n, kk, nnn):
        # 5xy0 - SE Vx, Vy
        # Skip next instruction if Vx == Vy
        if n != 0:
            self.invalid_op(opcode)
        if self.machine.V[vx] == self.machine.V[vy]:
            self.machine.PC += 2

    def _6xkk(self, opcode, vx, vy, n, kk, nnn):
        # 6xkk - LD Vx, byte
        # Set Vx = kk
        self.machine.V[vx] = kk

    def _7xkk(self, opcode, vx, vy, n, kk, nnn):
        # 7xkk - ADD Vx, byte
        # Add value in kk to vx, stores result in vx, does NOT set overflow flag
        self.machine.V[vx] = (self.machine.V[vx] + kk) & 0xFF

    # The 8xy_ group writes VF first, from the operands as they were before the instruction.  Vx is
    # then computed from the registers as they stand, so an operand of VF sees the new flag.

    def _8xy0(self, vx, vy):
        # 8xy0 - LD Vx, Vy
        # Set Vx = Vy
        self.machine.V[vx] = self.machine.V[vy]

    def _8xy1(self, vx, vy):
        # 8xy1 - OR Vx, Vy
        # Set Vx = Vx OR Vy.
        self.machine.V[vx] = self.machine.V[vx] | self.machine.V[vy]

    def _8xy2(self, vx, vy):
        # 8xy2 - AND Vx, Vy
        # Set Vx = Vx AND Vy
        self.machine.V[vx] = self.machine.V[vx] & self.machine.V[vy]

    def _8xy3(self, vx, vy):
        # 8xy3 - XOR Vx, Vy
        # Set Vx = Vx XOR Vy
        self.machine.V[vx] = self.machine.V[vx] ^ self.machine.V[vy]

    def _8xy4(self, vx, vy):
        # 8xy4 - ADD Vx, Vy
        # Set VF = carry, then Vx = Vx + Vy.
        V = self.machine.V
        if V[vx] + V[vy] > 255:
            V[0xF] = 1
        else:
            V[0xF] = 0
        V[vx] = (V[vx] + V[vy]) & 0xFF

    def _8xy5(self, vx, vy):
        # 8xy5 - SUB Vx, Vy
        # Set VF = NOT borrow (VF = 1 if Vx > Vy), then Vx = Vx - Vy.
        V = self.machine.V
        if V[vx] > V[vy]:
            V[0xF] = 1
        else:
            V[0xF] = 0
        V[vx] = (V[vx] - V[vy]) & 0xFF

    def _8xy6(self, vx, vy):
        # 8xy6 - SHR Vx
        # VF is set to the least significant bit of Vx before the shift
        V = self.machine.V
        V[0xF] = V[vx] & 0x1
        V[vx] = V[vx] >> 1

    def _8xy7(self, vx, vy):
        # 8xy7 - SUBN Vx, Vy
        # Set VF = NOT borrow (VF = 1 if Vy > Vx), then Vx = Vy - Vx.
        V = self.machine.V
        if V[vy] > V[vx]:
            V[0xF] = 1
        else:
            V[0xF] = 0
        V[vx] = (V[vy] - V[vx]) & 0xFF

    def _8xyE(self, vx, vy):
        # 8xyE - SHL Vx
        # VF is set to the most significant bit of Vx before the shift
        V = self.machine.V
        if V[vx] & 0x80:
            V[0xF] = 0x1
        else:
            V[0xF] = 0x0
        V[vx] = (V[vx] << 1) & 0xFF

    def _8_opcodes(self, opcode, vx, vy, n, kk, nnn):
        operation = self._8_operations[n]
        if operation is None:
            self.invalid_op(opcode)
        operation(vx, vy)

    def _9xy0(self, opcode, vx, vy, n, kk, nnn):
        # 9xy0 - SNE Vx, Vy
        # Skip next instruction if Vx != Vy
        if n != 0:
            self.invalid_op(opcode)
        if self.machine.V[vx] != self.machine.V[vy]:
            self.machine.PC += 2

    def _Annn(self, opcode, vx, vy, n, kk, nnn):
        # Annn - LD I, addr
        # The value of register I is set to nnn
        self.machine.I = nnn

    def _Bnnn(self, opcode, vx, vy, n, kk, nnn):
        # Bnnn - JP V0, addr
        # The program counter is set to nnn plus the value of V0
        self.machine.PC = nnn + self.machine.V[0]

    def _Cxkk(self, opcode, vx, vy, n, kk, nnn):
        # Cxkk - RND Vx, byte
        # Set Vx = random byte AND kk
        self.machine.V[vx] = self.rng.randint(0, 255) & kk

    def _Dxyn(self, opcode, vx, vy, n, kk, nnn):
        # Dxyn - DRW Vx, Vy, nibble
        # Sprites are clipped at the right and bottom edges rather than wrapped.
        m = self.machine
        x = m.V[vx]
        y = m.V[vy]
        if draw_sprite(m.screen, m.RAM, m.I, x, y, n):
            m.V[0xF] = 1
        else:
            m.V[0xF] = 0

    def _E_opcodes(self, opcode, vx, vy, n, kk, nnn):
        m = self.machine
        if kk == 0x9E:
            # Ex9E - SKP Vx
            # Skip next instruction if key with value of Vx is pressed
            if m.key_is_pressed(m.V[vx]):
                m.PC += 2
        elif kk == 0xA1:
            # ExA1 - SKNP Vx
            # Skip next instruction if key with value of Vx is NOT pressed
            if not m.key_is_pressed(m.V[vx]):
                m.PC += 2
        else:
            self.invalid_op(opcode)

    def _Fx07(self, vx):
        # Fx07 - LD Vx, DT
        # The value of the Delay Timer is placed into Vx.
        self.machine.V[vx] = self.machine.delay_register

    def _Fx0A(self, vx):
        # Fx0A - LD, Vx, Key
        # Wait for a key press, store the value of the key in Vx.
        # Rewind onto this instruction; press_key() finishes it.
        self.machine.blocking_on_fx0a = True
        self.machine.PC -= 2

    def _Fx15(self, vx):
        # Fx15 - LD DT, Vx
        # Set Delay Timer = Vx
        self.machine.delay_register = self.machine.V[vx]

    def _Fx18(self, vx):
        # Fx18 - LD ST, Vx
        # Set Sound Timer = Vx
        self.machine.sound_timer.set(self.machine.V[vx])

    def _Fx1E(self, vx):
        # Fx1E - Set I = I + Vx - do not set the overflow flag
        self.machine.I = (self.machine.I + self.machine.V[vx]) & 0xFFFF

    def _Fx29(self, vx):
        # Fx29 - LD F, Vx
        # Set I = location of sprite for digit Vx ("F" = Font)
        # each character is 5 bytes, with "0" starting at 0x00 in memory
        self.machine.I = FONT_GLYPH_SIZE * self.machine.V[vx]

    def _Fx33(self, vx):
        # Fx33 - LD B, Fx
        # Store binary coded decimal value of Vx in memory locations I, I+1, I+2
        m = self.machine
        self._check_memory_range(m.I, 3)
        val = m.V[vx]
        m.RAM[m.I] = val // 100
        m.RAM[m.I + 1] = (val % 100) // 10
        m.RAM[m.I + 2] = val % 10

    def _Fx55(self, vx):
        # Fx55 - LD[I], Vx
        # Store registers V0 through Vx in memory starting at location I.  I is left unchanged.
        m = self.machine
        self._check_memory_range(m.I, vx + 1)
        for i in range(vx + 1):
            m.RAM[m.I + i] = m.V[i]

    def _Fx65(self, vx):
        # Fx65 - LD Vx, [I]
        # Read values from memory starting at location I into registers V0 through Vx
        m = self.machine
        self._check_memory_range(m.I, vx + 1)
        for i in range(vx + 1):
            m.V[i] = m.RAM[m.I + i]

    def _F_opcodes(self, opcode, vx, vy, n, kk, nnn):
        if kk in self._F_operations:
            self._F_operations[kk](vx)
        else:
            self.invalid_op(opcode)
