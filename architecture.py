from decoder import decode
from exceptions import (
    Chip8Exception,
    InvalidKeyException,
    LoadTooLargeException,
    MachineFaultException,
    StackOverflowException,
    StackUnderflowException,
)
from fonts import FONTSET, GLYPH_HEIGHT

import logging
from random import randint

logger = logging.getLogger(__name__)


def random_byte():
    return randint(0, 255)


class Architecture:
    # Constants:
    MAX_MEMORY = 4096
    PROGRAM_COUNTER_START = 0x200
    FONT_START = 0x000
    STACK_SIZE = 16
    NUM_REGISTERS = 16
    NUM_KEYS = 16
    FLAG_REGISTER = 0xF
    SCREEN_WIDTH = 64
    SCREEN_HEIGHT = 32

    def __init__(self, random_source=None):

        # The CHIP-8 had 4k (4096 bytes) of memory, the first 80 bytes
        # hold the built-in glyphs and programs are loaded at 0x200
        self.memory = bytearray(self.MAX_MEMORY)

        # The CHIP-8 had a series of registers as follows:
        #
        #   1 x 16-bit index register        (I)
        #   1 x 16-bit program counter       (PC)
        #   1 x stack pointer, 0 - 16        (SP)
        #   1 x 8-bit delay timer            (DT)
        #   1 x 8-bit sound timer            (ST)
        #
        #   16 x 8-bit general registers     (V0 - VF)
        #
        # VF doubles as the carry / borrow / collision flag
        self.GeneralRegisters = bytearray(self.NUM_REGISTERS)

        self.CpuRegisters = {
            'I' : 0,
            'SP': 0,
            'PC': 0,
        }

        # Return addresses, SP is the number of entries in use
        self.Stack = [0] * self.STACK_SIZE

        self.Timers = {
            'DT': 0,
            'ST': 0,
        }

        # Only written by the front end through SET_KEY
        self.Keys = [False] * self.NUM_KEYS

        # 64 x 32 pixels, row-major, True = lit
        self.Framebuffer = [False] * (self.SCREEN_WIDTH * self.SCREEN_HEIGHT)

        # Callable returning a uniform byte, swapped out by tests for a fixed sequence
        self.random_source = random_source or random_byte

        # Each name produced by the decoder maps to the method executing it
        self.OperationLookupTable = {
            'NOP': self.NOP,                        # 0000 - NOP
            'CLS': self.CLS,                        # 00E0 - CLS                (CLEAR THE DISPLAY)
            'RET': self.RETURN,                     # 00EE - RET                (RETURN FROM SUBROUTINE)
            'JP': self.JMP_ADDR,                    # 1NNN - JUMP NNN           (JUMP TO ADDRESS)
            'CALL': self.JMP_SBR,                   # 2NNN - CALL NNN           (JUMP TO SUBROUTINE)
            'SE_VAL': self.SKIP_REG_E_VAL,          # 3XKK - SKE  VX, KK        (SKIP IF VX == KK)
            'SNE_VAL': self.SKIP_REG_NE_VAL,        # 4XKK - SKNE VX, KK        (SKIP IF VX != KK)
            'SE_REG': self.SKIP_REG_E_REG,          # 5XY0 - SKE  VX, VY        (SKIP IF VX == VY)
            'LD_VAL': self.LD_VAL_REG,              # 6XKK - LOAD VX, KK        (LOAD KK INTO VX)
            'ADD_VAL': self.ADD_VAL_REG,            # 7XKK - ADD  VX, KK        (ADD KK TO VX)
            'LD_REG': self.LD_REG_REG,              # 8XY0 - LOAD VX, VY        (LOAD VY INTO VX)
            'OR': self.OR,                          # 8XY1 - OR   VX, VY
            'AND': self.AND,                        # 8XY2 - AND  VX, VY
            'XOR': self.XOR,                        # 8XY3 - XOR  VX, VY
            'ADD_REG': self.ADD_REG_REG,            # 8XY4 - ADD  VX, VY        (VF = CARRY)
            'SUB': self.SUB_REG_REG,                # 8XY5 - SUB  VX, VY        (VF = NOT BORROW)
            'SHR': self.R_SHFT_REG,                 # 8XY6 - SHR  VX            (VF = LSB)
            'SUBN': self.SUBN_REG_REG,              # 8XY7 - SUBN VX, VY        (VF = NOT BORROW)
            'SHL': self.L_SHFT_REG,                 # 8XYE - SHL  VX            (VF = MSB)
            'SNE_REG': self.SKIP_REG_NE_REG,        # 9XY0 - SKNE VX, VY        (SKIP IF VX != VY)
            'LD_I': self.LD_I_VAL,                  # ANNN - LOAD I, NNN
            'JP_V0': self.JMP_V0_VAL,               # BNNN - JUMP NNN + V0
            'RND': self.RND_REG,                    # CXKK - RAND VX, KK
            'DRW': self.DRAW,                       # DXYN - DRAW VX, VY, N
            'SKP': self.SKIP_KEY_PRESSED,           # EX9E - SKPR VX
            'SKNP': self.SKIP_KEY_NOT_PRESSED,      # EXA1 - SKUP VX
            'LD_DT': self.LD_DT_REG,                # FX07 - LOAD VX, DT
            'WAIT_KEY': self.WAIT_KEYPRESS,         # FX0A - KEYD VX
            'SET_DT': self.LD_REG_DT,               # FX15 - LOAD DT, VX
            'SET_ST': self.LD_REG_ST,               # FX18 - LOAD ST, VX
            'ADD_I': self.ADD_REG_I,                # FX1E - ADD  I, VX
            'LD_FONT': self.LD_I_REG,               # FX29 - LOAD I, GLYPH VX
            'BCD': self.STR_BCD_MEM,                # FX33 - BCD  VX
            'STORE': self.STR_REG_MEM,              # FX55 - STOR [I], VX
            'RESTORE': self.LD_REG_MEM,             # FX65 - LOAD VX, [I]
        }

        # The last instruction word executed
        self.CurrentOperand = 0

        self.RESET()

    def RESET(self):
        """
        Returns every part of the machine to its power-on state and
        re-seeds the glyph table
        """
        self.memory[:] = bytes(self.MAX_MEMORY)
        self.memory[self.FONT_START:self.FONT_START + len(FONTSET)] = FONTSET

        for i in range(self.NUM_REGISTERS):
            self.GeneralRegisters[i] = 0

        self.CpuRegisters['PC'] = self.PROGRAM_COUNTER_START
        self.CpuRegisters['SP'] = 0
        self.CpuRegisters['I'] = 0

        for i in range(self.STACK_SIZE):
            self.Stack[i] = 0

        self.Timers['DT'] = 0
        self.Timers['ST'] = 0

        for i in range(self.NUM_KEYS):
            self.Keys[i] = False

        self.CLS()
        self.CurrentOperand = 0

        logger.debug("Machine reset, PC = %03X", self.CpuRegisters['PC'])

    def LOAD(self, data):
        """
        Copy a program image into memory at PROGRAM_COUNTER_START.

        The image is raw instruction bytes with no header. Memory is left
        untouched if the image does not fit or is not a byte sequence.
        """
        # bytes(5) would build five zero bytes instead of rejecting the int
        if isinstance(data, int):
            raise TypeError('Program must be a byte sequence, got {!r}'.format(data))

        program = bytes(data)
        capacity = self.MAX_MEMORY - self.PROGRAM_COUNTER_START

        if len(program) > capacity:
            raise LoadTooLargeException(len(program), capacity)

        start = self.PROGRAM_COUNTER_START
        self.memory[start:start + len(program)] = program

        logger.debug("Loaded %d bytes at %03X", len(program), start)

    def FETCH(self):
        """
        Read the big-endian word at [PC] and advance PC by 2
        """
        address = self.CpuRegisters['PC']
        self.CHECK_MEMORY_RANGE(address, 2)

        # Getting the byte at index [PC]
        # Shifting it 8 bits to the left to make it most significant
        # Adding the next byte to it
        word = self.memory[address] << 8
        word |= self.memory[address + 1]
        self.CpuRegisters['PC'] += 2

        return word

    def EXECUTE(self, OPERAND=None):
        """
        Execute the instruction given in OPERAND, or fetch the one at [PC]
        when no operand is given. Returns the word that was executed.
        """
        if OPERAND is None:
            OPERAND = self.FETCH()

        self.CurrentOperand = OPERAND
        instruction = decode(OPERAND)

        if logger.isEnabledFor(logging.DEBUG):
            logger.debug("%03X | %04X %s", self.CpuRegisters['PC'] - 2, OPERAND, instruction.name)

        # Run the correct operation
        self.OperationLookupTable[instruction.name](instruction)

        return OPERAND

    def STEP(self):
        """
        One fetch-decode-execute cycle.

        A failing instruction leaves PC pointing at it, so the caller can
        report where execution stopped.
        """
        address = self.CpuRegisters['PC']
        try:
            return self.EXECUTE()
        except Chip8Exception:
            self.CpuRegisters['PC'] = address
            raise

    def DECREMENT_TIMERS(self):
        """
        Decrement both the sound and delay timer by one tick.

        Returns True when the sound timer ran out on this tick, that is
        when it went from 1 to 0, so the host can sound the buzzer.
        """
        if self.Timers['DT'] > 0:
            self.Timers['DT'] -= 1

        emitted = False
        if self.Timers['ST'] > 0:
            emitted = self.Timers['ST'] == 1
            self.Timers['ST'] -= 1

        return emitted

    def SET_KEY(self, index, pressed):
        if isinstance(index, bool) or not isinstance(index, int) or not 0 <= index < self.NUM_KEYS:
            raise InvalidKeyException(index)

        self.Keys[index] = bool(pressed)

    def GET_FRAMEBUFFER(self):
        """
        Read-only copy of the 64 x 32 display, row-major
        """
        return tuple(self.Framebuffer)

    def CHECK_MEMORY_RANGE(self, address, length):
        """
        Raise MachineFaultException unless memory[address:address + length] is in bounds
        """
        if address < 0 or address + length > self.MAX_MEMORY:
            raise MachineFaultException(
                'Memory access of {} bytes at {:04X} is out of range'.format(length, address), address)

    def PUSH(self, address):
        if self.CpuRegisters['SP'] >= self.STACK_SIZE:
            raise StackOverflowException(self.CpuRegisters['PC'] - 2)

        self.Stack[self.CpuRegisters['SP']] = address
        self.CpuRegisters['SP'] += 1

    def POP(self):
        if self.CpuRegisters['SP'] == 0:
            raise StackUnderflowException(self.CpuRegisters['PC'] - 2)

        self.CpuRegisters['SP'] -= 1
        return self.Stack[self.CpuRegisters['SP']]

    def SKIP(self):
        self.CpuRegisters['PC'] += 2

    def NOP(self, instruction=None):
        pass

    def CLS(self, instruction=None):
        """
        Called by 00E0, sets every pixel off
        """
        for i in range(len(self.Framebuffer)):
            self.Framebuffer[i] = False

    def RETURN(self, instruction):
        """
        Called by 00EE instruction

        Return from subroutine. Pop the last return address off of the
        stack and set the program counter to it.
        """
        self.CpuRegisters['PC'] = self.POP()

    def JMP_ADDR(self, instruction):
        """
        Jump instruction to address

        0x1NNN = JUMP TO NNN
        """
        self.CpuRegisters['PC'] = instruction.nnn

    def JMP_SBR(self, instruction):
        """
        Jump instruction to subroutine. Save the current program counter on the stack,
        then jump to the address in the last 3 nibbles

        0x2NNN - CALL NNN Subroutine
        """
        self.PUSH(self.CpuRegisters['PC'])
        self.CpuRegisters['PC'] = instruction.nnn

    def SKIP_REG_E_VAL(self, instruction):
        """
        Triggered by 0x3XKK = SKIP IF REGISTER VX == KK
        """
        if self.GeneralRegisters[instruction.x] == instruction.kk:
            self.SKIP()

    def SKIP_REG_NE_VAL(self, instruction):
        """
        Triggered by 0x4XKK = SKIP IF REGISTER VX != KK
        """
        if self.GeneralRegisters[instruction.x] != instruction.kk:
            self.SKIP()

    def SKIP_REG_E_REG(self, instruction):
        """
        Triggered by 0x5XY0 = SKIP IF REGISTER VX == VY
        """
        if self.GeneralRegisters[instruction.x] == self.GeneralRegisters[instruction.y]:
            self.SKIP()

    def SKIP_REG_NE_REG(self, instruction):
        """
        Triggered by 0x9XY0 = SKIP IF REGISTER VX != VY
        """
        if self.GeneralRegisters[instruction.x] != self.GeneralRegisters[instruction.y]:
            self.SKIP()

    def LD_VAL_REG(self, instruction):
        """
        Triggered by 0x6XKK = LOAD KK into VX
        """
        self.GeneralRegisters[instruction.x] = instruction.kk

    def ADD_VAL_REG(self, instruction):
        """
        Triggered by 0x7XKK = VX = [VX] + KK
        Wraps around at 256 and leaves VF alone
        """
        added_value = self.GeneralRegisters[instruction.x] + instruction.kk
        self.GeneralRegisters[instruction.x] = added_value & 0xFF

    # The 8XYN family below always writes VF after VX, so when VF is
    # the destination the flag is what remains in it

    def LD_REG_REG(self, instruction):
        """
        Triggered by 0x8XY0 = VX = [VY]
        """
        self.GeneralRegisters[instruction.x] = self.GeneralRegisters[instruction.y]

    def OR(self, instruction):
        """
        Triggered by 0x8XY1 = VX = VX | VY
        """
        self.GeneralRegisters[instruction.x] |= self.GeneralRegisters[instruction.y]

    def AND(self, instruction):
        """
        Triggered by 0x8XY2 = VX = VX & VY
        """
        self.GeneralRegisters[instruction.x] &= self.GeneralRegisters[instruction.y]

    def XOR(self, instruction):
        """
        Triggered by 0x8XY3 = VX = VX ^ VY
        """
        self.GeneralRegisters[instruction.x] ^= self.GeneralRegisters[instruction.y]

    def ADD_REG_REG(self, instruction):
        """
        Triggered by 0x8XY4 = VX = VX + [VY]
        If carry is generated, VF is set to 1, otherwise 0
        """
        added_value = self.GeneralRegisters[instruction.x] + self.GeneralRegisters[instruction.y]

        self.GeneralRegisters[instruction.x] = added_value & 0xFF
        self.GeneralRegisters[self.FLAG_REGISTER] = 1 if added_value > 0xFF else 0

    def SUB_REG_REG(self, instruction):
        """
        Triggered by 0x8XY5 = VX = [VX] - [VY]

        VF is set to 1 if a borrow is NOT generated, 0 if the subtraction underflowed
        """
        vx = self.GeneralRegisters[instruction.x]
        vy = self.GeneralRegisters[instruction.y]

        self.GeneralRegisters[instruction.x] = (vx - vy) & 0xFF
        self.GeneralRegisters[self.FLAG_REGISTER] = 0 if vx < vy else 1

    def SUBN_REG_REG(self, instruction):
        """
        Triggered by 0x8XY7 = VX = [VY] - [VX]

        VF is set to 1 if a borrow is NOT generated, 0 if the subtraction underflowed
        """
        vx = self.GeneralRegisters[instruction.x]
        vy = self.GeneralRegisters[instruction.y]

        self.GeneralRegisters[instruction.x] = (vy - vx) & 0xFF
        self.GeneralRegisters[self.FLAG_REGISTER] = 0 if vy < vx else 1

    def R_SHFT_REG(self, instruction):
        """
        Triggered by 0x8XY6 = VX = VX >> 1 and VF = bit 0 of VX before the shift
        """
        value = self.GeneralRegisters[instruction.x]

        self.GeneralRegisters[instruction.x] = value >> 1
        self.GeneralRegisters[self.FLAG_REGISTER] = value & 0x1

    def L_SHFT_REG(self, instruction):
        """
        Triggered by 0x8XYE = VX = VX << 1 and VF = bit 7 of VX before the shift
        """
        value = self.GeneralRegisters[instruction.x]

        self.GeneralRegisters[instruction.x] = (value << 1) & 0xFF
        self.GeneralRegisters[self.FLAG_REGISTER] = (value & 0x80) >> 7

    def LD_I_VAL(self, instruction):
        """
        Triggered by 0xANNN = LOAD NNN into I
        """
        self.CpuRegisters['I'] = instruction.nnn

    def JMP_V0_VAL(self, instruction):
        """
        Triggered by 0xBNNN = JUMP to NNN + [V0]
        """
        self.CpuRegisters['PC'] = (instruction.nnn + self.GeneralRegisters[0x0]) & 0xFFFF

    def RND_REG(self, instruction):
        """
        Triggered by 0xCXKK = Generate a random byte, AND it with KK and save in VX
        """
        value = self.random_source()
        if isinstance(value, bool) or not isinstance(value, int) or not 0 <= value <= 0xFF:
            raise MachineFaultException('Random source returned {!r}, expected a byte'.format(value))

        self.GeneralRegisters[instruction.x] = value & instruction.kk

    def DRAW(self, instruction):
        """
        Triggered by DXYN - DRAW VX, VY, N

        Draws the N byte sprite stored at the index register ([I]) with its
        top left corner at x = [VX], y = [VY].

        The drawing works by XORing the individual pixels and wrapping if we go
        off the screen. N is the height of the sprite and the width is
        hardcoded to be 8 pixels, the most significant bit being the leftmost.

        Say the memory at [I] looks like this:

        self.memory[I + 0]:     1 1 1 1 0 0 0 0
        self.memory[I + 1]:     1 0 0 0 0 0 0 0
        self.memory[I + 2]:     1 1 1 1 0 0 0 0
        self.memory[I + 3]:     1 0 0 0 0 0 0 0
        self.memory[I + 4]:     1 1 1 1 0 0 0 0

        then N = 5 draws an E. If any lit pixel is turned off VF is set to 1,
        otherwise 0.
        """
        height = instruction.n
        address = self.CpuRegisters['I']

        # Zero rows reads no memory, so I may point anywhere
        if height:
            self.CHECK_MEMORY_RANGE(address, height)

        x = self.GeneralRegisters[instruction.x]
        y = self.GeneralRegisters[instruction.y]

        collision = False
        for y_layer in range(height):

            row = self.memory[address + y_layer]
            y_coordinate = (y + y_layer) % self.SCREEN_HEIGHT

            for x_layer in range(8):

                if not row & (0x80 >> x_layer):
                    continue

                x_coordinate = (x + x_layer) % self.SCREEN_WIDTH
                pixel = y_coordinate * self.SCREEN_WIDTH + x_coordinate

                collision |= self.Framebuffer[pixel]
                self.Framebuffer[pixel] = not self.Framebuffer[pixel]

        self.GeneralRegisters[self.FLAG_REGISTER] = 1 if collision else 0

    def SKIP_KEY_PRESSED(self, instruction):
        """
        Triggered by 0xEX9E = SKIP IF THE KEY IN VX IS PRESSED
        """
        if self.READ_KEY(instruction.x):
            self.SKIP()

    def SKIP_KEY_NOT_PRESSED(self, instruction):
        """
        Triggered by 0xEXA1 = SKIP IF THE KEY IN VX IS NOT PRESSED
        """
        if not self.READ_KEY(instruction.x):
            self.SKIP()

    def READ_KEY(self, register):
        key = self.GeneralRegisters[register]
        if key >= self.NUM_KEYS:
            raise MachineFaultException('V{:X} holds {:02X}, not a key index'.format(register, key))

        return self.Keys[key]

    def LD_DT_REG(self, instruction):
        """
        Triggered by 0xFX07 = LOAD DT INTO VX
        """
        self.GeneralRegisters[instruction.x] = self.Timers['DT']

    def WAIT_KEYPRESS(self, instruction):
        """
        Triggered by 0xFX0A = WAIT FOR KEYPRESS, STORE KEYPRESS INTO VX

        Never blocks: with no key down PC is rewound so this instruction
        is fetched again on the next step.
        """
        for keyval, pressed in enumerate(self.Keys):
            if pressed:
                self.GeneralRegisters[instruction.x] = keyval
                return

        self.CpuRegisters['PC'] -= 2

    def LD_REG_DT(self, instruction):
        """
        Triggered by 0xFX15 = LOAD VX INTO DT
        """
        self.Timers['DT'] = self.GeneralRegisters[instruction.x]

    def LD_REG_ST(self, instruction):
        """
        Triggered by 0xFX18 = LOAD VX INTO ST
        """
        self.Timers['ST'] = self.GeneralRegisters[instruction.x]

    def ADD_REG_I(self, instruction):
        """
        Triggered by 0xFX1E = I = [VX] + [I], wrapping at 16 bits
        """
        self.CpuRegisters['I'] = (self.CpuRegisters['I'] + self.GeneralRegisters[instruction.x]) & 0xFFFF

    def LD_I_REG(self, instruction):
        """
        Triggered by 0xFX29 = point I at the glyph for the digit in VX
        All glyphs are 5 bytes long, so the location of the glyph is digit * 5
        """
        self.CpuRegisters['I'] = self.FONT_START + self.GeneralRegisters[instruction.x] * GLYPH_HEIGHT

    def STR_BCD_MEM(self, instruction):
        """
        Triggered by 0xFX33 = Take the value in VX and place it as follows into memory:

            hundreds = self.memory[I]
            tens     = self.memory[I + 1]
            ones     = self.memory[I + 2]

        """
        address = self.CpuRegisters['I']
        self.CHECK_MEMORY_RANGE(address, 3)

        value = self.GeneralRegisters[instruction.x]

        self.memory[address] = value // 100
        self.memory[address + 1] = (value // 10) % 10
        self.memory[address + 2] = value % 10

    def STR_REG_MEM(self, instruction):
        """
        Triggered by 0xFX55 = STORE V0-VX INTO MEMORY AT [I]
        """
        address = self.CpuRegisters['I']
        self.CHECK_MEMORY_RANGE(address, instruction.x + 1)

        for i in range(instruction.x + 1):
            self.memory[address + i] = self.GeneralRegisters[i]

    def LD_REG_MEM(self, instruction):
        """
        Triggered by 0xFX65 = LOAD V0-VX FROM MEMORY AT [I]
        """
        address = self.CpuRegisters['I']
        self.CHECK_MEMORY_RANGE(address, instruction.x + 1)

        for i in range(instruction.x + 1):
            self.GeneralRegisters[i] = self.memory[address + i]
