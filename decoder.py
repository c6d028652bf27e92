from collections import namedtuple

from exceptions import UnknownOpCodeException


# A decoded instruction word. Every field is filled in for every word,
# the operation named by `name` decides which of them it actually uses:
#
#   x   - register index held in the second nibble     (_X__)
#   y   - register index held in the third nibble      (__Y_)
#   n   - literal nibble held in the fourth nibble     (___N)
#   kk  - literal byte held in the low byte            (__KK)
#   nnn - 12-bit address held in the low three nibbles (_NNN)
Instruction = namedtuple('Instruction', ['name', 'word', 'x', 'y', 'n', 'kk', 'nnn'])


# Families where the leading nibble alone picks the operation
FAMILY_LOOKUP = {
    0x1: 'JP',           # 1NNN - JUMP NNN
    0x2: 'CALL',         # 2NNN - CALL NNN
    0x3: 'SE_VAL',       # 3XKK - SKIP IF VX == KK
    0x4: 'SNE_VAL',      # 4XKK - SKIP IF VX != KK
    0x6: 'LD_VAL',       # 6XKK - LOAD KK INTO VX
    0x7: 'ADD_VAL',      # 7XKK - ADD KK TO VX (NO CARRY)
    0xA: 'LD_I',         # ANNN - LOAD NNN INTO I
    0xB: 'JP_V0',        # BNNN - JUMP TO NNN + V0
    0xC: 'RND',          # CXKK - LOAD RANDOM BYTE AND KK INTO VX
    0xD: 'DRW',          # DXYN - DRAW N ROWS FROM [I] AT VX, VY
}

# 0x00KK - system instructions, keyed by the low byte (high byte must be 0x00)
SYSTEM_LOOKUP = {
    0x00: 'NOP',         # 0000 - DO NOTHING
    0xE0: 'CLS',         # 00E0 - CLEAR THE DISPLAY
    0xEE: 'RET',         # 00EE - RETURN FROM SUBROUTINE
}

# 0x5XY0 / 0x9XY0 - register comparisons, the low nibble must be 0
REGISTER_SKIP_LOOKUP = {
    0x5: 'SE_REG',       # 5XY0 - SKIP IF VX == VY
    0x9: 'SNE_REG',      # 9XY0 - SKIP IF VX != VY
}

# 0x8XYN - logical and arithmetic instructions, keyed by the low nibble
LOGICAL_LOOKUP = {
    0x0: 'LD_REG',       # 8XY0 - VX = VY
    0x1: 'OR',           # 8XY1 - VX = VX | VY
    0x2: 'AND',          # 8XY2 - VX = VX & VY
    0x3: 'XOR',          # 8XY3 - VX = VX ^ VY
    0x4: 'ADD_REG',      # 8XY4 - VX = VX + VY, VF = CARRY
    0x5: 'SUB',          # 8XY5 - VX = VX - VY, VF = NOT BORROW
    0x6: 'SHR',          # 8XY6 - VX = VX >> 1, VF = BIT SHIFTED OUT
    0x7: 'SUBN',         # 8XY7 - VX = VY - VX, VF = NOT BORROW
    0xE: 'SHL',          # 8XYE - VX = VX << 1, VF = BIT SHIFTED OUT
}

# 0xEXKK - keyboard instructions, keyed by the low byte
KEYBOARD_LOOKUP = {
    0x9E: 'SKP',         # EX9E - SKIP IF KEY VX IS PRESSED
    0xA1: 'SKNP',        # EXA1 - SKIP IF KEY VX IS NOT PRESSED
}

# 0xFXKK - timer, index and memory instructions, keyed by the low byte
MISC_LOOKUP = {
    0x07: 'LD_DT',       # FX07 - VX = DT
    0x0A: 'WAIT_KEY',    # FX0A - WAIT FOR A KEYPRESS, STORE IT IN VX
    0x15: 'SET_DT',      # FX15 - DT = VX
    0x18: 'SET_ST',      # FX18 - ST = VX
    0x1E: 'ADD_I',       # FX1E - I = I + VX
    0x29: 'LD_FONT',     # FX29 - I = ADDRESS OF GLYPH VX
    0x33: 'BCD',         # FX33 - STORE DECIMAL DIGITS OF VX AT [I]
    0x55: 'STORE',       # FX55 - STORE V0 - VX AT [I]
    0x65: 'RESTORE',     # FX65 - LOAD V0 - VX FROM [I]
}

# Every operation name the decoder can produce
OPERATIONS = frozenset(
    list(FAMILY_LOOKUP.values()) + list(SYSTEM_LOOKUP.values())
    + list(REGISTER_SKIP_LOOKUP.values()) + list(LOGICAL_LOOKUP.values())
    + list(KEYBOARD_LOOKUP.values()) + list(MISC_LOOKUP.values())
)


def split_nibbles(word):
    """
    Split a 16-bit instruction word into its four nibbles, most significant first
    """
    return (word & 0xF000) >> 12, (word & 0x0F00) >> 8, (word & 0x00F0) >> 4, word & 0x000F


def lookup_name(word):
    family, x, _, n = split_nibbles(word)
    low_byte = word & 0x00FF

    if family in FAMILY_LOOKUP:
        return FAMILY_LOOKUP[family]

    if family == 0x0:
        # 0NNN machine code routines are not part of the interpreter
        if x == 0:
            return SYSTEM_LOOKUP.get(low_byte)
        return None

    if family in REGISTER_SKIP_LOOKUP:
        return REGISTER_SKIP_LOOKUP[family] if n == 0 else None

    if family == 0x8:
        return LOGICAL_LOOKUP.get(n)

    if family == 0xE:
        return KEYBOARD_LOOKUP.get(low_byte)

    return MISC_LOOKUP.get(low_byte)


def decode(word):
    """
    Decode a 16-bit instruction word into an Instruction.

    Matching is exact on whichever nibbles are significant for the
    operation, so 0x00E1 or 0x5121 are rejected rather than coerced.
    Raises UnknownOpCodeException for a word that matches no operation.
    """
    if not 0 <= word <= 0xFFFF:
        raise UnknownOpCodeException(word)

    name = lookup_name(word)
    if name is None:
        raise UnknownOpCodeException(word)

    _, x, y, n = split_nibbles(word)
    return Instruction(name, word, x, y, n, word & 0x00FF, word & 0x0FFF)
