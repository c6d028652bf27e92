
class Chip8Exception(Exception):
    """
    Base class for every error the CHIP-8 core raises
    """


class UnknownOpCodeException(Chip8Exception):
    """
    Raised when an instruction word matches no known opcode pattern
    """

    def __init__(self, opcode):
        self.opcode = opcode
        super().__init__('Unknown op-code: {:04X}'.format(opcode))


class LoadTooLargeException(Chip8Exception):
    """
    Raised when a program does not fit between the start address and the end of memory
    """

    def __init__(self, length, capacity):
        self.length = length
        self.capacity = capacity
        super().__init__('Program of {} bytes exceeds the {} bytes available'.format(length, capacity))


class StackUnderflowException(Chip8Exception):
    """
    Raised when returning from a subroutine with an empty call stack
    """

    def __init__(self, address):
        self.address = address
        super().__init__('Return with an empty call stack at {:03X}'.format(address))


class StackOverflowException(Chip8Exception):
    """
    Raised when calling a subroutine with a full call stack
    """

    def __init__(self, address):
        self.address = address
        super().__init__('Call with a full call stack at {:03X}'.format(address))


class InvalidKeyException(Chip8Exception):

    def __init__(self, index):
        self.index = index
        super().__init__('Key index out of range: {!r}'.format(index))


class MachineFaultException(Chip8Exception):
    """
    Raised when an instruction would touch memory, a key or a register
    outside of the machine's bounds
    """

    def __init__(self, message, address=None):
        self.address = address
        super().__init__(message)
