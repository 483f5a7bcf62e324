# ********** LOAD ERRORS
# recoverable: nothing has been written to memory when one of these is raised
class Chip8Error(Exception):
    pass

class LoadError(Chip8Error):
    pass

class EmptyProgramError(LoadError):
    def __init__(self):
        super().__init__("CHIP-8 program is empty!")

class ProgramTooLargeError(LoadError):
    def __init__(self, size):
        self.size = size
        super().__init__(f"CHIP-8 program with size {size} bytes is too large!")

    def __eq__(self, other):
        return isinstance(other, ProgramTooLargeError) and other.size == self.size

    __hash__ = Chip8Error.__hash__

class RamOverflowError(LoadError):
    def __init__(self, offset, length):
        self.offset, self.length = offset, length
        super().__init__(f"Writing {length} bytes at 0x{offset:04x} would go beyond the end of RAM")


# ********** FATAL ERRORS
# the interpreter state can't be trusted anymore once one of these is raised
class FatalError(Chip8Error):
    pass

class UnknownInstructionError(FatalError):
    def __init__(self, instruction):
        self.instruction = instruction
        super().__init__(f"Unknown instruction 0x{instruction:04x}")

class MachineSubroutineError(FatalError):
    def __init__(self, instruction):
        self.instruction = instruction
        super().__init__(f"Machine language subroutine 0x{instruction:04x} can't be executed")

class ProgramCounterOutOfRangeError(FatalError):
    def __init__(self, address):
        self.address = address
        super().__init__(f"Attempt to set program counter to 0x{address:04x} which is outside of CHIP-8 program address range")

class IndexOutOfRangeError(FatalError):
    def __init__(self, address):
        self.address = address
        super().__init__(f"Attempt to set I to 0x{address:04x} which is outside of normal operating range")

class StackUnderflowError(FatalError):
    def __init__(self):
        super().__init__("Cannot return when not in a subroutine. CHIP-8 subroutine stack is empty!")

class StackOverflowError(FatalError):
    def __init__(self):
        super().__init__("CHIP-8 stack overflow! The COSMAC VIP only allows 12 levels of subroutine nesting")
