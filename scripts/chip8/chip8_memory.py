# COSMAC VIP MEMORY MAP (4K system)
#
# +-----------------------------------------+ 0x0000
# | CHIP-8 language interpreter (512 bytes) |  glyphs + glyph address table live here
# +-----------------------------------------+ 0x0200
# | User program (3232 bytes)               |
# +-----------------------------------------+ 0x0EA0
# | CHIP-8 stack (48 bytes)                 |
# +-----------------------------------------+ 0x0ED0
# | CHIP-8 interpreter work area (48 bytes) |
# | 0x0EF0 - 0x0EFF contain V0-VF registers |
# +-----------------------------------------+ 0x0F00
# | Display refresh (256 bytes)             |
# +-----------------------------------------+ 0x1000
#
# Every piece of CHIP-8 visible state lives at a fixed offset inside the same
# byte array, so a dump of the memory is a complete snapshot of the machine.


from chip8_errors import EmptyProgramError, ProgramTooLargeError, RamOverflowError


# ******************** STATIC SECTION
C8_FONTS = [0xF0, 0x90, 0x90, 0x90, 0xF0,  # 0
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
            0xF0, 0x80, 0xF0, 0x80, 0x80]  # F
GLYPH_SIZE = 5

MEMORY_SIZE = 0x1000
MEMORY_START_ADDRESS = 0x000

# ********** INTERPRETER AREA
GLYPHS_START_ADDRESS = 0x000
GLYPH_TABLE_START_ADDRESS = GLYPHS_START_ADDRESS + len(C8_FONTS)     # 16 big-endian glyph addresses

# ********** PROGRAM
PROGRAM_START_ADDRESS = 0x200
STACK_START_ADDRESS = 0xEA0
PROGRAM_LAST_ADDRESS = STACK_START_ADDRESS - 1
MAX_PROGRAM_SIZE = STACK_START_ADDRESS - PROGRAM_START_ADDRESS

# ********** STACK
STACK_DEPTH = 12
STACK_SLOT_SIZE = 2
STACK_LAST_SLOT_ADDRESS = STACK_START_ADDRESS + STACK_DEPTH * STACK_SLOT_SIZE

# ********** INTERPRETER WORK AREA
INTERPRETER_WORK_AREA_START_ADDRESS = 0xED0
PROGRAM_COUNTER_ADDRESS = INTERPRETER_WORK_AREA_START_ADDRESS           # u16
I_ADDRESS = INTERPRETER_WORK_AREA_START_ADDRESS + 2                     # u16
STACK_POINTER_ADDRESS = INTERPRETER_WORK_AREA_START_ADDRESS + 4         # u16
DELAY_TIMER_ADDRESS = INTERPRETER_WORK_AREA_START_ADDRESS + 6           # u8
TONE_TIMER_ADDRESS = INTERPRETER_WORK_AREA_START_ADDRESS + 7            # u8
KEY_STATUS_ADDRESS = INTERPRETER_WORK_AREA_START_ADDRESS + 8            # u16, 0x00KK or NO_KEY_PRESSED
KEY_WAIT_STATE_ADDRESS = INTERPRETER_WORK_AREA_START_ADDRESS + 10       # u8
KEY_WAIT_REGISTER_ADDRESS = INTERPRETER_WORK_AREA_START_ADDRESS + 11    # u8
V_REGISTERS_START_ADDRESS = 0xEF0
V_REGISTERS_COUNT = 16
NO_KEY_PRESSED = 0xFFFF

# ********** DISPLAY REFRESH
DISPLAY_START_ADDRESS = 0xF00
DISPLAY_WIDTH_PIXELS = 64
DISPLAY_HEIGHT_PIXELS = 32
DISPLAY_WIDTH_BYTES = DISPLAY_WIDTH_PIXELS // 8
DISPLAY_SIZE = DISPLAY_WIDTH_BYTES * DISPLAY_HEIGHT_PIXELS


# ******************** MEMORY SECTION
class CosmacMemory:
    """
    flat 4K byte space of the COSMAC VIP
    only flat bounds are enforced here, which range is valid for which register is up to the interpreter
    """
    def __init__(self):
        self.inner = bytearray(MEMORY_SIZE)

    def __len__(self):
        return len(self.inner)

    def __getitem__(self, index):
        return self.inner[index]

    def __setitem__(self, key, value):
        self.inner[key] = value

    def load(self, data, offset):
        """copy data into memory starting at offset, raise RamOverflowError without touching memory if it doesn't fit"""
        if offset < 0 or offset + len(data) > MEMORY_SIZE:
            raise RamOverflowError(offset, len(data))
        self.inner[offset:offset+len(data)] = data

    def zero(self, start, stop):
        """zero fill [start, stop)"""
        if start < 0 or stop > MEMORY_SIZE or start > stop:
            raise RamOverflowError(start, stop - start)
        self.inner[start:stop] = bytes(stop - start)

    def load_program(self, data):
        if len(data) == 0:
            raise EmptyProgramError()
        if len(data) > MAX_PROGRAM_SIZE:
            raise ProgramTooLargeError(len(data))
        self.load(data, PROGRAM_START_ADDRESS)

    # raw big-endian primitives, callers are responsible for addr+1 being in range
    def read16(self, addr):
        return self.inner[addr] << 8 | self.inner[addr + 1]

    def write16(self, addr, value):
        self.inner[addr] = (value >> 8) & 0xFF
        self.inner[addr + 1] = value & 0xFF

    def registers(self):
        """writable view over V0-VF"""
        return memoryview(self.inner)[V_REGISTERS_START_ADDRESS:V_REGISTERS_START_ADDRESS+V_REGISTERS_COUNT]

    def display_buffer(self):
        """writable view over the 256 bytes of the display, 8 bytes per row, MSB is the leftmost pixel"""
        return memoryview(self.inner)[DISPLAY_START_ADDRESS:DISPLAY_START_ADDRESS+DISPLAY_SIZE]

    def hexdump(self, start, length=256):
        lines = []
        for offset in range(0, length, 16):
            addr = start + offset
            row = self.inner[addr:min(addr + 16, start + length, MEMORY_SIZE)]
            if not row:
                break
            lines.append(f"{addr:04X}  {row.hex(' ').upper()}")
        return "\n".join(lines)
