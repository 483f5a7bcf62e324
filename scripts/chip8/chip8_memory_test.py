import unittest

from chip8_errors import EmptyProgramError, ProgramTooLargeError, RamOverflowError
from chip8_memory import (
    CosmacMemory,
    MEMORY_SIZE, MEMORY_START_ADDRESS, MAX_PROGRAM_SIZE,
    PROGRAM_START_ADDRESS, PROGRAM_LAST_ADDRESS, STACK_START_ADDRESS,
    INTERPRETER_WORK_AREA_START_ADDRESS, V_REGISTERS_START_ADDRESS,
    DISPLAY_START_ADDRESS, DISPLAY_SIZE,
)


class TestMemoryMap(unittest.TestCase):
    def test_boundaries(self):
        self.assertEqual(MEMORY_SIZE, 4096)
        self.assertEqual(MEMORY_SIZE - DISPLAY_START_ADDRESS, 256)
        self.assertEqual(DISPLAY_START_ADDRESS - INTERPRETER_WORK_AREA_START_ADDRESS, 48)
        self.assertEqual(INTERPRETER_WORK_AREA_START_ADDRESS - STACK_START_ADDRESS, 48)
        self.assertEqual(DISPLAY_START_ADDRESS - V_REGISTERS_START_ADDRESS, 16)
        self.assertEqual(PROGRAM_START_ADDRESS - MEMORY_START_ADDRESS, 512)
        self.assertEqual(MAX_PROGRAM_SIZE, 3232)
        self.assertEqual(PROGRAM_LAST_ADDRESS, STACK_START_ADDRESS - 1)

    def test_created_zero_filled(self):
        self.assertEqual(bytes(CosmacMemory()[:]), bytes(MEMORY_SIZE))


class TestLoad(unittest.TestCase):
    def setUp(self):
        self.mem = CosmacMemory()

    def test_load(self):
        self.mem.load(b"\x01\x02\x03", 0x300)
        self.assertEqual(bytes(self.mem[0x300:0x303]), b"\x01\x02\x03")

    def test_load_up_to_the_last_byte(self):
        self.mem.load(b"\xAA\xBB", MEMORY_SIZE - 2)
        self.assertEqual(self.mem[MEMORY_SIZE - 1], 0xBB)

    def test_load_overflow_writes_nothing(self):
        with self.assertRaises(RamOverflowError):
            self.mem.load(b"\xFF" * 3, MEMORY_SIZE - 2)
        self.assertEqual(bytes(self.mem[:]), bytes(MEMORY_SIZE))
        self.assertEqual(len(self.mem), MEMORY_SIZE)

    def test_zero(self):
        self.mem.load(b"\xFF" * 16, 0x400)
        self.mem.zero(0x404, 0x408)
        self.assertEqual(bytes(self.mem[0x400:0x410]), b"\xFF" * 4 + bytes(4) + b"\xFF" * 8)

    def test_zero_overflow(self):
        self.mem.load(b"\xFF", MEMORY_SIZE - 1)
        with self.assertRaises(RamOverflowError):
            self.mem.zero(MEMORY_SIZE - 1, MEMORY_SIZE + 1)
        self.assertEqual(self.mem[MEMORY_SIZE - 1], 0xFF)


class TestLoadProgram(unittest.TestCase):
    def setUp(self):
        self.mem = CosmacMemory()

    def test_empty_program(self):
        with self.assertRaises(EmptyProgramError):
            self.mem.load_program(b"")

    def test_two_bytes_program(self):
        self.mem.load_program(b"\x12\x34")
        self.assertEqual(self.mem.read16(PROGRAM_START_ADDRESS), 0x1234)

    def test_max_size_program(self):
        self.mem.load_program(b"\x01" * MAX_PROGRAM_SIZE)
        self.assertEqual(self.mem[PROGRAM_LAST_ADDRESS], 0x01)
        self.assertEqual(self.mem[STACK_START_ADDRESS], 0x00)

    def test_program_too_large(self):
        with self.assertRaises(ProgramTooLargeError) as ctx:
            self.mem.load_program(b"\x01" * (MAX_PROGRAM_SIZE + 1))
        self.assertEqual(ctx.exception.size, MAX_PROGRAM_SIZE + 1)
        self.assertEqual(ctx.exception, ProgramTooLargeError(MAX_PROGRAM_SIZE + 1))
        self.assertEqual(bytes(self.mem[:]), bytes(MEMORY_SIZE))


class TestAccessors(unittest.TestCase):
    def setUp(self):
        self.mem = CosmacMemory()

    def test_write16_is_big_endian(self):
        self.mem.write16(0x300, 0xABCD)
        self.assertEqual(self.mem[0x300], 0xAB)
        self.assertEqual(self.mem[0x301], 0xCD)

    def test_read16_write16(self):
        for addr, value in [(0x000, 0x0001), (0x2FF, 0x8000), (0xED0, 0x0200), (MEMORY_SIZE - 2, 0xFFFF)]:
            self.mem.write16(addr, value)
            self.assertEqual(self.mem.read16(addr), value)

    def test_registers_view(self):
        v_regs = self.mem.registers()
        self.assertEqual(len(v_regs), 16)
        v_regs[0xF] = 0x42
        self.assertEqual(self.mem[V_REGISTERS_START_ADDRESS + 0xF], 0x42)
        self.mem[V_REGISTERS_START_ADDRESS] = 0x07
        self.assertEqual(v_regs[0], 0x07)

    def test_display_buffer_view(self):
        display = self.mem.display_buffer()
        self.assertEqual(len(display), DISPLAY_SIZE)
        display[255] = 0x81
        self.assertEqual(self.mem[MEMORY_SIZE - 1], 0x81)

    def test_hexdump(self):
        self.mem.load(bytes(range(16)), 0x200)
        self.assertEqual(self.mem.hexdump(0x200, 16), "0200  00 01 02 03 04 05 06 07 08 09 0A 0B 0C 0D 0E 0F")
        self.assertEqual(len(self.mem.hexdump(0xF00).splitlines()), 16)


if __name__ == "__main__":
    unittest.main()
