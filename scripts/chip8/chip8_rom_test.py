import os
import tempfile
import unittest

from chip8_errors import EmptyProgramError, ProgramTooLargeError
from chip8_memory import MAX_PROGRAM_SIZE
from chip8_rom import Rom


class TestRom(unittest.TestCase):
    def test_zero_bytes_rom(self):
        with self.assertRaises(EmptyProgramError):
            Rom.from_bytes("test_name", b"")

    def test_max_size_rom(self):
        rom = Rom.from_bytes("test_name", bytes(MAX_PROGRAM_SIZE))
        self.assertEqual(len(rom), MAX_PROGRAM_SIZE)

    def test_rom_too_large(self):
        with self.assertRaises(ProgramTooLargeError) as ctx:
            Rom.from_bytes("test_name", bytes(MAX_PROGRAM_SIZE + 1))
        self.assertEqual(ctx.exception.size, MAX_PROGRAM_SIZE + 1)

    def test_repr_shows_at_most_ten_bytes(self):
        self.assertEqual(repr(Rom.from_bytes("pong", bytes(range(20)))),
                         "pong: [0, 1, 2, 3, 4, 5, 6, 7, 8, 9]")
        self.assertEqual(repr(Rom.from_bytes("jump", b"\x12\x00")),
                         "jump: [18, 0]")

    def test_from_path(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = os.path.join(tmp, "maze.ch8")
            with open(path, mode='wb') as f:
                f.write(b"\xA2\x1E")
            rom = Rom.from_path(path)
        self.assertEqual(rom.name, "maze.ch8")
        self.assertEqual(rom.data, b"\xA2\x1E")

    def test_from_missing_path(self):
        with self.assertRaises(FileNotFoundError):
            Rom.from_path("/nonexistent/rom.ch8")


if __name__ == "__main__":
    unittest.main()
