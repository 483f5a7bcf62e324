from pathlib import Path

from chip8_errors import EmptyProgramError, ProgramTooLargeError
from chip8_memory import MAX_PROGRAM_SIZE


# ********** A CHIP-8 PROGRAM IMAGE, VALIDATED AGAINST THE PROGRAM REGION OF THE COSMAC MEMORY MAP
class Rom:
    def __init__(self, name, data):
        self.name = name
        self.data = bytes(data)

    @classmethod
    def from_bytes(cls, name, data):
        if len(data) == 0:
            raise EmptyProgramError()
        if len(data) > MAX_PROGRAM_SIZE:
            raise ProgramTooLargeError(len(data))
        return cls(name, data)

    @classmethod
    def from_path(cls, path):
        """load ROM file from user specified path, the ROM is named after the file"""
        path = Path(path)
        return cls.from_bytes(path.name, path.read_bytes())

    def __len__(self):
        return len(self.data)

    def __repr__(self):
        """the rom name and up to the first 10 bytes of the rom"""
        return f"{self.name}: {list(self.data[:10])}"
