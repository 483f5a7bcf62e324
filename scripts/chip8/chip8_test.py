import os
import unittest

os.environ.setdefault("SDL_AUDIODRIVER", "dummy")   # no sound card needed to build a tone
import pygame

from chip8 import DummyPeripherals, Keypad, SquareTone, TONE_FREQ_HZ, run, run_or_exit
from chip8_interpreter import Chip8Interpreter
from chip8_memory import CosmacMemory


class FakeClock:
    def __init__(self):
        self.ticks = []

    def tick(self, framerate):
        self.ticks.append(framerate)
        return 0

    def now(self):
        return 0


class RecordingTone(DummyPeripherals):
    def __init__(self):
        self.on = False
        self.events = []

    def start_tone(self):
        self.on = True
        self.events.append("start")

    def stop_tone(self):
        self.on = False
        self.events.append("stop")

    def is_tone_on(self):
        return self.on


class TestKeypad(unittest.TestCase):
    def setUp(self):
        self.keypad = Keypad()

    def press(self, key):
        self.keypad.handle_event(pygame.event.Event(pygame.KEYDOWN, key=key))

    def release(self, key):
        self.keypad.handle_event(pygame.event.Event(pygame.KEYUP, key=key))

    def test_no_key(self):
        self.assertIsNone(self.keypad.get_current_pressed_key())

    def test_last_held_key_wins(self):
        self.press(pygame.K_a)
        self.press(pygame.K_3)
        self.assertEqual(self.keypad.get_current_pressed_key(), 0x3)
        self.release(pygame.K_3)
        self.assertEqual(self.keypad.get_current_pressed_key(), 0xA)
        self.release(pygame.K_a)
        self.assertIsNone(self.keypad.get_current_pressed_key())

    def test_unmapped_keys_are_ignored(self):
        self.press(pygame.K_z)
        self.assertIsNone(self.keypad.get_current_pressed_key())


class TestRun(unittest.TestCase):
    def setUp(self):
        self.mem = CosmacMemory()
        self.clock = FakeClock()
        self.chip = Chip8Interpreter(clock=self.clock, diagnostics=True)

    def test_paces_every_step(self):
        self.mem.load_program(b"\x12\x00")
        dummy = DummyPeripherals()
        steps = run(self.mem, self.chip, dummy, dummy, dummy, self.clock, frequency=60, max_steps=5)
        self.assertEqual(steps, 5)
        self.assertEqual(self.clock.ticks, [60] * 5)

    def test_tone_follows_tone_timer(self):
        # V0 = 10, ST = V0, loop
        self.mem.load_program(b"\x60\x0A\xF0\x18\x12\x04")
        tone = RecordingTone()
        dummy = DummyPeripherals()
        run(self.mem, self.chip, dummy, dummy, tone, self.clock, max_steps=3)
        self.assertEqual(tone.events, ["start", "stop"])

    def test_crash_exits_with_state(self):
        # I = 0xFFE, BCD of V2 needs 3 bytes
        self.mem.load_program(b"\xAF\xFE\xF2\x33")
        self.chip.diagnostics = False
        dummy = DummyPeripherals()
        with self.assertRaises(SystemExit) as ctx:
            run_or_exit(self.mem, self.chip, dummy, dummy, dummy, self.clock)
        report = ctx.exception.code
        self.assertIn("THE EMULATOR CRASHED", report)
        self.assertIn("beyond the end of RAM", report)
        self.assertIn("PC_REGISTER:0x0202", report)
        self.assertIn("0ED0  02 02 0F FE", report)

    def test_fatal_error_exits_with_state(self):
        self.mem.load_program(b"\x5F\xF1")
        dummy = DummyPeripherals()
        with self.assertRaises(SystemExit) as ctx:
            run_or_exit(self.mem, self.chip, dummy, dummy, dummy, self.clock)
        self.assertIn("Unknown instruction 0x5ff1", ctx.exception.code)


class TestSquareTone(unittest.TestCase):
    def start_mixer(self, channels):
        pygame.mixer.quit()
        try:
            pygame.mixer.init(44100, -16, channels)
        except pygame.error as e:
            self.skipTest(f"no audio driver: {e}")

    def tearDown(self):
        pygame.mixer.quit()

    def assert_one_second_of_tone(self, tone):
        rate, _, channels = pygame.mixer.get_init()
        frames = (rate // (2 * TONE_FREQ_HZ)) * 2 * TONE_FREQ_HZ
        self.assertEqual(len(tone.sound.get_raw()), frames * channels * 2)
        self.assertAlmostEqual(tone.sound.get_length(), frames / rate, places=3)

    def test_mono_mixer(self):
        self.start_mixer(1)
        self.assert_one_second_of_tone(SquareTone())

    def test_stereo_mixer_already_running(self):
        self.start_mixer(2)
        self.assert_one_second_of_tone(SquareTone())

    def test_starts_mixer_when_needed(self):
        pygame.mixer.quit()
        try:
            tone = SquareTone()
        except pygame.error as e:
            self.skipTest(f"no audio driver: {e}")
        self.assertEqual(pygame.mixer.get_init()[2], 1)
        self.assert_one_second_of_tone(tone)
        tone.start_tone()
        self.assertTrue(tone.is_tone_on())
        tone.stop_tone()
        self.assertFalse(tone.is_tone_on())


if __name__ == "__main__":
    unittest.main()
