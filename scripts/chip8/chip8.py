# CHIP-8 INFO
# https://chip-8.github.io/extensions/#chip-8
# https://chip-8.github.io/links/
#
# COSMAC VIP MANUAL
# https://archive.org/details/bitsavers_rcacosmacCManual1978_6956559
#
# TEST SUITE
# https://github.com/Timendus/chip8-test-suite
#
# Front end of the interpreter: window, keypad, tone and the loop pacing the
# interpreter at a fixed number of instructions per second. The interpreter
# itself never talks to any of these, the loop moves data between them.


import argparse
import sys
from array import array

import os
os.environ["PYGAME_HIDE_SUPPORT_PROMPT"] = "no welcome message"   # this env var disable pygame's welcome message when imported
import pygame
from pygame.locals import (
    K_0, K_1, K_2, K_3,
    K_4, K_5, K_6, K_7,
    K_8, K_9, K_a, K_b,
    K_c, K_d, K_e, K_f,
)

from chip8_errors import FatalError, LoadError
from chip8_interpreter import DEBUG, Chip8Interpreter
from chip8_memory import (
    CosmacMemory,
    DISPLAY_HEIGHT_PIXELS, DISPLAY_WIDTH_PIXELS, DISPLAY_WIDTH_BYTES,
    DISPLAY_START_ADDRESS, STACK_START_ADDRESS,
)
from chip8_rom import Rom


# ******************** STATIC SECTION
KEY_MAPPINGS = {
    K_0: 0x0,
    K_1: 0x1,
    K_2: 0x2,
    K_3: 0x3,
    K_4: 0x4,
    K_5: 0x5,
    K_6: 0x6,
    K_7: 0x7,
    K_8: 0x8,
    K_9: 0x9,
    K_a: 0xA,
    K_b: 0xB,
    K_c: 0xC,
    K_d: 0xD,
    K_e: 0xE,
    K_f: 0xF,
}

INSTRUCTIONS_FREQ_HZ = 300      # number of CHIP-8 instructions performed per second
SCALE = 15
BLUE = pygame.Color(80,69,155,255)
LIGHT_BLUE = pygame.Color(136,126,203,255)
TONE_FREQ_HZ = 440
SAMPLE_RATE = 44100


# ******************** UTILITIES SECTION
def get_rom_arg():
    parser = argparse.ArgumentParser()
    parser.add_argument("-f", "--file", required=True, help="input rom file")
    args = parser.parse_args()
    return args.file


# ******************** PERIPHERALS SECTION
# three independent capabilities, any object can provide any of them
class Tone:
    def start_tone(self):
        raise NotImplementedError

    def stop_tone(self):
        raise NotImplementedError

    def is_tone_on(self):
        raise NotImplementedError

class Screen:
    def draw_buffer(self, display):
        """display is the 256 bytes display refresh area, 8 bytes per row, MSB first"""
        raise NotImplementedError

class HexKeyboard:
    def process_events(self):
        """update the key state, return False when the user asked to quit"""
        raise NotImplementedError

    def get_current_pressed_key(self):
        raise NotImplementedError

class DummyPeripherals(Tone, Screen, HexKeyboard):
    def start_tone(self):
        pass

    def stop_tone(self):
        pass

    def is_tone_on(self):
        return False

    def draw_buffer(self, display):
        pass

    def process_events(self):
        return True

    def get_current_pressed_key(self):
        return None


# ******************** I/O SECTION
class PygameScreen(Screen):
    def __init__(self, s=SCALE, bg_color=BLUE, fg_color=LIGHT_BLUE):
        self.w, self.h, self.scale = DISPLAY_WIDTH_PIXELS, DISPLAY_HEIGHT_PIXELS, s
        self.background = bg_color
        self.foreground = fg_color
        self.last_frame = None
        self.surface = pygame.display.set_mode(
            (self.w * self.scale, self.h * self.scale),
        )
        self.surface.fill(self.background)

    def draw_buffer(self, display):
        frame = bytes(display)
        if frame == self.last_frame:
            return
        self.surface.fill(self.background)
        for offset, byte in enumerate(frame):
            if byte == 0:
                continue
            y, byte_col = divmod(offset, DISPLAY_WIDTH_BYTES)
            for bit in range(8):
                if byte & (0x80 >> bit):
                    x = byte_col * 8 + bit
                    self.surface.fill(self.foreground, (x * self.scale, y * self.scale, self.scale, self.scale))
        pygame.display.flip()
        self.last_frame = frame

class Keypad(HexKeyboard):
    """the current key is the last one pressed among those still held down"""
    def __init__(self):
        self.held_keys = []

    def handle_event(self, event):
        if event.type == pygame.KEYDOWN and event.key in KEY_MAPPINGS:
            key = KEY_MAPPINGS[event.key]
            if key in self.held_keys:
                self.held_keys.remove(key)
            self.held_keys.append(key)
        elif event.type == pygame.KEYUP and event.key in KEY_MAPPINGS:
            key = KEY_MAPPINGS[event.key]
            if key in self.held_keys:
                self.held_keys.remove(key)

    def process_events(self):
        for event in pygame.event.get():
            if event.type == pygame.QUIT:
                return False
            if event.type == pygame.KEYDOWN and event.key == pygame.K_ESCAPE:
                return False
            self.handle_event(event)
        return True

    def get_current_pressed_key(self):
        return self.held_keys[-1] if self.held_keys else None

class SquareTone(Tone):
    """
    fixed pitch square wave, the VIP speaker could only be on or off
    the samples follow whatever rate and channel count the mixer actually runs with
    """
    def __init__(self, freq=TONE_FREQ_HZ, volume=0.2):
        if pygame.mixer.get_init() is None:
            pygame.mixer.init(frequency=SAMPLE_RATE, size=-16, channels=1)
        rate, _, channels = pygame.mixer.get_init()
        half_period = rate // (2 * freq)
        amplitude = int(32767 * volume)
        period = [amplitude] * half_period + [-amplitude] * half_period
        frames = period * freq      # about one second, looped while the tone is on
        samples = [sample for sample in frames for _ in range(channels)]    # interleave channels
        self.sound = pygame.mixer.Sound(buffer=array('h', samples))
        self.on = False

    def start_tone(self):
        self.sound.play(loops=-1)
        self.on = True

    def stop_tone(self):
        self.sound.stop()
        self.on = False

    def is_tone_on(self):
        return self.on


# ******************** EMULATION LOOP SECTION
def run(mem, chip, screen, keyboard, tone, clock, frequency=INSTRUCTIONS_FREQ_HZ, max_steps=None):
    """
    step the interpreter `frequency` times per second until the keyboard reports a quit request
    the program has to be loaded in mem already
    """
    chip.reset(mem)
    screen.draw_buffer(mem.display_buffer())
    steps = 0
    while keyboard.process_events():
        if DEBUG: print(f"Before instruction\n{chip.get_state(mem)}")
        chip.step(mem)
        if DEBUG: print(f"After instruction\n{chip.get_state(mem)}")
        screen.draw_buffer(mem.display_buffer())
        # update tone
        tone_should_be_sounding = chip.is_tone_sounding(mem)
        if tone_should_be_sounding and not tone.is_tone_on():
            tone.start_tone()
        elif not tone_should_be_sounding and tone.is_tone_on():
            tone.stop_tone()
        # set hex key press state
        chip.set_current_key_press(mem, keyboard.get_current_pressed_key())
        clock.tick(frequency)
        steps += 1
        if max_steps is not None and steps >= max_steps:
            break
    tone.stop_tone()
    return steps


def run_or_exit(mem, chip, screen, keyboard, tone, clock, **kwargs):
    """like run(), but a crash of the interpreter ends the process with the machine state"""
    try:
        return run(mem, chip, screen, keyboard, tone, clock, **kwargs)
    except (FatalError, LoadError) as e:
        sys.exit(crash_report(e, chip, mem))

def crash_report(error, chip, mem):
    stack_and_work_area = mem.hexdump(STACK_START_ADDRESS, DISPLAY_START_ADDRESS - STACK_START_ADDRESS)
    return f"********** THE EMULATOR CRASHED WITH THE FOLLOWING STATE\n{error}\n{chip.get_state(mem)}\n{stack_and_work_area}"


# ******************** ENTRY POINT SECTION
def main(*args, **kwargs):
    rom_name = get_rom_arg()
    try:
        rom = Rom.from_path(rom_name)
        mem = CosmacMemory()
        mem.load_program(rom.data)
    except (OSError, LoadError) as e:
        sys.exit(f"{rom_name}: {e}")
    if DEBUG: print(f"The ROM {rom!r} has been loaded successfully")
    # pygame initialization, the mixer settings have to be known before pygame.init() opens it
    pygame.mixer.pre_init(SAMPLE_RATE, -16, 1)
    pygame.init()
    clock = pygame.time.Clock()
    pygame.display.set_caption(rom.name)
    # IO
    s = PygameScreen()
    k = Keypad()
    try:
        t = SquareTone()
    except pygame.error as e:
        print(f"No audio device available, running without tone: {e}", file=sys.stderr)
        t = DummyPeripherals()
    # CPU
    chip = Chip8Interpreter()
    try:
        run_or_exit(mem, chip, s, k, t, clock)
    finally:
        pygame.quit()


if __name__ == "__main__":
    main()
