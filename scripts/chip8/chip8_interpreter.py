# CHIP-8 INFO
# https://chip-8.github.io/extensions/#chip-8
# http://laurencescotford.co.uk/?p=75  (COSMAC VIP interpreter internals)
#
# MASTERING CHIP-8
# https://github.com/mattmikolay/chip-8/wiki/Mastering-CHIP%E2%80%908
#
# The interpreter keeps no CHIP-8 state of its own: pc, I, stack pointer, timers,
# key status and V0-VF are all read from and written to CosmacMemory at the
# offsets defined in chip8_memory. What lives here is only what the COSMAC kept
# outside of RAM: the random source and the real-time expiry of both timers.


import os
import random
import time
from functools import wraps

from chip8_errors import (
    IndexOutOfRangeError,
    MachineSubroutineError,
    ProgramCounterOutOfRangeError,
    StackOverflowError,
    StackUnderflowError,
    UnknownInstructionError,
)
from chip8_memory import (
    C8_FONTS, GLYPH_SIZE, GLYPHS_START_ADDRESS, GLYPH_TABLE_START_ADDRESS,
    MEMORY_SIZE, MEMORY_START_ADDRESS,
    PROGRAM_START_ADDRESS, PROGRAM_LAST_ADDRESS,
    STACK_START_ADDRESS, STACK_LAST_SLOT_ADDRESS, STACK_SLOT_SIZE,
    PROGRAM_COUNTER_ADDRESS, I_ADDRESS, STACK_POINTER_ADDRESS,
    DELAY_TIMER_ADDRESS, TONE_TIMER_ADDRESS,
    KEY_STATUS_ADDRESS, KEY_WAIT_STATE_ADDRESS, KEY_WAIT_REGISTER_ADDRESS,
    NO_KEY_PRESSED,
    DISPLAY_WIDTH_PIXELS, DISPLAY_HEIGHT_PIXELS, DISPLAY_WIDTH_BYTES,
)


# ******************** STATIC SECTION
DEBUG = True if int(os.getenv('DEBUG', 0)) >= 1 else False
INSTRUCTION_SIZE = 2
TIMER_FREQ_HZ = 60
TONE_THRESHOLD = 2      # the VIP speaker doesn't respond to a tone timer below 2

# hex key wait states
IDLE = 0
WAITING = 1
WAITING_SEEN_PRESS = 2


# ******************** UTILITIES SECTION
def asm(msg):
    """
    decorator to print out the ASM of the instruction being called
    the decorated method returns its locals(), the wrapper hands back the next_pc found among them
    """
    def decorator(fn):
        @wraps(fn)
        def wrapper_fn(*args, **kwargs):
            vals = fn(*args, **kwargs)
            if DEBUG: print(msg.format(**vals))
            return vals['next_pc']
        return wrapper_fn
    return decorator

def jiffies_to_ms(jiffies):
    return jiffies * 1000 // TIMER_FREQ_HZ

def ms_to_jiffies(ms):
    return ms * TIMER_FREQ_HZ // 1000


# ******************** AMBIENT SOURCES SECTION
class RandomByteSource:
    """one primitive: an independent uniformly distributed byte per call"""
    def __init__(self, seed=None):
        self._rng = random.Random(seed)

    def random_u8(self):
        return self._rng.randrange(256)

class MonotonicClock:
    """one primitive: milliseconds on a clock that never goes backwards"""
    @staticmethod
    def now():
        return time.monotonic_ns() // 1_000_000


# ******************** SNAPSHOT SECTION
class Chip8State:
    def __init__(self, pc, instruction, i, sp, delay_timer, tone_timer, key_status, v_regs, display):
        self.pc = pc
        self.instruction = instruction
        self.i = i
        self.sp = sp
        self.delay_timer = delay_timer
        self.tone_timer = tone_timer
        self.key_status = key_status
        self.v_regs = v_regs
        self.display = display

    def __str__(self):
        registers = f"PC_REGISTER:0x{self.pc:04x} | INSTRUCTION:0x{self.instruction:04x} | IDX_REGISTER:0x{self.i:04x} | SP_REGISTER:0x{self.sp:04x}"
        timers = f"DELAY_TIMER:{self.delay_timer} | TONE_TIMER:{self.tone_timer} | KEY_STATUS:0x{self.key_status:04x}"
        v_regs = " ".join(f"V{n:X}:{v:02x}" for n, v in enumerate(self.v_regs))
        return f"{registers}\n{timers}\n{v_regs}"


# ******************** CPU SECTION
class Chip8Interpreter:
    def __init__(self, rng=None, clock=None, diagnostics=DEBUG):
        self.rng = rng if rng is not None else RandomByteSource()
        self.clock = clock if clock is not None else MonotonicClock()
        self.diagnostics = diagnostics     # range checks on pc, I and the stack
        self.delay_expiry = None           # ms instant the delay timer reaches zero
        self.tone_expiry = None            # ms instant the tone timer reaches zero
        # (mask, pattern, handler), no pattern overlaps another one
        # 0NNN is left out on purpose and handled by the fallback in decode()
        self.instructions = [
            (0xFFFF, 0x00E0, self._clear_screen),
            (0xFFFF, 0x00EE, self._return),
            (0xF000, 0x1000, self._jump),
            (0xF000, 0x2000, self._call_addr),
            (0xF000, 0x3000, self._skip_if_eq),
            (0xF000, 0x4000, self._skip_if_not_eq),
            (0xF00F, 0x5000, self._skip_if_eq_regs),
            (0xF000, 0x6000, self._set_vk),
            (0xF000, 0x7000, self._add_to_vk),
            (0xF00F, 0x8000, self._set_vx_to_vy),
            (0xF00F, 0x8001, self._set_vx_or_vy),
            (0xF00F, 0x8002, self._set_vx_and_vy),
            (0xF00F, 0x8003, self._set_vx_xor_vy),
            (0xF00F, 0x8004, self._add_vx_vy),
            (0xF00F, 0x8005, self._sub_vx_vy),
            (0xF00F, 0x8006, self._shr),
            (0xF00F, 0x8007, self._subn_vx_vy),
            (0xF00F, 0x800E, self._shl),
            (0xF00F, 0x9000, self._skip_if_not_eq_regs),
            (0xF000, 0xA000, self._set_idx),
            (0xF000, 0xB000, self._jump_plus),
            (0xF000, 0xC000, self._random_byte_and),
            (0xF000, 0xD000, self._to_screen),
            (0xF0FF, 0xE09E, self._skip_if_pressed),
            (0xF0FF, 0xE0A1, self._skip_if_not_pressed),
            (0xF0FF, 0xF007, self._set_vx_dt),
            (0xF0FF, 0xF00A, self._wait_keypress),
            (0xF0FF, 0xF015, self._set_dt_vx),
            (0xF0FF, 0xF018, self._set_st),
            (0xF0FF, 0xF01E, self._add_to_idx),
            (0xF0FF, 0xF029, self._select_char),
            (0xF0FF, 0xF033, self._bcd_repr),
            (0xF0FF, 0xF055, self._store_vregs),
            (0xF0FF, 0xF065, self._load_vregs),
        ]

    # ********** PUBLIC INTERFACE
    def reset(self, mem):
        """reset all CHIP-8 interpreter state, the loaded program is left untouched"""
        mem.zero(STACK_START_ADDRESS, MEMORY_SIZE)
        mem.load(bytes(C8_FONTS), GLYPHS_START_ADDRESS)
        for digit in range(16):
            mem.write16(GLYPH_TABLE_START_ADDRESS + 2 * digit, GLYPHS_START_ADDRESS + digit * GLYPH_SIZE)
        mem.write16(PROGRAM_COUNTER_ADDRESS, PROGRAM_START_ADDRESS)
        mem.write16(STACK_POINTER_ADDRESS, STACK_START_ADDRESS)
        mem.write16(KEY_STATUS_ADDRESS, NO_KEY_PRESSED)
        self.delay_expiry = None
        self.tone_expiry = None

    def step(self, mem):
        """
        execute the instruction the program counter points to and move the program counter forward
        while FX0A is pending each call only advances the key wait instead
        """
        pc = mem.read16(PROGRAM_COUNTER_ADDRESS)
        opcode = mem.read16(pc)
        self._update_timers(mem)
        if mem[KEY_WAIT_STATE_ADDRESS] != IDLE:
            next_pc = self._advance_key_wait(mem, pc)
        else:
            instruction = self.decode(opcode)
            next_pc = instruction(mem, opcode, pc)
        self._set_pc(mem, next_pc)

    def decode(self, opcode):
        """return the handler whose pattern matches opcode"""
        for mask, pattern, instruction in self.instructions:
            if opcode & mask == pattern:
                return instruction
        if opcode & 0xF000 == 0x0000:
            raise MachineSubroutineError(opcode)
        raise UnknownInstructionError(opcode)

    @staticmethod
    def is_tone_sounding(mem):
        return mem[TONE_TIMER_ADDRESS] >= TONE_THRESHOLD

    @staticmethod
    def set_current_key_press(mem, key):
        """key is the hex key currently held down (0x0-0xF) or None"""
        if key is None:
            mem.write16(KEY_STATUS_ADDRESS, NO_KEY_PRESSED)
        elif 0x0 <= key <= 0xF:
            mem.write16(KEY_STATUS_ADDRESS, key)
        else:
            raise ValueError(f"{key!r} is not a hex key")

    @staticmethod
    def get_state(mem):
        pc = mem.read16(PROGRAM_COUNTER_ADDRESS)
        return Chip8State(
            pc=pc,
            instruction=mem.read16(pc) if pc < MEMORY_SIZE - 1 else 0,
            i=mem.read16(I_ADDRESS),
            sp=mem.read16(STACK_POINTER_ADDRESS),
            delay_timer=mem[DELAY_TIMER_ADDRESS],
            tone_timer=mem[TONE_TIMER_ADDRESS],
            key_status=mem.read16(KEY_STATUS_ADDRESS),
            v_regs=bytes(mem.registers()),
            display=bytes(mem.display_buffer()),
        )

    # ********** STATE HELPERS
    def _set_pc(self, mem, address):
        if self.diagnostics and not PROGRAM_START_ADDRESS <= address <= PROGRAM_LAST_ADDRESS:
            raise ProgramCounterOutOfRangeError(address)
        mem.write16(PROGRAM_COUNTER_ADDRESS, address & 0xFFFF)

    def _set_i(self, mem, address):
        # I must be able to reach the glyphs, which lie before the program
        if self.diagnostics and not MEMORY_START_ADDRESS <= address <= PROGRAM_LAST_ADDRESS:
            raise IndexOutOfRangeError(address)
        mem.write16(I_ADDRESS, address & 0xFFFF)

    @staticmethod
    def _pressed_key(mem):
        status = mem.read16(KEY_STATUS_ADDRESS)
        return None if status == NO_KEY_PRESSED else status

    # ********** TIMERS
    # timers are driven by the wall clock instead of being decremented on each step,
    # this way they don't drift when step() isn't called at an exact multiple of 60Hz
    def _update_timers(self, mem):
        now = self.clock.now()
        self.delay_expiry = self._decay_timer(mem, DELAY_TIMER_ADDRESS, self.delay_expiry, now)
        self.tone_expiry = self._decay_timer(mem, TONE_TIMER_ADDRESS, self.tone_expiry, now)

    @staticmethod
    def _decay_timer(mem, address, expiry, now):
        if expiry is None:
            return None
        if now >= expiry:
            mem[address] = 0
            return None
        mem[address] = ms_to_jiffies(expiry - now)
        return expiry

    def _start_timer(self, mem, address, jiffies):
        """write the timer register and return its expiry instant, None when the timer is stopped"""
        mem[address] = jiffies
        if jiffies == 0:
            return None
        return self.clock.now() + jiffies_to_ms(jiffies)

    # ********** HEX KEY WAIT
    def _advance_key_wait(self, mem, pc):
        """
        IDLE -> WAITING                  on FX0A (see _wait_keypress)
        WAITING -> WAITING_SEEN_PRESS    when a key goes down, Vx = key
        WAITING_SEEN_PRESS               Vx = key for as long as the key stays down
        WAITING_SEEN_PRESS -> IDLE       when the key is released, pc moves past FX0A
        """
        key = self._pressed_key(mem)
        x = mem[KEY_WAIT_REGISTER_ADDRESS]
        if key is not None:
            mem.registers()[x] = key
            mem[KEY_WAIT_STATE_ADDRESS] = WAITING_SEEN_PRESS
            return pc
        if mem[KEY_WAIT_STATE_ADDRESS] == WAITING_SEEN_PRESS:
            mem[KEY_WAIT_STATE_ADDRESS] = IDLE
            mem[KEY_WAIT_REGISTER_ADDRESS] = 0
            return pc + INSTRUCTION_SIZE
        return pc

    # ********** INSTRUCTIONS
    @asm("mem_addr: 0x{pc:04x}    instruction: CLS")
    def _clear_screen(self, mem, opcode, pc):
        display = mem.display_buffer()
        display[:] = bytes(len(display))
        next_pc = pc + INSTRUCTION_SIZE
        return locals()

    @asm("mem_addr: 0x{pc:04x}    instruction: RET")
    def _return(self, mem, opcode, pc):
        """return from a subroutine, resuming right after the call"""
        sp = mem.read16(STACK_POINTER_ADDRESS)
        if self.diagnostics and sp == STACK_START_ADDRESS:
            raise StackUnderflowError()
        sp -= STACK_SLOT_SIZE
        mem.write16(STACK_POINTER_ADDRESS, sp)
        next_pc = mem.read16(sp) + INSTRUCTION_SIZE
        return locals()

    @asm("mem_addr: 0x{pc:04x}    instruction: JP 0x{address:04x}")
    def _jump(self, mem, opcode, pc):
        address = opcode & 0x0FFF
        next_pc = address
        return locals()

    @asm("mem_addr: 0x{pc:04x}    instruction: CALL 0x{address:04x}")
    def _call_addr(self, mem, opcode, pc):
        """the address of the call itself is pushed, RET adds the instruction size back"""
        address = opcode & 0x0FFF
        sp = mem.read16(STACK_POINTER_ADDRESS)
        if self.diagnostics and sp == STACK_LAST_SLOT_ADDRESS:
            raise StackOverflowError()
        mem.write16(sp, pc)
        mem.write16(STACK_POINTER_ADDRESS, sp + STACK_SLOT_SIZE)
        next_pc = address
        return locals()

    @asm("mem_addr: 0x{pc:04x}    instruction: SE V{x}, {comparison_value}")
    def _skip_if_eq(self, mem, opcode, pc):
        x = (opcode & 0x0F00) >> 8
        comparison_value = opcode & 0x00FF
        next_pc = self._skip_when(mem.registers()[x] == comparison_value, pc)
        return locals()

    @asm("mem_addr: 0x{pc:04x}    instruction: SNE V{x}, {comparison_value}")
    def _skip_if_not_eq(self, mem, opcode, pc):
        x = (opcode & 0x0F00) >> 8
        comparison_value = opcode & 0x00FF
        next_pc = self._skip_when(mem.registers()[x] != comparison_value, pc)
        return locals()

    @asm("mem_addr: 0x{pc:04x}    instruction: SE V{x}, V{y}")
    def _skip_if_eq_regs(self, mem, opcode, pc):
        x, y = (opcode & 0x0F00) >> 8, (opcode & 0x00F0) >> 4
        v_regs = mem.registers()
        next_pc = self._skip_when(v_regs[x] == v_regs[y], pc)
        return locals()

    @asm("mem_addr: 0x{pc:04x}    instruction: SNE V{x}, V{y}")
    def _skip_if_not_eq_regs(self, mem, opcode, pc):
        x, y = (opcode & 0x0F00) >> 8, (opcode & 0x00F0) >> 4
        v_regs = mem.registers()
        next_pc = self._skip_when(v_regs[x] != v_regs[y], pc)
        return locals()

    @asm("mem_addr: 0x{pc:04x}    instruction: SKP V{x}")
    def _skip_if_pressed(self, mem, opcode, pc):
        """skip the following instruction if the key matching the low nibble of Vx is pressed"""
        x = (opcode & 0x0F00) >> 8
        key = self._pressed_key(mem)
        next_pc = self._skip_when(key is not None and key == mem.registers()[x] & 0x0F, pc)
        return locals()

    @asm("mem_addr: 0x{pc:04x}    instruction: SKNP V{x}")
    def _skip_if_not_pressed(self, mem, opcode, pc):
        """skip the following instruction if the key matching the low nibble of Vx is NOT pressed"""
        x = (opcode & 0x0F00) >> 8
        key = self._pressed_key(mem)
        next_pc = self._skip_when(key is None or key != mem.registers()[x] & 0x0F, pc)
        return locals()

    @staticmethod
    def _skip_when(condition, pc):
        return pc + 2 * INSTRUCTION_SIZE if condition else pc + INSTRUCTION_SIZE

    @asm("mem_addr: 0x{pc:04x}    instruction: LD V{x}, {value}")
    def _set_vk(self, mem, opcode, pc):
        """set the value of one of the 16 variable registers, Vx"""
        x, value = (opcode & 0x0F00) >> 8, opcode & 0x00FF
        mem.registers()[x] = value
        next_pc = pc + INSTRUCTION_SIZE
        return locals()

    @asm("mem_addr: 0x{pc:04x}    instruction: ADD V{x}, {value}")
    def _add_to_vk(self, mem, opcode, pc):
        """add to the value already present in one of the variable registers, VF untouched"""
        x, value = (opcode & 0x0F00) >> 8, opcode & 0x00FF
        v_regs = mem.registers()
        v_regs[x] = (v_regs[x] + value) & 0xFF
        next_pc = pc + INSTRUCTION_SIZE
        return locals()

    @asm("mem_addr: 0x{pc:04x}    instruction: RND V{x}, 0x{kk:02x}")
    def _random_byte_and(self, mem, opcode, pc):
        x, kk = (opcode & 0x0F00) >> 8, opcode & 0x00FF
        mem.registers()[x] = self.rng.random_u8() & kk
        next_pc = pc + INSTRUCTION_SIZE
        return locals()

    @asm("mem_addr: 0x{pc:04x}    instruction: LD V{x}, V{y}")
    def _set_vx_to_vy(self, mem, opcode, pc):
        x, y = (opcode & 0x0F00) >> 8, (opcode & 0x00F0) >> 4
        v_regs = mem.registers()
        v_regs[x] = v_regs[y]
        next_pc = pc + INSTRUCTION_SIZE
        return locals()

    @asm("mem_addr: 0x{pc:04x}    instruction: OR V{x}, V{y}")
    def _set_vx_or_vy(self, mem, opcode, pc):
        x, y = (opcode & 0x0F00) >> 8, (opcode & 0x00F0) >> 4
        v_regs = mem.registers()
        v_regs[x] |= v_regs[y]
        next_pc = pc + INSTRUCTION_SIZE
        return locals()

    @asm("mem_addr: 0x{pc:04x}    instruction: AND V{x}, V{y}")
    def _set_vx_and_vy(self, mem, opcode, pc):
        x, y = (opcode & 0x0F00) >> 8, (opcode & 0x00F0) >> 4
        v_regs = mem.registers()
        v_regs[x] &= v_regs[y]
        next_pc = pc + INSTRUCTION_SIZE
        return locals()

    @asm("mem_addr: 0x{pc:04x}    instruction: XOR V{x}, V{y}")
    def _set_vx_xor_vy(self, mem, opcode, pc):
        """undocumented in the VIP manual but used by plenty of programs"""
        x, y = (opcode & 0x0F00) >> 8, (opcode & 0x00F0) >> 4
        v_regs = mem.registers()
        v_regs[x] ^= v_regs[y]
        next_pc = pc + INSTRUCTION_SIZE
        return locals()

    @asm("mem_addr: 0x{pc:04x}    instruction: ADD V{x}, V{y}")
    def _add_vx_vy(self, mem, opcode, pc):
        """set Vx = Vx + Vy, VF = carry"""
        x, y = (opcode & 0x0F00) >> 8, (opcode & 0x00F0) >> 4
        v_regs = mem.registers()
        total = v_regs[x] + v_regs[y]
        v_regs[x] = total & 0xFF     # keep only the lowest 8 bits from the result and store them in Vx
        v_regs[0xF] = 1 if total > 0xFF else 0
        next_pc = pc + INSTRUCTION_SIZE
        return locals()

    @asm("mem_addr: 0x{pc:04x}    instruction: SUB V{x}, V{y}")
    def _sub_vx_vy(self, mem, opcode, pc):
        """set Vx = Vx - Vy, VF = 1 when there is NO borrow"""
        x, y = (opcode & 0x0F00) >> 8, (opcode & 0x00F0) >> 4
        v_regs = mem.registers()
        no_borrow = 1 if v_regs[x] >= v_regs[y] else 0
        v_regs[x] = (v_regs[x] - v_regs[y]) & 0xFF
        v_regs[0xF] = no_borrow
        next_pc = pc + INSTRUCTION_SIZE
        return locals()

    @asm("mem_addr: 0x{pc:04x}    instruction: SUBN V{x}, V{y}")
    def _subn_vx_vy(self, mem, opcode, pc):
        """set Vx = Vy - Vx, VF = 1 when there is NO borrow (undocumented)"""
        x, y = (opcode & 0x0F00) >> 8, (opcode & 0x00F0) >> 4
        v_regs = mem.registers()
        no_borrow = 1 if v_regs[y] >= v_regs[x] else 0
        v_regs[x] = (v_regs[y] - v_regs[x]) & 0xFF
        v_regs[0xF] = no_borrow
        next_pc = pc + INSTRUCTION_SIZE
        return locals()

    @asm("mem_addr: 0x{pc:04x}    instruction: SHR V{x}, V{y}")
    def _shr(self, mem, opcode, pc):
        """set Vx = Vy SHR 1, VF = bit shifted out (undocumented)"""
        x, y = (opcode & 0x0F00) >> 8, (opcode & 0x00F0) >> 4
        v_regs = mem.registers()
        lsb = v_regs[y] & 0x1
        v_regs[x] = v_regs[y] >> 1
        v_regs[0xF] = lsb
        next_pc = pc + INSTRUCTION_SIZE
        return locals()

    @asm("mem_addr: 0x{pc:04x}    instruction: SHL V{x}, V{y}")
    def _shl(self, mem, opcode, pc):
        """set Vx = Vy SHL 1, VF = bit shifted out (undocumented)"""
        x, y = (opcode & 0x0F00) >> 8, (opcode & 0x00F0) >> 4
        v_regs = mem.registers()
        msb = (v_regs[y] & 0x80) >> 7
        v_regs[x] = (v_regs[y] << 1) & 0xFF
        v_regs[0xF] = msb
        next_pc = pc + INSTRUCTION_SIZE
        return locals()

    @asm("mem_addr: 0x{pc:04x}    instruction: LD I, 0x{address:04x}")
    def _set_idx(self, mem, opcode, pc):
        address = opcode & 0x0FFF
        self._set_i(mem, address)
        next_pc = pc + INSTRUCTION_SIZE
        return locals()

    @asm("mem_addr: 0x{pc:04x}    instruction: JP V0, 0x{address:04x}")
    def _jump_plus(self, mem, opcode, pc):
        address = opcode & 0x0FFF
        next_pc = address + mem.registers()[0x0]
        return locals()

    @asm("mem_addr: 0x{pc:04x}    instruction: DRW V{x}, V{y}, {n_bytes}")
    def _to_screen(self, mem, opcode, pc):
        """display n-byte sprite starting at memory location I at (Vx, Vy), set VF = collision"""
        x, y = (opcode & 0x0F00) >> 8, (opcode & 0x00F0) >> 4
        n_bytes = opcode & 0x000F
        v_regs = mem.registers()
        collision = self._blit(mem, v_regs[x], v_regs[y], n_bytes)
        v_regs[0xF] = 1 if collision else 0
        next_pc = pc + INSTRUCTION_SIZE
        return locals()

    @staticmethod
    def _blit(mem, col, row, n_bytes):
        """
        XOR the sprite at I onto the display, return True if any lit pixel got turned off
        sprites don't wrap: whatever falls beyond the right or bottom edge is dropped
        """
        if col >= DISPLAY_WIDTH_PIXELS or row >= DISPLAY_HEIGHT_PIXELS:
            return False
        display = mem.display_buffer()
        i = mem.read16(I_ADDRESS)
        byte_col, shift = divmod(col, 8)
        collision = 0
        for n in range(n_bytes):
            y = row + n
            if y >= DISPLAY_HEIGHT_PIXELS:
                break
            sprite_byte = mem[i + n]
            offset = y * DISPLAY_WIDTH_BYTES + byte_col
            # a sprite not aligned to a byte spans two display bytes
            bits = sprite_byte >> shift
            collision |= bits & display[offset]
            display[offset] ^= bits
            if shift and byte_col < DISPLAY_WIDTH_BYTES - 1:
                bits = (sprite_byte << (8 - shift)) & 0xFF
                collision |= bits & display[offset + 1]
                display[offset + 1] ^= bits
        return collision != 0

    @asm("mem_addr: 0x{pc:04x}    instruction: LD V{x}, DT")
    def _set_vx_dt(self, mem, opcode, pc):
        """set Vx = DT (delay timer) value"""
        x = (opcode & 0x0F00) >> 8
        mem.registers()[x] = mem[DELAY_TIMER_ADDRESS]
        next_pc = pc + INSTRUCTION_SIZE
        return locals()

    @asm("mem_addr: 0x{pc:04x}    instruction: LD V{x}, K")
    def _wait_keypress(self, mem, opcode, pc):
        """wait for a key press and release, the key ends up in Vx"""
        x = (opcode & 0x0F00) >> 8
        mem[KEY_WAIT_STATE_ADDRESS] = WAITING
        mem[KEY_WAIT_REGISTER_ADDRESS] = x
        next_pc = pc        # stay on the same instruction until the key is released
        return locals()

    @asm("mem_addr: 0x{pc:04x}    instruction: LD DT, V{x}")
    def _set_dt_vx(self, mem, opcode, pc):
        """set DT (delay timer) = Vx"""
        x = (opcode & 0x0F00) >> 8
        self.delay_expiry = self._start_timer(mem, DELAY_TIMER_ADDRESS, mem.registers()[x])
        next_pc = pc + INSTRUCTION_SIZE
        return locals()

    @asm("mem_addr: 0x{pc:04x}    instruction: LD ST, V{x}")
    def _set_st(self, mem, opcode, pc):
        """set ST (tone timer) = Vx"""
        x = (opcode & 0x0F00) >> 8
        self.tone_expiry = self._start_timer(mem, TONE_TIMER_ADDRESS, mem.registers()[x])
        next_pc = pc + INSTRUCTION_SIZE
        return locals()

    @asm("mem_addr: 0x{pc:04x}    instruction: ADD I, V{x}")
    def _add_to_idx(self, mem, opcode, pc):
        """set I = I + Vx"""
        x = (opcode & 0x0F00) >> 8
        self._set_i(mem, (mem.read16(I_ADDRESS) + mem.registers()[x]) & 0xFFFF)
        next_pc = pc + INSTRUCTION_SIZE
        return locals()

    @asm("mem_addr: 0x{pc:04x}    instruction: LD F, V{x}")
    def _select_char(self, mem, opcode, pc):
        """set I to the glyph of the low nibble of Vx, looked up in the glyph address table"""
        x = (opcode & 0x0F00) >> 8
        digit = mem.registers()[x] & 0x0F
        self._set_i(mem, mem.read16(GLYPH_TABLE_START_ADDRESS + 2 * digit))
        next_pc = pc + INSTRUCTION_SIZE
        return locals()

    @asm("mem_addr: 0x{pc:04x}    instruction: LD B, V{x}")
    def _bcd_repr(self, mem, opcode, pc):
        """store the hundreds digit of Vx at I, the tens digit at I+1, the ones digit at I+2"""
        x = (opcode & 0x0F00) >> 8
        value = mem.registers()[x]
        hundreds, tens, ones = value // 100, (value // 10) % 10, value % 10
        mem.load(bytes((hundreds, tens, ones)), mem.read16(I_ADDRESS))
        next_pc = pc + INSTRUCTION_SIZE
        return locals()

    @asm("mem_addr: 0x{pc:04x}    instruction: LD [I], V{x}")
    def _store_vregs(self, mem, opcode, pc):
        """store registers V0 through Vx (included) in memory starting at location I, I += x + 1"""
        x = (opcode & 0x0F00) >> 8
        i = mem.read16(I_ADDRESS)
        mem.load(bytes(mem.registers()[:x+1]), i)
        self._set_i(mem, i + x + 1)
        next_pc = pc + INSTRUCTION_SIZE
        return locals()

    @asm("mem_addr: 0x{pc:04x}    instruction: LD V{x}, [I]")
    def _load_vregs(self, mem, opcode, pc):
        """read registers V0 through Vx (included) from memory starting at location I, I += x + 1"""
        x = (opcode & 0x0F00) >> 8
        i = mem.read16(I_ADDRESS)
        mem.registers()[:x+1] = mem[i:i+x+1]
        self._set_i(mem, i + x + 1)
        next_pc = pc + INSTRUCTION_SIZE
        return locals()
