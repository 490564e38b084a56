"""pygame front-end: window, beep, keyboard and the instruction/timer loop around the core."""

import argparse
import datetime
import logging
import os
from array import array

import pygame

from .cpu import C8Computer
from .errors import ProgramLoadFailed
from .machine import C8Machine

logger = logging.getLogger(__name__)

SCALE_FACTOR = 8
PIXEL_OFF = (0, 0, 0)
PIXEL_ON = (255, 255, 255)

# Tweak this per ROM - how many microseconds to wait before executing an instruction.  Smaller means more frequent
# instruction executions, which makes things faster.
INSTRUCTION_DELAY = 2000
# Host time is measured in microseconds; this many make up 1/60 second.
TICKS_PER_60HZ = 16666
DUMP_FILE = "debug.txt"
DEFAULT_ROM = os.path.join("roms", "sample.ch8")


# The keyboard layout for the CHIP-8 assumes:
#   1 2 3 C
#   4 5 6 D
#   7 8 9 E
#   A 0 B F
#
# We map this to the following keys on our keyboard:
#   1 2 3 4
#   Q W E R
#   A S D F
#   Z X C V

KEYMAPPING = {
    pygame.K_1: 0x01,
    pygame.K_2: 0x02,
    pygame.K_3: 0x03,
    pygame.K_4: 0x0C,
    pygame.K_q: 0x04,
    pygame.K_w: 0x05,
    pygame.K_e: 0x06,
    pygame.K_r: 0x0D,
    pygame.K_a: 0x07,
    pygame.K_s: 0x08,
    pygame.K_d: 0x09,
    pygame.K_f: 0x0E,
    pygame.K_z: 0x0A,
    pygame.K_x: 0x00,
    pygame.K_c: 0x0B,
    pygame.K_v: 0x0F
}


def build_pygame_sound_samples():
    # modified from: https://gist.github.com/ohsqueezy/6540433
    period = int(round(pygame.mixer.get_init()[0] / 440))
    samples = array("h", [0] * period)
    amplitude = 2 ** (abs(pygame.mixer.get_init()[1]) - 1) - 1
    for time in range(period):
        if time < period / 2:
            samples[time] = amplitude
        else:
            samples[time] = -amplitude
    return samples


def load_rom(machine, rom_file):
    try:
        with open(rom_file, "rb") as infile:
            program = infile.read()
    except OSError as e:
        raise ProgramLoadFailed(rom_file, e.strerror or str(e)) from e
    machine.load_program(program)
    logger.info("Loaded %s (%d bytes)", rom_file, len(program))
    return len(program)


def elapsed_microseconds(start_time, curtime):
    return int((curtime - start_time).total_seconds() * 1000000)


class C8Beeper:
    '''
    The audio side of the sound timer: counts it down at 60Hz and keeps the beep playing while it is nonzero.
    '''

    def __init__(self, beep):
        self.beep = beep
        self.playing = False

    def tick(self, sound_timer):
        if sound_timer.tick() > 0:
            if not self.playing:
                self.beep.play(-1)
                self.playing = True
        elif self.playing:
            self.beep.stop()
            self.playing = False


class C8Display:
    '''
    Scales the framebuffer onto the pygame window.  Only pixels that changed since the previous frame are
    repainted, and only their rows are passed to pygame.display.update().
    '''

    def __init__(self, window, scale=SCALE_FACTOR):
        self.window = window
        self.scale = scale
        self.presented = None
        self.num_renders = 0
        self.render_time_ps = 0

    def changed_spans(self, framebuffer):
        current = framebuffer.export()
        spans = []
        for y in range(framebuffer.ysize):
            row = y * framebuffer.xsize
            changed = [x for x in range(framebuffer.xsize)
                       if self.presented is None or current[row + x] != self.presented[row + x]]
            if changed:
                spans.append((y, changed))
        return current, spans

    def draw(self, framebuffer):
        self.num_renders += 1
        start_time = datetime.datetime.now()
        current, spans = self.changed_spans(framebuffer)
        pygamerects = []
        for y, xs in spans:
            for x in xs:
                if current[y * framebuffer.xsize + x] == 0:
                    color = PIXEL_OFF
                else:
                    color = PIXEL_ON
                self.window.fill(color, pygame.Rect(x * self.scale, y * self.scale, self.scale, self.scale))
            rectx = xs[0] * self.scale
            recty = y * self.scale
            rect_width = (xs[-1] - xs[0] + 1) * self.scale
            pygamerects.append(pygame.Rect(rectx, recty, rect_width, self.scale))
        if pygamerects:
            pygame.display.update(pygamerects)
        self.presented = current
        self.render_time_ps += (datetime.datetime.now() - start_time).total_seconds()


def write_dump(machine, dump_file):
    with open(dump_file, "w") as outfile:
        machine.debug_dump(outfile)
    logger.info("Machine state written to %s", dump_file)


def parse_args(argv=None):
    aparser = argparse.ArgumentParser(description="CHIP-8 interpreter")
    aparser.add_argument("rom", nargs="?", default=DEFAULT_ROM,
                         help="Path to the CHIP-8 program to run (default: %(default)s)")
    aparser.add_argument("--scale", type=int, default=SCALE_FACTOR,
                         help="Window pixels per CHIP-8 pixel (default: %(default)s)")
    aparser.add_argument("--delay", type=int, default=INSTRUCTION_DELAY,
                         help="Microseconds between instructions (default: %(default)s)")
    aparser.add_argument("--dump-file", default=DUMP_FILE,
                         help="Where to write the machine state on exit or fault (default: %(default)s)")
    aparser.add_argument("-v", "--verbose", action="store_true",
                         help="Enable verbose debug logging")
    return aparser.parse_args(argv)


def main(argv=None):
    args = parse_args(argv)
    logging.basicConfig(level=logging.INFO)
    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    machine = C8Machine()
    c8 = C8Computer(machine)
    load_rom(machine, args.rom)

    pygame.mixer.pre_init(44100, -16, 1, 1024)
    pygame.init()
    window = pygame.display.set_mode((machine.screen.xsize * args.scale, machine.screen.ysize * args.scale))
    pygame.display.set_caption("CHIP-8 - {}".format(args.rom))
    window.fill(PIXEL_OFF)
    pygame.display.flip()

    beep = pygame.mixer.Sound(build_pygame_sound_samples())
    beep.set_volume(0.1)
    beeper = C8Beeper(beep)
    display = C8Display(window, args.scale)

    run = True

    start_time = datetime.datetime.now()
    num_instr = 0

    timer_event = pygame.USEREVENT + 1
    pygame.time.set_timer(timer_event, 17)  # 17ms ~= 60Hz

    last_instruction_time = start_time

    try:
        while run:
            for event in pygame.event.get():
                if event.type == pygame.QUIT:
                    run = False
                elif event.type == pygame.KEYDOWN:
                    if event.key in KEYMAPPING:
                        c8.press_key(KEYMAPPING[event.key])
                elif event.type == pygame.KEYUP:
                    if event.key in KEYMAPPING:
                        c8.release_key(KEYMAPPING[event.key])
                elif event.type == timer_event:
                    beeper.tick(machine.sound_timer)
                    display.draw(machine.screen)

            if c8.waiting_for_key:
                pygame.time.wait(1)
                continue

            curtime = datetime.datetime.now()
            if elapsed_microseconds(last_instruction_time, curtime) >= args.delay:
                pc = machine.PC
                opcode = c8.step(TICKS_PER_60HZ, elapsed_microseconds(start_time, curtime))
                logger.debug("%03X: %04X", pc, opcode)
                num_instr += 1
                last_instruction_time = curtime
    except Exception:
        logger.exception("Machine halted at PC 0x%03X", machine.PC)
        write_dump(machine, args.dump_file)
        raise
    finally:
        pygame.quit()

    write_dump(machine, args.dump_file)
    end_time = datetime.datetime.now()
    duration = (end_time - start_time).total_seconds()

    logger.info("Start: %s", start_time)
    logger.info("End: %s", end_time)
    logger.info("Duration: %s sec.", duration)
    if duration > 0:
        logger.info("Performance: %s instructions per second", num_instr / duration)
    logger.info("Screen num renders: %s", display.num_renders)
    if display.num_renders:
        logger.info("Average microseconds per render: %s",
                    (1000000 * display.render_time_ps) / display.num_renders)
