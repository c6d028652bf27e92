from architecture import Architecture
from exceptions import Chip8Exception
from keyboard import KEYPAD_INDEX, QUIT_KEY
from screen import Screen
from speaker import Speaker

import argparse
import logging
import sys
from pathlib import Path

import pygame

logger = logging.getLogger(__name__)


def load_rom(path):
    """
    Read a CHIP-8 program image, raw bytes with no header
    """
    return Path(path).read_bytes()


class Emulator:

    # Instructions executed per displayed frame
    TICKS_PER_FRAME = 5

    # Frames per second, the timers are decremented once per frame
    FPS = 60

    def __init__(self, rom, scale=15, ticks_per_frame=TICKS_PER_FRAME, fps=FPS, mute=False):
        self.ROM_FILE = rom
        self.SCALE = scale
        self.TICKS_PER_FRAME = ticks_per_frame
        self.FPS = fps
        self.MUTE = mute

    def HANDLE_EVENT(self, CPU, event):
        """
        Forwards keypad events to the CPU. Returns False once the user asked to quit.
        """
        if event.type == pygame.QUIT:
            return False

        if event.type in (pygame.KEYDOWN, pygame.KEYUP):
            if event.type == pygame.KEYDOWN and event.key == QUIT_KEY:
                return False

            if event.key in KEYPAD_INDEX:
                CPU.SET_KEY(KEYPAD_INDEX[event.key], event.type == pygame.KEYDOWN)

        return True

    def FRAME(self, CPU):
        """
        Runs one frame worth of instructions followed by a single timer tick.
        Returns True when the buzzer should sound.
        """
        for _ in range(self.TICKS_PER_FRAME):
            CPU.STEP()

        return CPU.DECREMENT_TIMERS()

    def main(self):
        CPU = Architecture()

        try:
            CPU.LOAD(load_rom(self.ROM_FILE))
        except (OSError, Chip8Exception) as error:
            logger.error("Could not load %s: %s", self.ROM_FILE, error)
            return 1

        logger.info("Loaded %s", self.ROM_FILE)

        screen = Screen(SCALE=self.SCALE)
        speaker = Speaker(mute=self.MUTE)
        if not speaker.ENABLED:
            logger.info("Running without sound")
        clock = pygame.time.Clock()

        status = 0
        running = True

        try:
            while running:
                # Check for various events
                for event in pygame.event.get():
                    if not self.HANDLE_EVENT(CPU, event):
                        running = False

                if self.FRAME(CPU):
                    speaker.BEEP()

                screen.RENDER(CPU.GET_FRAMEBUFFER())
                clock.tick(self.FPS)
        except Chip8Exception as error:
            logger.error("Emulation stopped at %03X: %s", CPU.CpuRegisters['PC'], error)
            status = 1
        finally:
            speaker.DECONSTRUCTOR()
            Screen.DECONSTRUCTOR()

        logger.info("Emulator shut down")
        return status


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="CHIP-8 emulator")
    parser.add_argument('rom',
        help="Path to the CHIP-8 program to run")
    parser.add_argument('--scale', type=int, default=15,
        help="Size of one CHIP-8 pixel in screen pixels")
    parser.add_argument('--ticks-per-frame', type=int, default=Emulator.TICKS_PER_FRAME,
        help="Instructions executed per frame")
    parser.add_argument('--fps', type=int, default=Emulator.FPS,
        help="Frames per second, also the timer rate")
    parser.add_argument('--mute', action='store_true',
        help="Disable the buzzer")
    parser.add_argument('--debug', action='store_true',
        help="Enable verbose debug logging of every instruction")
    return parser.parse_args(argv)


def cli(argv=None):
    args = parse_args(argv)

    logging.basicConfig(level=logging.DEBUG if args.debug else logging.INFO,
                        format="%(asctime)s %(name)s %(levelname)s: %(message)s")

    emulator = Emulator(rom=args.rom, scale=args.scale, ticks_per_frame=args.ticks_per_frame,
                        fps=args.fps, mute=args.mute)
    return emulator.main()


if __name__ == '__main__':
    sys.exit(cli())
