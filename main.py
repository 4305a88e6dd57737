"""
pygame front end for the vipax CHIP-8 emulator.

    python main.py rom=roms/pong.ch8
    python main.py rom=roms/pong.ch8 instruction_frequency=1000 color_scheme=amber
    python main.py rom=roms/pong.ch8 'debug.breakpoints=[0x202]' 'debug.instruction_masks=[0xF065]'
"""

import sys

import hydra
import jax
import jax.numpy as jnp
import numpy as np
import pygame
from hydra.utils import to_absolute_path
from omegaconf import DictConfig

from vipax import (
    Debugger, RomLoadError, StepStatus, create_state, create_color_scheme, decrement_timers,
    display_to_rgb, load_rom, run_frame, SCREEN_WIDTH, SCREEN_HEIGHT
)
from vipax.logging import logger

# Original COSMAC VIP layout on the left of a QWERTY keyboard, plus arrows
KEY_MAP = {
    pygame.K_1: 0x1, pygame.K_2: 0x2, pygame.K_3: 0x3, pygame.K_4: 0xC,
    pygame.K_q: 0x4, pygame.K_w: 0x5, pygame.K_e: 0x6, pygame.K_r: 0xD,
    pygame.K_a: 0x7, pygame.K_s: 0x8, pygame.K_d: 0x9, pygame.K_f: 0xE,
    pygame.K_z: 0xA, pygame.K_x: 0x0, pygame.K_c: 0xB, pygame.K_v: 0xF,
    pygame.K_UP: 0x2, pygame.K_LEFT: 0x4, pygame.K_RIGHT: 0x6, pygame.K_DOWN: 0x8,
}

tick_timers = jax.jit(decrement_timers)


def parse_address(value) -> int:
    """Accept ints and strings such as '0x202' from the config."""
    return value if isinstance(value, int) else int(str(value), 0)


def build_debugger(cfg: DictConfig) -> Debugger:
    debugger = Debugger()
    for address in cfg.debug.breakpoints:
        debugger.add_breakpoint(parse_address(address))
    for mask in cfg.debug.instruction_masks:
        debugger.add_instruction_breakpoint(parse_address(mask))
    for value in cfg.debug.index_breakpoints:
        debugger.add_index_breakpoint(parse_address(value))
    return debugger


def make_beep(tone_hz: int, sample_rate: int, volume: float) -> pygame.mixer.Sound:
    """One second of square wave, looped while the sound timer runs."""
    amplitude = int(volume * np.iinfo(np.int16).max)
    t = np.arange(sample_rate) / sample_rate
    wave = np.where(np.sin(2 * np.pi * tone_hz * t) >= 0, amplitude, -amplitude).astype(np.int16)
    return pygame.sndarray.make_sound(wave)


def read_keypad() -> jnp.ndarray:
    pressed = pygame.key.get_pressed()
    keypad = np.zeros(16, dtype=np.bool_)
    for key, index in KEY_MAP.items():
        keypad[index] |= bool(pressed[key])
    return jnp.asarray(keypad)


def draw(screen: pygame.Surface, display, scale: int, on_color, off_color):
    rgb = display_to_rgb(display, scale=scale, on_color=on_color, off_color=off_color)
    screen.blit(pygame.surfarray.make_surface(rgb.swapaxes(0, 1)), (0, 0))
    pygame.display.flip()


def report_fault(instruction, address):
    logger.critical(
        f"Instruction not implemented: 0x{int(instruction):04X} at 0x{int(address):03X}"
    )


@hydra.main(version_base=None, config_path="conf", config_name="config")
def main(cfg: DictConfig) -> None:
    logger.set_level(cfg.log_level)
    on_color, off_color = create_color_scheme(cfg.color_scheme)
    steps_per_frame = max(1, cfg.instruction_frequency // cfg.fps)
    debugger = build_debugger(cfg)

    state = create_state(jax.random.PRNGKey(cfg.seed))
    try:
        state = load_rom(state, to_absolute_path(cfg.rom))
    except RomLoadError as e:
        logger.critical(str(e))
        sys.exit(1)
    logger.info(f"Loaded {cfg.rom}, {steps_per_frame} instructions per frame")
    if debugger.active:
        logger.info(
            f"Debugger armed: pc={[hex(a) for a in debugger.breakpoints]} "
            f"masks={[hex(m) for m in debugger.instruction_masks]} "
            f"I={[hex(v) for v in debugger.index_breakpoints]}"
        )

    if cfg.sound.enabled:
        pygame.mixer.pre_init(cfg.sound.sample_rate, -16, 1, 512)
    pygame.init()
    screen = pygame.display.set_mode((SCREEN_WIDTH * cfg.scale, SCREEN_HEIGHT * cfg.scale))
    pygame.display.set_caption(f"vipax - {cfg.rom}")
    clock = pygame.time.Clock()
    beep = make_beep(cfg.sound.tone_hz, cfg.sound.sample_rate, cfg.sound.volume) if cfg.sound.enabled else None
    beeping = False

    draw(screen, state.display, cfg.scale, on_color, off_color)

    exit_code = 0
    running = True
    while running:
        clock.tick(cfg.fps)

        for event in pygame.event.get():
            if event.type == pygame.QUIT:
                running = False
            elif event.type == pygame.KEYDOWN and event.key == pygame.K_ESCAPE:
                running = False

        state = state.replace(keypad=read_keypad())

        if debugger.active:
            redraw = False
            for _ in range(steps_per_frame):
                state, result = debugger.step(state)
                status = StepStatus(int(result.status))
                if status == StepStatus.FAULT:
                    break
                redraw |= status == StepStatus.REDRAW
            else:
                state = tick_timers(state)
        else:
            state, result = run_frame(state, steps_per_frame)
            status = StepStatus(int(result.status))
            redraw = status == StepStatus.REDRAW

        if status == StepStatus.FAULT:
            report_fault(result.instruction, result.address)
            exit_code = 1
            running = False

        if redraw:
            draw(screen, state.display, cfg.scale, on_color, off_color)

        if beep is not None:
            sound_active = bool(state.sound_active)
            if sound_active and not beeping:
                beep.play(-1)
            elif beeping and not sound_active:
                beep.stop()
            beeping = sound_active

    pygame.quit()
    if exit_code:
        sys.exit(exit_code)


if __name__ == "__main__":
    main()
