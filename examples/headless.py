"""Run a ROM without a window and report how fast the compiled emulator is.

    python examples/headless.py roms/pong.ch8 600
"""

import sys
import time

import jax

from vipax import create_state, load_rom, run_frames, format_state, StepStatus, RomLoadError
from vipax.emulator import DEFAULT_STEPS_PER_FRAME
from vipax.logging import logger

if __name__ == "__main__":
    if len(sys.argv) < 2:
        print(f"usage: {sys.argv[0]} ROM [FRAMES]")
        sys.exit(2)
    num_frames = int(sys.argv[2]) if len(sys.argv) > 2 else 600

    try:
        state = load_rom(create_state(jax.random.PRNGKey(0)), sys.argv[1])
    except RomLoadError as e:
        logger.critical(str(e))
        sys.exit(1)

    # Measure compilation time
    start_compile = time.time()
    compiled = jax.block_until_ready(
        run_frames.lower(state, num_frames, DEFAULT_STEPS_PER_FRAME, True).compile()
    )
    logger.info(f"Compilation time (s): {time.time() - start_compile:.2f}")

    # Measure execution time
    start_exec = time.time()
    final_state, results = jax.block_until_ready(compiled(state))
    elapsed = time.time() - start_exec
    logger.info(f"Execution time (s): {elapsed:.2f} ({num_frames / elapsed:,.0f} frames/s)")

    faulted = results.status == int(StepStatus.FAULT)
    if faulted.any():
        frame = int(faulted.argmax())
        logger.error(
            f"Faulted in frame {frame} on 0x{int(results.instruction[frame]):04X} "
            f"at 0x{int(results.address[frame]):03X}"
        )
    print(format_state(final_state))
