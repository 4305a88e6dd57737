"""Tests for the execution driver, timers and program loading."""

import jax.numpy as jnp
import pytest
from vipax import (
    step, fetch, decrement_timers, run_frame, run_frames, load_program, load_rom,
    create_state, StepStatus, RomLoadError, MAX_PROGRAM_SIZE, PROGRAM_START
)
from conftest import program_state


class TestFetch:
    def test_fetch_is_big_endian(self):
        state = program_state(0xA2F0)
        assert fetch(state) == 0xA2F0

    def test_fetch_has_no_side_effects(self):
        state = program_state(0xA2F0)
        fetch(state)
        assert state.pc == PROGRAM_START


class TestStep:
    def test_step_runs_one_instruction(self):
        state, result = step(program_state(0x6A42, 0x6B43))
        assert state.V[0xA] == 0x42
        assert state.V[0xB] == 0
        assert state.pc == 0x202
        assert StepStatus(int(result.status)) == StepStatus.CONTINUE
        assert result.instruction == 0x6A42
        assert result.address == 0x200

    def test_draw_requests_redraw(self):
        # 200: LD I, 0x050 (glyph 0); 202: DRW V0, V1, 5
        state, result = step(program_state(0xA050, 0xD015))
        assert not result.redraw_due

        state, result = step(state)
        assert StepStatus(int(result.status)) == StepStatus.REDRAW
        assert result.redraw_due
        assert state.display.any()

    @pytest.mark.parametrize("instruction", [0x0000, 0x8008, 0xF0FF])
    def test_unknown_instruction_faults(self, instruction):
        initial = program_state(instruction)
        state, result = step(initial)

        assert result.faulted
        assert result.instruction == instruction
        assert result.address == 0x200
        assert state.pc == initial.pc
        assert jnp.array_equal(state.V, initial.V)

    def test_fault_is_sticky(self):
        state = program_state(0x0000)
        for _ in range(3):
            state, result = step(state)
            assert result.faulted
        assert state.pc == 0x200

    @pytest.mark.parametrize("pc", [0xFFF, 0x1000, 0xFFFF])
    def test_out_of_range_pc_faults(self, fresh_state, pc):
        state = fresh_state.replace(pc=jnp.asarray(pc, dtype=jnp.uint16))
        state, result = step(state)

        assert result.faulted
        assert result.instruction == 0
        assert result.address == pc
        assert state.pc == pc

    def test_last_valid_address(self, fresh_state):
        memory = fresh_state.memory.at[0xFFE].set(0x12).at[0xFFF].set(0x00)
        state = fresh_state.replace(memory=memory, pc=jnp.asarray(0xFFE, dtype=jnp.uint16))
        state, result = step(state)

        assert not result.faulted
        assert state.pc == 0x200

    def test_return_on_empty_stack_faults_next(self):
        state, result = step(program_state(0x00EE))
        assert not result.faulted

        state, result = step(state)
        assert result.faulted
        assert result.address == 0xFFFF

    def test_subroutine(self):
        # 200: CALL 206; 202: LD V2, 2; 204: JP 204; 206: LD V1, 1; 208: RET
        state = program_state(0x2206, 0x6202, 0x1204, 0x6101, 0x00EE)
        for _ in range(4):
            state, result = step(state)
            assert not result.faulted

        assert state.V[1] == 1
        assert state.V[2] == 2
        assert state.pc == 0x204
        assert state.stack.depth == 0


class TestTimers:
    def test_decrement_timers(self, fresh_state):
        state = fresh_state.replace(
            delay_timer=jnp.asarray(3, dtype=jnp.uint8),
            sound_timer=jnp.asarray(1, dtype=jnp.uint8),
        )

        state = decrement_timers(state)
        assert state.delay_timer == 2
        assert state.sound_timer == 0
        assert not state.sound_active

        state = decrement_timers(state)
        assert state.sound_timer == 0

    def test_step_does_not_touch_timers(self):
        state = program_state(0x6001).replace(delay_timer=jnp.asarray(5, dtype=jnp.uint8))
        state, _ = step(state)
        assert state.delay_timer == 5


class TestRunFrame:
    def test_counts_steps_and_ticks_timers(self):
        # 200: ADD V1, 1; 202: JP 200
        state = program_state(0x7101, 0x1200)
        state = state.replace(delay_timer=jnp.asarray(10, dtype=jnp.uint8))

        state, result = run_frame(state, 10)

        assert state.V[1] == 5
        assert state.delay_timer == 9
        assert StepStatus(int(result.status)) == StepStatus.CONTINUE

    def test_reports_redraw(self):
        # 200: DRW V0, V0, 1; 202: JP 202
        state, result = run_frame(program_state(0xD001, 0x1202), 4)
        assert StepStatus(int(result.status)) == StepStatus.REDRAW

    def test_stops_at_fault(self):
        state, result = run_frame(program_state(0x6105, 0x0000, 0x6106), 11)

        assert result.faulted
        assert result.instruction == 0x0000
        assert result.address == 0x202
        assert state.pc == 0x202
        assert state.V[1] == 5

    def test_run_frames(self):
        state = program_state(0x7101, 0x1200)
        state, results = run_frames(state, 3, 4)

        assert results.status.shape == (3,)
        assert state.V[1] == 6

    def test_run_frames_with_progress(self, capsys):
        state, results = run_frames(program_state(0x7101, 0x1200), 5, 2, True)
        assert state.V[1] == 5
        assert "Emulating" in capsys.readouterr().err


class TestLoading:
    def test_load_program(self, fresh_state):
        state = load_program(fresh_state, bytes([0x12, 0x34]))
        assert state.memory[0x200] == 0x12
        assert state.memory[0x201] == 0x34

    def test_largest_program_fits(self, fresh_state):
        state = load_program(fresh_state, bytes([0xAB]) * MAX_PROGRAM_SIZE)
        assert state.memory[0xFFF] == 0xAB

    def test_oversized_program(self, fresh_state):
        with pytest.raises(RomLoadError):
            load_program(fresh_state, bytes(MAX_PROGRAM_SIZE + 1))

    def test_load_rom(self, fresh_state, tmp_path):
        rom = tmp_path / "test.ch8"
        rom.write_bytes(bytes([0x00, 0xE0, 0x12, 0x00]))

        state = load_rom(fresh_state, str(rom))
        assert fetch(state) == 0x00E0

    def test_missing_rom(self, fresh_state, tmp_path):
        with pytest.raises(RomLoadError, match="Could not read ROM"):
            load_rom(fresh_state, str(tmp_path / "missing.ch8"))

    def test_font_is_preloaded(self):
        state = create_state()
        assert state.memory[0x50] == 0xF0
        assert state.memory[0x50 + 79] == 0x80
