"""Tests for the breakpoint debugger and state dumps."""

import jax
import jax.numpy as jnp
from vipax import Debugger, format_state, step
from conftest import program_state


class TestFormatState:
    def test_dump_contents(self):
        state = program_state(0x6A42, 0xF50A)
        state = state.replace(V=state.V.at[0xA].set(0x42), I=jnp.asarray(0x50, dtype=jnp.uint16))

        text = format_state(state)

        assert "VA: 0x42" in text
        assert "address register: 0x0050" in text
        assert "memory at address register: 0xf0 0x90 0x90" in text
        assert "program counter: 0x0200" in text
        assert "next instructions: 0x6a42 0xf50a" in text
        assert "current instruction: LD VA, 0x42" in text
        assert "stack depth: 0" in text
        assert "waiting for key: False" in text

    def test_dump_near_end_of_memory(self, fresh_state):
        state = fresh_state.replace(
            pc=jnp.asarray(0xFFE, dtype=jnp.uint16),
            I=jnp.asarray(0xFFF, dtype=jnp.uint16),
        )
        text = format_state(state)
        assert "program counter: 0x0ffe" in text


class TestDebugger:
    def test_inactive_by_default(self):
        assert not Debugger().active

    def test_duplicates_are_ignored(self):
        debugger = Debugger()
        debugger.add_breakpoint(0x200)
        debugger.add_breakpoint(0x200)
        assert debugger.breakpoints == [0x200]

    def test_remove_and_clear(self):
        debugger = Debugger()
        debugger.add_breakpoint(0x200)
        debugger.add_instruction_breakpoint(0xF000)
        debugger.add_index_breakpoint(0x300)

        debugger.remove_breakpoint(0x200)
        debugger.remove_breakpoint(0x999)
        assert debugger.breakpoints == []
        assert debugger.active

        debugger.clear()
        assert not debugger.active

    def test_pc_breakpoint(self):
        output = []
        debugger = Debugger(sink=output.append)
        debugger.add_breakpoint(0x202)

        state = program_state(0x6001, 0x6102, 0x6203)
        state, _ = debugger.step(state)
        assert output == []

        state, _ = debugger.step(state)
        assert len(output) == 1
        assert output[0].startswith("breakpoint: pc == 0x0202")
        assert "program counter: 0x0202" in output[0]
        assert state.V[1] == 2

    def test_instruction_mask(self):
        output = []
        debugger = Debugger(sink=output.append)
        debugger.add_instruction_breakpoint(0xF00A)

        state = program_state(0x6001, 0xF30A)
        state, _ = debugger.step(state)
        state, _ = debugger.step(state)

        assert len(output) == 1
        assert "instruction 0xf30a matches mask 0xf00a" in output[0]

    def test_index_breakpoint(self):
        output = []
        debugger = Debugger(sink=output.append)
        debugger.add_index_breakpoint(0x300)

        state = program_state(0xA300, 0x6001)
        state, _ = debugger.step(state)
        state, _ = debugger.step(state)

        assert len(output) == 1
        assert "I == 0x0300" in output[0]

    def test_one_dump_per_step(self):
        output = []
        debugger = Debugger(sink=output.append)
        debugger.add_breakpoint(0x200)
        debugger.add_instruction_breakpoint(0x6000)
        debugger.add_index_breakpoint(0x0)

        debugger.step(program_state(0x6001))

        assert len(output) == 1
        assert len(debugger.triggers(program_state(0x6001))) == 3

    def test_default_sink_logs(self, capsys):
        debugger = Debugger()
        debugger.add_breakpoint(0x200)
        debugger.step(program_state(0x6001))
        assert "breakpoint: pc == 0x0200" in capsys.readouterr().out

    def test_step_matches_plain_step(self):
        """A firing trigger only adds a dump; the machine advances exactly as without it."""
        output = []
        debugger = Debugger(sink=output.append)
        debugger.add_breakpoint(0x200)
        debugger.add_instruction_breakpoint(0xA000)

        initial = program_state(0xA123, 0x2206, 0xD015)
        debugged, plain = initial, initial
        for _ in range(3):
            debugged, debugged_result = debugger.step(debugged)
            plain, plain_result = step(plain)

            assert jax.tree_util.tree_all(
                jax.tree_util.tree_map(lambda a, b: bool(jnp.array_equal(a, b)), debugged, plain)
            )
            assert int(debugged_result.status) == int(plain_result.status)
            assert int(debugged_result.address) == int(plain_result.address)
        assert len(output) == 1
