"""
Machine state, lifecycle, fetch, keypad, framebuffer and timer tests.
"""

import pytest

from architecture import Architecture
from exceptions import (
    InvalidKeyException,
    LoadTooLargeException,
    MachineFaultException,
    StackUnderflowException,
    UnknownOpCodeException,
)
from fonts import FONTSET


def fresh_state(cpu):
    return (
        bytes(cpu.memory),
        bytes(cpu.GeneralRegisters),
        dict(cpu.CpuRegisters),
        list(cpu.Stack),
        dict(cpu.Timers),
        list(cpu.Keys),
        cpu.GET_FRAMEBUFFER(),
    )


class TestInitialState:

    def test_program_counter_at_start(self):
        cpu = Architecture()
        assert cpu.CpuRegisters['PC'] == 0x200
        assert cpu.CpuRegisters['SP'] == 0
        assert cpu.CpuRegisters['I'] == 0

    def test_glyphs_loaded_at_zero(self):
        cpu = Architecture()
        assert bytes(cpu.memory[:80]) == FONTSET
        assert not any(cpu.memory[80:])

    def test_everything_else_zeroed(self):
        cpu = Architecture()
        assert not any(cpu.GeneralRegisters)
        assert not any(cpu.Stack)
        assert cpu.Timers == {'DT': 0, 'ST': 0}
        assert not any(cpu.Keys)
        assert not any(cpu.GET_FRAMEBUFFER())
        assert len(cpu.GET_FRAMEBUFFER()) == 64 * 32


class TestReset:

    def test_reset_restores_fresh_state(self):
        cpu = Architecture()
        cpu.LOAD(bytes([0x22, 0x04, 0x00, 0x00, 0xD0, 0x05]))
        cpu.STEP()
        cpu.memory[0x10] = 0x00
        cpu.GeneralRegisters[0x3] = 0x42
        cpu.Timers['DT'] = 9
        cpu.Timers['ST'] = 4
        cpu.SET_KEY(0xA, True)
        cpu.STEP()
        cpu.CpuRegisters['I'] = 0x123

        assert any(cpu.GET_FRAMEBUFFER())

        cpu.RESET()

        assert fresh_state(cpu) == fresh_state(Architecture())

    def test_reset_reseeds_glyphs(self):
        cpu = Architecture()
        cpu.memory[0:80] = bytes(80)
        cpu.RESET()
        assert bytes(cpu.memory[:80]) == FONTSET


class TestLoad:

    def test_fetch_reads_first_loaded_word(self):
        cpu = Architecture()
        cpu.LOAD(bytes([0x12, 0x34, 0x56]))
        assert cpu.FETCH() == 0x1234
        assert cpu.CpuRegisters['PC'] == 0x202

    def test_largest_program_fits(self):
        cpu = Architecture()
        program = bytes([0xAB]) * (4096 - 512)
        cpu.LOAD(program)
        assert bytes(cpu.memory[0x200:]) == program

    def test_accepts_any_byte_sequence(self):
        cpu = Architecture()
        cpu.LOAD([0x00, 0xE0])
        assert cpu.FETCH() == 0x00E0

    def test_rejects_integer_length(self):
        """LOAD(5) is not a five byte program"""
        cpu = Architecture()
        before = bytes(cpu.memory)

        with pytest.raises(TypeError):
            cpu.LOAD(5)

        assert bytes(cpu.memory) == before

    def test_too_large_does_not_touch_memory(self):
        cpu = Architecture()
        before = bytes(cpu.memory)

        with pytest.raises(LoadTooLargeException) as excinfo:
            cpu.LOAD(bytes([0xFF]) * (4096 - 512 + 1))

        assert excinfo.value.length == 3585
        assert excinfo.value.capacity == 3584
        assert bytes(cpu.memory) == before


class TestFetch:

    def test_big_endian(self):
        cpu = Architecture()
        cpu.memory[0x300] = 0xA2
        cpu.memory[0x301] = 0xF0
        cpu.CpuRegisters['PC'] = 0x300
        assert cpu.FETCH() == 0xA2F0
        assert cpu.CpuRegisters['PC'] == 0x302

    def test_last_word_of_memory(self):
        cpu = Architecture()
        cpu.CpuRegisters['PC'] = 0xFFE
        assert cpu.FETCH() == 0x0000

    @pytest.mark.parametrize("address", [0xFFF, 0x1000, 0x2000])
    def test_fetch_out_of_memory_faults(self, address):
        cpu = Architecture()
        cpu.CpuRegisters['PC'] = address

        with pytest.raises(MachineFaultException):
            cpu.STEP()

        assert cpu.CpuRegisters['PC'] == address


class TestStep:

    def test_add_scenario(self):
        """V0 = 5, V1 = 3, V0 += V1 → V0 = 8, VF = 0, PC advanced by 6"""
        cpu = Architecture()
        cpu.LOAD(bytes([0x60, 0x05, 0x61, 0x03, 0x80, 0x14]))

        for _ in range(3):
            cpu.STEP()

        assert cpu.GeneralRegisters[0x0] == 8
        assert cpu.GeneralRegisters[0xF] == 0
        assert cpu.CpuRegisters['PC'] == 0x206

    def test_step_returns_word(self):
        cpu = Architecture()
        cpu.LOAD(bytes([0x6A, 0x42]))
        assert cpu.STEP() == 0x6A42
        assert cpu.CurrentOperand == 0x6A42

    def test_unknown_opcode_stops_at_offending_word(self):
        cpu = Architecture()
        cpu.LOAD(bytes([0x00, 0x00, 0xFF, 0xFF]))
        cpu.STEP()

        with pytest.raises(UnknownOpCodeException) as excinfo:
            cpu.STEP()

        assert excinfo.value.opcode == 0xFFFF
        assert cpu.CpuRegisters['PC'] == 0x202

    def test_return_with_empty_stack(self):
        cpu = Architecture()
        cpu.LOAD(bytes([0x00, 0xEE]))

        with pytest.raises(StackUnderflowException):
            cpu.STEP()

        assert cpu.CpuRegisters['PC'] == 0x200
        assert cpu.CpuRegisters['SP'] == 0


class TestKeys:

    def test_set_and_release(self):
        cpu = Architecture()
        cpu.SET_KEY(0xF, True)
        assert cpu.Keys[0xF]
        cpu.SET_KEY(0xF, False)
        assert not cpu.Keys[0xF]

    @pytest.mark.parametrize("index", [-1, 16, 255, 1.0, '1', True])
    def test_out_of_range_index(self, index):
        cpu = Architecture()

        with pytest.raises(InvalidKeyException) as excinfo:
            cpu.SET_KEY(index, True)

        assert excinfo.value.index == index
        assert not any(cpu.Keys)


class TestFramebuffer:

    def test_view_is_read_only(self):
        cpu = Architecture()
        view = cpu.GET_FRAMEBUFFER()

        with pytest.raises(TypeError):
            view[0] = True

    def test_view_is_a_snapshot(self):
        cpu = Architecture()
        view = cpu.GET_FRAMEBUFFER()
        cpu.CpuRegisters['I'] = 0
        cpu.EXECUTE(0xD005)

        assert not any(view)
        assert any(cpu.GET_FRAMEBUFFER())

    def test_framebuffer_is_row_major(self):
        cpu = Architecture()
        cpu.memory[0x300] = 0x80
        cpu.CpuRegisters['I'] = 0x300
        cpu.GeneralRegisters[0x0] = 10
        cpu.GeneralRegisters[0x1] = 3
        cpu.EXECUTE(0xD011)

        assert cpu.GET_FRAMEBUFFER()[3 * 64 + 10]
        assert sum(cpu.GET_FRAMEBUFFER()) == 1


class TestTimers:

    def test_sound_timer_runs_out(self):
        cpu = Architecture()
        cpu.Timers['ST'] = 1
        assert cpu.DECREMENT_TIMERS() is True
        assert cpu.Timers['ST'] == 0

    def test_idle_sound_timer(self):
        cpu = Architecture()
        assert cpu.DECREMENT_TIMERS() is False
        assert cpu.Timers['ST'] == 0

    def test_sound_timer_counting_down(self):
        cpu = Architecture()
        cpu.Timers['ST'] = 5
        assert cpu.DECREMENT_TIMERS() is False
        assert cpu.Timers['ST'] == 4
        assert cpu.Timers['DT'] == 0

    def test_emits_once_per_countdown(self):
        cpu = Architecture()
        cpu.Timers['ST'] = 3
        emitted = [cpu.DECREMENT_TIMERS() for _ in range(5)]
        assert emitted == [False, False, True, False, False]
        assert cpu.Timers['ST'] == 0

    def test_delay_timer_stops_at_zero(self):
        cpu = Architecture()
        cpu.Timers['DT'] = 2
        cpu.DECREMENT_TIMERS()
        cpu.DECREMENT_TIMERS()
        cpu.DECREMENT_TIMERS()
        assert cpu.Timers['DT'] == 0

    def test_timers_are_independent(self):
        cpu = Architecture()
        cpu.Timers['DT'] = 1
        cpu.Timers['ST'] = 3
        assert cpu.DECREMENT_TIMERS() is False
        assert cpu.Timers == {'DT': 0, 'ST': 2}
