import math
import struct

import pytest

from audioblocks.buffer import AudioFormat, Buffer, BufferAudio
from audioblocks.generator_signal import GeneratorSignal


def test_output_flow_is_registered():
    gen = GeneratorSignal("gen")
    assert gen.flow_get_all() == ["out"]
    assert gen.output.is_output
    assert gen.get_flow_reference("out") is gen.output.reference


def test_output_capabilities_from_description():
    gen = GeneratorSignal("gen")
    caps = gen.output.capabilities
    assert caps["type"] == "audio"
    assert caps["freq"] == 48000
    assert caps["format"] == ["int16", "int32"]
    assert caps["channels"] == 2


def test_output_accepts_only_audio_buffers():
    gen = GeneratorSignal("gen")
    buffer = BufferAudio(gen)
    gen.output.set(buffer)
    assert gen.output.get() is buffer
    with pytest.raises(TypeError):
        gen.output.set(Buffer(gen))
    assert gen.output.get() is None


def test_process_without_buffer_keeps_phase():
    gen = GeneratorSignal("gen")
    gen.algo_process(0, 10000)
    assert gen.phase == 0.0


def test_process_fills_int16_buffer_with_equal_channels():
    gen = GeneratorSignal("gen")
    buffer = BufferAudio(gen)
    gen.output.set(buffer)
    gen.algo_process(0, 10000)
    samples = struct.unpack(f"<{len(buffer) * 2}h", bytes(buffer.data))
    left = samples[0::2]
    right = samples[1::2]
    assert left == right
    assert left[0] > 0
    assert max(abs(value) for value in samples) <= 32767 // 2 + 1
    assert gen.phase == pytest.approx(len(buffer) * 0.1)


def test_process_float_buffer_starts_at_half_amplitude():
    gen = GeneratorSignal("gen")
    buffer = BufferAudio(gen, audio_format=AudioFormat.FLOAT)
    gen.output.set(buffer)
    gen.algo_process(0, 10000)
    samples = struct.unpack(f"<{len(buffer) * 2}f", bytes(buffer.data))
    assert samples[0] == 0.5
    assert all(-0.5 <= value <= 0.5 for value in samples)


def test_phase_wraps_below_four_pi():
    gen = GeneratorSignal("gen")
    buffer = BufferAudio(gen)
    buffer.resize(500)
    gen.output.set(buffer)
    gen.algo_process(0, 10000)
    assert 0.0 <= gen.phase <= 4.0 * math.pi