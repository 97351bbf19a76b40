import pytest

from audioblocks.buffer import (
    AudioChannel,
    AudioFormat,
    Buffer,
    BufferAudio,
    BufferAudioFreq,
)

PARENT = object()


def test_buffer_keeps_parent_and_zero_times():
    buf = Buffer(PARENT)
    assert buf.parent is PARENT
    assert (buf.timestamp, buf.time_size) == (0, 0)


def test_default_audio_buffer():
    buf = BufferAudio(PARENT)
    assert buf.frequency == 48000
    assert buf.channel_map == (AudioChannel.FRONT_LEFT, AudioChannel.FRONT_RIGHT)
    assert buf.format is AudioFormat.INT16
    assert buf.sample_size == 2
    assert buf.chunk_size == 4
    assert len(buf) == 32
    assert len(buf.data) == len(buf) * buf.chunk_size
    assert not any(buf.data)


@pytest.mark.parametrize(
    "fmt, size",
    [
        (AudioFormat.INT8, 1),
        (AudioFormat.INT16, 2),
        (AudioFormat.INT24, 4),
        (AudioFormat.INT32, 4),
        (AudioFormat.FLOAT, 4),
        (AudioFormat.DOUBLE, 8),
        (AudioFormat.INT16_OVER_INT32, 4),
    ],
)
def test_sample_size_per_format(fmt, size):
    channels = [AudioChannel.FRONT_LEFT, AudioChannel.FRONT_CENTER, AudioChannel.FRONT_RIGHT]
    buf = BufferAudio(PARENT, 16000, channels, fmt)
    assert buf.sample_size == size
    assert buf.chunk_size == size * len(channels)
    assert len(buf) == 32


def test_resize_keeps_existing_samples():
    buf = BufferAudio(PARENT)
    buf.data[0] = 7
    buf.data[-1] = 9
    last = len(buf.data) - 1
    buf.resize(64)
    assert len(buf) == 64
    assert buf.data[0] == 7
    assert buf.data[last] == 9
    assert not any(buf.data[last + 1:])
    buf.resize(1)
    assert len(buf) == 1
    assert len(buf.data) == buf.chunk_size
    assert buf.data[0] == 7


def test_resize_to_zero_and_negative():
    buf = BufferAudio(PARENT)
    buf.resize(0)
    assert len(buf) == 0
    with pytest.raises(ValueError):
        buf.resize(-1)


def test_clear_zeroes_data_without_resizing():
    buf = BufferAudio(PARENT)
    buf.data[:] = b"\xff" * len(buf.data)
    buf.clear()
    assert len(buf) == 32
    assert not any(buf.data)


def test_empty_channel_map_rejected():
    with pytest.raises(ValueError):
        BufferAudio(PARENT, 48000, [], AudioFormat.INT16)


def test_freq_buffer_uses_audio_defaults():
    buf = BufferAudioFreq(PARENT)
    assert buf.parent is PARENT
    assert buf.frequency == 48000
    assert buf.format is AudioFormat.INT16
    assert len(buf) == 32