"""Data buffers exchanged between blocks."""

from enum import Enum


class AudioFormat(Enum):
    """Sample formats with their size in bytes."""

    INT8 = ("int8", 1)
    INT16 = ("int16", 2)
    INT24 = ("int24", 4)
    INT32 = ("int32", 4)
    FLOAT = ("float", 4)
    DOUBLE = ("double", 8)
    INT16_OVER_INT32 = ("int16-on-int32", 4)

    def __init__(self, label, sample_size):
        self.label = label
        self.sample_size = sample_size


class AudioChannel(Enum):
    """Position of an audio channel."""

    FRONT_LEFT = 0
    FRONT_CENTER = 1
    FRONT_RIGHT = 2
    REAR_LEFT = 3
    REAR_CENTER = 4
    REAR_RIGHT = 5
    SURROUND_LEFT = 6
    SURROUND_RIGHT = 7
    SUB_WOOFER = 8
    LFE = 9


_DEFAULT_CHANNELS = (AudioChannel.FRONT_LEFT, AudioChannel.FRONT_RIGHT)
_INITIAL_CHUNKS = 32


class Buffer:
    """Generic buffer owned by a block."""

    def __init__(self, parent):
        self.parent = parent
        self.timestamp = 0
        self.time_size = 0


class BufferAudio(Buffer):
    """Interleaved raw audio samples stored as bytes."""

    def __init__(
        self,
        parent,
        frequency=48000,
        channel_map=_DEFAULT_CHANNELS,
        audio_format=AudioFormat.INT16,
    ):
        super().__init__(parent)
        channel_map = tuple(channel_map)
        if not channel_map:
            raise ValueError("an audio buffer needs at least one channel")
        self.frequency = frequency
        self.channel_map = channel_map
        self.format = audio_format
        self.sample_size = audio_format.sample_size
        self.chunk_size = self.sample_size * len(channel_map)
        self.data = bytearray()
        self.resize(_INITIAL_CHUNKS)

    def clear(self):
        """Set every sample to zero."""
        self.data[:] = bytes(len(self.data))

    def resize(self, nb_chunks):
        """Resize to ``nb_chunks`` chunks, keeping the existing samples."""
        if nb_chunks < 0:
            raise ValueError("number of chunks must not be negative")
        new_length = self.chunk_size * nb_chunks
        current = len(self.data)
        if new_length < current:
            del self.data[new_length:]
        else:
            self.data.extend(bytes(new_length - current))

    def __len__(self):
        return len(self.data) // self.chunk_size


class BufferAudioFreq(BufferAudio):
    """Audio buffer holding frequency-domain data."""

    def __init__(self, parent):
        super().__init__(parent)