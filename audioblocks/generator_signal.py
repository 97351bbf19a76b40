"""Block generating a sine signal."""

import logging
import math
import struct

from .block import Block
from .buffer import AudioFormat, BufferAudio
from .flow import Output

_log = logging.getLogger(__name__)

_PHASE_STEP = 0.1
_PHASE_WRAP = 4.0 * math.pi
_AMPLITUDE = 0.5

_ENCODINGS = {
    AudioFormat.INT8: ("b", 127),
    AudioFormat.INT16: ("h", 32767),
    AudioFormat.INT24: ("i", 8388607),
    AudioFormat.INT32: ("i", 2147483647),
    AudioFormat.FLOAT: ("f", None),
    AudioFormat.DOUBLE: ("d", None),
    AudioFormat.INT16_OVER_INT32: ("i", 32767),
}


class GeneratorSignal(Block):
    """Generator writing a cosine wave to its ``out`` flow."""

    def __init__(self, name=""):
        super().__init__(name)
        self.phase = 0.0
        self.output = Output[BufferAudio](
            self,
            "out",
            "Output sinus generated",
            "{ type:'audio', freq:48000, format:['int16','int32'], channels:2}",
        )

    def algo_process(self, current_time, process_time_slot):
        """Fill the attached output buffer with the next samples of the wave."""
        _log.info("Process: %s chunkTime=%s", current_time, process_time_slot)
        buffer = self.output.get()
        if buffer is None:
            _log.debug("[%s] no output buffer attached", self.name)
            return
        code, scale = _ENCODINGS[buffer.format]
        channels = len(buffer.channel_map)
        values = []
        for _ in range(len(buffer)):
            sample = math.cos(self.phase) * _AMPLITUDE
            if scale is not None:
                sample = round(sample * scale)
            values.extend([sample] * channels)
            self.phase += _PHASE_STEP
            if self.phase > _PHASE_WRAP:
                self.phase -= _PHASE_WRAP
        struct.pack_into(f"<{len(values)}{code}", buffer.data, 0, *values)