"""Block-based audio processing engine: blocks, flows, buffers, a sine generator and a threaded processing graph."""

__version__ = "0.1.0"