# audioblocks

A small engine for building audio processing graphs out of blocks.

A graph is made of **blocks** (`audioblocks.block.Block`). A block owns named
**flows**, which are inputs (`audioblocks.flow.Input`) or outputs
(`audioblocks.flow.Output`). Each flow states the formats it accepts or
produces, for example
`"{ type:'audio', freq:48000, format:['int16','int32'], channels:2}"`.
Bare keys and single-quoted strings are accepted, and so is a plain dict.

A `BlockMeta` holds other blocks. A `Processing` block is a `BlockMeta` that
runs the graph in a background thread.

## Installation

```
pip install .
```

## Building a graph

```python
from audioblocks.block import Block
from audioblocks.buffer import BufferAudio
from audioblocks.flow import Input
from audioblocks.generator_signal import GeneratorSignal
from audioblocks.processing import Processing


class Receiver(Block):
    def __init__(self, name):
        super().__init__(name)
        self.input = Input[BufferAudio](
            self, "in", "Input audio flow",
            "{ type:'audio', freq:[8000, 16000, 48000] }",
        )


process = Processing("main Process")
generator = GeneratorSignal("myGenerator")
generator.output.set(BufferAudio(generator))
process.add_block(generator)
process.add_block(Receiver("myReceiver"))
process.link_block("myGenerator", "out", "myReceiver", "in")

process.start()
# ... later
process.stop()
process.wait_end_of_process()
```

### What happens when a `Processing` runs

`start()` starts a worker thread. The thread moves through the states of
`audioblocks.thread.Status`: `CREATING`, `START`, `RUN`, `STOP` and `DIE`.

In the start state, the worker:

1. links every input to the output it names;
2. intersects the capabilities of each output with those of its linked
   inputs, and stores the result in `Output.format_mix`;
3. calls `algo_init` and then `algo_start` on every sub-block.

In the run state, it calls `process()` about every 10 ms. `process()` calls
`algo_process(current_time, 10000)` on each sub-block and then adds 10000 to
`current_time`.

`stop()` only asks the worker to stop. The worker then calls `algo_stop` and
`algo_uninit` and ends. `wait_end_of_process()` (or `join(timeout)`) waits
for the worker and returns `True` once it has ended. Calling `start()` while
the thread is still running raises `BlockEngineError`.

`audioblocks.thread.Thread` can also be used on its own. To use it,
override its hooks:

- `state_start`: return `True` to end the thread at once.
- `state_run`: return `True` to go to the stop state.
- `state_stop`

## Blocks

A block can override these hooks:

- `algo_init`
- `algo_uninit`
- `algo_start`
- `algo_stop`
- `algo_process(current_time, process_time_slot)`

`algo_reset` calls `algo_uninit` and then `algo_init`. A hook reports a
failure by raising `BlockEngineError`.

A `BlockMeta` calls `algo_init`, `algo_uninit`, `algo_start` and `algo_stop`
on every block it holds. It tries all of them first. If any of them failed,
it then raises one `BlockEngineError`.

`BlockMeta` also offers these methods:

- `add_block`: block names must be unique.
- `get_block(name)`
- `get_block_named(name)`: returns the meta-block itself for `""` or for its
  own name.
- `link_block(generator, output, receiver, input)`

`GeneratorSignal` has one output flow, `out`. Each `algo_process` call fills
the buffer attached to that output with a cosine wave of amplitude 0.5. The
samples are encoded in the buffer's format, and the phase advances by 0.1
for each chunk.

## Capability intersection

`audioblocks.flow.intersect(first, second)` compares two capability values:

- `intersect(None, x)` gives `x`.
- Equal numbers, or equal strings, give that value.
- A number or string that appears in a list given as `second` gives that
  number or string.
- Any other pair gives `None`.

`FlowInterface.get_flow_intersection(capabilities)` requires every
description to have the same `type`. For the `audio` type it intersects
`freq`, `format` and `channels` in order.

## Buffers

`audioblocks.buffer.BufferAudio` holds interleaved samples as raw bytes in
`data`. By default it is set up like this:

- 48000 Hz;
- the channels `FRONT_LEFT` and `FRONT_RIGHT`;
- the format `AudioFormat.INT16`;
- 32 chunks.

A chunk is one sample for each channel. The sample size comes from the
`AudioFormat` chosen.

- `len(buffer)` is the number of chunks.
- `resize(nb_chunks)` changes the number of chunks and keeps the existing
  samples.
- `clear()` sets every sample to zero.

`Flow.set(buffer)` attaches a buffer to a flow. It raises `TypeError` if the
buffer is not of the flow's type.

## Errors

Failures raise `audioblocks.errors.BlockEngineError` or one of its
subclasses. Each one carries an `ErrorCode` in `code`.

- `AlreadyExistsError`: a block with the same name has already been added.
- `InputNullError`: a `None` block or flow was given.
- `ForbiddenError`: a link was set on an output, or a reference was added to
  an input.
- `NoIOError`: the named flow does not exist.

## What the package does not do

The package does not talk to sound devices. It does not read or write audio
files either. Its only ready-made block is `GeneratorSignal`; receiving
blocks are for you to write. Buffers are not allocated for you: attach one
to each output with `Flow.set`.

## Running the tests

```
pip install .[test]
pytest
```