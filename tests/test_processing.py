import time

import pytest

from audioblocks.block import Block
from audioblocks.buffer import BufferAudio
from audioblocks.errors import BlockEngineError, ErrorCode
from audioblocks.flow import Input
from audioblocks.generator_signal import GeneratorSignal
from audioblocks.processing import Processing
from audioblocks.thread import Status


class _Receiver(Block):
    def __init__(self, name, calls=None, fail_on=()):
        super().__init__(name)
        self.calls = [] if calls is None else calls
        self.fail_on = set(fail_on)
        self.times = []
        self.input = Input[BufferAudio](
            self,
            "in",
            "Input audio flow",
            "{ type:'audio', freq:[8000, 16000, 32000, 48000, 64000, 96000, 128000, 192000], "
            "format:['int8','int16','int32','float']}",
        )

    def _record(self, action):
        self.calls.append(action)
        if action in self.fail_on:
            raise BlockEngineError(f"{action} failed", ErrorCode.FAIL)

    def algo_init(self):
        self._record("init")

    def algo_uninit(self):
        self._record("uninit")

    def algo_start(self):
        self._record("start")

    def algo_stop(self):
        self._record("stop")

    def algo_process(self, current_time, process_time_slot):
        self.times.append((current_time, process_time_slot))


def _build(fail_on=()):
    process = Processing("main Process")
    generator = GeneratorSignal("myGenerator")
    process.add_block(generator)
    receiver = _Receiver("myReceiver", fail_on=fail_on)
    process.add_block(receiver)
    process.link_block("myGenerator", "out", "myReceiver", "in")
    return process, generator, receiver


def _wait_for(predicate, timeout=5.0):
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.005)
    return predicate()


def test_state_start_links_and_negotiates():
    process, generator, receiver = _build()
    assert process.state_start() is False
    assert receiver.input.remote is generator.output.reference
    mix = generator.output.format_mix
    assert mix["type"] == "audio"
    assert mix["freq"] == 48000
    assert mix["channels"] == 2
    assert receiver.calls == ["init", "start"]


def test_state_stop_stops_then_uninits():
    process, _, receiver = _build()
    process.state_start()
    assert process.state_stop() is False
    assert receiver.calls == ["init", "start", "stop", "uninit"]


def test_state_start_reports_init_failure():
    process, _, receiver = _build(fail_on={"init"})
    assert process.state_start() is True
    assert receiver.calls == ["init"]


def test_process_advances_clock_between_slots():
    process, _, receiver = _build()
    process.process()
    process.process()
    (first, slot), (second, _) = receiver.times
    assert second - first == slot
    assert process.current_time == second + slot


def test_play_then_stop_runs_full_cycle():
    process, generator, receiver = _build()
    process.start()
    assert _wait_for(lambda: process.state is Status.RUN)
    assert _wait_for(lambda: receiver.times)
    process.stop()
    assert process.wait_end_of_process() is True
    assert process.state is Status.DIE
    assert receiver.calls == ["init", "start", "stop", "uninit"]
    assert generator.output.format_mix["freq"] == 48000


def test_start_twice_raises():
    process, _, _ = _build()
    process.start()
    try:
        with pytest.raises(BlockEngineError) as info:
            process.start()
        assert info.value.code is ErrorCode.FAIL
    finally:
        process.stop()
        process.wait_end_of_process()


def test_init_failure_ends_thread_without_start():
    process, _, receiver = _build(fail_on={"init"})
    process.start()
    assert process.wait_end_of_process() is True
    assert process.state is Status.DIE
    assert receiver.calls == ["init"]


def test_processing_keeps_its_block_name():
    process = Processing("main Process")
    assert process.name == "main Process"
    assert process.get_block_named("main Process") is process