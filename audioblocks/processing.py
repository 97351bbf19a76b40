"""Top-level meta-block driven by its own worker thread."""

import logging
import time

from .block import BlockMeta
from .errors import BlockEngineError
from .thread import Thread

_log = logging.getLogger(__name__)

_TIME_SLOT = 10000
_RUN_PERIOD = 0.01


class Processing(BlockMeta, Thread):
    """Meta-block that links, starts, runs and stops its sub-blocks in a thread."""

    def __init__(self, name=""):
        Thread.__init__(self, name or "not-set-name")
        BlockMeta.__init__(self, name)
        self.current_time = 0

    def process(self):
        """Run one processing slot on every sub-block and advance the clock."""
        _log.info("Process : '%s' at %d", self.name, self.current_time)
        for block in self.blocks:
            block.algo_process(self.current_time, _TIME_SLOT)
        self.current_time += _TIME_SLOT

    def start(self):
        """Start the processing thread."""
        Thread.start(self)

    def stop(self):
        """Request the processing thread to stop."""
        Thread.stop(self)

    def wait_end_of_process(self):
        """Wait for the processing thread to end; return True once it has."""
        _log.info("wait end of Processing : '%s'", self.name)
        return self.join()

    def state_start(self):
        _log.info("Start Processing : '%s'", self.name)
        self.flow_link_input()
        self.flow_check_all_compatibility()
        self.flow_allocate_output()
        self.flow_get_input()
        try:
            self.algo_init()
        except BlockEngineError as exc:
            _log.error("[%s] init failed: %s", self.name, exc)
            return True
        try:
            BlockMeta.algo_start(self)
        except BlockEngineError as exc:
            _log.error("[%s] start failed: %s", self.name, exc)
        return False

    def state_run(self):
        self.process()
        time.sleep(_RUN_PERIOD)
        return False

    def state_stop(self):
        _log.info("Stop Processing : '%s'", self.name)
        try:
            BlockMeta.algo_stop(self)
        except BlockEngineError as exc:
            _log.error("[%s] stop failed: %s", self.name, exc)
            return True
        try:
            self.algo_uninit()
        except BlockEngineError as exc:
            _log.error("[%s] un-init failed: %s", self.name, exc)
        return False