"""Worker thread driven by a small state machine."""

import itertools
import logging
import threading
import time
from enum import Enum

from .errors import BlockEngineError, ErrorCode

_log = logging.getLogger(__name__)

_STOP_REQUEST = 1


class Status(Enum):
    """States of a :class:`Thread`."""

    NOT_STARTED = "NOT_STARTED"
    CREATING = "CREATING"
    START = "START"
    RUN = "RUN"
    STOP = "STOP"
    DIE = "DIE"


class Thread:
    """Thread running ``state_start``, ``state_run`` and ``state_stop`` hooks."""

    _ids = itertools.count(100)
    _ids_lock = threading.Lock()

    def __init__(self, name="not-set-name"):
        if name:
            self.name = name
        else:
            self.name = "No-name"
            _log.warning("the thread has no name")
        with Thread._ids_lock:
            self.thread_id = next(Thread._ids)
        self._lock = threading.Lock()
        self._flags = 0
        self._state = Status.NOT_STARTED
        self._worker = None
        _log.info("THREAD : Allocate [%d] name='%s'", self.thread_id, self.name)

    @property
    def state(self):
        """Current state of the thread."""
        return self._state

    def _change_state(self, new_state):
        with self._lock:
            _log.debug(
                "[%d] '%s' Change state : %s ==> %s",
                self.thread_id,
                self.name,
                self._state.value,
                new_state.value,
            )
            self._state = new_state

    def start(self):
        """Start the worker; raises if it is already running."""
        if self._state is Status.DIE:
            _log.info("Thread [%d] name='%s' ==> state die, reset it", self.thread_id, self.name)
            self.stop_at_end()
        if self._state is not Status.NOT_STARTED:
            raise BlockEngineError(
                f"Failed to create [{self.thread_id}] name='{self.name}': the thread is not stopped",
                ErrorCode.FAIL,
            )
        self._state = Status.CREATING
        self._worker = threading.Thread(
            target=self._run_loop, name=f"{self.name}-{self.thread_id}", daemon=True
        )
        self._worker.start()

    def stop(self):
        """Request the worker to stop; does not wait."""
        _log.info(" Stop [%d] name='%s'", self.thread_id, self.name)
        with self._lock:
            self._flags |= _STOP_REQUEST

    def stop_at_end(self):
        """Request a stop, wait for the worker to end and reset the state."""
        _log.info(" Delete [%d] name='%s' (StopAtEnd)", self.thread_id, self.name)
        self.stop()
        worker = self._worker
        if self._state is not Status.NOT_STARTED and worker is not None:
            if worker is not threading.current_thread():
                worker.join()
            self._worker = None
        with self._lock:
            self._flags = 0
            self._state = Status.NOT_STARTED

    def join(self, timeout=None):
        """Wait for the worker to end; return True once it has ended."""
        worker = self._worker
        if worker is None:
            return True
        worker.join(timeout)
        return not worker.is_alive()

    def state_start(self):
        """Start hook; return True on error to end the thread directly."""
        _log.debug("Not overridden: state_start")
        return False

    def state_run(self):
        """Run hook; return True to request the end of the thread."""
        _log.debug("Not overridden: state_run")
        time.sleep(0.1)
        return False

    def state_stop(self):
        """Stop hook; return True on error."""
        _log.debug("Not overridden: state_stop")
        return False

    def _handle_stop_request(self):
        state = self._state
        if state is Status.CREATING:
            self._change_state(Status.DIE)
        elif state in (Status.START, Status.RUN):
            self._change_state(Status.STOP)

    def _run_loop(self):
        while self._state is not Status.DIE:
            with self._lock:
                flags = self._flags
                self._flags = 0
            if flags == _STOP_REQUEST:
                _log.debug("Detect stop request by user...")
                self._handle_stop_request()
            state = self._state
            if state is Status.CREATING:
                self._change_state(Status.START)
            elif state is Status.START:
                if self.state_start():
                    self._change_state(Status.DIE)
                else:
                    self._change_state(Status.RUN)
            elif state is Status.RUN:
                if self.state_run():
                    _log.debug("Request AutoKill")
                    self._change_state(Status.STOP)
            elif state is Status.STOP:
                self.state_stop()
                self._change_state(Status.DIE)
        _log.info("Base: THREAD (END): [%d] name='%s'", self.thread_id, self.name)