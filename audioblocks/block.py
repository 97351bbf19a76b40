"""Processing blocks and meta-blocks grouping them."""

import logging
import threading
import weakref

from .errors import AlreadyExistsError, BlockEngineError, ErrorCode, InputNullError
from .flow import FlowInterface

_log = logging.getLogger(__name__)


class Block(FlowInterface):
    """A processing element owning named input and output flows."""

    def __init__(self, name=""):
        FlowInterface.__init__(self)
        self.name = name
        self._parent = None
        self._mutex = threading.RLock()

    @property
    def parent(self):
        """The meta-block holding this block, or None."""
        return self._parent() if self._parent is not None else None

    def _attach(self, parent):
        self._parent = weakref.ref(parent)

    def algo_init(self):
        """Initialise the algorithm; raise :class:`BlockEngineError` on failure."""

    def algo_uninit(self):
        """Release the algorithm; raise :class:`BlockEngineError` on failure."""

    def algo_start(self):
        """Start the algorithm; raise :class:`BlockEngineError` on failure."""

    def algo_stop(self):
        """Stop the algorithm; raise :class:`BlockEngineError` on failure."""

    def algo_reset(self):
        """Reset the algorithm by releasing and initialising it again."""
        with self._mutex:
            self.algo_uninit()
            self.algo_init()

    def algo_process(self, current_time, process_time_slot):
        """Process one time slot starting at ``current_time``."""

    def supports_native_push(self):
        """Whether the block supports the native push interface."""
        return False

    def supports_native_pull(self):
        """Whether the block supports the native pull interface."""
        return False

    def supports_native_time(self):
        """Whether the block supports the native time interface."""
        return False

    def get_block_named(self, name):
        """Block called ``name`` as seen from this block's parent, or None."""
        _log.info("        get block : %s", name)
        parent = self.parent
        if parent is None:
            _log.info("            No parent ...")
            return None
        if not isinstance(parent, Block):
            _log.info("            Parent is not a Block ...")
            return None
        return parent.get_block_named(name)


class BlockMeta(Block):
    """A block made of sub-blocks linked together."""

    def __init__(self, name=""):
        Block.__init__(self, name)
        self._blocks = []

    @property
    def blocks(self):
        """The sub-blocks, in insertion order."""
        return tuple(self._blocks)

    def get_block(self, name):
        """Sub-block called ``name``, or None."""
        if not name:
            return None
        for block in self._blocks:
            if block.name == name:
                return block
        return None

    def add_block(self, block):
        """Add ``block`` as a sub-block; names must be unique."""
        if block is None:
            raise InputNullError(f"[{self.name}] Add null block")
        if block.name and self.get_block(block.name) is not None:
            raise AlreadyExistsError(f"[{self.name}] Add block name '{block.name}' already exist")
        self._blocks.append(block)
        block._attach(self)

    def link_block(self, generator_block_name, generator_io_name, receiver_block_name, receiver_io_name):
        """Link an output of one sub-block to an input of another."""
        receiver = self.get_block(receiver_block_name)
        if receiver is None:
            raise BlockEngineError(
                f"Can not find destination block : '{receiver_block_name}'", ErrorCode.FAIL
            )
        receiver.flow_set_link_with(receiver_io_name, generator_block_name, generator_io_name)

    def _run_all(self, action, label):
        failed = False
        for block in self._blocks:
            try:
                action(block)
            except BlockEngineError as exc:
                _log.error("[%s] %s failed on '%s': %s", self.name, label, block.name, exc)
                failed = True
        if failed:
            raise BlockEngineError(f"Pb when {label} the Meta-block '{self.name}'", ErrorCode.FAIL)

    def algo_init(self):
        """Initialise every sub-block; raise once all have been tried if any failed."""
        _log.info("Init Meta block : '%s'", self.name)
        self._run_all(lambda block: block.algo_init(), "init")

    def algo_uninit(self):
        """Release every sub-block; raise once all have been tried if any failed."""
        self._run_all(lambda block: block.algo_uninit(), "un-init")

    def algo_start(self):
        """Start every sub-block; raise once all have been tried if any failed."""
        _log.info("Start Meta block : '%s'", self.name)
        self._run_all(lambda block: block.algo_start(), "start")

    def algo_stop(self):
        """Stop every sub-block; raise once all have been tried if any failed."""
        _log.info("Stop Meta block : '%s'", self.name)
        self._run_all(lambda block: block.algo_stop(), "stop")

    def get_block_named(self, name):
        """This block for "" or its own name, else the sub-block called ``name``."""
        if name == "" or name == self.name:
            return self
        for block in self._blocks:
            if block.name == name:
                return block
        return None

    def flow_link_input(self):
        for block in self._blocks:
            block.flow_link_input()
        Block.flow_link_input(self)

    def flow_check_all_compatibility(self):
        for block in self._blocks:
            block.flow_check_all_compatibility()
        Block.flow_check_all_compatibility(self)

    def flow_allocate_output(self):
        """Output flows needing buffers, from the sub-blocks and then this block."""
        outputs = []
        for block in self._blocks:
            outputs.extend(block.flow_allocate_output())
        outputs.extend(Block.flow_allocate_output(self))
        return outputs

    def flow_get_input(self):
        for block in self._blocks:
            block.flow_get_input()
        Block.flow_get_input(self)