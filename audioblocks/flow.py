"""Named data flows connecting blocks, and capability intersection."""

import copy
import logging
import re
import weakref
from collections.abc import Mapping

from .buffer import Buffer
from .errors import ForbiddenError, InputNullError, NoIOError

_log = logging.getLogger(__name__)

_MISSING = object()

_NUMBER = re.compile(r"-?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")
_IDENT = re.compile(r"[A-Za-z_][A-Za-z0-9_\-]*")
_LITERALS = {"true": True, "false": False, "null": None}
_ESCAPES = {"n": "\n", "t": "\t", "r": "\r", "b": "\b", "f": "\f", "/": "/"}


class _RelaxedJson:
    """Parser for JSON that also accepts bare keys and single-quoted strings."""

    def __init__(self, text):
        self._text = text
        self._pos = 0

    def parse(self):
        if self._peek() == "":
            return {}
        value = self._value()
        if self._peek() != "":
            raise self._error("unexpected trailing data")
        return value

    def _error(self, message):
        return ValueError(f"invalid capability description at {self._pos}: {message}")

    def _skip_space(self):
        while self._pos < len(self._text) and self._text[self._pos].isspace():
            self._pos += 1

    def _peek(self):
        self._skip_space()
        return self._text[self._pos:self._pos + 1]

    def _value(self):
        char = self._peek()
        if char == "{":
            return self._object()
        if char == "[":
            return self._array()
        if char in ("'", '"'):
            return self._string()
        match = _NUMBER.match(self._text, self._pos)
        if match:
            self._pos = match.end()
            literal = match.group()
            if any(mark in literal for mark in ".eE"):
                return float(literal)
            return int(literal)
        match = _IDENT.match(self._text, self._pos)
        if match and match.group() in _LITERALS:
            self._pos = match.end()
            return _LITERALS[match.group()]
        raise self._error("unexpected value")

    def _key(self):
        char = self._peek()
        if char in ("'", '"'):
            return self._string()
        match = _IDENT.match(self._text, self._pos)
        if not match:
            raise self._error("expected a key")
        self._pos = match.end()
        return match.group()

    def _object(self):
        self._pos += 1
        result = {}
        while True:
            if self._peek() == "}":
                self._pos += 1
                return result
            key = self._key()
            if self._peek() != ":":
                raise self._error("expected ':'")
            self._pos += 1
            result[key] = self._value()
            char = self._peek()
            if char == ",":
                self._pos += 1
            elif char != "}":
                raise self._error("expected ',' or '}'")

    def _array(self):
        self._pos += 1
        result = []
        while True:
            if self._peek() == "]":
                self._pos += 1
                return result
            result.append(self._value())
            char = self._peek()
            if char == ",":
                self._pos += 1
            elif char != "]":
                raise self._error("expected ',' or ']'")

    def _string(self):
        quote = self._text[self._pos]
        self._pos += 1
        parts = []
        while True:
            if self._pos >= len(self._text):
                raise self._error("unterminated string")
            char = self._text[self._pos]
            self._pos += 1
            if char == quote:
                return "".join(parts)
            if char != "\\":
                parts.append(char)
                continue
            if self._pos >= len(self._text):
                raise self._error("unterminated escape")
            escaped = self._text[self._pos]
            self._pos += 1
            if escaped == "u":
                digits = self._text[self._pos:self._pos + 4]
                if len(digits) != 4:
                    raise self._error("bad unicode escape")
                try:
                    parts.append(chr(int(digits, 16)))
                except ValueError as exc:
                    raise self._error("bad unicode escape") from exc
                self._pos += 4
            else:
                parts.append(_ESCAPES.get(escaped, escaped))


def _parse_capabilities(spec):
    if isinstance(spec, Mapping):
        return copy.deepcopy(dict(spec))
    value = _RelaxedJson(spec).parse()
    if not isinstance(value, dict):
        raise ValueError("a capability description must be an object")
    return value


def _is_number(value):
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def intersect(first, second):
    """Intersect two capability values; ``None`` when they do not match."""
    if first is _MISSING:
        if second is _MISSING:
            _log.error("intersect 2 missing values")
            return None
        return copy.deepcopy(second)
    if second is _MISSING:
        return copy.deepcopy(first)
    if first is None:
        return copy.deepcopy(second)
    if _is_number(first):
        if _is_number(second):
            if first == second:
                return first
            _log.error("Not the same number value")
        if isinstance(second, list):
            if any(_is_number(item) and item == first for item in second):
                return first
            _log.error("Not the same values")
    if isinstance(first, str):
        if isinstance(second, str):
            if first == second:
                return first
            _log.error("Not the same string value")
        if isinstance(second, list):
            if any(isinstance(item, str) and item == first for item in second):
                return first
            _log.error("Not the same values")
    if isinstance(first, list):
        _log.debug("intersection of arrays is not managed")
    _log.error("Can not intersect elements: %r and %r", first, second)
    return None


class FlowInterface:
    """Holder of the flows of a block."""

    def __init__(self):
        self._flows = []

    def flow_add(self, flow):
        """Register a flow."""
        if flow is None:
            raise InputNullError("Try to link a null flow")
        self._flows.append(flow)

    def flow_remove(self, flow):
        """Unregister a flow."""
        if flow is None:
            raise InputNullError("Try to unlink a null flow")
        try:
            self._flows.remove(flow)
        except ValueError:
            raise NoIOError("Try to unlink a nonexistent flow") from None

    def flow_get_all(self):
        """Names of all registered flows, in registration order."""
        return [flow.name for flow in self._flows]

    def flow_remove_all(self):
        """Unregister every flow."""
        self._flows.clear()

    def flow_set_link_with(self, flow_name, block_name, flow_link_name):
        """Link the local flow ``flow_name`` with ``block_name:flow_link_name``."""
        for flow in self._flows:
            if flow.name == flow_name:
                flow.set_link(block_name, flow_link_name)
                return
        raise NoIOError(f"Can not find Flow : '{flow_name}'")

    def flow_link_input(self):
        """Resolve the links of every flow."""
        _log.info(" Block update the flows links (%d flows)", len(self._flows))
        for flow in self._flows:
            flow.link()

    def flow_check_all_compatibility(self):
        """Compute the capabilities of every flow."""
        _log.info(" Block Check the flows Capabilities (%d flows)", len(self._flows))
        for flow in self._flows:
            flow.check_compatibility()

    def flow_allocate_output(self):
        """Output flows of this block whose buffers need allocating."""
        _log.warning(" Block need to allocate all his output")
        return [flow for flow in self._flows if flow.is_output]

    def flow_get_input(self):
        """Fetch the input buffers."""
        _log.warning(" Block Get input data pointers")
        for flow in self._flows:
            flow.get_input_buffer()

    def get_block_named(self, name):
        """Block reachable under ``name``; none at this level."""
        return None

    def get_flow_reference(self, name):
        """Reference of the flow called ``name``, or None."""
        for flow in self._flows:
            if flow.name == name:
                return flow.reference
        return None

    def get_flow_intersection(self, capabilities):
        """Capabilities shared by every description in ``capabilities``."""
        capabilities = list(capabilities)
        if not capabilities:
            return {}
        if len(capabilities) == 1:
            return copy.deepcopy(capabilities[0])
        flow_type = capabilities[0].get("type")
        if any(item.get("type") != flow_type for item in capabilities[1:]):
            _log.error("All stream have not the same Type")
            return {}
        out = {"type": flow_type}
        if flow_type == "audio":
            for key in ("freq", "format", "channels"):
                value = None
                for item in capabilities:
                    value = intersect(value, item.get(key, _MISSING))
                out[key] = value
        elif flow_type != "video":
            _log.error("not managed interface for mix: '%s'", flow_type)
        return out


class FlowReference:
    """Shared handle on a flow that outlives it."""

    def __init__(self, base=None):
        self.base = base

    def remove_base(self):
        """Forget the flow this reference points to."""
        self.base = None


class FlowBase:
    """A named input or output of a block."""

    _data = None

    def __init__(self, interface, is_input, name, description="", format_available="{}"):
        self.interface = interface
        self.name = name
        self.description = description
        self.is_input = bool(is_input)
        self._capabilities = _parse_capabilities(format_available)
        self._remotes = []
        self.reference = FlowReference(self)
        interface.flow_add(self)
        _log.info(
            "Create flow : '%s' mode:'%s' prop: %r",
            name,
            "input" if self.is_input else "output",
            self._capabilities,
        )

    @property
    def is_output(self):
        return not self.is_input

    @property
    def capabilities(self):
        """Available formats of this flow."""
        return copy.deepcopy(self._capabilities)

    def __str__(self):
        return self.name

    def set_link(self, block_name, flow_link_name):
        """Set the remote flow; only inputs can be linked."""
        raise ForbiddenError(f"[{self.name}] Can not create a link on an Output")

    def add_reference(self, reference):
        """Register a remote flow reading from this one."""
        raise ForbiddenError(f"[{self.name}] Can not add reference")

    def _flow_reference(self, block_name, flow_link_name):
        if flow_link_name == "":
            _log.info("    Get flow : %s:%s nothing to do ==> no connection", block_name, flow_link_name)
        block = self.interface.get_block_named(block_name)
        if block is None:
            _log.error(
                "    Get flow : '%s' to %s:%s Error no remote block", self.name, block_name, flow_link_name
            )
            return None
        reference = block.get_flow_reference(flow_link_name)
        if reference is None:
            _log.error(
                "    Get flow : '%s' to %s:%s Error no Flow found", self.name, block_name, flow_link_name
            )
        return reference

    def _live_remotes(self):
        alive = []
        for weak in self._remotes:
            reference = weak()
            if reference is not None and reference.base is not None:
                alive.append(reference)
        return alive

    def link(self):
        """Drop references to remote flows that are gone; return the live ones."""
        alive = self._live_remotes()
        self._remotes = [weakref.ref(reference) for reference in alive]
        _log.info("    link flow : '%s' with %d remote flows", self.name, len(alive))
        return alive

    def check_compatibility(self):
        """Capabilities negotiated for this flow: its own, with no remote to mix."""
        _log.info("    check flow : '%s'", self.name)
        return self.capabilities

    def get_input_buffer(self):
        """Buffer currently carried by this flow, or None."""
        _log.info("    get Buffers : '%s'", self.name)
        return self._data

    def close(self):
        """Detach this flow from its reference and its interface."""
        self.reference.remove_base()
        if self in self.interface._flows:
            self.interface.flow_remove(self)
        _log.info("Remove flow : '%s'", self.name)


class Flow(FlowBase):
    """Flow carrying a buffer of type ``data_type``; use ``Flow[BufferType]``."""

    data_type = Buffer
    _specialised = {}

    def __class_getitem__(cls, data_type):
        key = (cls, data_type)
        specialised = Flow._specialised.get(key)
        if specialised is None:
            specialised = type(
                f"{cls.__name__}[{data_type.__name__}]", (cls,), {"data_type": data_type}
            )
            Flow._specialised[key] = specialised
        return specialised

    def set(self, data):
        """Attach a buffer; it must be of the flow's data type."""
        self._data = None
        if not isinstance(data, self.data_type):
            raise TypeError("can not set buffer as flow (type incompatible)")
        self._data = data

    def get(self):
        """The attached buffer, or None."""
        return self._data


class Input(Flow):
    """Flow receiving data from the output of another block."""

    def __init__(self, interface, name, description="", format_available="{}"):
        super().__init__(interface, True, name, description, format_available)
        self.block_name = ""
        self.flow_name = ""
        self._remote = None

    @property
    def remote(self):
        """Reference of the linked output, or None."""
        return self._remote() if self._remote is not None else None

    def set_link(self, block_name, flow_link_name):
        self.block_name = block_name
        self.flow_name = flow_link_name
        _log.info("[%s] Link with : '%s':'%s'", self.name, block_name, flow_link_name)

    def link(self):
        _log.info("    link flow : '%s' mode:'input' to %s:%s", self.name, self.block_name, self.flow_name)
        remote = self._flow_reference(self.block_name, self.flow_name)
        self._remote = weakref.ref(remote) if remote is not None else None
        if remote is None or remote.base is None:
            _log.error(
                "    link flow : '%s' to %s:%s Error no Flow found", self.name, self.block_name, self.flow_name
            )
            return
        remote.base.add_reference(self.reference)


class Output(Flow):
    """Flow sending data to any number of inputs."""

    def __init__(self, interface, name, description="", format_available="{}"):
        super().__init__(interface, False, name, description, format_available)
        self.format_mix = {}

    @property
    def remotes(self):
        """References of the inputs still alive."""
        return [ref for ref in (weak() for weak in self._remotes) if ref is not None]

    def add_reference(self, reference):
        self._remotes.append(weakref.ref(reference))

    def check_compatibility(self):
        """Intersect own capabilities with those of every linked input."""
        _log.info("        check for : '%s' to %d links", self.name, len(self._remotes))
        capabilities = [self.capabilities]
        capabilities.extend(ref.base.capabilities for ref in self.remotes if ref.base is not None)
        self.format_mix = self.interface.get_flow_intersection(capabilities)
        _log.info("[%s] mix signal : %r", self.name, self.format_mix)
        return self.format_mix