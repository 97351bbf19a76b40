"""Error codes and exceptions shared by the block engine."""

from enum import IntEnum


class ErrorCode(IntEnum):
    """Generic error codes of the block engine."""

    NONE = 0
    NOT_IMPLEMENTED = 1
    FAIL = 2
    ALREADY_EXIST = 3
    INPUT_NULL = 4
    FORBIDEN = 5
    NO_IO = 6


class BlockEngineError(Exception):
    """Base error of the block engine, carrying an :class:`ErrorCode`."""

    default_code = ErrorCode.FAIL

    def __init__(self, message="", code=None):
        super().__init__(message)
        self.message = message
        self.code = self.default_code if code is None else ErrorCode(code)


class AlreadyExistsError(BlockEngineError):
    """An element with the same name is already registered."""

    default_code = ErrorCode.ALREADY_EXIST


class InputNullError(BlockEngineError):
    """A required input was missing."""

    default_code = ErrorCode.INPUT_NULL


class ForbiddenError(BlockEngineError):
    """The requested operation is not allowed."""

    default_code = ErrorCode.FORBIDEN


class NoIOError(BlockEngineError):
    """The requested input or output does not exist."""

    default_code = ErrorCode.NO_IO