from typing import Any


class CallSamplerError(Exception):
    """Exceptions raised in this package."""


class CallSamplerCommandError(CallSamplerError):
    """Exceptions raised from this package's CLI commands."""

    def __init__(self, *args: Any, exit_code: int) -> None:
        super().__init__(*args)
        self.exit_code = exit_code


class TraceUnavailableError(CallSamplerError):
    """The sample trace could not be read or decoded."""
