from ._errors import CallSamplerError
from ._errors import TraceUnavailableError
from ._logging import set_log_level
from ._samples import Frame
from ._samples import ProcessInfo
from ._samples import ThreadInfo
from ._trace import TraceReader
from ._version import __version__
from .reporters.calltree import CallStackNode
from .reporters.calltree import CallTreeReporter
from .reporters.calltree import build_tree
from .reporters.calltree import insert_sample

__all__ = [
    "CallSamplerError",
    "TraceUnavailableError",
    "Frame",
    "ProcessInfo",
    "ThreadInfo",
    "TraceReader",
    "CallStackNode",
    "CallTreeReporter",
    "build_tree",
    "insert_sample",
    "set_log_level",
    "__version__",
]
