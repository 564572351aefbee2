from dataclasses import dataclass
from dataclasses import field
from typing import List
from typing import Optional
from typing import Sequence
from typing import Tuple

UNKNOWN = "<unknown>"


@dataclass(frozen=True)
class Frame:
    """A resolved call-stack entry of a sample.

    Frames form a chain through ``caller``: a sample is represented by its
    innermost (currently executing) frame, and following ``caller`` leads to
    the thread entry point, whose ``caller`` is ``None``.
    """

    module: Optional[str]
    method: Optional[str]
    caller: Optional["Frame"] = field(default=None, repr=False)

    @property
    def name(self) -> str:
        return f"{self.module or UNKNOWN}!{self.method or UNKNOWN}"

    def call_path(self) -> List["Frame"]:
        """Return the frames of the chain from the outermost to this one."""
        path = []
        seen = set()
        frame: Optional[Frame] = self
        while frame is not None:
            if id(frame) in seen:
                raise ValueError(f"Caller chain of {self.name} contains a cycle")
            seen.add(id(frame))
            path.append(frame)
            frame = frame.caller
        path.reverse()
        return path


@dataclass(frozen=True)
class ThreadInfo:
    tid: int
    description: str = ""

    @property
    def label(self) -> str:
        return f"Thread ({self.tid}) '{self.description}'"


@dataclass(frozen=True)
class ProcessInfo:
    pid: int
    name: str = ""
    threads: Tuple[ThreadInfo, ...] = ()


def frame_key(frame: Frame) -> str:
    """Key identifying the call tree node of a frame.

    Module and method names are compared case-insensitively.
    """
    return frame.name.lower()


def chain_frames(names: Sequence[Tuple[Optional[str], Optional[str]]]) -> Frame:
    """Link ``(module, method)`` pairs, innermost first, into a frame chain.

    Returns the innermost frame.
    """
    if not names:
        raise ValueError("A sample needs at least one frame")
    caller: Optional[Frame] = None
    for module, method in reversed(names):
        caller = Frame(module, method, caller)
    assert caller is not None
    return caller
