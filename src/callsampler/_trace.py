import json
import logging
import os
from collections import defaultdict
from typing import IO
from typing import Any
from typing import Dict
from typing import Iterator
from typing import List
from typing import Optional
from typing import Tuple
from typing import Union

from callsampler._errors import TraceUnavailableError
from callsampler._samples import Frame
from callsampler._samples import ProcessInfo
from callsampler._samples import ThreadInfo
from callsampler._samples import chain_frames

logger = logging.getLogger(__name__)

SAMPLE_PROVIDER = "Microsoft-DotNETCore-SampleProfiler"
SAMPLE_OPCODE = 1

StackNames = List[Tuple[Optional[str], Optional[str]]]


class TraceReader:
    """Read the samples stored in a JSON sample trace.

    The trace document holds the list of ``processes`` (each with its
    ``threads``) and the list of recorded ``events``. Only the events emitted
    by the sample profiler are turned into samples; every other event is
    ignored.

    Args:
        path: The path to the trace file.
        conversion_log: If given, a text stream that receives diagnostic
            messages about how the trace was converted into samples.
    """

    def __init__(
        self,
        path: Union[str, "os.PathLike[str]"],
        *,
        conversion_log: Optional[IO[str]] = None,
    ) -> None:
        self.path = os.fspath(path)
        self._conversion_log = conversion_log
        self._processes: List[ProcessInfo] = []
        self._stacks: Dict[Tuple[int, int], List[StackNames]] = defaultdict(list)
        self._load()

    def _log(self, message: str) -> None:
        if self._conversion_log is not None:
            print(message, file=self._conversion_log)

    def _load(self) -> None:
        logger.info("Loading sample trace from %s", self.path)
        try:
            with open(self.path, encoding="utf-8") as fd:
                document = json.load(fd)
        except OSError as e:
            raise TraceUnavailableError(
                f"Failed to read sample trace {self.path}\nReason: {e}"
            ) from e
        except ValueError as e:
            raise TraceUnavailableError(
                f"Sample trace {self.path} is not valid JSON\nReason: {e}"
            ) from e

        try:
            self._processes = [
                _parse_process(process) for process in document.get("processes", ())
            ]
            self._collect_samples(document.get("events", ()))
        except (AttributeError, KeyError, TypeError, ValueError) as e:
            raise TraceUnavailableError(
                f"Sample trace {self.path} is malformed\nReason: {e!r}"
            ) from e

    def _collect_samples(self, events: Any) -> None:
        n_events = n_samples = n_empty = 0
        for event in events:
            n_events += 1
            if (
                event.get("provider") != SAMPLE_PROVIDER
                or event.get("opcode") != SAMPLE_OPCODE
            ):
                continue
            names = [_frame_names(frame) for frame in event.get("stack") or ()]
            if not names:
                n_empty += 1
                continue
            self._stacks[(int(event["pid"]), int(event["tid"]))].append(names)
            n_samples += 1

        self._log(
            f"Converted {n_events} events from {self.path}: "
            f"{n_samples} samples, {n_events - n_samples - n_empty} other events"
        )
        if n_empty:
            self._log(f"Skipped {n_empty} samples without a call stack")
        logger.debug(
            "Found %d samples in %d threads", n_samples, len(self._stacks)
        )

    @property
    def processes(self) -> List[ProcessInfo]:
        return list(self._processes)

    def samples(self, pid: int, tid: int) -> Iterator[Frame]:
        """Yield the samples of a thread, each as its innermost frame."""
        for names in self._stacks.get((pid, tid), ()):
            yield chain_frames(names)


def _parse_process(process: Dict[str, Any]) -> ProcessInfo:
    threads = tuple(
        ThreadInfo(tid=int(thread["tid"]), description=thread.get("description", ""))
        for thread in process.get("threads", ())
    )
    return ProcessInfo(
        pid=int(process["pid"]), name=process.get("name", ""), threads=threads
    )


def _frame_names(frame: Any) -> Tuple[Optional[str], Optional[str]]:
    # Frames that could not be resolved at all show up as <unknown>
    if not isinstance(frame, dict):
        return None, None
    return frame.get("module"), frame.get("method")
