import argparse
import logging
import sys
import time
from pathlib import Path
from typing import List
from typing import Optional

from rich import print as pprint
from rich.markup import escape

from callsampler._errors import CallSamplerCommandError
from callsampler._samples import ProcessInfo
from callsampler._trace import TraceReader
from callsampler.reporters.calltree import CallTreeReporter

logger = logging.getLogger(__name__)


def select_process(
    processes: List[ProcessInfo], pid: Optional[int]
) -> Optional[ProcessInfo]:
    if pid is not None:
        for process in processes:
            if process.pid == pid:
                return process
        raise CallSamplerCommandError(
            f"No process with pid {pid} in the sample trace", exit_code=1
        )
    if not processes:
        return None
    if len(processes) > 1:
        pids = ", ".join(str(process.pid) for process in processes)
        raise CallSamplerCommandError(
            f"The sample trace contains several processes ({pids}),"
            " select one with --pid",
            exit_code=1,
        )
    return processes[0]


class AnalyzeCommand:
    """Print the call tree of every thread of a process from a sample trace"""

    def prepare_parser(self, parser: argparse.ArgumentParser) -> None:
        parser.add_argument("trace", help="Sample trace to analyze")
        parser.add_argument(
            "max_depth",
            help="Maximum depth of the printed trees (defaults to 0, no limit)",
            type=int,
            nargs="?",
            default=0,
        )
        parser.add_argument(
            "-p",
            "--pid",
            help="Process to analyze when the trace contains more than one",
            type=int,
            default=None,
        )
        parser.add_argument(
            "--legacy-entry-frames",
            help=(
                "Repeat each thread entry frame below itself, like the trees"
                " printed by the original sampler tool"
            ),
            action="store_true",
            default=False,
        )
        parser.add_argument(
            "--conversion-log",
            help="Print diagnostics about the trace conversion to stderr",
            action="store_true",
            default=False,
        )

    def run(self, args: argparse.Namespace, parser: argparse.ArgumentParser) -> None:
        trace_path = Path(args.trace)
        if not trace_path.exists() or not trace_path.is_file():
            raise CallSamplerCommandError(f"No such file: {args.trace}", exit_code=1)

        reader = TraceReader(
            trace_path,
            conversion_log=sys.stderr if args.conversion_log else None,
        )

        start = time.perf_counter()
        process = select_process(reader.processes, args.pid)
        if process is None or not process.threads:
            pprint(
                ":warning: [bold yellow] No data [/] :warning:\n\n"
                f"The sample trace {escape(str(trace_path))} does not contain"
                " any thread to analyze.",
            )
            return

        # Each thread is rendered before the next one is aggregated
        for thread in process.threads:
            reporter = CallTreeReporter.from_samples(
                reader.samples(process.pid, thread.tid),
                legacy_entry_frames=args.legacy_entry_frames,
            )
            logger.debug("Thread %d: %d samples", thread.tid, reporter.data.count)
            reporter.render(thread.label, args.max_depth)

        elapsed_ms = int((time.perf_counter() - start) * 1000)
        print(f"[{elapsed_ms} ms] Completed call stack analysis")
