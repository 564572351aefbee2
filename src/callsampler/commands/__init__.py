import argparse
import logging
import sys
import textwrap
from typing import List
from typing import Optional

from callsampler._errors import CallSamplerCommandError
from callsampler._errors import CallSamplerError
from callsampler._logging import set_log_level
from callsampler._version import __version__

from . import analyze
from .protocol import Command

_COMMANDS: List[Command] = [
    analyze.AnalyzeCommand(),
]

_EXAMPLES: List[str] = [
    "$ python3 -m callsampler analyze trace.json",
    "$ python3 -m callsampler analyze trace.json 10",
]

_EPILOG = textwrap.dedent(
    """\
    Max depth 0 (the default) prints the call trees in full.
    """
)

_DESCRIPTION = """\
Call tree analyzer for sampled call stacks

Aggregate the call stacks sampled from a process into one call tree per
thread, where every node counts the samples that went through it.

    Example:

    """ + """
    """.join(
    _EXAMPLES
)


def get_argument_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description=_DESCRIPTION,
        prog="callsampler",
        formatter_class=argparse.RawTextHelpFormatter,
        epilog=_EPILOG,
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="count",
        default=0,
        help="Increase verbosity. Use -v for info messages and -vv for debug messages",
    )
    parser.add_argument(
        "-V",
        "--version",
        action="version",
        version=__version__,
        help="Displays the current version of callsampler",
    )

    subparsers = parser.add_subparsers(
        help="Mode of operation",
        dest="command",
        required=True,
    )

    for command in _COMMANDS:
        # Extract the CLI command name from the classes' names
        assert command.__class__.__name__.endswith("Command")
        name = command.__class__.__name__[: -len("Command")].lower()

        command_parser = subparsers.add_parser(
            name, help=command.__doc__, description=command.__doc__, epilog=_EPILOG
        )
        command_parser.set_defaults(entrypoint=command.run)
        command.prepare_parser(command_parser)

    return parser


def determine_logging_level_from_verbosity(
    verbose_level: int,
) -> int:  # pragma: no cover
    if verbose_level == 0:
        return logging.WARNING
    elif verbose_level == 1:
        return logging.INFO
    else:
        return logging.DEBUG


def main(args: Optional[List[str]] = None) -> int:
    if args is None:
        args = sys.argv[1:]

    parser = get_argument_parser()
    arg_values = parser.parse_args(args=args)
    set_log_level(determine_logging_level_from_verbosity(arg_values.verbose))

    try:
        arg_values.entrypoint(arg_values, parser)
    except CallSamplerCommandError as e:
        print(e, file=sys.stderr)
        return e.exit_code
    except CallSamplerError as e:
        print(e, file=sys.stderr)
        return 1
    else:
        return 0
