"""Utilities / Helpers for writing tests."""
import json

from callsampler._samples import chain_frames
from callsampler._trace import SAMPLE_OPCODE
from callsampler._trace import SAMPLE_PROVIDER


def sample(*methods, module="app"):
    """Build a sample from method names, innermost first."""
    return chain_frames([(module, method) for method in methods])


def sample_event(pid, tid, *methods, module="app"):
    return {
        "pid": pid,
        "tid": tid,
        "provider": SAMPLE_PROVIDER,
        "opcode": SAMPLE_OPCODE,
        "stack": [{"module": module, "method": method} for method in methods],
    }


def write_trace(path, processes, events):
    path.write_text(json.dumps({"processes": processes, "events": events}))
    return path
