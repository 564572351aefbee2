import logging
from dataclasses import dataclass
from dataclasses import field
from typing import IO
from typing import Dict
from typing import Iterable
from typing import Iterator
from typing import List
from typing import Optional
from typing import Tuple

from rich.console import Console

from callsampler._samples import Frame
from callsampler._samples import frame_key

logger = logging.getLogger(__name__)

INDENT = "| "
BRANCH = "├─ "


@dataclass
class CallStackNode:
    """A call path position in the tree, with the samples that went through it"""

    count: int = 0
    label: str = ""
    children: Dict[str, "CallStackNode"] = field(default_factory=dict)

    def attach(self, frame: Frame) -> "CallStackNode":
        """Count one more sample going through ``frame`` below this node."""
        key = frame_key(frame)
        child = self.children.get(key)
        if child is not None:
            child.count += 1
        else:
            child = CallStackNode(count=1, label=frame.name)
            self.children[key] = child
        return child


def insert_sample(
    root: CallStackNode,
    sample: Optional[Frame],
    *,
    legacy_entry_frames: bool = False,
) -> CallStackNode:
    """Add one sample to the tree rooted at ``root``.

    ``sample`` is the innermost frame of the sample. Every node on the path
    from the thread entry frame to the innermost frame gets its count
    incremented, creating the missing ones, and ``root.count`` keeps the
    number of samples inserted.

    With ``legacy_entry_frames`` the entry frame is attached below the root
    and then once more below itself, which is the tree shape produced by the
    original ``sampler`` tool.

    Returns the node of the innermost frame.
    """
    if sample is None:
        raise ValueError("Cannot insert a sample without frames")
    path = sample.call_path()

    root.count += 1
    node = root.attach(path[0])
    if legacy_entry_frames:
        node = node.attach(path[0])
    for frame in path[1:]:
        node = node.attach(frame)
    return node


def build_tree(
    samples: Iterable[Frame], *, legacy_entry_frames: bool = False
) -> CallStackNode:
    root = CallStackNode()
    for sample in samples:
        insert_sample(root, sample, legacy_entry_frames=legacy_entry_frames)
    logger.debug(
        "Aggregated %d samples into %d entry points", root.count, len(root.children)
    )
    return root


class CallTreeReporter:
    def __init__(self, data: CallStackNode) -> None:
        self.data = data

    @classmethod
    def from_samples(
        cls, samples: Iterable[Frame], *, legacy_entry_frames: bool = False
    ) -> "CallTreeReporter":
        return cls(build_tree(samples, legacy_entry_frames=legacy_entry_frames))

    def render_lines(self, label: str, max_depth: int = 0) -> Iterator[str]:
        """Yield the lines of the tree in depth-first pre-order.

        A ``max_depth`` of 0 or less renders the whole tree. Otherwise nodes
        deeper than ``max_depth`` are left out.
        """
        stack: List[Tuple[str, int, CallStackNode]] = [(label, 0, self.data)]
        while stack:
            name, depth, node = stack.pop()
            yield f"{INDENT * depth}{BRANCH}{name} [{node.count}]"
            if not node.children or (max_depth > 0 and depth >= max_depth):
                continue
            # Reversed so that children come out of the stack in insertion order
            for child in reversed(list(node.children.values())):
                stack.append((child.label, depth + 1, child))

    def render(
        self,
        label: str,
        max_depth: int = 0,
        *,
        file: Optional[IO[str]] = None,
    ) -> None:
        console = Console(
            file=file,
            markup=False,
            emoji=False,
            highlight=False,
            soft_wrap=True,
        )
        for line in self.render_lines(label, max_depth):
            console.print(line)
