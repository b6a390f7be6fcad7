"""Task list validation: schema checks, dependency sanitizing, cycle detection.

None of the graph functions here raise on a malformed graph. Dangling
references and cycles are data: the sanitizer reports removals to a sink and
the cycle detector returns a :class:`CycleReport`.
"""

from __future__ import annotations

from collections.abc import Callable, Collection, Iterable, Sequence
from dataclasses import dataclass

from insightboard.tasks.model import CycleReport, Task

CYCLE_PREFIX = "Cycle detected: "
CYCLE_ARROW = " → "

_WHITE, _GRAY, _BLACK = 0, 1, 2


@dataclass(frozen=True)
class RemovedDependency:
    """A dependency reference dropped because no task in the list has that id."""

    task_id: str
    dependency_id: str

    def __str__(self) -> str:
        return f"Removed invalid dependency {self.dependency_id} from task {self.task_id}"


# ── Schema ──────────────────────────────────────────────────────────


def validate(tasks: Sequence[Task]) -> list[str]:
    """Return human-readable schema errors (empty list when valid)."""
    errors: list[str] = []
    seen: set[str] = set()
    for idx, task in enumerate(tasks):
        if not task.id:
            errors.append(f"Task at index {idx} is missing an id")
            continue
        if not task.description.strip():
            errors.append(f"Task {task.id} (index {idx}) is missing a description")
        if task.id in seen:
            errors.append(f"Duplicate task id: {task.id}")
        seen.add(task.id)
    return errors


# ── Dependency sanitizing ───────────────────────────────────────────


def sanitize(
    tasks: Sequence[Task],
    on_removed: Callable[[RemovedDependency], None] | None = None,
) -> list[Task]:
    """Drop dependency ids that do not name a task in *tasks*.

    Surviving entries keep their relative order. Self references are valid ids
    and stay; the cycle detector reports them. Each removal is passed to
    *on_removed* when given. The input tasks are not modified.
    """
    valid_ids = {t.id for t in tasks}
    result: list[Task] = []
    for task in tasks:
        clean = task.copy()
        kept: list[str] = []
        for dep in task.dependencies:
            if dep in valid_ids:
                kept.append(dep)
            elif on_removed is not None:
                on_removed(RemovedDependency(task_id=task.id, dependency_id=dep))
        clean.dependencies = kept
        result.append(clean)
    return result


# ── Cycle detection ─────────────────────────────────────────────────


def format_cycle(path: Iterable[str]) -> str:
    return CYCLE_PREFIX + CYCLE_ARROW.join(path)


def parse_cycle(trace: str, known_ids: Collection[str] | None = None) -> list[str]:
    """Return the ids named in a trace produced by :func:`format_cycle`.

    Without *known_ids* the body is split on the arrow. With them, each step
    takes the longest known id that ends at an arrow or at the end of the
    trace, so ids that contain the arrow themselves are kept whole.
    """
    body = trace[len(CYCLE_PREFIX):] if trace.startswith(CYCLE_PREFIX) else trace
    if not known_ids:
        return [part.strip() for part in body.split(CYCLE_ARROW) if part.strip()]

    ids: list[str] = []
    pos = 0
    while pos < len(body):
        match = ""
        for candidate in known_ids:
            end = pos + len(candidate)
            if (
                len(candidate) > len(match)
                and body.startswith(candidate, pos)
                and (end == len(body) or body.startswith(CYCLE_ARROW, end))
            ):
                match = candidate
        if not match:
            # Unknown token: fall back to the next arrow.
            nxt = body.find(CYCLE_ARROW, pos)
            match = body[pos:] if nxt < 0 else body[pos:nxt]
        if match.strip():
            ids.append(match if match in known_ids else match.strip())
        pos += len(match) + len(CYCLE_ARROW)
    return ids


def _build_graph(tasks: Sequence[Task]) -> dict[str, list[str]]:
    """Adjacency lists task -> prerequisites, restricted to known ids, deduplicated."""
    known = {t.id for t in tasks}
    graph: dict[str, list[str]] = {}
    for task in tasks:
        edges = graph.setdefault(task.id, [])
        for dep in task.dependencies:
            if dep in known and dep not in edges:
                edges.append(dep)
    return graph


def detect_cycles(tasks: Sequence[Task]) -> CycleReport:
    """Find every cycle reachable in the dependency graph.

    Depth-first search with white/gray/black marking, driven by an explicit
    stack of ``(node, next_edge_index)`` frames so deep chains do not hit the
    recursion limit. Reaching a gray node closes a loop: the current path from
    that node onward, plus the node again, is recorded. Every white node is
    used as a new root, in task order, so disjoint cycles are all reported.
    """
    graph = _build_graph(tasks)
    color = dict.fromkeys(graph, _WHITE)
    cycles: list[list[str]] = []

    for root in graph:
        if color[root] != _WHITE:
            continue

        path: list[str] = [root]
        position: dict[str, int] = {root: 0}
        stack: list[tuple[str, int]] = [(root, 0)]
        color[root] = _GRAY

        while stack:
            node, edge_idx = stack[-1]
            edges = graph[node]
            if edge_idx >= len(edges):
                color[node] = _BLACK
                stack.pop()
                path.pop()
                del position[node]
                continue

            stack[-1] = (node, edge_idx + 1)
            nxt = edges[edge_idx]
            state = color[nxt]
            if state == _GRAY:
                cycles.append(path[position[nxt]:] + [nxt])
            elif state == _WHITE:
                color[nxt] = _GRAY
                position[nxt] = len(path)
                path.append(nxt)
                stack.append((nxt, 0))

    details = [format_cycle(c) for c in cycles]
    return CycleReport(has_cycles=bool(details), cycle_details=details, cycles=cycles)


def cyclic_ids(cycle_details: Iterable[str], known_ids: Collection[str] | None = None) -> set[str]:
    """Collect every task id named in a list of cycle traces."""
    ids: set[str] = set()
    for trace in cycle_details:
        ids.update(parse_cycle(trace, known_ids))
    return ids
