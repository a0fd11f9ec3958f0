from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Iterable, List, Optional

from .config import Config
from .scheduler import Partition, ResolvedTask


@dataclass
class Group:
    name: str
    assignee: str
    tasks: List[ResolvedTask] = field(default_factory=list)
    unassigned: bool = False

    @property
    def earliest_start(self) -> Optional[date]:
        return min((t.start for t in self.tasks), default=None)


def unassigned_name(label: str, taken: Iterable[str]) -> str:
    """The synthetic group's name, kept apart from any real assignee's name."""
    taken = set(taken)
    name = label
    while name in taken:
        name = f"{name} (no assignee)"
    return name


def build_groups(partitions: Iterable[Partition], config: Optional[Config] = None) -> List[Group]:
    """Order assignee partitions for display.

    Named assignees are sorted by their earliest start date, then by name.
    Tasks without an assignee go into one "Unassigned" group placed last
    whatever its dates are. When a real assignee already carries the
    unassigned label, the synthetic group is renamed. Task order inside a
    group is left as resolved.
    """
    config = config or Config()
    named: List[Group] = []
    unassigned: Optional[Group] = None

    for part in partitions:
        if not part.tasks:
            continue
        if not part.assignee:
            if unassigned is None:
                unassigned = Group(name="", assignee="", unassigned=True)
            unassigned.tasks.extend(part.tasks)
            continue
        named.append(Group(name=part.assignee, assignee=part.assignee, tasks=list(part.tasks)))

    named.sort(key=lambda g: (g.earliest_start or date.max, g.name))
    if unassigned is not None:
        unassigned.name = unassigned_name(config.unassigned_label, [g.name for g in named])
    return named + ([unassigned] if unassigned is not None else [])
