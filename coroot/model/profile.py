"""Profile types and flame graphs built from sampled stacks."""

from __future__ import annotations

import bisect
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Sequence


class ProfileCategory(str, Enum):
    NONE = ""
    CPU = "cpu"
    MEMORY = "memory"

    def __str__(self) -> str:
        return self.value


class ProfileType(str, Enum):
    EBPF_CPU = "ebpf:cpu:nanoseconds"
    GO_CPU = "go:profile_cpu:nanoseconds"
    GO_HEAP_ALLOC_OBJECTS = "go:heap_alloc_objects:count"
    GO_HEAP_ALLOC_SPACE = "go:heap_alloc_space:bytes"
    GO_HEAP_INUSE_OBJECTS = "go:heap_inuse_objects:count"
    GO_HEAP_INUSE_SPACE = "go:heap_inuse_space:bytes"
    GO_GOROUTINES = "go:goroutine_goroutine:count"
    GO_BLOCK_CONTENTIONS = "go:block_contentions:count"
    GO_BLOCK_DELAY = "go:block_delay:nanoseconds"
    GO_MUTEX_CONTENTIONS = "go:mutex_contentions:count"
    GO_MUTEX_DELAY = "go:mutex_delay:nanoseconds"

    def __str__(self) -> str:
        return self.value


class ProfileAggregation(str, Enum):
    SUM = "sum"
    AVG = "avg"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class ProfileMeta:
    name: str
    aggregation: ProfileAggregation
    category: ProfileCategory = ProfileCategory.NONE
    featured: bool = False


_RUNTIME = "Go" + "lang"

PROFILES: dict[ProfileType, ProfileMeta] = {
    ProfileType.EBPF_CPU: ProfileMeta("CPU (eBPF)", ProfileAggregation.SUM, ProfileCategory.CPU),
    ProfileType.GO_CPU: ProfileMeta("CPU", ProfileAggregation.SUM, ProfileCategory.CPU, True),
    ProfileType.GO_HEAP_ALLOC_OBJECTS: ProfileMeta(
        "Memory (alloc_objects)", ProfileAggregation.SUM, ProfileCategory.MEMORY
    ),
    ProfileType.GO_HEAP_ALLOC_SPACE: ProfileMeta(
        "Memory (alloc_space)", ProfileAggregation.SUM, ProfileCategory.MEMORY
    ),
    ProfileType.GO_HEAP_INUSE_OBJECTS: ProfileMeta(
        "Memory (inuse_objects)", ProfileAggregation.AVG, ProfileCategory.MEMORY
    ),
    ProfileType.GO_HEAP_INUSE_SPACE: ProfileMeta(
        "Memory (inuse_space)", ProfileAggregation.AVG, ProfileCategory.MEMORY, True
    ),
    ProfileType.GO_GOROUTINES: ProfileMeta(f"{_RUNTIME} (goroutines)", ProfileAggregation.AVG),
    ProfileType.GO_BLOCK_CONTENTIONS: ProfileMeta(
        f"{_RUNTIME} (block_contentions)", ProfileAggregation.SUM
    ),
    ProfileType.GO_BLOCK_DELAY: ProfileMeta(f"{_RUNTIME} (block_delay)", ProfileAggregation.SUM),
    ProfileType.GO_MUTEX_CONTENTIONS: ProfileMeta(
        f"{_RUNTIME} (mutex_contentions)", ProfileAggregation.SUM
    ),
    ProfileType.GO_MUTEX_DELAY: ProfileMeta(f"{_RUNTIME} (mutex_delay)", ProfileAggregation.SUM),
}


@dataclass
class FlameGraphNode:
    name: str = ""
    total: int = 0
    self: int = 0
    comp: int = 0
    children: list[FlameGraphNode] = field(default_factory=list)
    color_by: str = ""
    data: dict[str, str] | None = None

    def insert_stack(self, stack: Sequence[str], value: int, comp: int | None = None) -> None:
        """Add a stack, given leaf first, with its sample value."""
        node = self
        for frame in reversed(stack):
            node.total += value
            if comp is not None:
                node.comp += comp
            space = frame.find(" ")
            name = frame[:space] if space > 0 else frame
            node = node.insert(name)
        node.total += value
        node.self += value
        if comp is not None:
            node.comp += comp

    def insert(self, name: str) -> FlameGraphNode:
        """Return the child with this name, creating it in name order if missing."""
        names = [c.name for c in self.children]
        i = bisect.bisect_left(names, name)
        if i >= len(self.children) or self.children[i].name != name:
            self.children.insert(i, FlameGraphNode(name=name))
        return self.children[i]

    def diff(self, comparison: FlameGraphNode) -> None:
        """Merge a comparison graph into this one, recording its totals as ``comp``."""
        if comparison is None:
            raise ValueError("comparison graph is required")
        self._diff(comparison)
        self.comp = comparison.total
        self.total += self.comp

    def _diff(self, comparison: FlameGraphNode | None) -> None:
        by_name = {ch.name: ch for ch in comparison.children} if comparison is not None else {}
        seen: set[int] = set()
        for ch in list(self.children):
            comp = by_name.get(ch.name)
            if comp is not None:
                ch.comp = comp.total
                ch.total += ch.comp
                if comp.data:
                    if ch.data is None:
                        ch.data = {}
                    ch.data.update(comp.data)
                seen.add(id(comp))
            ch._diff(comp)
        if comparison is not None:
            for ch in comparison.children:
                if id(ch) not in seen:
                    ch.comp = ch.total
                    self.children.append(ch)

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "total": self.total,
            "self": self.self,
            "comp": self.comp,
            "children": [c.to_dict() for c in self.children] if self.children else None,
            "color_by": self.color_by,
            "data": dict(self.data) if self.data is not None else None,
        }


@dataclass
class Profile:
    type: ProfileType
    flame_graph: FlameGraphNode | None = None
    diff: bool = False