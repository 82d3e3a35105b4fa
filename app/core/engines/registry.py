from __future__ import annotations
from bisect import bisect_right
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple
import random

from app.core.content import TopicEntry
from app.core.engines.base import Question, Topic
from app.core.engines.topics import ContentTopic
from app.core.errors import OutOfRangeError

REMAINDER_POLICIES = ("last", "spread")


@dataclass(frozen=True)
class TopicRange:
    name: str
    start: int
    end: int    # inclusivo

    def __contains__(self, sublevel: int) -> bool:
        return self.start <= sublevel <= self.end


def partition(total: int, n_topics: int, remainder_policy: str = "last") -> List[Tuple[int, int]]:
    """
    Reparte [1, total] en n_topics rangos contiguos.
    - "last":   el resto de la división lo absorbe el último tema.
    - "spread": los primeros `resto` temas llevan un subnivel extra.
    """
    if n_topics <= 0:
        raise ValueError("se necesita al menos un tema")
    if total < n_topics:
        raise ValueError(f"total_sublevels={total} < temas={n_topics}: algún tema quedaría vacío")
    if remainder_policy not in REMAINDER_POLICIES:
        raise ValueError(f"remainder_policy debe ser uno de {REMAINDER_POLICIES}")

    base, rem = divmod(total, n_topics)
    sizes = [base] * n_topics
    if remainder_policy == "last":
        sizes[-1] += rem
    else:
        for i in range(rem):
            sizes[i] += 1

    out: List[Tuple[int, int]] = []
    start = 1
    for size in sizes:
        out.append((start, start + size - 1))
        start += size
    return out


class TopicRegistry:
    def __init__(self, topics: Sequence[Topic], total_sublevels: int, remainder_policy: str = "last"):
        self._topics = list(topics)
        self.total_sublevels = int(total_sublevels)
        self.remainder_policy = remainder_policy
        bounds = partition(self.total_sublevels, len(self._topics), remainder_policy)
        self._ranges = [TopicRange(t.name, s, e) for t, (s, e) in zip(self._topics, bounds)]
        self._starts = [r.start for r in self._ranges]

    @property
    def topics(self) -> List[Topic]:
        return list(self._topics)

    @property
    def ranges(self) -> List[TopicRange]:
        return list(self._ranges)

    def _locate(self, sublevel: int) -> int:
        if isinstance(sublevel, bool) or not isinstance(sublevel, int) \
                or not (1 <= sublevel <= self.total_sublevels):
            raise OutOfRangeError(f"sublevel {sublevel} fuera de [1, {self.total_sublevels}]")
        return bisect_right(self._starts, sublevel) - 1

    def resolve_topic(self, sublevel: int) -> Tuple[Topic, int]:
        """Devuelve (tema, índice local 0-based) para un subnivel 1-based."""
        i = self._locate(sublevel)
        return self._topics[i], sublevel - self._ranges[i].start

    def generate(self, sublevel: int) -> Question:
        topic, local_index = self.resolve_topic(sublevel)
        return topic.generate(local_index)


def build_registry(
    entries: Sequence[TopicEntry],
    total_sublevels: int,
    remainder_policy: str = "last",
    rng: Optional[random.Random] = None,
) -> TopicRegistry:
    rng = rng or random.Random()
    return TopicRegistry(
        [ContentTopic(e, rng=rng) for e in entries],
        total_sublevels=total_sublevels,
        remainder_policy=remainder_policy,
    )
