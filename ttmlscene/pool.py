"""
ttmlscene/pool.py

Ordered, indexable cue collection for one track.
Insertion order is document order; cues are not assumed to be time-sorted.
"""

from typing import Iterable, Iterator, List, Tuple

from .models import Cue


class CuePool:
    def __init__(self, cues: Iterable[Cue] = (), track_index: int = 0):
        self.track_index = track_index
        self._cues: Tuple[Cue, ...] = tuple(cues)

    def __len__(self) -> int:
        return len(self._cues)

    def __iter__(self) -> Iterator[Cue]:
        return iter(self._cues)

    def __getitem__(self, index: int) -> Cue:
        return self._cues[index]

    def __repr__(self):
        return f"CuePool(track={self.track_index}, cues={len(self._cues)})"

    @property
    def cues(self) -> Tuple[Cue, ...]:
        return self._cues

    def cue_at(self, index: int) -> Cue:
        """Lookup by position. Raises IndexError when out of range."""
        return self._cues[index]

    def cues_at(self, time_us: int) -> List[Cue]:
        """All cues whose [start, end) contains time_us, in pool order."""
        return [c for c in self._cues if c.contains(time_us)]

    def transitions(self) -> List[int]:
        """Every distinct cue boundary, ascending."""
        points = set()
        for c in self._cues:
            points.add(c.start_us)
            points.add(c.end_us)
        return sorted(points)
