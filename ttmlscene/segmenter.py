"""
ttmlscene/segmenter.py

Timeline Slicer.
Cuts the cue pool into Scenes: maximal intervals over which the set of
active cues does not change. Gaps with nothing on screen produce no scene.

Timestamps go in as microseconds and come out as nanoseconds.
"""

import logging
from typing import Callable, List, Optional

from .config import ParseOptions
from .errors import CueLimitExceeded, NoScenesProduced, SegmentationCancelled
from .models import Scene
from .pool import CuePool

NS_PER_US = 1000

# "Before time": no lower bound, so negative timestamps are reachable too
START_OF_TIME = None


class SceneSegmenter:
    def __init__(self, options: Optional[ParseOptions] = None, logger: Optional[logging.Logger] = None):
        self.options = options or ParseOptions()
        self.logger = logger or logging.getLogger(__name__)

    def find_next_transition(self, pool: CuePool, cursor: Optional[int]) -> Optional[int]:
        """
        Smallest cue start or end strictly after 'cursor' (any boundary when
        cursor is None), or None when the timeline is exhausted.
        Scans the whole pool; cues are not sorted.
        """
        next_time = None
        for cue in pool:
            for t in (cue.start_us, cue.end_us):
                if (cursor is None or t > cursor) and (next_time is None or t < next_time):
                    next_time = t
        return next_time

    def create_scenes(self, pool: CuePool, progress_callback: Optional[Callable[[int, int, str], None]] = None,
                      cancel_event=None) -> List[Scene]:
        """
        Main entry point.
        Raises NoScenesProduced if the pool yields nothing to show.
        """
        max_cues = self.options.max_cues
        if max_cues is not None and len(pool) > max_cues:
            raise CueLimitExceeded(f"Pool holds {len(pool)} cues; the limit is {max_cues}")

        self.logger.debug("[SEGMENT] Slicing %d cues", len(pool))

        # Only used for progress reporting
        total = len(pool.transitions()) if progress_callback else 0

        scenes: List[Scene] = []
        open_scene: Optional[Scene] = None
        cursor = START_OF_TIME
        done = 0

        while True:
            if cancel_event is not None and cancel_event.is_set():
                raise SegmentationCancelled(f"Cancelled after {len(scenes)} scenes")

            t = self.find_next_transition(pool, cursor)
            if t is None:
                break

            # 1. Close whatever was on screen up to now
            if open_scene is not None:
                scenes.append(Scene(start_ns=open_scene.start_ns, end_ns=t * NS_PER_US, cues=open_scene.cues))
                open_scene = None

            # 2. Collect what is on screen from here on
            active = tuple(pool.cues_at(t))
            if active:
                open_scene = Scene(start_ns=t * NS_PER_US, end_ns=None, cues=active)

            cursor = t
            done += 1
            if progress_callback:
                progress_callback(done, total, f"Transition {done} ({len(active)} active cues)")

        if open_scene is not None:
            # Cannot happen with well-formed cues (the last transition is always an end),
            # but an open scene must never be dropped silently
            scenes.append(open_scene)

        if not scenes:
            raise NoScenesProduced("Segmentation produced no scenes")

        self.logger.info("[SEGMENT] %d scenes from %d cues", len(scenes), len(pool))
        return scenes
