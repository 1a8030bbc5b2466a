"""Tests for the segmenter module."""
import threading

import pytest

from ttmlscene.config import ParseOptions
from ttmlscene.errors import CueLimitExceeded, NoScenesProduced, SegmentationCancelled
from ttmlscene.models import Cue
from ttmlscene.pool import CuePool
from ttmlscene.segmenter import SceneSegmenter


def _cue(start_s, end_s):
    return Cue(start_us=int(start_s * 1000000), end_us=int(end_s * 1000000), region_id="r1")


class TestFindNextTransition:
    """Tests for find_next_transition."""

    def test_before_time(self):
        """Test the first transition is the earliest start."""
        pool = CuePool([_cue(2, 3), _cue(1, 4)])
        assert SceneSegmenter().find_next_transition(pool, None) == 1000000

    def test_before_time_reaches_negative_starts(self):
        """Test a cue starting before zero is still the first transition."""
        pool = CuePool([_cue(-2, 1), _cue(0, 3)])
        assert SceneSegmenter().find_next_transition(pool, None) == -2000000

    def test_strictly_greater(self):
        """Test the cursor itself is never returned."""
        pool = CuePool([_cue(0, 2), _cue(1, 3)])
        assert SceneSegmenter().find_next_transition(pool, 1000000) == 2000000

    def test_exhausted(self):
        """Test None once every boundary is behind the cursor."""
        pool = CuePool([_cue(0, 1)])
        assert SceneSegmenter().find_next_transition(pool, 1000000) is None


class TestCreateScenes:
    """Tests for create_scenes."""

    def test_single_cue(self):
        """Test one cue gives one scene in nanoseconds."""
        cue = _cue(0, 1)
        scenes = SceneSegmenter().create_scenes(CuePool([cue]))
        assert len(scenes) == 1
        assert (scenes[0].start_ns, scenes[0].end_ns) == (0, 1000000000)
        assert scenes[0].cues == (cue,)

    def test_overlapping_cues(self):
        """Test A [0,2) and B [1,3) give {A}, {A,B}, {B}."""
        a, b = _cue(0, 2), _cue(1, 3)
        scenes = SceneSegmenter().create_scenes(CuePool([a, b]))
        assert [(s.start_ns, s.end_ns) for s in scenes] == [
            (0, 1000000000),
            (1000000000, 2000000000),
            (2000000000, 3000000000),
        ]
        assert [s.cues for s in scenes] == [(a,), (a, b), (b,)]

    def test_gap_produces_no_scene(self):
        """Test empty intervals between cues are skipped."""
        scenes = SceneSegmenter().create_scenes(CuePool([_cue(0, 1), _cue(2, 3)]))
        assert [(s.start_ns, s.end_ns) for s in scenes] == [(0, 1000000000), (2000000000, 3000000000)]

    def test_partition_property(self):
        """Test scenes tile every instant covered by some cue, without overlap."""
        cues = [_cue(0, 5), _cue(1, 2), _cue(1, 3), _cue(4, 6), _cue(8, 9)]
        scenes = SceneSegmenter().create_scenes(CuePool(cues))

        def active(t_us):
            return {c for c in cues if c.contains(t_us)}

        assert all(not s.is_open for s in scenes)
        assert scenes[0].start_ns == min(c.start_us for c in cues) * 1000
        assert scenes[-1].end_ns == max(c.end_us for c in cues) * 1000

        # The active set is constant from the first to the last instant of each scene
        for scene in scenes:
            assert set(scene.cues) == active(scene.start_ns // 1000)
            assert set(scene.cues) == active(scene.end_ns // 1000 - 1)

        # Neighbours touch unless nothing is on screen between them
        for earlier, later in zip(scenes, scenes[1:]):
            end_us = earlier.end_ns // 1000
            if active(end_us):
                assert later.start_ns == earlier.end_ns
            else:
                assert later.start_ns > earlier.end_ns
                assert not active(later.start_ns // 1000 - 1)

    def test_negative_start_is_kept(self):
        """Test a cue starting before zero opens the first scene at its own start."""
        early, late = _cue(-5, 1), _cue(0, 2)
        scenes = SceneSegmenter().create_scenes(CuePool([early, late]))
        assert [(s.start_ns, s.end_ns) for s in scenes] == [
            (-5000000000, 0),
            (0, 1000000000),
            (1000000000, 2000000000),
        ]
        assert [s.cues for s in scenes] == [(early,), (early, late), (late,)]

    def test_back_to_back_cues(self):
        """Test a cue ending exactly when another starts."""
        a, b = _cue(0, 1), _cue(1, 2)
        scenes = SceneSegmenter().create_scenes(CuePool([a, b]))
        assert [s.cues for s in scenes] == [(a,), (b,)]

    def test_empty_pool(self):
        """Test an empty pool yields NoScenesProduced."""
        with pytest.raises(NoScenesProduced):
            SceneSegmenter().create_scenes(CuePool())

    def test_max_cues(self):
        """Test the cue bound is enforced before scanning."""
        pool = CuePool([_cue(0, 1), _cue(1, 2), _cue(2, 3)])
        with pytest.raises(CueLimitExceeded):
            SceneSegmenter(ParseOptions(max_cues=2)).create_scenes(pool)

    def test_cancel_event(self):
        """Test a set cancel event stops segmentation."""
        event = threading.Event()
        event.set()
        with pytest.raises(SegmentationCancelled):
            SceneSegmenter().create_scenes(CuePool([_cue(0, 1)]), cancel_event=event)

    def test_progress_callback(self):
        """Test progress is reported once per transition."""
        calls = []
        SceneSegmenter().create_scenes(CuePool([_cue(0, 2), _cue(1, 3)]),
                                       progress_callback=lambda done, total, msg: calls.append((done, total)))
        assert calls == [(1, 4), (2, 4), (3, 4), (4, 4)]
