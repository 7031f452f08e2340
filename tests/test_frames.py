"""
Tests for checker/frames.py subproof derivation and scope queries.
"""

from checker.frames import FrameIndex, derive_frames
from checker.types import ProofLine


def make_lines(*depths):
    return [ProofLine(line_no=str(i + 1), formula=f"F{i + 1}", depth=d) for i, d in enumerate(depths)]


class TestDeriveFrames:
    """Frames follow the depth column."""

    def test_flat_proof_has_no_frames(self):
        assert derive_frames(make_lines(0, 0, 0)) == []

    def test_empty_proof(self):
        assert derive_frames([]) == []

    def test_single_subproof(self):
        frames = derive_frames(make_lines(0, 1, 1, 0))
        assert len(frames) == 1
        f = frames[0]
        assert (f.depth, f.start_line_no, f.end_line_no) == (1, "2", "3")
        assert f.assumption_formula == "F2"

    def test_unclosed_frame_ends_at_last_line(self):
        frames = derive_frames(make_lines(0, 1, 1))
        assert frames[0].end_line_no == "3"

    def test_jump_opens_one_frame_per_level(self):
        frames = derive_frames(make_lines(0, 2, 0))
        assert [(f.depth, f.start_line_no, f.end_line_no) for f in frames] == [
            (1, "2", "2"),
            (2, "2", "2"),
        ]

    def test_sibling_frames_are_distinct(self):
        frames = derive_frames(make_lines(1, 0, 1))
        assert [(f.start_line_no, f.end_line_no) for f in frames] == [("1", "1"), ("3", "3")]

    def test_nested_frames(self):
        frames = derive_frames(make_lines(0, 1, 2, 2, 1, 0))
        outer, inner = frames
        assert (outer.start_idx, outer.end_idx) == (1, 4)
        assert (inner.start_idx, inner.end_idx) == (2, 3)

    def test_wire_shape(self):
        frame = derive_frames(make_lines(0, 1, 0))[0]
        assert frame.to_dict() == {
            "depth": 1,
            "startLineNo": "2",
            "endLineNo": "2",
            "assumptionFormula": "F2",
        }


class TestFrameIndex:
    """Scope queries used by the engine."""

    def test_accessibility(self):
        index = FrameIndex(derive_frames(make_lines(0, 1, 1, 0)))
        assert index.is_accessible(0, 3)
        assert index.is_accessible(1, 2)
        assert not index.is_accessible(1, 3)

    def test_open_at(self):
        index = FrameIndex(derive_frames(make_lines(0, 1, 2, 1)))
        assert [f.depth for f in index.open_at(2)] == [1, 2]
        assert index.open_at(0) == []

    def test_starting_at_prefers_innermost(self):
        index = FrameIndex(derive_frames(make_lines(0, 2, 0)))
        assert index.starting_at(1).depth == 2
        assert index.starting_at(0) is None

    def test_discharged_at(self):
        index = FrameIndex(derive_frames(make_lines(0, 1, 1, 0)))
        [frame] = index.discharged_at(3, 0)
        assert frame.start_idx == 1
        assert index.discharged_at(2, 0) == []

    def test_discharged_at_ignores_other_scopes(self):
        # frame 3-3 sits inside frame 2-3; line 5 is outside frame 2-3
        index = FrameIndex(derive_frames(make_lines(0, 1, 2, 0, 1)))
        assert index.discharged_at(4, 1) == []

    def test_discharged_most_recent_first(self):
        index = FrameIndex(derive_frames(make_lines(1, 0, 1, 0)))
        assert [f.start_idx for f in index.discharged_at(3, 0)] == [2, 0]
