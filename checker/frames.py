"""
Subproof frame derivation.

Frames are recovered purely from the depth column: every unit increase opens
one frame per level crossed, every unit decrease closes the innermost open
frame at the preceding line, and frames still open at the end close at the
last line. The resulting frames form a strict stack (they nest, never
overlap).
"""

from __future__ import annotations

import logging
from typing import List, Optional, Sequence

from checker.types import ProofLine, SubproofFrame

logger = logging.getLogger(__name__)


def derive_frames(lines: Sequence[ProofLine]) -> List[SubproofFrame]:
    """Derive subproof frames, in opening order, from line depths."""
    frames: List[SubproofFrame] = []
    stack: List[SubproofFrame] = []
    prev_depth = 0

    for idx, line in enumerate(lines):
        depth = max(0, line.depth)
        if depth > prev_depth:
            for level in range(prev_depth + 1, depth + 1):
                frame = SubproofFrame(
                    depth=level,
                    start_idx=idx,
                    start_line_no=line.line_no,
                    assumption_formula=line.formula,
                )
                stack.append(frame)
                frames.append(frame)
        elif depth < prev_depth:
            for _ in range(prev_depth - depth):
                if not stack:
                    break
                frame = stack.pop()
                frame.end_idx = idx - 1
                frame.end_line_no = lines[idx - 1].line_no
        prev_depth = depth

    if lines:
        while stack:
            frame = stack.pop()
            frame.end_idx = len(lines) - 1
            frame.end_line_no = lines[-1].line_no

    logger.debug("Derived %d subproof frame(s) from %d line(s)", len(frames), len(lines))
    return frames


class FrameIndex:
    """Scope queries over the frames of one proof."""

    def __init__(self, frames: Sequence[SubproofFrame]):
        self.frames = list(frames)

    @staticmethod
    def contains(frame: SubproofFrame, idx: int) -> bool:
        end = frame.end_idx if frame.end_idx is not None else frame.start_idx
        return frame.start_idx <= idx <= end

    def open_at(self, idx: int) -> List[SubproofFrame]:
        """Frames enclosing line `idx`, outermost first."""
        return [f for f in self.frames if self.contains(f, idx)]

    def starting_at(self, idx: int) -> Optional[SubproofFrame]:
        """Innermost frame whose assumption is line `idx`."""
        found = [f for f in self.frames if f.start_idx == idx]
        return max(found, key=lambda f: f.depth) if found else None

    def is_accessible(self, ref_idx: int, cur_idx: int) -> bool:
        """A cited line is accessible when every frame around it still encloses the citing line."""
        return all(self.contains(f, cur_idx) for f in self.open_at(ref_idx))

    def discharged_at(self, idx: int, depth: int) -> List[SubproofFrame]:
        """
        Frames that line `idx` (at `depth`) may discharge.

        These are the frames one level deeper that closed before `idx` inside
        the scope `idx` belongs to, most recently closed first.
        """
        candidates = []
        for frame in self.frames:
            if frame.depth != depth + 1 or frame.end_idx is None or frame.end_idx >= idx:
                continue
            enclosing = [f for f in self.open_at(frame.start_idx) if f.depth <= depth]
            if all(self.contains(f, idx) for f in enclosing):
                candidates.append(frame)
        candidates.sort(key=lambda f: f.end_idx, reverse=True)
        return candidates


__all__ = ["FrameIndex", "derive_frames"]
