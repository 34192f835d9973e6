from __future__ import annotations
from ..domain.models import BlockRange
from ..domain.value_types import CoveragePolicy

def merge_intervals(intervals: list[tuple[int,int]]) -> list[tuple[int,int]]:
    if not intervals: return []
    intervals = sorted(intervals)
    merged: list[list[int]] = [[intervals[0][0], intervals[0][1]]]
    for s, e in intervals[1:]:
        ms, me = merged[-1]
        if s <= me + 1: merged[-1][1] = max(me, e)
        else: merged.append([s, e])
    return [(s, e) for s, e in merged]

def next_coverage(old: BlockRange | None, new: BlockRange, policy: CoveragePolicy) -> BlockRange:
    """Coverage after scanning `new`. Merging never bridges a gap: disjoint windows replace."""
    if old is None or policy == "replace":
        return new
    merged = merge_intervals([(old.start, old.end), (new.start, new.end)])
    if len(merged) == 1:
        return BlockRange(*merged[0])
    return new

def resolve_bounds(block_start: int, block_end: int) -> BlockRange:
    if block_start > block_end:
        raise ValueError(f"block_start ({block_start}) must be <= block_end ({block_end})")
    return BlockRange(block_start, block_end)
