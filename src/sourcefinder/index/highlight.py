"""Match windows: pick which lines of a hit to show and how.

Works in two passes. The first walks only the matched line numbers and
decides, per match, its color band, whether it pulls in lead-in lines and
where the walk ends. The second assigns every walked line its role in a
single forward sweep.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List, Sequence

from sourcefinder.models import RenderLine, RenderPlan

SHOW_MATCHING_LINES_PER_ITEM = 50
SHOW_AROUND_MATCHING_LINE = 2
BAND_COLORS = ("#3B4043", "#666699")


@dataclass(frozen=True, slots=True)
class _Window:
    match: int
    band: int
    # First line shown ahead of the match; equals ``match`` without lead-in
    start: int


def _plan_windows(
    matched: Sequence[int],
    line_count: int,
    *,
    budget: int,
    radius: int,
    full: bool,
) -> tuple[List[_Window], int]:
    """Return the per-match windows and the exclusive end of the walk."""
    windows: List[_Window] = []
    context = 0 if full else radius
    band = 0
    context_seen = 0
    left = budget
    previous: int | None = None

    for match in matched:
        start = match
        if previous is not None and context:
            gap = match - previous - 1
            context_seen += min(gap, context)
            # Band rotates once the previous context run is exhausted
            if gap >= context:
                band ^= 1
            # Bridge a hidden gap no wider than the context radius; the
            # bridged lines are paid for out of the budget
            if context_seen > 1 and gap - context <= context:
                bridge_start = max(previous + 1, match - context)
                bridged = match - max(bridge_start, previous + 1 + context)
                if left > bridged:
                    start = bridge_start
                    left -= max(bridged, 0)
        windows.append(_Window(match, band, start))
        previous = match
        left -= 1
        if not full and left < 0:
            return windows, match + 1

    return windows, line_count


def highlight(
    lines: Sequence[str],
    matched_lines: Iterable[int],
    *,
    full: bool = False,
    budget: int = SHOW_MATCHING_LINES_PER_ITEM,
    radius: int = SHOW_AROUND_MATCHING_LINE,
) -> RenderPlan:
    """Build the render plan for one document.

    In summary mode (``full=False``) at most ``budget + 1`` matched lines are
    walked, each followed by ``radius`` context lines, a hidden gap of at most
    ``radius`` lines between two windows is bridged while the budget can pay
    for it, and only shown lines are returned. Matched and bridged lines
    together never exceed ``budget + 1``. In full mode every line is returned and the budget is ignored.
    """
    line_count = len(lines)
    matched = sorted({line for line in matched_lines if 0 <= line < line_count})
    windows, end = _plan_windows(matched, line_count, budget=budget, radius=radius, full=full)

    by_match = {window.match: window for window in windows}
    lead_in_band = {
        line_no: window.band
        for window in windows
        for line_no in range(window.start, window.match)
    }

    entries: List[RenderLine] = []
    context_left = 0
    current_band = 0
    for line_no in range(end):
        entry = RenderLine(line_no=line_no, text=lines[line_no])
        window = by_match.get(line_no)
        if window is not None:
            entry.show = True
            entry.bold = True
            entry.band = window.band
            current_band = window.band
            context_left = 0 if full else radius
        elif context_left > 0:
            entry.show = True
            entry.band = current_band
            context_left -= 1
        elif line_no in lead_in_band:
            entry.show = True
            entry.band = lead_in_band[line_no]
        entries.append(entry)

    width = len(str(max(end - 1, 0)))
    first_match = windows[0].match if windows else None
    if full:
        for entry in entries:
            entry.show = True
        return RenderPlan(lines=entries, width=width, first_match=first_match)
    return RenderPlan(lines=[e for e in entries if e.show], width=width, first_match=first_match)
