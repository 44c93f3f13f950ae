"""Match detection over a grid snapshot.

Everything here is pure: callers hand in a complete ``Position -> Token``
mapping and get back identities, never positions, so the result stays valid
for a renderer even after the tokens move.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import FrozenSet, List, Mapping, Tuple

from crush.components.token import Token
from crush.constants import MIN_RUN_LENGTH
from crush.errors import GridInvariantError

Position = Tuple[int, int]
Grid = Mapping[Position, Token]


@dataclass(frozen=True, slots=True)
class Run:
    """A maximal line of equal-kind tokens of length >= 3."""
    orientation: str  # 'horizontal' or 'vertical'
    kind: str
    positions: Tuple[Position, ...]
    token_ids: Tuple[str, ...]

    def __len__(self) -> int:
        return len(self.positions)


def check_grid(grid: Grid, rows: int, cols: int) -> None:
    """Raise GridInvariantError unless grid binds every cell exactly once."""
    if len(grid) != rows * cols:
        missing = [(r, c) for r in range(rows) for c in range(cols) if (r, c) not in grid]
        raise GridInvariantError(
            f"grid holds {len(grid)} tokens for a {rows}x{cols} board; missing {missing[:5]}"
        )
    for row, col in grid:
        if not (0 <= row < rows and 0 <= col < cols):
            raise GridInvariantError(f"token bound outside the board at {(row, col)}")
    seen: set[str] = set()
    for token in grid.values():
        if token.token_id in seen:
            raise GridInvariantError(f"token {token.token_id} bound to more than one cell")
        seen.add(token.token_id)


def find_matches(grid: Grid, rows: int, cols: int) -> FrozenSet[str]:
    """Return identities of every token inside a horizontal or vertical run >= 3.

    Sliding window of three along each row (left to right) then each column
    (top to bottom); a token in both a horizontal and a vertical run appears once.
    """
    check_grid(grid, rows, cols)
    matched: set[str] = set()
    for r in range(rows):
        for c in range(cols - 2):
            window = (grid[(r, c)], grid[(r, c + 1)], grid[(r, c + 2)])
            if window[0].kind == window[1].kind == window[2].kind:
                matched.update(token.token_id for token in window)
    for c in range(cols):
        for r in range(rows - 2):
            window = (grid[(r, c)], grid[(r + 1, c)], grid[(r + 2, c)])
            if window[0].kind == window[1].kind == window[2].kind:
                matched.update(token.token_id for token in window)
    return frozenset(matched)


def find_runs(grid: Grid, rows: int, cols: int) -> List[Run]:
    """Detect all maximal horizontal and vertical runs of length >= 3."""
    check_grid(grid, rows, cols)
    runs: List[Run] = []
    lines = [
        ('horizontal', [[(r, c) for c in range(cols)] for r in range(rows)]),
        ('vertical', [[(r, c) for r in range(rows)] for c in range(cols)]),
    ]
    for orientation, line_list in lines:
        for line in line_list:
            run: List[Position] = []
            for pos in line:
                if run and grid[run[-1]].kind == grid[pos].kind:
                    run.append(pos)
                    continue
                if len(run) >= MIN_RUN_LENGTH:
                    runs.append(_make_run(grid, orientation, run))
                run = [pos]
            if len(run) >= MIN_RUN_LENGTH:
                runs.append(_make_run(grid, orientation, run))
    return runs


def _make_run(grid: Grid, orientation: str, positions: List[Position]) -> Run:
    return Run(
        orientation=orientation,
        kind=grid[positions[0]].kind,
        positions=tuple(positions),
        token_ids=tuple(grid[pos].token_id for pos in positions),
    )
