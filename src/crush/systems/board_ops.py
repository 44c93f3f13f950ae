from __future__ import annotations

import random
import uuid
from dataclasses import dataclass
from typing import Dict, FrozenSet, Iterable, Iterator, List, Sequence, Tuple

from esper import World

from crush.components.board import Board
from crush.components.board_position import BoardPosition
from crush.components.token import Token
from crush.components.token_kind_registry import TokenKindRegistry
from crush.components.token_kinds import TokenKinds
from crush.errors import ConfigurationError, GridInvariantError
from crush.systems.match import find_matches

Position = Tuple[int, int]


@dataclass(frozen=True, slots=True)
class TokenView:
    """Immutable record handed to observers; renderers key elements by token_id."""
    token_id: str
    kind: str
    row: int
    col: int

    @property
    def position(self) -> Position:
        return (self.row, self.col)


@dataclass(slots=True)
class GravityMove:
    token_id: str
    kind: str
    source: Position
    target: Position


@dataclass(slots=True)
class CascadeStep:
    """Everything one remove -> compact -> refill pass changed."""
    removed: List[TokenView]
    moves: List[GravityMove]
    new_tokens: List[TokenView]


def get_kind_registry(world: World) -> TokenKinds:
    for entity, _ in world.get_component(TokenKindRegistry):
        return world.component_for_entity(entity, TokenKinds)
    raise RuntimeError("TokenKinds definitions not found")


def board_dimensions(world: World) -> Tuple[int, int]:
    for _, board in world.get_component(Board):
        return board.rows, board.cols
    raise RuntimeError("Board not found")


def world_random(world: World) -> random.Random:
    candidate = getattr(world, "random", None)
    if not callable(getattr(candidate, "choice", None)):
        raise ConfigurationError(f"world.random must provide choice(), got {candidate!r}")
    return candidate


def new_token_id() -> str:
    return uuid.uuid4().hex


def spawn_token(world: World, kind: str, row: int, col: int) -> int:
    return world.create_entity(Token(token_id=new_token_id(), kind=kind), BoardPosition(row=row, col=col))


def iter_tokens(world: World) -> Iterator[Tuple[int, Token, BoardPosition]]:
    for entity, (token, position) in world.get_components(Token, BoardPosition):
        yield entity, token, position


def grid_map(world: World) -> Dict[Position, Token]:
    """Return the Position -> Token binding, failing loudly on a shared cell."""
    grid: Dict[Position, Token] = {}
    for _, token, position in iter_tokens(world):
        key = (position.row, position.col)
        if key in grid:
            raise GridInvariantError(
                f"tokens {grid[key].token_id} and {token.token_id} both occupy {key}"
            )
        grid[key] = token
    return grid


def get_entity_at(world: World, row: int, col: int) -> int | None:
    for entity, _, position in iter_tokens(world):
        if position.row == row and position.col == col:
            return entity
    return None


def find_matches_in_world(world: World) -> FrozenSet[str]:
    rows, cols = board_dimensions(world)
    return find_matches(grid_map(world), rows, cols)


def is_adjacent(a: Position, b: Position) -> bool:
    ar, ac = a
    br, bc = b
    return (abs(ar - br) == 1 and ac == bc) or (abs(ac - bc) == 1 and ar == br)


def generate_layout(rows: int, cols: int, kinds: Sequence[str], rng: random.Random) -> List[List[str]]:
    """Random kinds in row-major order with no three equal in a row or column.

    Each cell redraws while its candidate equals the two cells to its left or the
    two cells above it; at most two kinds are ever forbidden at once.
    """
    choices = list(kinds)
    layout: List[List[str]] = []
    for row in range(rows):
        row_values: List[str] = []
        for col in range(cols):
            kind = rng.choice(choices)
            while (
                (col >= 2 and row_values[col - 1] == kind and row_values[col - 2] == kind)
                or (row >= 2 and layout[row - 1][col] == kind and layout[row - 2][col] == kind)
            ):
                kind = rng.choice(choices)
            row_values.append(kind)
        layout.append(row_values)
    return layout


def clear_board(world: World) -> None:
    for entity in [entity for entity, _, _ in iter_tokens(world)]:
        world.delete_entity(entity, immediate=True)


def populate_board(world: World, layout: Sequence[Sequence[str]]) -> Tuple[TokenView, ...]:
    """Replace every token with fresh ones whose kinds follow layout."""
    rows, cols = board_dimensions(world)
    if len(layout) != rows or any(len(line) != cols for line in layout):
        raise GridInvariantError(f"layout does not cover the {rows}x{cols} board")
    known = set(get_kind_registry(world).defined_kinds())
    clear_board(world)
    for row, line in enumerate(layout):
        for col, kind in enumerate(line):
            if kind not in known:
                raise ValueError(f"unknown token kind {kind!r}")
            spawn_token(world, kind, row, col)
    return grid_snapshot(world)


def spawn_board(world: World, *, rng: random.Random | None = None) -> Tuple[TokenView, ...]:
    """Fill the board with a fresh match-free layout."""
    rows, cols = board_dimensions(world)
    kinds = get_kind_registry(world).spawnable_kinds()
    layout = generate_layout(rows, cols, kinds, rng or world_random(world))
    return populate_board(world, layout)


def swap_positions(world: World, src: Position, dst: Position) -> Tuple[str, str]:
    """Exchange the cells of the tokens at src and dst; returns their identities."""
    src_entity = get_entity_at(world, *src)
    dst_entity = get_entity_at(world, *dst)
    if src_entity is None or dst_entity is None:
        raise GridInvariantError(f"cannot swap {src} and {dst}: cell is empty")
    src_pos = world.component_for_entity(src_entity, BoardPosition)
    dst_pos = world.component_for_entity(dst_entity, BoardPosition)
    src_pos.row, src_pos.col, dst_pos.row, dst_pos.col = dst_pos.row, dst_pos.col, src_pos.row, src_pos.col
    src_token = world.component_for_entity(src_entity, Token)
    dst_token = world.component_for_entity(dst_entity, Token)
    return src_token.token_id, dst_token.token_id


def remove_tokens(world: World, token_ids: Iterable[str]) -> List[TokenView]:
    """Delete the entities of the given tokens, leaving their cells empty."""
    wanted = set(token_ids)
    removed: List[TokenView] = []
    doomed: List[int] = []
    for entity, token, position in iter_tokens(world):
        if token.token_id in wanted:
            removed.append(TokenView(token.token_id, token.kind, position.row, position.col))
            doomed.append(entity)
    for entity in doomed:
        world.delete_entity(entity, immediate=True)
    removed.sort(key=lambda view: (view.row, view.col))
    return removed


def compute_gravity_moves(world: World) -> List[GravityMove]:
    """Per column, survivors bottom-first take rows N-1, N-2, ... keeping their order."""
    rows, cols = board_dimensions(world)
    columns: Dict[int, List[Tuple[int, Token]]] = {col: [] for col in range(cols)}
    for _, token, position in iter_tokens(world):
        columns[position.col].append((position.row, token))
    moves: List[GravityMove] = []
    for col in range(cols):
        survivors = sorted(columns[col], key=lambda entry: entry[0], reverse=True)
        for index, (row, token) in enumerate(survivors):
            target_row = rows - 1 - index
            if target_row != row:
                moves.append(GravityMove(token.token_id, token.kind, (row, col), (target_row, col)))
    return moves


def apply_gravity_moves(world: World, moves: List[GravityMove]) -> None:
    by_id = {move.token_id: move for move in moves}
    for _, token, position in iter_tokens(world):
        move = by_id.get(token.token_id)
        if move is None:
            continue
        position.row, position.col = move.target


def refill_empty_cells(world: World, *, rng: random.Random | None = None) -> List[TokenView]:
    """Fill empty cells with fresh random tokens, column by column, lowest cell first.

    No match avoidance: refills may line up and cascade.
    """
    rows, cols = board_dimensions(world)
    rng = rng or world_random(world)
    kinds = get_kind_registry(world).spawnable_kinds()
    occupied: Dict[int, set[int]] = {col: set() for col in range(cols)}
    for _, _, position in iter_tokens(world):
        occupied[position.col].add(position.row)
    spawned: List[TokenView] = []
    for col in range(cols):
        for row in sorted(set(range(rows)) - occupied[col], reverse=True):
            kind = rng.choice(kinds)
            entity = spawn_token(world, kind, row, col)
            token = world.component_for_entity(entity, Token)
            spawned.append(TokenView(token.token_id, kind, row, col))
    return spawned


def collapse_and_refill(
    world: World, token_ids: Iterable[str], *, rng: random.Random | None = None
) -> CascadeStep:
    """Remove matched tokens, apply gravity, refill, and return what changed."""
    removed = remove_tokens(world, token_ids)
    moves = compute_gravity_moves(world)
    apply_gravity_moves(world, moves)
    new_tokens = refill_empty_cells(world, rng=rng)
    return CascadeStep(removed=removed, moves=moves, new_tokens=new_tokens)


def grid_snapshot(world: World) -> Tuple[TokenView, ...]:
    views = [
        TokenView(token.token_id, token.kind, position.row, position.col)
        for _, token, position in iter_tokens(world)
    ]
    views.sort(key=lambda view: (view.row, view.col))
    return tuple(views)
