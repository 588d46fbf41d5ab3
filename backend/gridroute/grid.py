"""
Grid Model

Fixed-size rectangular board of cells for the search visualizer:
- Per-cell terrain weight (cost of entering the cell)
- Wall flag for impassable cells (buildings, towers)
- Start/end designation
- 4-directional neighbour lookup with bounds checking

Cells hold no search scratch state; each search run keeps its own
arena (see search.py) so several runs can share one grid.
"""

import math
from contextlib import contextmanager
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Iterator, List, Optional, Tuple, Union

import numpy as np


Coord = Tuple[int, int]  # (row, col)

# Neighbour order: up, down, left, right
DIRECTIONS: List[Coord] = [(-1, 0), (1, 0), (0, -1), (0, 1)]

MIN_WEIGHT = 1.0


# =============================================================================
# ERRORS
# =============================================================================

class GridError(ValueError):
    """Malformed grid input or a forbidden grid mutation."""


class OutOfBoundsError(GridError):
    pass


class SameEndpointError(GridError):
    pass


class EndpointWallError(GridError):
    """Start or end is (or would become) a wall."""


class GridLockedError(GridError):
    """The grid was mutated while a search was running over it."""


# =============================================================================
# TERRAIN
# =============================================================================

class Terrain(Enum):
    """Terrain classes with their default traversal weight."""
    HIGHWAY = ("highway", 1.0, False)
    ROAD = ("road", 1.0, False)
    ALLEY = ("alley", 2.5, False)
    PARK = ("park", 3.0, False)
    BUILDING = ("building", math.inf, True)
    TOWER = ("tower", math.inf, True)

    def __init__(self, label: str, weight: float, is_wall: bool):
        self.label = label
        self.weight = weight
        self.is_wall = is_wall


@dataclass(eq=False)
class Cell:
    """One grid position. Identity is the (row, col) coordinate."""
    row: int
    col: int
    weight: float = 1.0  # cost of entering this cell, inf for walls
    is_wall: bool = False
    is_start: bool = False
    is_end: bool = False
    terrain: Terrain = Terrain.ROAD

    @property
    def coord(self) -> Coord:
        return (self.row, self.col)

    def to_dict(self) -> Dict:
        return {
            "row": self.row,
            "col": self.col,
            # JSON has no infinity; walls report a null weight
            "weight": None if math.isinf(self.weight) else self.weight,
            "is_wall": self.is_wall,
            "is_start": self.is_start,
            "is_end": self.is_end,
            "terrain": self.terrain.label,
        }

    def __repr__(self) -> str:
        flags = "W" if self.is_wall else ("S" if self.is_start else ("E" if self.is_end else ""))
        return f"Cell({self.row}, {self.col}{', ' + flags if flags else ''})"


CellRef = Union[Cell, Coord]


# =============================================================================
# GRID
# =============================================================================

class Grid:
    """
    Rectangular array of cells, rows x cols, 0-based indices.

    The grid is owned by its caller. Searches borrow it for one call
    (see `searching`); while a search is running every mutation raises
    GridLockedError.
    """

    def __init__(self, rows: int, cols: int, terrain: Terrain = Terrain.ROAD):
        if rows < 1 or cols < 1:
            raise GridError(f"Grid dimensions must be positive, got {rows}x{cols}")
        self.rows = rows
        self.cols = cols
        self.cells: List[List[Cell]] = [
            [
                Cell(row=r, col=c, weight=terrain.weight, is_wall=terrain.is_wall, terrain=terrain)
                for c in range(cols)
            ]
            for r in range(rows)
        ]
        self.start: Optional[Cell] = None
        self.end: Optional[Cell] = None
        self._active_searches = 0

    # --------------------------------------------------
    # Lookup
    # --------------------------------------------------

    def in_bounds(self, coord: Coord) -> bool:
        row, col = coord
        return 0 <= row < self.rows and 0 <= col < self.cols

    def cell(self, coord: Coord) -> Cell:
        """Return the cell at `coord`, raising OutOfBoundsError outside the grid."""
        row, col = coord
        if not self.in_bounds((row, col)):
            raise OutOfBoundsError(
                f"Cell ({row}, {col}) is outside the {self.rows}x{self.cols} grid"
            )
        return self.cells[row][col]

    def resolve(self, ref: CellRef) -> Cell:
        """Accept a Cell or a (row, col) pair and return this grid's cell."""
        if isinstance(ref, Cell):
            return self.cell(ref.coord)
        return self.cell(tuple(ref))

    def neighbors(self, cell: CellRef) -> List[Cell]:
        """In-bounds orthogonal neighbours in fixed order: up, down, left, right."""
        cell = self.resolve(cell)
        result = []
        for dr, dc in DIRECTIONS:
            r, c = cell.row + dr, cell.col + dc
            if 0 <= r < self.rows and 0 <= c < self.cols:
                result.append(self.cells[r][c])
        return result

    def __iter__(self) -> Iterator[Cell]:
        for row in self.cells:
            yield from row

    def __len__(self) -> int:
        return self.rows * self.cols

    # --------------------------------------------------
    # Search lock
    # --------------------------------------------------

    @property
    def search_in_progress(self) -> bool:
        return self._active_searches > 0

    @contextmanager
    def searching(self):
        """Mark a search as running over this grid for the duration of the block."""
        self._active_searches += 1
        try:
            yield self
        finally:
            self._active_searches -= 1

    def _check_unlocked(self, action: str):
        if self.search_in_progress:
            raise GridLockedError(f"Cannot {action} while a search is in progress")

    # --------------------------------------------------
    # Mutation
    # --------------------------------------------------

    def set_weight(self, cell: CellRef, weight: Optional[float]):
        """
        Assign the cost of entering `cell`.

        Passable weights are clamped to >= 1. `None` or +inf marks the cell
        impassable. A finite weight on a wall clears the wall.
        """
        cell = self.resolve(cell)
        self._check_unlocked("change a weight")

        if weight is None or weight == math.inf:
            self.set_wall(cell, True)
            return
        weight = float(weight)
        if math.isnan(weight) or weight == -math.inf:
            raise GridError(f"Weight for {cell.coord} must be a number or +inf, got {weight}")

        if cell.is_wall:
            cell.is_wall = False
            cell.terrain = Terrain.ROAD
        cell.weight = max(MIN_WEIGHT, weight)

    def set_wall(self, cell: CellRef, is_wall: bool):
        cell = self.resolve(cell)
        self._check_unlocked("change a wall")

        if is_wall:
            if cell.is_start or cell.is_end:
                raise EndpointWallError(f"Cannot place a wall on endpoint {cell.coord}")
            cell.is_wall = True
            cell.weight = math.inf
            cell.terrain = Terrain.TOWER if (cell.row + cell.col) % 2 == 0 else Terrain.BUILDING
        else:
            cell.is_wall = False
            cell.terrain = Terrain.ROAD
            cell.weight = Terrain.ROAD.weight

    def toggle_wall(self, cell: CellRef) -> Cell:
        cell = self.resolve(cell)
        self.set_wall(cell, not cell.is_wall)
        return cell

    def set_terrain(self, cell: CellRef, terrain: Terrain):
        cell = self.resolve(cell)
        if terrain.is_wall:
            self.set_wall(cell, True)
            cell.terrain = terrain
            return
        self._check_unlocked("change terrain")
        cell.is_wall = False
        cell.terrain = terrain
        cell.weight = terrain.weight

    def set_start(self, cell: CellRef) -> Cell:
        cell = self.resolve(cell)
        self._check_unlocked("move the start")
        if cell.is_wall:
            raise EndpointWallError(f"Start {cell.coord} is a wall")
        if cell.is_end:
            raise SameEndpointError(f"Start and end cannot both be {cell.coord}")
        if self.start is not None:
            self.start.is_start = False
        cell.is_start = True
        self.start = cell
        return cell

    def set_end(self, cell: CellRef) -> Cell:
        cell = self.resolve(cell)
        self._check_unlocked("move the end")
        if cell.is_wall:
            raise EndpointWallError(f"End {cell.coord} is a wall")
        if cell.is_start:
            raise SameEndpointError(f"Start and end cannot both be {cell.coord}")
        if self.end is not None:
            self.end.is_end = False
        cell.is_end = True
        self.end = cell
        return cell

    def apply_weights(self, weights: np.ndarray) -> int:
        """
        Bulk weight assignment from a rows x cols array (terrain/road provider).

        Only passable cells are re-weighted; existing walls stay walls.
        Infinite entries wall the cell unless it is the start or end.

        Returns:
            Number of cells updated
        """
        weights = np.asarray(weights, dtype=np.float64)
        if weights.shape != (self.rows, self.cols):
            raise GridError(
                f"Weight array shape {weights.shape} does not match grid {self.rows}x{self.cols}"
            )
        self._check_unlocked("apply weights")

        updated = 0
        for cell in self:
            if cell.is_wall:
                continue
            value = float(weights[cell.row, cell.col])
            if math.isinf(value) and value > 0 and (cell.is_start or cell.is_end):
                continue
            self.set_weight(cell, value)
            updated += 1
        return updated

    # --------------------------------------------------
    # Serialization
    # --------------------------------------------------

    def terrain_counts(self) -> Dict[str, int]:
        counts = {t.label: 0 for t in Terrain}
        for cell in self:
            counts[cell.terrain.label] += 1
        return counts

    def to_dict(self) -> Dict:
        return {
            "rows": self.rows,
            "cols": self.cols,
            "start": list(self.start.coord) if self.start else None,
            "end": list(self.end.coord) if self.end else None,
            "cells": [[cell.to_dict() for cell in row] for row in self.cells],
            "terrain_counts": self.terrain_counts(),
        }


# =============================================================================
# DEMO CITY LAYOUT
# =============================================================================

def demo_terrain(row: int, col: int, size: int) -> Terrain:
    """Procedural city block layout used by the visualizer's default board."""
    is_start = row == 2 and col == 2
    is_end = row == size - 3 and col == size - 3

    on_main_diag = abs(row - col) < 3
    on_cross_h = row in (5, 10, 16)
    on_cross_v = col in (5, 10, 16)
    is_highway = on_main_diag and (on_cross_h or on_cross_v)
    is_road = on_main_diag or on_cross_h or on_cross_v
    is_alley = not is_road and (row % 4 == 0 or col % 4 == 0)
    is_park = not is_road and not is_alley and (row * 31 + col * 17) % 13 == 0
    open_lot = not (is_start or is_end or is_road or is_alley or is_park)
    is_tower = open_lot and (row * 13 + col * 7) % 6 == 0
    is_building = open_lot and not is_tower and (row * 5 + col * 11) % 3 != 0

    if is_highway:
        return Terrain.HIGHWAY
    if is_road:
        return Terrain.ROAD
    if is_alley:
        return Terrain.ALLEY
    if is_park:
        return Terrain.PARK
    if is_tower:
        return Terrain.TOWER
    if is_building:
        return Terrain.BUILDING
    return Terrain.ALLEY


def create_demo_grid(size: int = 22, road_weights: Optional[np.ndarray] = None) -> Grid:
    """
    Build the default board: start at (2, 2), end at (size-3, size-3).

    Args:
        size: Board edge length (at least 6)
        road_weights: Optional size x size array of road-derived weights.
                      Passable cells take their weight from it.
    """
    if size < 6:
        raise GridError(f"Demo grid needs size >= 6, got {size}")

    grid = Grid(size, size)
    for cell in grid:
        grid.set_terrain(cell, demo_terrain(cell.row, cell.col, size))

    grid.set_start((2, 2))
    grid.set_end((size - 3, size - 3))

    if road_weights is not None:
        updated = grid.apply_weights(road_weights)
        print(f"[Grid] Applied road weights to {updated} passable cells")

    return grid
