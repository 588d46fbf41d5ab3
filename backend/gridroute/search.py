"""
Per-run search state shared by the BFS and A* searches.

Scratch fields (visited, cost so far, predecessor) live in a SearchArena
keyed by cell coordinate, allocated fresh for every run. Predecessors are
coordinates, never cell references, so a path walk is a read-only lookup.
"""

import math
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from .grid import (
    Cell, CellRef, Coord, Grid,
    EndpointWallError, SameEndpointError,
)
from .config import settings
from .path import path_cost as weighted_path_cost, path_reaches, reconstruct_path
from .roads import km_per_node


@dataclass
class ScratchRecord:
    """Search bookkeeping for one cell during one run."""
    visited: bool = False
    cost_so_far: float = math.inf  # g(n)
    heuristic: float = 0.0  # h(n), A* only
    total_cost: float = math.inf  # f(n) = g + h, A* only
    predecessor: Optional[Coord] = None


class SearchArena:
    """Coordinate -> ScratchRecord mapping for a single search run over `grid`."""

    def __init__(self, grid: Grid):
        self.grid = grid
        self._records: Dict[Coord, ScratchRecord] = {}

    def __getitem__(self, ref: CellRef) -> ScratchRecord:
        coord = ref.coord if isinstance(ref, Cell) else tuple(ref)
        record = self._records.get(coord)
        if record is None:
            record = ScratchRecord()
            self._records[coord] = record
        return record

    def __contains__(self, ref: CellRef) -> bool:
        coord = ref.coord if isinstance(ref, Cell) else tuple(ref)
        return coord in self._records

    def __len__(self) -> int:
        return len(self._records)

    def predecessor_of(self, cell: Cell) -> Optional[Cell]:
        record = self._records.get(cell.coord)
        if record is None or record.predecessor is None:
            return None
        return self.grid.cell(record.predecessor)


def validate_endpoints(grid: Grid, start: CellRef, end: CellRef) -> Tuple[Cell, Cell]:
    """
    Resolve and check search endpoints, failing fast on malformed input.

    Raises:
        OutOfBoundsError: start or end outside the grid
        SameEndpointError: start equals end
        EndpointWallError: start or end is a wall
    """
    start_cell = grid.resolve(start)
    end_cell = grid.resolve(end)
    if start_cell is end_cell:
        raise SameEndpointError(f"Start and end are the same cell {start_cell.coord}")
    if start_cell.is_wall:
        raise EndpointWallError(f"Start {start_cell.coord} is a wall")
    if end_cell.is_wall:
        raise EndpointWallError(f"End {end_cell.coord} is a wall")
    return start_cell, end_cell


@dataclass
class SearchResult:
    """Outcome of one search run."""
    algorithm: str
    start: Cell
    end: Cell
    visited: List[Cell]  # visitation order
    arena: SearchArena
    elapsed_time: float = 0.0
    _path: List[Cell] = field(default_factory=list, init=False, repr=False)
    _path_cost: float = field(default=math.inf, init=False, repr=False)

    def __post_init__(self):
        # Snapshot the route and its cost; later grid edits must not change them
        self._path = reconstruct_path(self.end, self.arena)
        if self.found:
            self._path_cost = weighted_path_cost(self._path)

    @property
    def path(self) -> List[Cell]:
        return self._path

    @property
    def found(self) -> bool:
        return path_reaches(self.path, self.start, self.end)

    @property
    def path_edges(self) -> int:
        return len(self.path) - 1 if self.found else 0

    @property
    def path_cost(self) -> float:
        """Weighted cost of the path when the run finished (sum of entered-cell weights)."""
        return self._path_cost

    @property
    def path_km(self) -> float:
        """Approximate real-world route length, one grid step at a time."""
        grid = self.arena.grid
        return self.path_edges * km_per_node(max(grid.rows, grid.cols), settings.bounds)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        found = self.found
        return {
            "algorithm": self.algorithm,
            "start": list(self.start.coord),
            "end": list(self.end.coord),
            "found": found,
            "visited": [list(cell.coord) for cell in self.visited],
            "path": [list(cell.coord) for cell in self.path] if found else [],
            "visited_count": len(self.visited),
            "path_length": len(self.path) if found else 0,
            "path_cost": self.path_cost if found else None,
            "path_km": round(self.path_km, 3) if found else None,
            "elapsed_time": self.elapsed_time,
        }
