"""
Path reconstruction from a search run's predecessor links.
"""

from typing import List, Sequence

from .grid import Cell, CellRef


def reconstruct_path(end: CellRef, arena) -> List[Cell]:
    """
    Walk predecessor links from `end` back to a cell with no predecessor.

    Returns cells in start-to-end order. If `end` was never reached the
    result is the partial chain that exists, usually just [end]; check the
    first element against the start before treating it as a route.
    """
    current = arena.grid.resolve(end)
    path: List[Cell] = []
    while current is not None:
        path.append(current)
        current = arena.predecessor_of(current)
    path.reverse()
    return path


def path_cost(path: Sequence[Cell]) -> float:
    """Total weight of every entered cell; the first cell is free."""
    return sum(cell.weight for cell in path[1:])


def path_reaches(path: Sequence[Cell], start: CellRef, end: CellRef) -> bool:
    if not path:
        return False
    start_coord = start.coord if isinstance(start, Cell) else tuple(start)
    end_coord = end.coord if isinstance(end, Cell) else tuple(end)
    return path[0].coord == start_coord and path[-1].coord == end_coord
