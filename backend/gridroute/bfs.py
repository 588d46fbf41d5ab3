"""
Breadth-First Search (BFS)

Unweighted, layer-by-layer flood fill from the start cell.
Guarantees the path with the fewest moves; terrain weight is ignored.
"""

import time
from collections import deque
from typing import Deque, List

from .grid import Cell, CellRef, Grid
from .search import SearchArena, SearchResult, validate_endpoints


def bfs(grid: Grid, start: CellRef, end: CellRef) -> SearchResult:
    """
    Explore `grid` from `start` until `end` is dequeued or the queue empties.

    Cells are marked visited when enqueued, so each cell is processed at
    most once. Ties between equal-length routes follow enqueue order
    (neighbours up, down, left, right).

    Returns:
        SearchResult whose `visited` lists cells in visitation order.
        If `end` is unreachable it holds the whole reachable region.
    """
    start_cell, end_cell = validate_endpoints(grid, start, end)
    t0 = time.perf_counter()

    arena = SearchArena(grid)
    visited_in_order: List[Cell] = []

    with grid.searching():
        start_record = arena[start_cell]
        start_record.visited = True
        start_record.cost_so_far = 0.0
        queue: Deque[Cell] = deque([start_cell])

        while queue:
            current = queue.popleft()
            if current.is_wall:
                continue
            visited_in_order.append(current)
            if current is end_cell:
                break

            current_record = arena[current]
            for neighbor in grid.neighbors(current):
                if neighbor.is_wall:
                    continue
                record = arena[neighbor]
                if record.visited:
                    continue
                record.visited = True
                record.predecessor = current.coord
                record.cost_so_far = current_record.cost_so_far + 1
                queue.append(neighbor)

    elapsed = time.perf_counter() - t0
    reached = visited_in_order[-1] is end_cell
    print(f"[BFS] {start_cell.coord} -> {end_cell.coord}: visited {len(visited_in_order)} cells, "
          f"{'reached goal' if reached else 'goal unreachable'} in {elapsed * 1000:.2f}ms")

    return SearchResult(
        algorithm="bfs",
        start=start_cell,
        end=end_cell,
        visited=visited_in_order,
        arena=arena,
        elapsed_time=elapsed,
    )
