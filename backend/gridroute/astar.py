"""
Weighted A* Search

Terrain-aware best-first search over the grid:
- g(n) = cumulative weight of every cell entered on the way to n
         (the weight charged is that of the cell being entered)
- h(n) = Manhattan distance to the goal
- f(n) = g(n) + h(n)

Manhattan distance never overestimates the remaining cost while every
passable weight is >= 1, so the first time the goal is selected its cost
is minimal.
"""

import heapq
import math
import time
from typing import List, Set, Tuple

from .grid import Cell, CellRef, Coord, Grid
from .search import SearchArena, SearchResult, validate_endpoints


def manhattan(a: Cell, b: Cell) -> int:
    """|delta row| + |delta col|, admissible for 4-neighbour movement."""
    return abs(a.row - b.row) + abs(a.col - b.col)


def astar(grid: Grid, start: CellRef, end: CellRef) -> SearchResult:
    """
    Find the minimum-weight route from `start` to `end`.

    The open set is a binary heap of (f, seq, coord). `seq` increases with
    every push, so equal-f candidates come out in insertion order. An improved
    g pushes a fresh entry; the superseded one is dropped when popped.

    Returns:
        SearchResult whose `visited` lists cells in the order they were
        closed. If `end` is unreachable it holds every explored cell.
    """
    start_cell, end_cell = validate_endpoints(grid, start, end)
    t0 = time.perf_counter()

    arena = SearchArena(grid)
    visited_in_order: List[Cell] = []
    closed: Set[Coord] = set()
    open_heap: List[Tuple[float, int, Coord]] = []
    seq = 0
    stale_pops = 0

    with grid.searching():
        start_record = arena[start_cell]
        start_record.cost_so_far = 0.0
        start_record.heuristic = manhattan(start_cell, end_cell)
        start_record.total_cost = start_record.heuristic
        heapq.heappush(open_heap, (start_record.total_cost, seq, start_cell.coord))

        while open_heap:
            f, _, coord = heapq.heappop(open_heap)
            if coord in closed:
                continue
            current = grid.cell(coord)
            if current.is_wall:
                continue
            current_record = arena[current]
            if f > current_record.total_cost:
                # superseded by a cheaper entry for the same cell
                stale_pops += 1
                continue

            closed.add(coord)
            current_record.visited = True
            visited_in_order.append(current)

            if current is end_cell:
                break

            for neighbor in grid.neighbors(current):
                if neighbor.is_wall or neighbor.coord in closed:
                    continue

                # g(n): parent cost + terrain weight of the cell being entered
                tentative_g = current_record.cost_so_far + neighbor.weight
                record = arena[neighbor]
                if tentative_g < record.cost_so_far:
                    record.cost_so_far = tentative_g
                    record.heuristic = manhattan(neighbor, end_cell)
                    record.total_cost = tentative_g + record.heuristic
                    record.predecessor = coord
                    seq += 1
                    heapq.heappush(open_heap, (record.total_cost, seq, neighbor.coord))

    elapsed = time.perf_counter() - t0
    reached = visited_in_order[-1] is end_cell
    cost = arena[end_cell].cost_so_far if reached else math.inf
    print(f"[A*] {start_cell.coord} -> {end_cell.coord}: closed {len(visited_in_order)} cells "
          f"({stale_pops} stale entries skipped), "
          f"{f'cost {cost:.1f}' if reached else 'goal unreachable'} in {elapsed * 1000:.2f}ms")

    return SearchResult(
        algorithm="astar",
        start=start_cell,
        end=end_cell,
        visited=visited_in_order,
        arena=arena,
        elapsed_time=elapsed,
    )
