import pytest

from gridroute.astar import astar
from gridroute.config import settings
from gridroute.grid import Grid
from gridroute.path import path_cost, path_reaches, reconstruct_path
from gridroute.roads import km_per_node
from gridroute.search import SearchArena


def test_reconstruct_walks_predecessors():
    grid = Grid(3, 3)
    arena = SearchArena(grid)
    arena[(0, 1)].predecessor = (0, 0)
    arena[(1, 1)].predecessor = (0, 1)
    arena[(2, 1)].predecessor = (1, 1)

    path = reconstruct_path((2, 1), arena)

    assert [c.coord for c in path] == [(0, 0), (0, 1), (1, 1), (2, 1)]
    assert path[0] is grid.cell((0, 0))
    assert path_reaches(path, (0, 0), (2, 1))


def test_unreached_end_is_single_cell():
    grid = Grid(3, 3)
    arena = SearchArena(grid)
    path = reconstruct_path((2, 2), arena)
    assert [c.coord for c in path] == [(2, 2)]
    assert not path_reaches(path, (0, 0), (2, 2))


def test_partial_chain_does_not_reach_start():
    grid = Grid(3, 3)
    arena = SearchArena(grid)
    arena[(2, 2)].predecessor = (2, 1)
    path = reconstruct_path(grid.cell((2, 2)), arena)
    assert [c.coord for c in path] == [(2, 1), (2, 2)]
    assert not path_reaches(path, (0, 0), (2, 2))


def test_path_cost_skips_first_cell():
    grid = Grid(1, 4)
    grid.set_weight((0, 0), 5)
    grid.set_weight((0, 2), 2.5)
    cells = [grid.cell((0, c)) for c in range(4)]
    assert path_cost(cells) == 1 + 2.5 + 1
    assert path_cost(cells[:1]) == 0


def test_reconstruction_is_read_only():
    grid = Grid(4, 4)
    result = astar(grid, (0, 0), (3, 3))
    records_before = len(result.arena)
    first = reconstruct_path((3, 3), result.arena)
    second = reconstruct_path((3, 3), result.arena)
    assert [c.coord for c in first] == [c.coord for c in second]
    assert len(result.arena) == records_before


def test_result_to_dict(open_grid):
    data = astar(open_grid, (0, 0), (4, 4)).to_dict()
    assert data["algorithm"] == "astar"
    assert data["found"] is True
    assert data["path"][0] == [0, 0]
    assert data["path"][-1] == [4, 4]
    assert data["path_length"] == 9
    assert data["path_cost"] == 8
    assert data["visited_count"] == len(data["visited"])


def test_path_km_counts_steps(open_grid):
    result = astar(open_grid, (0, 0), (4, 4))
    step_km = km_per_node(5, settings.bounds)
    assert result.path_km == pytest.approx(8 * step_km)
    assert result.to_dict()["path_km"] == round(8 * step_km, 3)


def test_path_km_missing_when_unreached():
    grid = Grid(3, 3)
    grid.set_wall((0, 1), True)
    grid.set_wall((1, 0), True)
    data = astar(grid, (0, 0), (2, 2)).to_dict()
    assert data["found"] is False
    assert data["path_km"] is None
