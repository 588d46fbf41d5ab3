import pytest

from gridroute.grid import Grid


@pytest.fixture
def open_grid():
    """5x5 board, weight 1 everywhere, start (0, 0), end (4, 4)."""
    grid = Grid(5, 5)
    grid.set_start((0, 0))
    grid.set_end((4, 4))
    return grid


@pytest.fixture
def walled_grid(open_grid):
    """Open board with column 4 walled from row 0 to row 3."""
    for row in range(4):
        open_grid.set_wall((row, 4), True)
    return open_grid
