"""
Race mode: BFS and A* over the same grid instance.

Each search owns its SearchArena, so the two runs never see each other's
visited/cost/predecessor state and the grid itself is not copied.
"""

from dataclasses import dataclass
from typing import Any, Dict

from .astar import astar
from .bfs import bfs
from .config import settings
from .grid import CellRef, Grid
from .roads import grid_to_latlon, haversine_km
from .search import SearchResult


@dataclass
class RaceResult:
    astar: SearchResult
    bfs: SearchResult

    @property
    def astar_cheaper(self) -> bool:
        """True when A*'s route costs strictly less weight than BFS's."""
        return self.astar.found and self.astar.path_cost < self.bfs.path_cost

    @property
    def playback_steps(self) -> int:
        """Frames needed to replay both visitation orders side by side."""
        return max(len(self.astar.visited), len(self.bfs.visited))

    @property
    def straight_line_km(self) -> float:
        """Great-circle distance between the start and end cells."""
        grid = self.astar.arena.grid
        size = max(grid.rows, grid.cols)
        start = grid_to_latlon(*self.astar.start.coord, size, settings.bounds)
        end = grid_to_latlon(*self.astar.end.coord, size, settings.bounds)
        return haversine_km(*start, *end)

    def summary(self) -> Dict[str, Any]:
        return {
            "astar_visited": len(self.astar.visited),
            "bfs_visited": len(self.bfs.visited),
            "astar_path": len(self.astar.path) if self.astar.found else 0,
            "bfs_path": len(self.bfs.path) if self.bfs.found else 0,
            "astar_cost": self.astar.path_cost if self.astar.found else None,
            "bfs_cost": self.bfs.path_cost if self.bfs.found else None,
            "astar_km": round(self.astar.path_km, 3) if self.astar.found else None,
            "bfs_km": round(self.bfs.path_km, 3) if self.bfs.found else None,
            "straight_line_km": round(self.straight_line_km, 3),
            "astar_cheaper": self.astar_cheaper,
            "playback_steps": self.playback_steps,
            "time_ms": round((self.astar.elapsed_time + self.bfs.elapsed_time) * 1000, 3),
        }

    def to_dict(self) -> Dict[str, Any]:
        return {
            "astar": self.astar.to_dict(),
            "bfs": self.bfs.to_dict(),
            "summary": self.summary(),
        }


def race(grid: Grid, start: CellRef, end: CellRef) -> RaceResult:
    """Run A* and BFS between the same endpoints and compare them."""
    astar_result = astar(grid, start, end)
    bfs_result = bfs(grid, start, end)
    result = RaceResult(astar=astar_result, bfs=bfs_result)

    summary = result.summary()
    print(f"[Race] A*: {summary['astar_visited']} visited, path {summary['astar_path']} | "
          f"BFS: {summary['bfs_visited']} visited, path {summary['bfs_path']}")
    return result
