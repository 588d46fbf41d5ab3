"""
Grid Route Visualizer - Backend API
BFS vs weighted A* on a city grid with OSM road weights
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel
from typing import Optional, List

from .config import settings
from .grid import Grid, GridError, GridLockedError, create_demo_grid
from .astar import astar
from .bfs import bfs
from .race import race
from .roads import RoadService, RoadSegment, rasterize_road_weights


@asynccontextmanager
async def lifespan(app: FastAPI):
    if settings.use_road_data:
        await refresh_roads()
    yield


app = FastAPI(
    title="Grid Route Visualizer",
    description="Breadth-first and weighted A* pathfinding over a road-weighted city grid",
    version="0.1.0",
    lifespan=lifespan
)

# CORS for frontend
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Services
road_service = RoadService(timeout=settings.overpass_timeout_s)


class GridState:
    """The single board the visualizer edits between runs."""

    def __init__(self):
        self.road_segments: List[RoadSegment] = []
        self.grid: Grid = self.build()

    def build(self) -> Grid:
        road_weights = None
        if self.road_segments:
            road_weights = rasterize_road_weights(
                self.road_segments,
                settings.grid_size,
                settings.grid_size,
                bounds=settings.bounds,
                snap_threshold=settings.road_snap_threshold_deg,
            )
        return create_demo_grid(settings.grid_size, road_weights=road_weights)

    def reset(self) -> Grid:
        self.grid = self.build()
        return self.grid


state = GridState()


class CellRequest(BaseModel):
    row: int
    col: int


class WeightRequest(BaseModel):
    row: int
    col: int
    weight: Optional[float] = None  # None = impassable


class SearchRequest(BaseModel):
    algorithm: str = "astar"  # "astar" | "bfs" | "race"
    start: Optional[List[int]] = None  # [row, col], defaults to the grid's start
    end: Optional[List[int]] = None


class SearchResponse(BaseModel):
    success: bool
    message: str
    result: Optional[dict] = None


def _grid_error(e: GridError) -> HTTPException:
    status = 409 if isinstance(e, GridLockedError) else 400
    return HTTPException(status_code=status, detail=str(e))


@app.get("/health")
async def health_check():
    return {"status": "healthy"}


@app.get("/api/grid")
async def get_grid():
    return state.grid.to_dict()


@app.post("/api/grid/reset")
async def reset_grid():
    grid = state.reset()
    print(f"[API] Grid reset ({grid.rows}x{grid.cols}, road data: {bool(state.road_segments)})")
    return grid.to_dict()


@app.post("/api/grid/wall")
async def toggle_wall(request: CellRequest):
    """Toggle a wall on or off. Start and end cannot be walled."""
    try:
        cell = state.grid.toggle_wall((request.row, request.col))
    except GridError as e:
        raise _grid_error(e)
    return cell.to_dict()


@app.post("/api/grid/weight")
async def set_weight(request: WeightRequest):
    try:
        state.grid.set_weight((request.row, request.col), request.weight)
        cell = state.grid.cell((request.row, request.col))
    except GridError as e:
        raise _grid_error(e)
    return cell.to_dict()


@app.post("/api/roads/refresh")
async def refresh_roads():
    """Fetch OSM road classification and rebuild the grid with road weights."""
    segments = await road_service.get_roads_in_bounds(settings.bounds)
    state.road_segments = segments
    grid = state.reset()
    return {
        "segments": len(segments),
        "using_road_weights": bool(segments),
        "terrain_counts": grid.terrain_counts(),
    }


@app.post("/api/search", response_model=SearchResponse)
async def run_search(request: SearchRequest):
    """Run BFS, A*, or both, and return visitation order plus path."""
    grid = state.grid
    start = request.start if request.start is not None else (grid.start.coord if grid.start else None)
    end = request.end if request.end is not None else (grid.end.coord if grid.end else None)
    if start is None or end is None:
        raise HTTPException(status_code=400, detail="Start and end must be set")
    if len(start) != 2 or len(end) != 2:
        raise HTTPException(status_code=400, detail="Start and end must be [row, col] pairs")

    algorithm = request.algorithm.lower()
    try:
        if algorithm == "race":
            outcome = race(grid, start, end)
            found = outcome.astar.found and outcome.bfs.found
            return SearchResponse(
                success=found,
                message="Race complete" if found else "No route between start and end",
                result=outcome.to_dict(),
            )
        if algorithm in ("astar", "a*"):
            outcome = astar(grid, start, end)
        elif algorithm == "bfs":
            outcome = bfs(grid, start, end)
        else:
            raise HTTPException(status_code=400, detail=f"Unknown algorithm: {request.algorithm}")
    except GridError as e:
        raise _grid_error(e)

    if not outcome.found:
        return SearchResponse(
            success=False,
            message=f"No route found after visiting {len(outcome.visited)} cells",
            result=outcome.to_dict(),
        )
    return SearchResponse(
        success=True,
        message=f"Route found with {len(outcome.path)} cells",
        result=outcome.to_dict(),
    )
