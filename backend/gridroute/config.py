"""
Runtime settings for the Grid Route backend.

Values come from environment variables (optionally loaded from backend/.env).
"""

import os
from pathlib import Path
from dataclasses import dataclass, field
from typing import List, Tuple

from dotenv import load_dotenv

env_path = Path(__file__).parent.parent / ".env"
load_dotenv(env_path)


# Dharwad bounding box: (south, west, north, east)
DHARWAD_BOUNDS: Tuple[float, float, float, float] = (15.4480, 74.9850, 15.4750, 75.0050)


def _env_bool(name: str, default: bool) -> bool:
    return os.getenv(name, str(default)).strip().lower() in ("1", "true", "yes", "on")


def _env_list(name: str, default: List[str]) -> List[str]:
    raw = os.getenv(name)
    if not raw:
        return list(default)
    return [item.strip() for item in raw.split(",") if item.strip()]


@dataclass
class Settings:
    """Backend configuration, read once at startup."""
    grid_size: int = 22
    # Fetch OSM road classification at startup instead of the procedural weights
    use_road_data: bool = False
    overpass_timeout_s: float = 25.0
    road_snap_threshold_deg: float = 0.0003  # ~33m
    bounds: Tuple[float, float, float, float] = DHARWAD_BOUNDS
    cors_origins: List[str] = field(default_factory=lambda: [
        "http://localhost:5173",
        "http://localhost:3000",
        "http://localhost:3001",
    ])

    @classmethod
    def from_env(cls) -> "Settings":
        defaults = cls()
        return cls(
            grid_size=int(os.getenv("GRID_SIZE", defaults.grid_size)),
            use_road_data=_env_bool("USE_ROAD_DATA", defaults.use_road_data),
            overpass_timeout_s=float(os.getenv("OVERPASS_TIMEOUT", defaults.overpass_timeout_s)),
            road_snap_threshold_deg=float(
                os.getenv("ROAD_SNAP_THRESHOLD", defaults.road_snap_threshold_deg)
            ),
            cors_origins=_env_list("CORS_ORIGINS", defaults.cors_origins),
        )


settings = Settings.from_env()
