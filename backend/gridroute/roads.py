"""
Road Data Service

Fetches road/street data from OpenStreetMap via Overpass API and turns
road classification into per-cell traversal weights for the grid.
Main arteries are cheap to cross, alleys and footways are expensive.
"""

import math
import numpy as np
from typing import Tuple, Optional, Dict, List, Any
from dataclasses import dataclass
import httpx

from .config import DHARWAD_BOUNDS


# Road type -> terrain weight (mirrors the A* cost of entering the cell)
ROAD_TYPE_WEIGHTS: Dict[str, float] = {
    "motorway": 1.0,
    "trunk": 1.0,
    "primary": 1.0,  # College Road, main arteries
    "secondary": 1.5,
    "tertiary": 2.0,
    "residential": 2.5,
    "service": 3.0,
    "unclassified": 3.0,
    "path": 4.0,
    "footway": 4.0,
}
DEFAULT_ROAD_WEIGHT = 2.0  # unknown highway tag, or no road data at all
OFF_ROAD_WEIGHT = 3.0  # farther than the snap threshold from every road
ROAD_SNAP_THRESHOLD = 0.0003  # ~33m in degrees

Bounds = Tuple[float, float, float, float]  # (min_lat, min_lng, max_lat, max_lng)


@dataclass
class RoadSegment:
    """A road segment between two consecutive OSM nodes"""
    start_lat: float
    start_lng: float
    end_lat: float
    end_lng: float
    road_type: str  # primary, secondary, residential, etc.
    name: Optional[str] = None

    @property
    def weight(self) -> float:
        return ROAD_TYPE_WEIGHTS.get(self.road_type, DEFAULT_ROAD_WEIGHT)

    @property
    def length_m(self) -> float:
        """Approximate length in meters"""
        lat_center = (self.start_lat + self.end_lat) / 2
        meters_per_deg_lat = 111320
        meters_per_deg_lng = 111320 * math.cos(math.radians(lat_center))

        dlat_m = (self.end_lat - self.start_lat) * meters_per_deg_lat
        dlng_m = (self.end_lng - self.start_lng) * meters_per_deg_lng

        return math.sqrt(dlat_m**2 + dlng_m**2)

    def distance_to(self, lat: float, lng: float) -> float:
        """Planar distance in degrees from (lat, lng) to this segment"""
        return point_to_segment_distance(
            lat, lng, self.start_lat, self.start_lng, self.end_lat, self.end_lng
        )


def parse_overpass_response(data: Dict[str, Any]) -> List[RoadSegment]:
    """Parse Overpass API response into RoadSegment objects"""
    segments = []

    # First pass: collect all nodes
    nodes: Dict[int, Tuple[float, float]] = {}
    for element in data.get("elements", []):
        if element.get("type") == "node":
            nodes[element["id"]] = (element["lat"], element["lon"])

    # Second pass: process ways
    for element in data.get("elements", []):
        if element.get("type") != "way":
            continue

        tags = element.get("tags", {})
        highway_type = tags.get("highway")
        if not highway_type:
            continue
        name = tags.get("name")

        coords = [nodes[node_id] for node_id in element.get("nodes", []) if node_id in nodes]
        if len(coords) < 2:
            continue

        # Create segments between consecutive nodes
        for (lat1, lng1), (lat2, lng2) in zip(coords, coords[1:]):
            segments.append(RoadSegment(
                start_lat=lat1,
                start_lng=lng1,
                end_lat=lat2,
                end_lng=lng2,
                road_type=highway_type,
                name=name
            ))

    return segments


def point_to_segment_distance(
    px: float, py: float,
    ax: float, ay: float,
    bx: float, by: float
) -> float:
    """Distance from point P to segment AB (same planar units as the inputs)"""
    dx, dy = bx - ax, by - ay
    if dx == 0 and dy == 0:
        return math.hypot(px - ax, py - ay)
    t = ((px - ax) * dx + (py - ay) * dy) / (dx * dx + dy * dy)
    t = max(0.0, min(1.0, t))
    return math.hypot(px - (ax + t * dx), py - (ay + t * dy))


def nearest_road(lat: float, lng: float, segments: List[RoadSegment]) -> Tuple[float, float]:
    """(distance in degrees, weight) of the closest segment; (inf, default) if none"""
    min_dist = math.inf
    best_weight = DEFAULT_ROAD_WEIGHT
    for segment in segments:
        dist = segment.distance_to(lat, lng)
        if dist < min_dist:
            min_dist = dist
            best_weight = segment.weight
    return min_dist, best_weight


def weight_for_coord(
    lat: float,
    lng: float,
    segments: List[RoadSegment],
    snap_threshold: float = ROAD_SNAP_THRESHOLD
) -> float:
    """
    Weight of the nearest road segment, if it is within `snap_threshold`.

    Cells away from every road are treated as alley/building-adjacent ground.
    """
    if not segments:
        return DEFAULT_ROAD_WEIGHT
    min_dist, best_weight = nearest_road(lat, lng, segments)
    return best_weight if min_dist < snap_threshold else OFF_ROAD_WEIGHT


def grid_to_latlon(
    row: int,
    col: int,
    grid_size: int,
    bounds: Bounds = DHARWAD_BOUNDS
) -> Tuple[float, float]:
    """Map a grid (row, col) to lat/lng. Row 0 is the northern edge."""
    min_lat, min_lng, max_lat, max_lng = bounds
    lat = max_lat - (row / grid_size) * (max_lat - min_lat)
    lng = min_lng + (col / grid_size) * (max_lng - min_lng)
    return lat, lng


def haversine_km(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    """Great-circle distance in km"""
    r = 6371.0
    dlat = math.radians(lat2 - lat1)
    dlng = math.radians(lng2 - lng1)
    a = (math.sin(dlat / 2) ** 2
         + math.cos(math.radians(lat1)) * math.cos(math.radians(lat2)) * math.sin(dlng / 2) ** 2)
    return r * 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))


def km_per_node(grid_size: int, bounds: Bounds = DHARWAD_BOUNDS) -> float:
    """
    Real-world length of one grid step, averaging the north-south and
    east-west cell sizes at the centre latitude of `bounds`.
    """
    min_lat, min_lng, max_lat, max_lng = bounds
    center_lat = (min_lat + max_lat) / 2
    km_lat = (max_lat - min_lat) / grid_size * 111.32
    km_lng = (max_lng - min_lng) / grid_size * 111.32 * math.cos(math.radians(center_lat))
    return (km_lat + km_lng) / 2


def rasterize_road_weights(
    segments: List[RoadSegment],
    rows: int,
    cols: int,
    bounds: Bounds = DHARWAD_BOUNDS,
    snap_threshold: float = ROAD_SNAP_THRESHOLD
) -> np.ndarray:
    """
    Build a rows x cols weight array for Grid.apply_weights.

    Every entry is >= 1 so A*'s Manhattan heuristic stays admissible.
    """
    weights = np.full((rows, cols), DEFAULT_ROAD_WEIGHT, dtype=np.float64)
    if not segments:
        print(f"[Roads] No road segments, using default weight {DEFAULT_ROAD_WEIGHT}")
        return weights

    grid_size = max(rows, cols)
    snapped = 0
    for row in range(rows):
        for col in range(cols):
            lat, lng = grid_to_latlon(row, col, grid_size, bounds)
            dist, road_weight = nearest_road(lat, lng, segments)
            if dist < snap_threshold:
                snapped += 1
                weights[row, col] = road_weight
            else:
                weights[row, col] = OFF_ROAD_WEIGHT

    np.maximum(weights, 1.0, out=weights)
    print(f"[Roads] Rasterized {len(segments)} segments into {rows}x{cols} grid "
          f"({snapped} cells near a road)")
    return weights


class RoadService:
    """
    Service for fetching road data from OpenStreetMap.

    Uses Overpass API to query road networks within a bounding box.
    """

    # Overpass API endpoints (multiple for redundancy)
    OVERPASS_ENDPOINTS = [
        "https://overpass-api.de/api/interpreter",
        "https://overpass.kumi.systems/api/interpreter",
        "https://maps.mail.ru/osm/tools/overpass/api/interpreter",
    ]

    def __init__(
        self,
        timeout: float = 25.0,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        self.timeout = timeout
        self.transport = transport
        self.cache: Dict[str, List[RoadSegment]] = {}

    def build_query(self, bounds: Bounds) -> str:
        min_lat, min_lng, max_lat, max_lng = bounds
        return f"""
        [out:json][timeout:{int(self.timeout)}];
        (
          way["highway"]({min_lat},{min_lng},{max_lat},{max_lng});
        );
        out body;
        >;
        out skel qt;
        """

    async def get_roads_in_bounds(self, bounds: Bounds = DHARWAD_BOUNDS) -> List[RoadSegment]:
        """
        Fetch all roads within the given bounding box.

        Args:
            bounds: (min_lat, min_lng, max_lat, max_lng)

        Returns:
            List of RoadSegment objects, empty if every endpoint failed
        """
        min_lat, min_lng, max_lat, max_lng = bounds
        cache_key = f"{min_lat:.4f},{min_lng:.4f},{max_lat:.4f},{max_lng:.4f}"

        if cache_key in self.cache:
            print(f"[Roads] Using cached road data")
            return self.cache[cache_key]

        query = self.build_query(bounds)
        print(f"[Roads] Fetching roads from OSM for bbox: {min_lat:.4f},{min_lng:.4f} to {max_lat:.4f},{max_lng:.4f}")

        # Try each endpoint
        async with httpx.AsyncClient(timeout=self.timeout + 10, transport=self.transport) as client:
            for endpoint in self.OVERPASS_ENDPOINTS:
                try:
                    response = await client.post(
                        endpoint,
                        data={"data": query},
                        headers={"Content-Type": "application/x-www-form-urlencoded"}
                    )
                    if response.status_code != 200:
                        print(f"[Roads] Endpoint {endpoint} returned {response.status_code}")
                        continue

                    segments = parse_overpass_response(response.json())
                    total_km = sum(s.length_m for s in segments) / 1000
                    print(f"[Roads] Fetched {len(segments)} road segments ({total_km:.1f}km)")
                    self.cache[cache_key] = segments
                    return segments

                except (httpx.HTTPError, ValueError) as e:
                    print(f"[Roads] Error with {endpoint}: {e}")
                    continue

        print(f"[Roads] Failed to fetch roads from all endpoints, using fallback weights")
        return []
