import asyncio
import math

import httpx
import numpy as np
import pytest

from gridroute.roads import (
    DEFAULT_ROAD_WEIGHT,
    OFF_ROAD_WEIGHT,
    RoadSegment,
    RoadService,
    grid_to_latlon,
    haversine_km,
    km_per_node,
    nearest_road,
    parse_overpass_response,
    point_to_segment_distance,
    rasterize_road_weights,
    weight_for_coord,
)

BOUNDS = (15.4480, 74.9850, 15.4750, 75.0050)

OVERPASS_PAYLOAD = {
    "elements": [
        {"type": "way", "id": 10, "nodes": [1, 2, 3],
         "tags": {"highway": "primary", "name": "College Road"}},
        {"type": "way", "id": 11, "nodes": [3, 4], "tags": {"highway": "footway"}},
        {"type": "way", "id": 12, "nodes": [1, 4], "tags": {"building": "yes"}},
        {"type": "way", "id": 13, "nodes": [2, 99], "tags": {"highway": "service"}},
        {"type": "node", "id": 1, "lat": 15.4600, "lon": 74.9900},
        {"type": "node", "id": 2, "lat": 15.4600, "lon": 74.9950},
        {"type": "node", "id": 3, "lat": 15.4650, "lon": 74.9950},
        {"type": "node", "id": 4, "lat": 15.4650, "lon": 75.0000},
    ]
}


def test_parse_overpass_response():
    segments = parse_overpass_response(OVERPASS_PAYLOAD)

    # primary way has two segments, footway one; non-highway and dangling ways are dropped
    assert len(segments) == 3
    assert [s.road_type for s in segments] == ["primary", "primary", "footway"]
    assert segments[0].name == "College Road"
    assert (segments[1].start_lat, segments[1].start_lng) == (15.4600, 74.9950)
    assert segments[0].weight == 1.0
    assert segments[2].weight == 4.0
    assert segments[0].length_m > 0


def test_unknown_road_type_uses_default_weight():
    segment = RoadSegment(15.46, 74.99, 15.47, 74.99, road_type="bridleway")
    assert segment.weight == DEFAULT_ROAD_WEIGHT


def test_point_to_segment_distance():
    assert point_to_segment_distance(1, 1, 0, 0, 2, 0) == pytest.approx(1.0)
    # beyond the end the nearest point is the endpoint
    assert point_to_segment_distance(3, 0, 0, 0, 2, 0) == pytest.approx(1.0)
    assert point_to_segment_distance(0, 2, 0, 0, 0, 0) == pytest.approx(2.0)


def test_weight_for_coord_snaps_to_nearest_road():
    segments = [
        RoadSegment(15.4600, 74.9900, 15.4600, 74.9950, road_type="primary"),
        RoadSegment(15.4650, 74.9900, 15.4650, 74.9950, road_type="residential"),
    ]
    assert weight_for_coord(15.4601, 74.9920, segments) == 1.0
    assert weight_for_coord(15.4649, 74.9920, segments) == 2.5
    assert weight_for_coord(15.4625, 74.9920, segments) == OFF_ROAD_WEIGHT
    assert weight_for_coord(15.4625, 74.9920, []) == DEFAULT_ROAD_WEIGHT


def test_nearest_road_reports_distance_and_weight():
    segments = [
        RoadSegment(15.4600, 74.9900, 15.4600, 74.9950, road_type="secondary"),
        RoadSegment(15.4700, 74.9900, 15.4700, 74.9950, road_type="footway"),
    ]
    dist, weight = nearest_road(15.4610, 74.9920, segments)
    assert dist == pytest.approx(0.0010)
    assert weight == 1.5
    assert nearest_road(15.4610, 74.9920, []) == (math.inf, DEFAULT_ROAD_WEIGHT)


def test_haversine_between_landmarks():
    # GFGC College to KCD Arts College, Dharwad
    assert haversine_km(15.4707, 74.9916, 15.4530, 74.9980) == pytest.approx(2.08, abs=0.02)
    assert haversine_km(15.46, 74.99, 15.46, 74.99) == 0


def test_km_per_node_scales_with_grid_size():
    assert 0.11 < km_per_node(22, BOUNDS) < 0.125
    assert km_per_node(11, BOUNDS) == pytest.approx(2 * km_per_node(22, BOUNDS))


def test_grid_to_latlon_corners():
    assert grid_to_latlon(0, 0, 22, BOUNDS) == (BOUNDS[2], BOUNDS[1])
    lat, lng = grid_to_latlon(22, 22, 22, BOUNDS)
    assert lat == pytest.approx(BOUNDS[0])
    assert lng == pytest.approx(BOUNDS[3])


def test_rasterize_road_weights():
    lat, lng = grid_to_latlon(5, 0, 10, BOUNDS)
    _, east = grid_to_latlon(5, 10, 10, BOUNDS)
    segments = [RoadSegment(lat, lng, lat, east, road_type="secondary")]

    weights = rasterize_road_weights(segments, 10, 10, BOUNDS)

    assert weights.shape == (10, 10)
    assert np.all(weights >= 1.0)
    assert np.all(weights[5, :] == 1.5)
    assert weights[0, 0] == OFF_ROAD_WEIGHT


def test_rasterize_without_segments():
    weights = rasterize_road_weights([], 4, 6, BOUNDS)
    assert weights.shape == (4, 6)
    assert np.all(weights == DEFAULT_ROAD_WEIGHT)


def _service(handler):
    return RoadService(timeout=5, transport=httpx.MockTransport(handler))


def test_road_service_falls_back_to_next_endpoint():
    calls = []

    def handler(request):
        calls.append(str(request.url))
        if len(calls) == 1:
            return httpx.Response(500)
        return httpx.Response(200, json=OVERPASS_PAYLOAD)

    service = _service(handler)
    segments = asyncio.run(service.get_roads_in_bounds(BOUNDS))

    assert len(segments) == 3
    assert calls == RoadService.OVERPASS_ENDPOINTS[:2]


def test_road_service_caches_by_bounds():
    calls = []

    def handler(request):
        calls.append(request.url)
        return httpx.Response(200, json=OVERPASS_PAYLOAD)

    service = _service(handler)
    first = asyncio.run(service.get_roads_in_bounds(BOUNDS))
    second = asyncio.run(service.get_roads_in_bounds(BOUNDS))

    assert first is second
    assert len(calls) == 1


def test_road_service_returns_empty_when_all_endpoints_fail():
    def handler(request):
        if "kumi" in request.url.host:
            raise httpx.ConnectError("unreachable", request=request)
        if "mail.ru" in request.url.host:
            return httpx.Response(200, text="not json")
        return httpx.Response(503)

    service = _service(handler)
    assert asyncio.run(service.get_roads_in_bounds(BOUNDS)) == []
    assert service.cache == {}
