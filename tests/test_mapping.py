# tests/test_mapping.py
import pytest
from propertymap.mapping import Bounds, MapController, Marker, MAX_ZOOM, zoom_for_bounds


def test_fit_bounds_contains_every_point():
    points = [(12.9, 77.6), (12.95, 77.65), (13.0, 77.7)]
    m = MapController(width=1024, height=768)
    m.fit_bounds(points)
    assert all(m.bounds.contains(lat, lng) for lat, lng in points)
    assert m.center == pytest.approx((12.95, 77.65))
    assert m.zoom == 13


def test_identical_points_fit_to_max_zoom_then_clamp():
    m = MapController()
    m.fit_bounds([(12.9, 77.6), (12.9, 77.6)])
    assert m.zoom == MAX_ZOOM
    m.clamp_zoom(15)
    assert m.zoom == 15


def test_clamp_leaves_wide_views_alone():
    m = MapController()
    m.fit_bounds([(-30, -60), (50, 100)])
    before = m.zoom
    m.clamp_zoom(15)
    assert m.zoom == before < 15


def test_wider_viewport_never_zooms_out():
    bounds = Bounds(10, 70, 11, 71)
    assert zoom_for_bounds(bounds, 2048, 1536) >= zoom_for_bounds(bounds, 512, 384)


def test_project_center_is_viewport_middle():
    m = MapController(width=800, height=600, center=(12.95, 77.65), zoom=12)
    x, y = m.project(12.95, 77.65)
    assert (x, y) == pytest.approx((400, 300))
    east_x, _ = m.project(12.95, 77.7)
    north_y = m.project(13.0, 77.65)[1]
    assert east_x > 400
    assert north_y < 300


def test_teardown_releases_markers():
    m = MapController()
    m.add_marker(Marker(record_id=1, lat=1, lng=2, title="Property #1"))
    assert m.to_dict()["markers"][0]["position"] == {"lat": 1, "lng": 2}
    m.teardown()
    assert m.markers == []
    assert not m.active


def test_fit_bounds_accepts_the_poles():
    assert zoom_for_bounds(Bounds(-90, -180, 90, 180), 1024, 768) == 1
    m = MapController()
    m.fit_bounds([(90.0, 10.0), (0.0, 0.0)])
    assert m.center == pytest.approx((45.0, 5.0))
    assert 0 <= m.zoom <= MAX_ZOOM
    x, y = m.project(90.0, 10.0)
    assert y < m.height / 2
