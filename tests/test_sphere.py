from w3dkit.sphere import BoundingSphere
from w3dkit.vector import Vec3


def test_new_stores_values():
    s = BoundingSphere(Vec3(1.0, 2.0, 3.0), 5.0)
    assert s.center == Vec3(1.0, 2.0, 3.0)
    assert s.radius == 5.0


def test_from_empty_is_default():
    s = BoundingSphere.from_points([])
    assert s.center == Vec3.ZERO
    assert s.radius == 0.0


def test_from_single_point_zero_radius():
    s = BoundingSphere.from_points([Vec3(3.0, 0.0, 0.0)])
    assert s.center == Vec3(3.0, 0.0, 0.0)
    assert s.radius == 0.0


def test_from_symmetric_points():
    s = BoundingSphere.from_points([Vec3(-1.0, 0.0, 0.0), Vec3(1.0, 0.0, 0.0)])
    assert abs(s.center.x) < 1e-5
    assert abs(s.radius - 1.0) < 1e-5


def test_radius_is_max_distance_from_centroid():
    pts = [Vec3.ZERO, Vec3(4.0, 0.0, 0.0), Vec3(2.0, 0.0, 0.0)]
    s = BoundingSphere.from_points(pts)
    assert abs(s.center.x - 2.0) < 1e-5
    assert abs(s.radius - 2.0) < 1e-5


def test_all_points_inside():
    pts = [Vec3(1.0, 5.0, -2.0), Vec3(-3.0, 0.0, 4.0), Vec3(2.0, 2.0, 2.0), Vec3(0.0, -6.0, 1.0)]
    s = BoundingSphere.from_points(pts)
    assert all(p.distance(s.center) <= s.radius + 1e-9 for p in pts)