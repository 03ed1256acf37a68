"""core.vecmath の値型と行列演算のテスト。"""

from __future__ import annotations

import math

import numpy as np
import pytest

from aaraster.core.vecmath import (
    MAT2_IDENTITY,
    MAT2_ZERO,
    Mat2x2Float,
    Vec2Float,
    Vec2Int,
    Vec3Float,
    clamp,
    degree_to_radian,
    dot,
    length,
    radian_to_degree,
)


def test_vec2_componentwise_arithmetic() -> None:
    a = Vec2Float(1.0, 2.0)
    b = Vec2Float(3.0, -4.0)
    assert a + b == Vec2Float(4.0, -2.0)
    assert a - b == Vec2Float(-2.0, 6.0)
    assert a * 2.0 == Vec2Float(2.0, 4.0)
    assert 2.0 * a == Vec2Float(2.0, 4.0)
    assert a * b == Vec2Float(3.0, -8.0)
    assert b / a == Vec2Float(3.0, -2.0)
    assert a / 2.0 == Vec2Float(0.5, 1.0)


def test_vec2int_scaling_and_float_conversion() -> None:
    size = Vec2Int(4, 3)
    assert size * 2 == Vec2Int(8, 6)
    assert size + Vec2Int(1, 1) == Vec2Int(5, 4)
    assert size - Vec2Int(1, 1) == Vec2Int(3, 2)
    assert size / 2 == Vec2Float(2.0, 1.5)
    assert size.to_float() == Vec2Float(4.0, 3.0)


def test_vec2int_times_fractional_scalar_is_not_truncated() -> None:
    size = Vec2Int(3, 3)
    assert size * 1.5 == Vec2Float(4.5, 4.5)
    assert 0.5 * size == Vec2Float(1.5, 1.5)
    assert size * np.int64(2) == Vec2Int(6, 6)
    assert isinstance(size * 2, Vec2Int)


def test_vec3_arithmetic_and_dot() -> None:
    a = Vec3Float(1.0, 2.0, 3.0)
    b = Vec3Float(4.0, 5.0, 6.0)
    assert a + b == Vec3Float(5.0, 7.0, 9.0)
    assert b - a == Vec3Float(3.0, 3.0, 3.0)
    assert a * b == Vec3Float(4.0, 10.0, 18.0)
    assert b / Vec3Float(2.0, 5.0, 3.0) == Vec3Float(2.0, 1.0, 2.0)
    assert dot(a, b) == pytest.approx(32.0)


def test_length_is_dispatched_by_arity() -> None:
    assert length(Vec2Float(3.0, 4.0)) == pytest.approx(5.0)
    assert length(Vec3Float(3.0, 4.0, 12.0)) == pytest.approx(13.0)
    # z 項の有無で結果が変わること。
    assert length(Vec3Float(3.0, 4.0, 0.0)) == pytest.approx(length(Vec2Float(3.0, 4.0)))
    assert Vec2Int(6, 8).length() == pytest.approx(10.0)


def test_division_by_zero_scalar_follows_float_semantics() -> None:
    v = Vec2Float(1.0, -2.0) / 0.0
    assert v.x == math.inf
    assert v.y == -math.inf

    w = Vec3Float(0.0, 1.0, 0.0) / 0.0
    assert math.isnan(w.x)
    assert w.y == math.inf


def test_matrix_products() -> None:
    a = Mat2x2Float(1.0, 2.0, 3.0, 4.0)
    b = Mat2x2Float(0.0, 1.0, 1.0, 0.0)
    assert a @ b == Mat2x2Float(2.0, 1.0, 4.0, 3.0)
    assert a @ MAT2_IDENTITY == a
    assert a @ Vec2Float(1.0, 1.0) == Vec2Float(3.0, 7.0)
    assert a * 2.0 == Mat2x2Float(2.0, 4.0, 6.0, 8.0)


def test_rotation_matrix_rotates_counter_clockwise() -> None:
    r = Mat2x2Float.rotation(degree_to_radian(90.0))
    v = r @ Vec2Float(1.0, 0.0)
    assert v.x == pytest.approx(0.0, abs=1e-12)
    assert v.y == pytest.approx(1.0)


def test_inverse_round_trip() -> None:
    m = Mat2x2Float(2.0, -1.5, 0.25, 3.0)
    back = m.inverse().inverse()
    for got, want in zip((back.m00, back.m01, back.m10, back.m11), (2.0, -1.5, 0.25, 3.0)):
        assert got == pytest.approx(want)

    prod = m @ m.inverse()
    np.testing.assert_allclose(prod.as_array(), np.eye(2), atol=1e-12)


def test_inverse_of_singular_matrix_is_zero_matrix() -> None:
    singular = Mat2x2Float(1.0, 2.0, 2.0, 4.0)
    assert singular.determinant() == 0.0
    assert singular.inverse() == MAT2_ZERO


def test_apply_matches_matrix_vector_product() -> None:
    r = Mat2x2Float.rotation(0.3)
    pts = np.array([[1.0, 2.0], [-0.5, 0.25]])
    out = r.apply(pts)
    for p, o in zip(pts, out):
        v = r @ Vec2Float(float(p[0]), float(p[1]))
        assert o[0] == pytest.approx(v.x)
        assert o[1] == pytest.approx(v.y)


def test_angle_helpers_and_clamp() -> None:
    assert degree_to_radian(180.0) == pytest.approx(math.pi)
    assert radian_to_degree(math.pi / 2) == pytest.approx(90.0)
    assert clamp(12, 1, 8) == 8
    assert clamp(0, 1, 8) == 1
    assert clamp(3, 1, 8) == 3
