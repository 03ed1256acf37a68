"""core.sampling（サブピクセル UV 生成と平均による解決）のテスト。"""

from __future__ import annotations

import logging
import math

import numpy as np
import pytest

from aaraster.core.image_buffer import InvalidDimensionError
from aaraster.core.patterns import (
    CheckerboardParams,
    CircleParams,
    UVParams,
    VoronoiParams,
    evaluate_pattern,
)
from aaraster.core.sampling import (
    MSAA_SAMPLE_OFFSETS,
    PivotRotation,
    clamp_aa_level,
    pivot_rotation_for,
    pixel_samples,
    resolve,
    resolve_pixel,
    sample_domain,
    sample_offsets,
)
from aaraster.core.vecmath import Vec2Float, Vec2Int, Vec3Float


def test_msaa_table_is_fixed_eight_entries() -> None:
    assert len(MSAA_SAMPLE_OFFSETS) == 8
    assert MSAA_SAMPLE_OFFSETS[0] == Vec2Float(-0.3125, -0.4375)
    assert MSAA_SAMPLE_OFFSETS[7] == Vec2Float(0.3125, 0.0625)
    for off in MSAA_SAMPLE_OFFSETS:
        assert -0.5 < off.x < 0.5
        assert -0.5 < off.y < 0.5


def test_sample_offsets_counts() -> None:
    assert sample_offsets("none", 5) == (Vec2Float(0.0, 0.0),)
    for k in range(1, 9):
        assert sample_offsets("msaa", k) == MSAA_SAMPLE_OFFSETS[:k]
    ssaa = sample_offsets("ssaa", 3)
    assert len(ssaa) == 9
    assert len(set(ssaa)) == 9
    assert ssaa[0].x == pytest.approx(-1.0 / 3.0)
    assert ssaa[4] == Vec2Float(0.0, 0.0)


def test_sample_offsets_rejects_out_of_table_msaa_level() -> None:
    with pytest.raises(ValueError):
        sample_offsets("msaa", 9)
    with pytest.raises(ValueError):
        sample_offsets("fxaa", 1)


def test_clamp_aa_level_warns(caplog: pytest.LogCaptureFixture) -> None:
    with caplog.at_level(logging.WARNING, logger="aaraster.core.sampling"):
        assert clamp_aa_level(12) == 8
        assert clamp_aa_level(0) == 1
    assert len(caplog.records) == 2

    caplog.clear()
    with caplog.at_level(logging.WARNING, logger="aaraster.core.sampling"):
        assert clamp_aa_level(4) == 4
    assert caplog.records == []


def test_sample_domain_scales_only_for_ssaa() -> None:
    size = Vec2Int(6, 4)
    assert sample_domain("none", 3, size) == (size, 1)
    assert sample_domain("msaa", 3, size) == (size, 1)
    assert sample_domain("ssaa", 3, size) == (Vec2Int(18, 12), 3)


def test_none_mode_uses_single_aspect_corrected_center_sample() -> None:
    size = Vec2Int(4, 2)
    buf = resolve(size, "none", 1, UVParams())
    aspect = 2.0 / 4.0
    for y in range(2):
        for x in range(4):
            expected = ((x + 0.5) / 4.0, (y + 0.5) / 2.0 * aspect, 0.0)
            np.testing.assert_allclose(buf.grid()[y, x], expected)

    samples = pixel_samples(3, 1, size, "none", 1, UVParams())
    assert len(samples) == 1
    uv, weight = samples[0]
    assert weight == 1.0
    assert buf.get(3, 1) == evaluate_pattern(UVParams(), uv, size)


def test_msaa_is_mean_of_table_prefix() -> None:
    size = Vec2Int(4, 4)
    x, y = 1, 2
    for k in range(1, 9):
        color = resolve(size, "msaa", k, UVParams()).get(x, y)
        offs = MSAA_SAMPLE_OFFSETS[:k]
        u = sum((x + 0.5 + o.x) / 4.0 for o in offs) / k
        v = sum((y + 0.5 + o.y) / 4.0 for o in offs) / k
        assert color.x == pytest.approx(u)
        assert color.y == pytest.approx(v)
        assert color.z == 0.0


def test_msaa_level_increase_only_appends_a_sample() -> None:
    size = Vec2Int(5, 3)
    params = CheckerboardParams(tile_size=1.5, angle_deg=20.0)
    for k in range(1, 8):
        a = [uv for uv, _ in pixel_samples(2, 1, size, "msaa", k, params)]
        b = [uv for uv, _ in pixel_samples(2, 1, size, "msaa", k + 1, params)]
        assert b[:k] == a
        assert len(b) == k + 1


def test_ssaa_single_pixel_has_level_squared_samples() -> None:
    size = Vec2Int(1, 1)
    level = 3
    samples = pixel_samples(0, 0, size, "ssaa", level, UVParams())
    assert len(samples) == level * level
    assert len({uv for uv, _ in samples}) == level * level
    assert all(w == pytest.approx(1.0 / 9.0) for _, w in samples)

    domain, _ = sample_domain("ssaa", level, size)
    mean = Vec3Float()
    for uv, w in samples:
        mean = mean + evaluate_pattern(UVParams(), uv, domain) * w
    color = resolve(size, "ssaa", level, UVParams()).get(0, 0)
    assert color.x == pytest.approx(mean.x)
    assert color.y == pytest.approx(mean.y)
    assert color.x == pytest.approx(0.5)
    assert color.y == pytest.approx(0.5)


def test_ssaa_matches_none_for_pattern_constant_over_each_pixel() -> None:
    size = Vec2Int(8, 8)
    params = CheckerboardParams(tile_size=2.0, angle_deg=0.0)
    plain = resolve(size, "none", 1, params)
    for level in (2, 4):
        ss = resolve(size, "ssaa", level, params)
        np.testing.assert_array_equal(ss.pixels, plain.pixels)


def test_ssaa_of_edge_pixel_is_fractional() -> None:
    size = Vec2Int(4, 4)
    params = CheckerboardParams(tile_size=1.0, angle_deg=45.0)
    ss = resolve(size, "ssaa", 4, params)
    values = set(np.round(ss.pixels[:, 0], 6).tolist())
    assert any(0.0 < v < 1.0 for v in values)


def test_pivot_rotation_maps_corrected_pivot_to_pivot() -> None:
    rot = PivotRotation.from_degrees(90.0, Vec2Float(0.5, 0.5))
    aspect = 0.5
    uv = np.array([[0.5, 0.25], [0.6, 0.25]])
    out = rot.apply(uv, aspect)
    np.testing.assert_allclose(out[0], [0.5, 0.5], atol=1e-12)
    np.testing.assert_allclose(out[1], [0.5, 0.6], atol=1e-12)


def test_pivot_rotation_only_for_checkerboard() -> None:
    assert pivot_rotation_for(UVParams()) is None
    assert pivot_rotation_for(CircleParams()) is None
    assert pivot_rotation_for(VoronoiParams()) is None
    assert isinstance(pivot_rotation_for(CheckerboardParams()), PivotRotation)


def test_rotation_is_applied_after_aspect_correction() -> None:
    size = Vec2Int(8, 4)
    angle = 30.0
    params = CheckerboardParams(tile_size=1.0, angle_deg=angle, pivot=Vec2Float(0.5, 0.5))
    buf = resolve(size, "none", 1, params)

    c = math.cos(math.radians(angle))
    s = math.sin(math.radians(angle))
    aspect = 4.0 / 8.0
    for y in range(4):
        for x in range(8):
            u = (x + 0.5) / 8.0
            v = (y + 0.5) / 4.0 * aspect
            dx, dy = u - 0.5, v - 0.5 * aspect
            ru = c * dx - s * dy + 0.5
            rv = s * dx + c * dy + 0.5
            parity = (math.floor(ru * 8.0) + math.floor(rv * 8.0)) & 1
            assert buf.grid()[y, x, 0] == float(parity)


def test_resolve_pixel_matches_resolved_buffer() -> None:
    size = Vec2Int(6, 5)
    params = CheckerboardParams(tile_size=1.7, angle_deg=25.0)
    buf = resolve(size, "msaa", 4, params)
    for x, y in [(0, 0), (3, 2), (5, 4)]:
        got = resolve_pixel(x, y, size, "msaa", 4, params)
        np.testing.assert_allclose(got.as_tuple(), buf.grid()[y, x], atol=1e-12)


def test_resolve_clamps_level_before_sampling() -> None:
    size = Vec2Int(4, 3)
    a = resolve(size, "msaa", 12, UVParams())
    b = resolve(size, "msaa", 8, UVParams())
    np.testing.assert_array_equal(a.pixels, b.pixels)


def test_voronoi_scatter_is_generated_once_per_image(monkeypatch: pytest.MonkeyPatch) -> None:
    import aaraster.core.patterns as patterns_mod

    calls = []
    original = patterns_mod.scatter_points

    def counting(domain_size, params):
        calls.append(domain_size)
        return original(domain_size, params)

    monkeypatch.setattr(patterns_mod, "scatter_points", counting)

    resolve(Vec2Int(6, 4), "msaa", 4, VoronoiParams(num_points=5, seed=1))
    assert calls == [Vec2Int(6, 4)]

    calls.clear()
    resolve(Vec2Int(6, 4), "ssaa", 2, VoronoiParams(num_points=5, seed=1))
    assert calls == [Vec2Int(12, 8)]


def test_resolve_rejects_invalid_geometry_and_mode() -> None:
    with pytest.raises(InvalidDimensionError):
        resolve(Vec2Int(0, 4), "none", 1, UVParams())
    with pytest.raises(ValueError):
        resolve(Vec2Int(2, 2), "fxaa", 1, UVParams())


def test_per_pixel_paths_clamp_level_like_resolve() -> None:
    size = Vec2Int(3, 2)
    params = CheckerboardParams(tile_size=0.7, angle_deg=15.0)
    buf = resolve(size, "msaa", 12, params)
    for x, y in [(0, 0), (2, 1)]:
        got = resolve_pixel(x, y, size, "msaa", 12, params)
        np.testing.assert_allclose(got.as_tuple(), buf.grid()[y, x], atol=1e-12)

    assert len(pixel_samples(0, 0, Vec2Int(1, 1), "ssaa", 12, UVParams())) == 64
    assert len(pixel_samples(0, 0, Vec2Int(1, 1), "msaa", 12, UVParams())) == 8
    assert len(pixel_samples(0, 0, Vec2Int(1, 1), "msaa", 0, UVParams())) == 1
