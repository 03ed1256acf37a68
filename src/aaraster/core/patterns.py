"""
どこで: `src/aaraster/core/patterns.py`。
何を: 4 種のパターン評価関数（uv / checkerboard / circle / voronoi）と、そのパラメータ型を提供する。
なぜ: サンプリング側をパターンの種類から切り離し、`(uv, domain_size, params) -> color` の固定シグネチャで扱うため。

評価関数の規約
--------------
- `uv` は shape `(..., 2)` の配列で、y はアスペクト補正済み（両軸とも domain 幅を 1 とする単位）。
  したがって domain 上の画素位置は `uv * domain_size.x` で得られる。
- 戻り値は shape `(..., 3)` の RGB（float64, [0, 1]）。
- パターンの集合は閉じている（4 種）。分岐は `isinstance` で網羅し、未知の型は AssertionError とする。
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field, replace
from typing import Callable, Union

import numpy as np
from numba import njit, prange  # type: ignore[import-untyped]

from aaraster.core.vecmath import Vec2Float, Vec2Int, Vec3Float

_CHECKER_FALLBACK_TILE_SIZE = 10.0

PATTERN_NAMES = ("uv", "checkerboard", "circle", "voronoi")


@dataclass(frozen=True, slots=True)
class UVParams:
    """UV をそのまま R/G に出すパターン（パラメータなし）。"""


@dataclass(frozen=True, slots=True)
class CheckerboardParams:
    """回転付き市松模様。

    Parameters
    ----------
    tile_size : float
        1 タイルの画素サイズ。0 以下なら 10 として扱う。
    angle_deg : float
        pivot 周りの回転角 [deg]。
    pivot : Vec2Float
        回転中心（UV 単位、アスペクト補正前）。
    """

    tile_size: float = 50.0
    angle_deg: float = 40.0
    pivot: Vec2Float = field(default=Vec2Float(0.5, 0.5))


@dataclass(frozen=True, slots=True)
class CircleParams:
    """画像中心からの同心円リング（thickness の黒帯 + gap の白帯）。"""

    thickness: float = 12.0
    gap: float = 7.0


@dataclass(frozen=True, slots=True)
class VoronoiParams:
    """ランダム散布点による Voronoi セル塗り分け。

    散布点は画像ごとに 1 回だけ `seed` から生成し、全サンプルで共有する。
    """

    num_points: int = 100
    seed: int = 0


PatternParams = Union[UVParams, CheckerboardParams, CircleParams, VoronoiParams]
BoundPattern = Callable[[np.ndarray], np.ndarray]


def pattern_name(params: PatternParams) -> str:
    """パラメータ型に対応するパターン名を返す。"""

    if isinstance(params, UVParams):
        return "uv"
    if isinstance(params, CheckerboardParams):
        return "checkerboard"
    if isinstance(params, CircleParams):
        return "circle"
    if isinstance(params, VoronoiParams):
        return "voronoi"
    raise AssertionError(f"unknown pattern params: {params!r}")


def _pixel_pos(uv: np.ndarray, domain_size: Vec2Int) -> np.ndarray:
    # uv はアスペクト補正済みなので、両軸とも domain 幅で画素へ戻す。
    return np.asarray(uv, dtype=np.float64) * float(domain_size.x)


def _gray(values: np.ndarray) -> np.ndarray:
    v = np.asarray(values, dtype=np.float64)
    return np.repeat(v[..., None], 3, axis=-1)


def pattern_uv(uv: np.ndarray, domain_size: Vec2Int, params: UVParams) -> np.ndarray:
    """`(u, v, 0)` を返す。"""
    arr = np.asarray(uv, dtype=np.float64)
    out = np.zeros(arr.shape[:-1] + (3,), dtype=np.float64)
    out[..., 0] = arr[..., 0]
    out[..., 1] = arr[..., 1]
    return out


def pattern_checkerboard(
    uv: np.ndarray, domain_size: Vec2Int, params: CheckerboardParams
) -> np.ndarray:
    """セル index `(floor(x/step) + floor(y/step))` の偶奇で黒/白を返す。"""
    tile = float(params.tile_size)
    step = tile if tile > 0.0 else _CHECKER_FALLBACK_TILE_SIZE

    pos = _pixel_pos(uv, domain_size)
    cx = np.floor(pos[..., 0] / step).astype(np.int64)
    cy = np.floor(pos[..., 1] / step).astype(np.int64)
    parity = (cx + cy) & 1
    return _gray(parity.astype(np.float64))


def pattern_circle(uv: np.ndarray, domain_size: Vec2Int, params: CircleParams) -> np.ndarray:
    """中心距離を `thickness + gap` で剰余し、thickness を超えた帯を白にする。"""
    pos = _pixel_pos(uv, domain_size)
    cx = 0.5 * float(domain_size.x)
    cy = 0.5 * float(domain_size.y)
    dist = np.hypot(pos[..., 0] - cx, pos[..., 1] - cy)
    period = float(params.thickness) + float(params.gap)
    remainder = np.fmod(dist, period)
    return _gray(np.where(remainder > float(params.thickness), 1.0, 0.0))


def scatter_points(domain_size: Vec2Int, params: VoronoiParams) -> np.ndarray:
    """domain 内の整数格子上に散布点を生成して返す（shape `(n, 2)`, float64）。"""

    n = max(1, int(params.num_points))
    rng = np.random.default_rng(int(params.seed))
    xs = rng.integers(0, max(1, int(domain_size.x)), size=n)
    ys = rng.integers(0, max(1, int(domain_size.y)), size=n)
    return np.stack([xs, ys], axis=1).astype(np.float64)


@njit(cache=True, parallel=True)
def _nearest_point_index(pos: np.ndarray, points: np.ndarray) -> np.ndarray:
    """各 pos に最も近い点の index を返す（同距離は先勝ち）。"""
    n = pos.shape[0]
    m = points.shape[0]
    out = np.empty((n,), dtype=np.int64)
    for i in prange(n):
        px = pos[i, 0]
        py = pos[i, 1]
        best = 0
        best_d = np.inf
        for j in range(m):
            dx = px - points[j, 0]
            dy = py - points[j, 1]
            d = math.sqrt(dx * dx + dy * dy)
            if d < best_d:
                best_d = d
                best = j
        out[i] = best
    return out


def pattern_voronoi(
    uv: np.ndarray,
    domain_size: Vec2Int,
    params: VoronoiParams,
    points: np.ndarray | None = None,
) -> np.ndarray:
    """最近傍の散布点座標を正規化して `(px / W, py / H, 0)` を返す。

    `points` を省略すると `scatter_points()` で生成する（単発評価用）。
    画像全体を描く場合は呼び出し側で 1 回だけ生成して渡すこと。
    """
    if points is None:
        points = scatter_points(domain_size, params)

    pos = _pixel_pos(uv, domain_size)
    lead_shape = pos.shape[:-1]
    flat = np.ascontiguousarray(pos.reshape(-1, 2))
    pts = np.ascontiguousarray(np.asarray(points, dtype=np.float64))
    nearest = pts[_nearest_point_index(flat, pts)]

    out = np.zeros((flat.shape[0], 3), dtype=np.float64)
    out[:, 0] = nearest[:, 0] / float(domain_size.x)
    out[:, 1] = nearest[:, 1] / float(domain_size.y)
    return out.reshape(lead_shape + (3,))


def scale_pixel_params(params: PatternParams, factor: int) -> PatternParams:
    """画素長で表されるパラメータ（タイル/帯幅）を factor 倍したコピーを返す。

    SSAA で domain を拡大したときに、パターンの空間周波数を出力画素基準で保つために使う。
    """

    f = float(factor)
    if isinstance(params, CheckerboardParams):
        return replace(params, tile_size=float(params.tile_size) * f)
    if isinstance(params, CircleParams):
        return replace(
            params,
            thickness=float(params.thickness) * f,
            gap=float(params.gap) * f,
        )
    if isinstance(params, (UVParams, VoronoiParams)):
        return params
    raise AssertionError(f"unknown pattern params: {params!r}")


def bind_pattern(params: PatternParams, domain_size: Vec2Int) -> BoundPattern:
    """画像 1 枚分の事前準備を済ませ、`uv -> color` の評価関数を返す。

    Voronoi の散布点はここで 1 回だけ生成され、返した関数の全呼び出しで共有される。
    """

    if isinstance(params, UVParams):
        return lambda uv: pattern_uv(uv, domain_size, params)
    if isinstance(params, CheckerboardParams):
        return lambda uv: pattern_checkerboard(uv, domain_size, params)
    if isinstance(params, CircleParams):
        return lambda uv: pattern_circle(uv, domain_size, params)
    if isinstance(params, VoronoiParams):
        points = scatter_points(domain_size, params)
        return lambda uv: pattern_voronoi(uv, domain_size, params, points)
    raise AssertionError(f"unknown pattern params: {params!r}")


def evaluate_pattern(params: PatternParams, uv: Vec2Float, domain_size: Vec2Int) -> Vec3Float:
    """単一 UV でパターンを評価して色を返す。"""

    color = bind_pattern(params, domain_size)(np.array([uv.as_tuple()], dtype=np.float64))[0]
    return Vec3Float(float(color[0]), float(color[1]), float(color[2]))


__all__ = [
    "BoundPattern",
    "CheckerboardParams",
    "CircleParams",
    "PATTERN_NAMES",
    "PatternParams",
    "UVParams",
    "VoronoiParams",
    "bind_pattern",
    "evaluate_pattern",
    "pattern_checkerboard",
    "pattern_circle",
    "pattern_name",
    "pattern_uv",
    "pattern_voronoi",
    "scale_pixel_params",
    "scatter_points",
]
