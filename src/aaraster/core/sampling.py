"""
どこで: `src/aaraster/core/sampling.py`。
何を: 画素ごとのサブピクセル UV 生成（none / msaa / ssaa）と、前変換（アスペクト補正・ピボット回転）、平均による解決を提供する。
なぜ: どのパターンでも同じサンプリング規則で色を解決し、アンチエイリアス方式をパターン実装から分離するため。
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Literal

import numpy as np

from aaraster.core.image_buffer import ImageBuffer, validate_dimensions
from aaraster.core.patterns import (
    BoundPattern,
    CheckerboardParams,
    PatternParams,
    bind_pattern,
    scale_pixel_params,
)
from aaraster.core.vecmath import Mat2x2Float, Vec2Float, Vec2Int, Vec3Float, degree_to_radian

logger = logging.getLogger(__name__)

AAMode = Literal["none", "ssaa", "msaa", "fxaa"]
AA_MODES: tuple[str, ...] = ("none", "ssaa", "msaa", "fxaa")
SAMPLING_MODES: tuple[str, ...] = ("none", "ssaa", "msaa")

MIN_AA_LEVEL = 1
MAX_AA_LEVEL = 8

# 画素中心基準のサブピクセルオフセット（画素単位）。要求 level に関わらず先頭から使う。
MSAA_SAMPLE_OFFSETS: tuple[Vec2Float, ...] = (
    Vec2Float(-0.3125, -0.4375),
    Vec2Float(0.1875, -0.3125),
    Vec2Float(0.4375, -0.0625),
    Vec2Float(0.0625, 0.1875),
    Vec2Float(-0.4375, 0.0625),
    Vec2Float(-0.0625, 0.3125),
    Vec2Float(-0.1875, 0.4375),
    Vec2Float(0.3125, 0.0625),
)

_PIXEL_CENTER = 0.5


def clamp_aa_level(level: int) -> int:
    """AA レベルを [1, 8] に丸めて返す。丸めが起きた場合は warning を出す。"""

    lv = int(level)
    clamped = max(MIN_AA_LEVEL, min(lv, MAX_AA_LEVEL))
    if clamped != lv:
        logger.warning("AA level %d is out of range; clamped to %d", lv, clamped)
    return clamped


@dataclass(frozen=True, slots=True)
class PivotRotation:
    """pivot 周りの回転（アスペクト補正後の UV に適用する）。

    適用順は固定:
    アスペクト補正済み uv → pivot（y もアスペクト補正）を引く → 回転 → 補正前の pivot を足す。
    """

    rotation: Mat2x2Float
    pivot: Vec2Float

    @classmethod
    def from_degrees(cls, angle_deg: float, pivot: Vec2Float) -> PivotRotation:
        return cls(Mat2x2Float.rotation(degree_to_radian(angle_deg)), pivot)

    def apply(self, uv: np.ndarray, aspect_ratio: float) -> np.ndarray:
        origin = np.array([self.pivot.x, self.pivot.y * float(aspect_ratio)], dtype=np.float64)
        back = np.array([self.pivot.x, self.pivot.y], dtype=np.float64)
        return self.rotation.apply(np.asarray(uv, dtype=np.float64) - origin) + back


def pivot_rotation_for(params: PatternParams) -> PivotRotation | None:
    """ピボット回転を要求するパターンなら、その前変換を返す。"""

    if isinstance(params, CheckerboardParams):
        return PivotRotation.from_degrees(float(params.angle_deg), params.pivot)
    return None


def sample_offsets(mode: str, level: int) -> tuple[Vec2Float, ...]:
    """画素中心からのサブピクセルオフセット列（画素単位）を返す。

    - none: 中心 1 点
    - msaa: 固定テーブルの先頭 `level` 個
    - ssaa: `level x level` の等間隔格子（行優先）
    """

    if mode == "none":
        return (Vec2Float(0.0, 0.0),)
    if mode == "msaa":
        lv = int(level)
        if not (MIN_AA_LEVEL <= lv <= len(MSAA_SAMPLE_OFFSETS)):
            raise ValueError(f"msaa level は 1..8 である必要がある: got={lv}")
        return MSAA_SAMPLE_OFFSETS[:lv]
    if mode == "ssaa":
        lv = int(level)
        if lv < MIN_AA_LEVEL:
            raise ValueError(f"ssaa level は 1 以上である必要がある: got={lv}")
        steps = [(i + _PIXEL_CENTER) / float(lv) - _PIXEL_CENTER for i in range(lv)]
        return tuple(Vec2Float(sx, sy) for sy in steps for sx in steps)
    raise ValueError(f"unknown sampling mode: {mode!r}")


def sample_domain(mode: str, level: int, output_size: Vec2Int) -> tuple[Vec2Int, int]:
    """パターン評価に使う domain サイズと、画素長パラメータの倍率を返す。"""

    if mode == "ssaa":
        lv = int(level)
        return output_size * lv, lv
    return output_size, 1


def aspect_ratio(output_size: Vec2Int) -> float:
    return float(output_size.y) / float(output_size.x)


def _sample_uv(
    px: np.ndarray,
    py: np.ndarray,
    offset: Vec2Float,
    output_size: Vec2Int,
    transform: PivotRotation | None,
) -> np.ndarray:
    """画素 index 配列とオフセットから、前変換済みの UV 配列 `(..., 2)` を返す。"""

    aspect = aspect_ratio(output_size)
    u = (px + _PIXEL_CENTER + float(offset.x)) / float(output_size.x)
    v = (py + _PIXEL_CENTER + float(offset.y)) / float(output_size.y)
    uv = np.stack([u, v * aspect], axis=-1).astype(np.float64, copy=False)
    if transform is not None:
        uv = transform.apply(uv, aspect)
    return uv


def pixel_samples(
    x: int,
    y: int,
    output_size: Vec2Int,
    mode: str,
    level: int,
    params: PatternParams,
) -> list[tuple[Vec2Float, float]]:
    """1 画素のサンプル集合 `(uv, weight)` を返す（weight は一律 1/n）。level は [1, 8] に丸める。"""

    offsets = sample_offsets(mode, clamp_aa_level(level))
    transform = pivot_rotation_for(params)
    px = np.array([float(x)], dtype=np.float64)
    py = np.array([float(y)], dtype=np.float64)
    weight = 1.0 / float(len(offsets))
    out: list[tuple[Vec2Float, float]] = []
    for off in offsets:
        u, v = _sample_uv(px, py, off, output_size, transform)[0]
        out.append((Vec2Float(float(u), float(v)), weight))
    return out


def resolve_pixel(
    x: int,
    y: int,
    output_size: Vec2Int,
    mode: str,
    level: int,
    params: PatternParams,
    *,
    evaluate: BoundPattern | None = None,
) -> Vec3Float:
    """1 画素をサンプリングして平均色を返す。

    `evaluate` を省略すると、その場で `bind_pattern()` する（Voronoi は散布点を再生成する）。
    """

    lv = clamp_aa_level(level)
    offsets = sample_offsets(mode, lv)
    domain, factor = sample_domain(mode, lv, output_size)
    if evaluate is None:
        evaluate = bind_pattern(scale_pixel_params(params, factor), domain)
    transform = pivot_rotation_for(params)

    px = np.array([float(x)], dtype=np.float64)
    py = np.array([float(y)], dtype=np.float64)
    acc = np.zeros((1, 3), dtype=np.float64)
    for off in offsets:
        acc += evaluate(_sample_uv(px, py, off, output_size, transform))
    acc /= float(len(offsets))
    r, g, b = acc[0]
    return Vec3Float(float(r), float(g), float(b))


def resolve(
    output_size: Vec2Int,
    mode: str,
    level: int,
    params: PatternParams,
) -> ImageBuffer:
    """全画素をサンプリングし、解決済みの画像バッファを返す。

    Parameters
    ----------
    output_size : Vec2Int
        出力画素数。幅/高さは正である必要がある。
    mode : {"none", "msaa", "ssaa"}
        サンプリング方式。FXAA は後処理なのでここでは扱わない。
    level : int
        AA レベル。[1, 8] に丸めてから使う。
    params : PatternParams
        パターンパラメータ（出力画素基準）。

    Returns
    -------
    ImageBuffer
        解決済みバッファ。

    Notes
    -----
    サンプルオフセットごとに全画素の UV をまとめて評価し、オフセット順に加算して平均する。
    """

    w, h = validate_dimensions(output_size.x, output_size.y)
    size = Vec2Int(w, h)
    if mode not in SAMPLING_MODES:
        raise ValueError(f"unknown sampling mode: {mode!r}")
    lv = clamp_aa_level(level)

    offsets = sample_offsets(mode, lv)
    domain, factor = sample_domain(mode, lv, size)
    evaluate = bind_pattern(scale_pixel_params(params, factor), domain)
    transform = pivot_rotation_for(params)
    logger.debug(
        "resolve: size=%dx%d mode=%s level=%d samples=%d domain=%dx%d",
        w,
        h,
        mode,
        lv,
        len(offsets),
        domain.x,
        domain.y,
    )

    py, px = np.meshgrid(
        np.arange(h, dtype=np.float64), np.arange(w, dtype=np.float64), indexing="ij"
    )
    acc = np.zeros((h, w, 3), dtype=np.float64)
    for off in offsets:
        acc += evaluate(_sample_uv(px, py, off, size, transform))
    acc /= float(len(offsets))
    return ImageBuffer.from_grid(acc)


__all__ = [
    "AAMode",
    "AA_MODES",
    "MAX_AA_LEVEL",
    "MIN_AA_LEVEL",
    "MSAA_SAMPLE_OFFSETS",
    "PivotRotation",
    "SAMPLING_MODES",
    "aspect_ratio",
    "clamp_aa_level",
    "pivot_rotation_for",
    "pixel_samples",
    "resolve",
    "resolve_pixel",
    "sample_domain",
    "sample_offsets",
]
