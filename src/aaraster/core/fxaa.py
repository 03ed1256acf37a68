"""
どこで: `src/aaraster/core/fxaa.py`。
何を: 解決済みバッファに対する FXAA 風の後処理（輝度エッジ検出 → エッジ方向探索 → 近傍とのブレンド）を提供する。
なぜ: サンプル数を増やさずに、コントラストの強い境界のジャギーを目立たなくするため。
"""

from __future__ import annotations

import logging

import numpy as np
from numba import njit, prange  # type: ignore[import-untyped]

from aaraster.core.image_buffer import ImageBuffer, flat_index

logger = logging.getLogger(__name__)

LUMA_WEIGHTS = (0.299, 0.587, 0.114)
DEFAULT_EDGE_THRESHOLD = 0.001
MAX_SEARCH_STEPS = 9


def luminance(pixels: np.ndarray) -> np.ndarray:
    """shape `(n, 3)` の色から、画素ごとの輝度 `(n,)` を返す。"""
    return np.asarray(pixels, dtype=np.float64) @ np.asarray(LUMA_WEIGHTS, dtype=np.float64)


@njit(cache=True)
def _edge_distance(
    luma: np.ndarray,
    x: int,
    y: int,
    dx: int,
    dy: int,
    width: int,
    height: int,
    threshold: float,
) -> float:
    """(dx, dy) 方向へ最大 9 歩進み、中心輝度と threshold を超えて異なる最初の距離を返す。

    見つからない（画像外に出た場合を含む）ときは 0 を返す。
    """
    center = luma[flat_index(x, y, width)]
    for i in range(1, MAX_SEARCH_STEPS + 1):
        nx = x + dx * i
        ny = y + dy * i
        if nx < 0 or nx >= width or ny < 0 or ny >= height:
            break
        if abs(luma[flat_index(nx, ny, width)] - center) > threshold:
            return float(i)
    return 0.0


@njit(cache=True, parallel=True)
def _fxaa_kernel(
    pixels: np.ndarray,
    luma: np.ndarray,
    width: int,
    height: int,
    threshold: float,
) -> tuple[np.ndarray, np.ndarray]:
    """FXAA 本体（Numba）。入力は読むだけで、結果は別配列へ書く。"""
    out = pixels.copy()
    is_edge = np.zeros((width * height,), dtype=np.uint8)

    for y in prange(1, height - 1):
        for x in range(1, width - 1):
            index = flat_index(x, y, width)

            l_c = luma[index]
            l_n = luma[flat_index(x, y - 1, width)]
            l_s = luma[flat_index(x, y + 1, width)]
            l_w = luma[flat_index(x - 1, y, width)]
            l_e = luma[flat_index(x + 1, y, width)]

            l_min = min(l_c, min(min(l_n, l_s), min(l_w, l_e)))
            l_max = max(l_c, max(max(l_n, l_s), max(l_w, l_e)))
            if l_max - l_min <= threshold:
                continue
            is_edge[index] = 1

            l_nw = luma[flat_index(x - 1, y - 1, width)]
            l_ne = luma[flat_index(x + 1, y - 1, width)]
            l_sw = luma[flat_index(x - 1, y + 1, width)]
            l_se = luma[flat_index(x + 1, y + 1, width)]

            contrast_x = abs((l_nw + l_sw) - (l_ne + l_se))
            contrast_y = abs((l_nw + l_ne) - (l_sw + l_se))

            dx = 0
            dy = 1
            if contrast_x > contrast_y:
                dx = 1
                dy = 0

            dist_fwd = _edge_distance(luma, x, y, dx, dy, width, height, threshold)
            dist_bwd = _edge_distance(luma, x, y, -dx, -dy, width, height, threshold)

            total = dist_fwd + dist_bwd
            if total == 0.0:
                continue

            # (fwd - bwd) / (2 * total) は [-0.5, 0.5]。-0.5 して 0 方向へ切り捨てる。
            step = int((dist_fwd - dist_bwd) / (2.0 * total) - 0.5)
            bx = x + dx * step
            by = y + dy * step
            if bx < 0 or bx >= width or by < 0 or by >= height:
                continue

            blend = flat_index(bx, by, width)
            for c in range(3):
                out[index, c] = (pixels[index, c] + pixels[blend, c]) * 0.5

    return out, is_edge


def apply_fxaa(buffer: ImageBuffer, *, threshold: float = DEFAULT_EDGE_THRESHOLD) -> ImageBuffer:
    """FXAA を適用した新しいバッファを返す。

    Parameters
    ----------
    buffer : ImageBuffer
        解決済みバッファ。変更しない。
    threshold : float
        エッジ判定と探索に使う輝度差の閾値。

    Returns
    -------
    ImageBuffer
        後処理済みバッファ。

    Notes
    -----
    - 外周 1 画素（行 0 / 最終行 / 列 0 / 最終列）は入力のまま。
    - 4 近傍の輝度差が threshold 以下の画素は入力のまま。
    - 前後の探索距離がともに 0、またはブレンド先が画像外の場合は入力のまま。
    """

    pixels = np.ascontiguousarray(buffer.pixels, dtype=np.float64)
    luma = np.ascontiguousarray(luminance(pixels))
    out, is_edge = _fxaa_kernel(
        pixels, luma, int(buffer.width), int(buffer.height), float(threshold)
    )
    logger.debug(
        "fxaa: size=%dx%d edge_pixels=%d threshold=%g",
        buffer.width,
        buffer.height,
        int(is_edge.sum()),
        float(threshold),
    )
    return ImageBuffer(buffer.width, buffer.height, out)


__all__ = [
    "DEFAULT_EDGE_THRESHOLD",
    "LUMA_WEIGHTS",
    "MAX_SEARCH_STEPS",
    "apply_fxaa",
    "luminance",
]
