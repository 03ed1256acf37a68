"""
どこで: `src/aaraster/core/image_buffer.py`。
何を: width*height 個の RGB 色を行優先で保持する画像バッファと、平坦化インデックスの唯一のヘルパを提供する。
なぜ: リゾルバと FXAA の両方が同じ `y * width + x` を使うようにし、境界チェックを 1 箇所へ寄せるため。
"""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np
from numba import njit  # type: ignore[import-untyped]

from aaraster.core.vecmath import Vec2Int, Vec3Float


class InvalidDimensionError(ValueError):
    """出力画像の幅/高さが正でない場合の例外。"""


@njit(cache=True)
def flat_index(x: int, y: int, width: int) -> int:
    """画素座標 (x, y) を行優先の平坦インデックスへ変換する（Numba からも呼べる）。"""
    return y * width + x


def validate_dimensions(width: int, height: int) -> tuple[int, int]:
    """幅/高さを検証して `(width, height)` を返す。

    Raises
    ------
    InvalidDimensionError
        幅または高さが 0 以下の場合。
    """

    w = int(width)
    h = int(height)
    if w <= 0 or h <= 0:
        raise InvalidDimensionError(
            f"出力サイズは正の (width, height) である必要がある: got=({w}, {h})"
        )
    return w, h


@dataclass(slots=True)
class ImageBuffer:
    """行優先の RGB 画像バッファ。

    Attributes
    ----------
    width, height : int
        画素数。
    pixels : np.ndarray
        shape `(width * height, 3)`, dtype float64。各成分は通常 [0, 1]。

    Notes
    -----
    パイプライン上ではバッファを共有しない。各段は入力を読み、新しいバッファを返す。
    """

    width: int
    height: int
    pixels: np.ndarray

    def __post_init__(self) -> None:
        w, h = validate_dimensions(self.width, self.height)
        arr = np.asarray(self.pixels, dtype=np.float64)
        if arr.shape != (w * h, 3):
            raise ValueError(
                f"pixels は shape ({w * h}, 3) である必要がある: got={arr.shape}"
            )
        self.width = w
        self.height = h
        self.pixels = arr

    @classmethod
    def allocate(cls, width: int, height: int) -> ImageBuffer:
        """黒で初期化したバッファを返す。寸法は確保前に検証する。"""
        w, h = validate_dimensions(width, height)
        return cls(w, h, np.zeros((w * h, 3), dtype=np.float64))

    @classmethod
    def from_grid(cls, grid: np.ndarray) -> ImageBuffer:
        """shape `(height, width, 3)` の配列からバッファを作る（コピー）。"""
        arr = np.asarray(grid, dtype=np.float64)
        if arr.ndim != 3 or arr.shape[2] != 3:
            raise ValueError(f"grid は shape (H, W, 3) である必要がある: got={arr.shape}")
        h, w = int(arr.shape[0]), int(arr.shape[1])
        return cls(w, h, arr.reshape(w * h, 3).copy())

    @property
    def size(self) -> Vec2Int:
        return Vec2Int(self.width, self.height)

    def __len__(self) -> int:
        return self.width * self.height

    def index(self, x: int, y: int) -> int:
        """境界チェック付きで平坦インデックスを返す。"""
        xi = int(x)
        yi = int(y)
        if not (0 <= xi < self.width and 0 <= yi < self.height):
            raise IndexError(
                f"pixel ({xi}, {yi}) is outside {self.width}x{self.height} buffer"
            )
        return int(flat_index(xi, yi, self.width))

    def get(self, x: int, y: int) -> Vec3Float:
        r, g, b = self.pixels[self.index(x, y)]
        return Vec3Float(float(r), float(g), float(b))

    def set(self, x: int, y: int, color: Vec3Float) -> None:
        self.pixels[self.index(x, y)] = color.as_tuple()

    def grid(self) -> np.ndarray:
        """shape `(height, width, 3)` のビューを返す（コピーしない）。"""
        return self.pixels.reshape(self.height, self.width, 3)

    def copy(self) -> ImageBuffer:
        return ImageBuffer(self.width, self.height, self.pixels.copy())


__all__ = [
    "ImageBuffer",
    "InvalidDimensionError",
    "flat_index",
    "validate_dimensions",
]
