"""
どこで: `src/aaraster/core/vecmath.py`。
何を: 2D/3D ベクトルと 2x2 行列の値型（不変）と、角度変換などの小さな数値ヘルパを提供する。
なぜ: サンプリング座標の前変換（回転/ピボット）やパターン評価で、スカラー演算の意味を 1 箇所に固定するため。
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Union

import numpy as np

DEG_TO_RAD = math.pi / 180.0
RAD_TO_DEG = 180.0 / math.pi


def _fdiv(a: float, b: float) -> float:
    """IEEE 754 と同じ意味の浮動小数除算（0 除算で inf/nan を返し、例外にしない）。"""

    a_f = float(a)
    b_f = float(b)
    if b_f == 0.0:
        if a_f == 0.0 or math.isnan(a_f):
            return math.nan
        return math.copysign(math.inf, a_f) * math.copysign(1.0, b_f)
    return a_f / b_f


def degree_to_radian(degrees: float) -> float:
    return float(degrees) * DEG_TO_RAD


def radian_to_degree(radians: float) -> float:
    return float(radians) * RAD_TO_DEG


def clamp(value, lo, hi):
    """value を [lo, hi] に収めて返す（型は入力に従う）。"""

    return max(lo, min(value, hi))


@dataclass(frozen=True, slots=True)
class Vec2Int:
    """整数 2D ベクトル（画素座標・画像サイズ用）。"""

    x: int
    y: int

    def __add__(self, other: Vec2Int) -> Vec2Int:
        return Vec2Int(self.x + other.x, self.y + other.y)

    def __sub__(self, other: Vec2Int) -> Vec2Int:
        return Vec2Int(self.x - other.x, self.y - other.y)

    def __mul__(self, other: Union[int, float, Vec2Int]) -> Union[Vec2Int, Vec2Float]:
        if isinstance(other, Vec2Int):
            return Vec2Int(self.x * other.x, self.y * other.y)
        if isinstance(other, (int, np.integer)) and not isinstance(other, bool):
            return Vec2Int(self.x * int(other), self.y * int(other))
        # 非整数スカラーは切り捨てず、浮動小数ベクトルへ昇格する。
        return self.to_float() * float(other)

    __rmul__ = __mul__

    def __truediv__(self, other: Union[float, Vec2Int]) -> Vec2Float:
        return self.to_float() / (other.to_float() if isinstance(other, Vec2Int) else other)

    def to_float(self) -> Vec2Float:
        return Vec2Float(float(self.x), float(self.y))

    def length(self) -> float:
        return self.to_float().length()


@dataclass(frozen=True, slots=True)
class Vec2Float:
    """浮動小数 2D ベクトル（UV 座標・サブピクセルオフセット用）。"""

    x: float = 0.0
    y: float = 0.0

    def __add__(self, other: Vec2Float) -> Vec2Float:
        return Vec2Float(self.x + other.x, self.y + other.y)

    def __sub__(self, other: Vec2Float) -> Vec2Float:
        return Vec2Float(self.x - other.x, self.y - other.y)

    def __neg__(self) -> Vec2Float:
        return Vec2Float(-self.x, -self.y)

    def __mul__(self, other: Union[float, Vec2Float]) -> Vec2Float:
        if isinstance(other, Vec2Float):
            return Vec2Float(self.x * other.x, self.y * other.y)
        s = float(other)
        return Vec2Float(self.x * s, self.y * s)

    __rmul__ = __mul__

    def __truediv__(self, other: Union[float, Vec2Float]) -> Vec2Float:
        if isinstance(other, Vec2Float):
            return Vec2Float(_fdiv(self.x, other.x), _fdiv(self.y, other.y))
        return Vec2Float(_fdiv(self.x, other), _fdiv(self.y, other))

    def length(self) -> float:
        """ユークリッドノルム（z 項なし）。"""
        return math.sqrt(self.x * self.x + self.y * self.y)

    def as_tuple(self) -> tuple[float, float]:
        return (float(self.x), float(self.y))


@dataclass(frozen=True, slots=True)
class Vec3Float:
    """浮動小数 3D ベクトル。色（RGB, 各成分 [0, 1]）にも使う。"""

    x: float = 0.0
    y: float = 0.0
    z: float = 0.0

    def __add__(self, other: Vec3Float) -> Vec3Float:
        return Vec3Float(self.x + other.x, self.y + other.y, self.z + other.z)

    def __sub__(self, other: Vec3Float) -> Vec3Float:
        return Vec3Float(self.x - other.x, self.y - other.y, self.z - other.z)

    def __mul__(self, other: Union[float, Vec3Float]) -> Vec3Float:
        if isinstance(other, Vec3Float):
            return Vec3Float(self.x * other.x, self.y * other.y, self.z * other.z)
        s = float(other)
        return Vec3Float(self.x * s, self.y * s, self.z * s)

    __rmul__ = __mul__

    def __truediv__(self, other: Union[float, Vec3Float]) -> Vec3Float:
        if isinstance(other, Vec3Float):
            return Vec3Float(
                _fdiv(self.x, other.x), _fdiv(self.y, other.y), _fdiv(self.z, other.z)
            )
        return Vec3Float(_fdiv(self.x, other), _fdiv(self.y, other), _fdiv(self.z, other))

    def length(self) -> float:
        """ユークリッドノルム（z 項を含む）。"""
        return math.sqrt(self.x * self.x + self.y * self.y + self.z * self.z)

    def dot(self, other: Vec3Float) -> float:
        return self.x * other.x + self.y * other.y + self.z * other.z

    def as_tuple(self) -> tuple[float, float, float]:
        return (float(self.x), float(self.y), float(self.z))


VEC3_ZERO = Vec3Float(0.0, 0.0, 0.0)
VEC3_ONE = Vec3Float(1.0, 1.0, 1.0)


def length(v: Union[Vec2Int, Vec2Float, Vec3Float]) -> float:
    """次元に応じたノルムを返す（2D は z 項なし、3D は z 項あり）。"""

    return v.length()


def dot(a: Vec3Float, b: Vec3Float) -> float:
    return a.dot(b)


@dataclass(frozen=True, slots=True)
class Mat2x2Float:
    """行優先の 2x2 行列。

    Notes
    -----
    - `@` は行列積（Mat2x2Float）または行列ベクトル積（Vec2Float）。
    - `*` はスカラー積。
    - `inverse()` は det が厳密に 0 のとき全要素 0 の行列を返す（例外にしない）。
    """

    m00: float
    m01: float
    m10: float
    m11: float

    @classmethod
    def rotation(cls, radians: float) -> Mat2x2Float:
        """反時計回り `radians` の回転行列を返す。"""
        c = math.cos(float(radians))
        s = math.sin(float(radians))
        return cls(c, -s, s, c)

    def __matmul__(self, other: Union[Mat2x2Float, Vec2Float]):
        if isinstance(other, Vec2Float):
            return Vec2Float(
                self.m00 * other.x + self.m01 * other.y,
                self.m10 * other.x + self.m11 * other.y,
            )
        if isinstance(other, Mat2x2Float):
            return Mat2x2Float(
                self.m00 * other.m00 + self.m01 * other.m10,
                self.m00 * other.m01 + self.m01 * other.m11,
                self.m10 * other.m00 + self.m11 * other.m10,
                self.m10 * other.m01 + self.m11 * other.m11,
            )
        return NotImplemented

    def __mul__(self, scalar: float) -> Mat2x2Float:
        s = float(scalar)
        return Mat2x2Float(self.m00 * s, self.m01 * s, self.m10 * s, self.m11 * s)

    __rmul__ = __mul__

    def determinant(self) -> float:
        return self.m00 * self.m11 - self.m01 * self.m10

    def inverse(self) -> Mat2x2Float:
        det = self.determinant()
        if det == 0.0:
            return MAT2_ZERO
        return Mat2x2Float(self.m11 / det, -self.m01 / det, -self.m10 / det, self.m00 / det)

    def as_array(self) -> np.ndarray:
        return np.array([[self.m00, self.m01], [self.m10, self.m11]], dtype=np.float64)

    def apply(self, points: np.ndarray) -> np.ndarray:
        """(..., 2) の点群へ行列を左から掛けた結果を返す。"""
        pts = np.asarray(points, dtype=np.float64)
        return pts @ self.as_array().T


MAT2_ZERO = Mat2x2Float(0.0, 0.0, 0.0, 0.0)
MAT2_IDENTITY = Mat2x2Float(1.0, 0.0, 0.0, 1.0)


__all__ = [
    "DEG_TO_RAD",
    "MAT2_IDENTITY",
    "MAT2_ZERO",
    "Mat2x2Float",
    "RAD_TO_DEG",
    "VEC3_ONE",
    "VEC3_ZERO",
    "Vec2Float",
    "Vec2Int",
    "Vec3Float",
    "clamp",
    "degree_to_radian",
    "dot",
    "length",
    "radian_to_degree",
]
