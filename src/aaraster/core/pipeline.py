"""
どこで: `src/aaraster/core/pipeline.py`。
何を: 描画設定を検証し、サンプリング解決 →（任意で）FXAA → 最終バッファ、の順で画像を生成する。
なぜ: CLI とテストで同じ経路を共有し、設定検証（寸法・AA レベル）をバッファ確保より前に固定するため。
"""

from __future__ import annotations

from dataclasses import dataclass

from aaraster.core.fxaa import DEFAULT_EDGE_THRESHOLD, apply_fxaa
from aaraster.core.image_buffer import ImageBuffer, validate_dimensions
from aaraster.core.patterns import (
    CheckerboardParams,
    CircleParams,
    PatternParams,
    UVParams,
    VoronoiParams,
)
from aaraster.core.runtime_config import PatternDefaults
from aaraster.core.sampling import AA_MODES, SAMPLING_MODES, clamp_aa_level, resolve
from aaraster.core.vecmath import Vec2Float, Vec2Int


@dataclass(frozen=True, slots=True)
class RenderSettings:
    """検証済みの描画設定。

    `make_render_settings()` で構築すると、寸法は正、`aa_level` は [1, 8] が保証される。

    Attributes
    ----------
    output_size : Vec2Int
        出力画素数。
    aa_mode : str
        "none" / "ssaa" / "msaa" / "fxaa"。
    aa_level : int
        SSAA/MSAA のサンプル密度。fxaa の場合は下地 `fxaa_base` の level として使う。
    pattern : PatternParams
        パターンパラメータ。
    fxaa_base : str
        fxaa の下地を作るサンプリング方式（"none" / "ssaa" / "msaa"）。
    fxaa_threshold : float
        FXAA のエッジ判定閾値。
    """

    output_size: Vec2Int
    aa_mode: str
    aa_level: int
    pattern: PatternParams
    fxaa_base: str = "none"
    fxaa_threshold: float = DEFAULT_EDGE_THRESHOLD

    @property
    def sampling_mode(self) -> str:
        """実際にバッファを解決するサンプリング方式を返す。"""
        return self.fxaa_base if self.aa_mode == "fxaa" else self.aa_mode


def make_render_settings(
    width: int,
    height: int,
    *,
    aa_mode: str,
    aa_level: int,
    pattern: PatternParams,
    fxaa_base: str = "none",
    fxaa_threshold: float = DEFAULT_EDGE_THRESHOLD,
) -> RenderSettings:
    """入力を検証して `RenderSettings` を返す。

    Raises
    ------
    InvalidDimensionError
        幅または高さが 0 以下の場合。
    ValueError
        AA 方式 / FXAA 下地が未知の場合。

    Notes
    -----
    AA レベルは方式に関わらず [1, 8] に丸める（例外にしない）。
    """

    w, h = validate_dimensions(width, height)
    mode = str(aa_mode).strip().lower()
    if mode not in AA_MODES:
        raise ValueError(f"aa_mode は {AA_MODES} のいずれかである必要がある: got={aa_mode!r}")
    base = str(fxaa_base).strip().lower()
    if base not in SAMPLING_MODES:
        raise ValueError(
            f"fxaa_base は {SAMPLING_MODES} のいずれかである必要がある: got={fxaa_base!r}"
        )
    return RenderSettings(
        output_size=Vec2Int(w, h),
        aa_mode=mode,
        aa_level=clamp_aa_level(aa_level),
        pattern=pattern,
        fxaa_base=base,
        fxaa_threshold=float(fxaa_threshold),
    )


def pattern_params_from_defaults(
    name: str,
    defaults: PatternDefaults,
    *,
    seed: int | None = None,
) -> PatternParams:
    """パターン名と設定の既定値から、パターンパラメータを組み立てる。"""

    key = str(name).strip().lower()
    if key == "uv":
        return UVParams()
    if key == "checkerboard":
        px, py = defaults.checker_pivot
        return CheckerboardParams(
            tile_size=float(defaults.checker_tile_size),
            angle_deg=float(defaults.checker_angle_deg),
            pivot=Vec2Float(float(px), float(py)),
        )
    if key == "circle":
        return CircleParams(
            thickness=float(defaults.circle_thickness), gap=float(defaults.circle_gap)
        )
    if key == "voronoi":
        return VoronoiParams(
            num_points=int(defaults.voronoi_num_points),
            seed=int(defaults.voronoi_seed if seed is None else seed),
        )
    raise ValueError(f"unknown pattern: {name!r}")


def render_image(settings: RenderSettings) -> ImageBuffer:
    """設定に従って画像を生成し、最終バッファを返す。"""

    buffer = resolve(
        settings.output_size,
        settings.sampling_mode,
        settings.aa_level,
        settings.pattern,
    )
    if settings.aa_mode == "fxaa":
        buffer = apply_fxaa(buffer, threshold=settings.fxaa_threshold)
    return buffer


__all__ = [
    "RenderSettings",
    "make_render_settings",
    "pattern_params_from_defaults",
    "render_image",
]
