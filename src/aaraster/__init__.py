"""aaraster: パターンのラスタライズと SSAA / MSAA / FXAA によるアンチエイリアス。"""

from aaraster.core.fxaa import apply_fxaa
from aaraster.core.image_buffer import ImageBuffer, InvalidDimensionError
from aaraster.core.patterns import CheckerboardParams, CircleParams, UVParams, VoronoiParams
from aaraster.core.pipeline import RenderSettings, make_render_settings, render_image
from aaraster.core.sampling import resolve
from aaraster.export.ppm import export_ppm

__all__ = [
    "CheckerboardParams",
    "CircleParams",
    "ImageBuffer",
    "InvalidDimensionError",
    "RenderSettings",
    "UVParams",
    "VoronoiParams",
    "apply_fxaa",
    "export_ppm",
    "make_render_settings",
    "render_image",
    "resolve",
]
