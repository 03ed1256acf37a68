# どこで: `src/aaraster/core/runtime_config.py`。
# 何を: config.yaml による実行時設定（探索・ロード・キャッシュ）を提供する。
# なぜ: 出力先や既定の描画設定（サイズ / AA / パターン係数）をユーザーが上書きできるようにするため。

"""実行時設定（`config.yaml`）の探索・ロード・キャッシュを担当する。

このモジュールは、以下を提供する:

- `config.yaml` を「同梱デフォルト → ユーザー設定（任意）」の順に適用して `RuntimeConfig` を構築
- 探索パス（CWD / HOME）と、明示指定（`set_config_path()`）の両方に対応
- 1 回ロードした結果をプロセス内でキャッシュ（設定を切り替える場合は `set_config_path()` で破棄）

実装メモ
--------
- ユーザー設定の適用は `dict.update()`（トップレベルの浅い上書き）で行う。
  ネストした mapping は「部分的にマージ」されず「丸ごと置換」される。
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from importlib import resources
from pathlib import Path
from typing import Any

_AA_TYPES = ("none", "ssaa", "msaa", "fxaa")
_FXAA_BASES = ("none", "ssaa", "msaa")
_PATTERNS = ("uv", "checkerboard", "circle", "voronoi")
_PPM_FORMATS = ("binary", "ascii")


@dataclass(frozen=True, slots=True)
class RenderDefaults:
    """描画の既定値（`config.yaml` の `render`）。"""

    width: int
    height: int
    aa_type: str
    aa_level: int
    pattern: str
    fxaa_base: str


@dataclass(frozen=True, slots=True)
class PatternDefaults:
    """パターン係数の既定値（`config.yaml` の `patterns`）。"""

    checker_tile_size: float
    checker_angle_deg: float
    checker_pivot: tuple[float, float]
    circle_thickness: float
    circle_gap: float
    voronoi_num_points: int
    voronoi_seed: int


@dataclass(frozen=True, slots=True)
class RuntimeConfig:
    """aaraster の実行時設定。

    Attributes
    ----------
    config_path:
        実際に採用されたユーザー設定ファイルのパス。無ければ None。
    output_dir:
        出力ファイル名を明示しない場合の保存先ディレクトリ。
    render:
        描画の既定値。
    fxaa_edge_threshold:
        FXAA のエッジ判定閾値（輝度差）。
    patterns:
        パターン係数の既定値。
    ppm_format:
        PPM の書き出し形式（"binary" / "ascii"）。
    """

    config_path: Path | None
    output_dir: Path
    render: RenderDefaults
    fxaa_edge_threshold: float
    patterns: PatternDefaults
    ppm_format: str


_EXPLICIT_CONFIG_PATH: Path | None = None
_CONFIG_CACHE: RuntimeConfig | None = None


def set_config_path(path: str | Path | None) -> None:
    """以降の設定探索で使う明示 config パスを設定する（None で解除）。

    設定が変わるため、`runtime_config()` のキャッシュを破棄する。
    """

    global _EXPLICIT_CONFIG_PATH, _CONFIG_CACHE
    _EXPLICIT_CONFIG_PATH = None if path is None else Path(str(path)).expanduser()
    _CONFIG_CACHE = None


def _default_config_candidates() -> tuple[Path, ...]:
    """既定の `config.yaml` 探索候補を返す（先勝ち: CWD → HOME）。"""

    return (
        Path.cwd() / ".aaraster" / "config.yaml",
        Path.home() / ".config" / "aaraster" / "config.yaml",
    )


def _as_optional_path(value: Any) -> Path | None:
    """任意値を「空なら None / それ以外は Path（`~` と環境変数を展開）」へ変換する。"""

    if value is None:
        return None
    s = str(value).strip()
    if not s:
        return None
    return Path(os.path.expandvars(os.path.expanduser(s)))


def _as_mapping(value: Any, *, key: str) -> dict[str, Any]:
    if value is None:
        return {}
    if isinstance(value, dict):
        return dict(value)
    raise RuntimeError(f"{key} は mapping である必要があります: got={value!r}")


def _as_int(value: Any, *, key: str) -> int:
    if value is None:
        raise RuntimeError(f"{key} が未設定です（同梱 default_config.yaml を確認してください）")
    if isinstance(value, bool):
        raise RuntimeError(f"{key} は整数である必要があります: got={value!r}")
    try:
        return int(value)
    except Exception as exc:
        raise RuntimeError(f"{key} は整数である必要があります: got={value!r}") from exc


def _as_float(value: Any, *, key: str) -> float:
    if value is None:
        raise RuntimeError(f"{key} が未設定です（同梱 default_config.yaml を確認してください）")
    try:
        return float(value)
    except Exception as exc:
        raise RuntimeError(f"{key} は数値である必要があります: got={value!r}") from exc


def _as_float_pair(value: Any, *, key: str) -> tuple[float, float]:
    try:
        seq = list(value)
    except Exception as exc:
        raise RuntimeError(f"{key} は [x, y] の配列である必要があります: got={value!r}") from exc
    if len(seq) != 2:
        raise RuntimeError(f"{key} は [x, y] の配列である必要があります: got={value!r}")
    try:
        return (float(seq[0]), float(seq[1]))
    except Exception as exc:
        raise RuntimeError(f"{key} は [x, y] の数値配列である必要があります: got={value!r}") from exc


def _as_choice(value: Any, *, key: str, choices: tuple[str, ...]) -> str:
    s = str(value).strip().lower() if value is not None else ""
    if s not in choices:
        raise RuntimeError(f"{key} は {choices} のいずれかである必要があります: got={value!r}")
    return s


def _load_yaml_text(text: str, *, source: str) -> dict[str, Any]:
    """YAML テキストを読み、トップレベル mapping を dict として返す。空なら `{}`。"""

    import yaml  # type: ignore[import-untyped]

    try:
        data = yaml.safe_load(text)
    except Exception as exc:
        raise RuntimeError(f"config.yaml の読み込みに失敗しました: source={source}") from exc

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise RuntimeError(f"config.yaml は mapping である必要があります: source={source}")
    return dict(data)


def _load_yaml_config(path: Path) -> dict[str, Any]:
    return _load_yaml_text(path.read_text(encoding="utf-8"), source=str(path))


def _load_packaged_default_config() -> dict[str, Any]:
    """同梱 `aaraster/resource/default_config.yaml` をロードして返す。"""

    try:
        blob = (
            resources.files("aaraster")
            .joinpath("resource", "default_config.yaml")
            .read_text(encoding="utf-8")
        )
    except Exception as exc:  # pragma: no cover
        raise RuntimeError(
            "同梱 default_config.yaml の読み込みに失敗しました"
            "（パッケージ配布物の package-data を確認してください）"
        ) from exc

    return _load_yaml_text(blob, source="aaraster/resource/default_config.yaml")


def _parse_render(payload: dict[str, Any]) -> RenderDefaults:
    render = _as_mapping(payload.get("render"), key="render")
    return RenderDefaults(
        width=_as_int(render.get("width"), key="render.width"),
        height=_as_int(render.get("height"), key="render.height"),
        aa_type=_as_choice(render.get("aa_type"), key="render.aa_type", choices=_AA_TYPES),
        aa_level=_as_int(render.get("aa_level"), key="render.aa_level"),
        pattern=_as_choice(render.get("pattern"), key="render.pattern", choices=_PATTERNS),
        fxaa_base=_as_choice(
            render.get("fxaa_base", "none"), key="render.fxaa_base", choices=_FXAA_BASES
        ),
    )


def _parse_patterns(payload: dict[str, Any]) -> PatternDefaults:
    patterns = _as_mapping(payload.get("patterns"), key="patterns")
    checker = _as_mapping(patterns.get("checkerboard"), key="patterns.checkerboard")
    circle = _as_mapping(patterns.get("circle"), key="patterns.circle")
    voronoi = _as_mapping(patterns.get("voronoi"), key="patterns.voronoi")

    pivot = checker.get("pivot")
    if pivot is None:
        raise RuntimeError(
            "patterns.checkerboard.pivot が未設定です（同梱 default_config.yaml を確認してください）"
        )

    num_points = _as_int(voronoi.get("num_points"), key="patterns.voronoi.num_points")
    if num_points <= 0:
        raise ValueError(
            f"patterns.voronoi.num_points は正の値である必要があります: got={num_points}"
        )

    return PatternDefaults(
        checker_tile_size=_as_float(
            checker.get("tile_size"), key="patterns.checkerboard.tile_size"
        ),
        checker_angle_deg=_as_float(
            checker.get("angle_deg"), key="patterns.checkerboard.angle_deg"
        ),
        checker_pivot=_as_float_pair(pivot, key="patterns.checkerboard.pivot"),
        circle_thickness=_as_float(circle.get("thickness"), key="patterns.circle.thickness"),
        circle_gap=_as_float(circle.get("gap"), key="patterns.circle.gap"),
        voronoi_num_points=num_points,
        voronoi_seed=_as_int(voronoi.get("seed"), key="patterns.voronoi.seed"),
    )


def runtime_config() -> RuntimeConfig:
    """実行時設定をロードして返す（キャッシュ）。

    読み込み元の優先順位（後勝ち）:
    1) 同梱 `aaraster/resource/default_config.yaml`
    2) 探索で見つかった `config.yaml`（任意）
    3) `set_config_path()` で明示指定された `config.yaml`（任意）
    """

    global _CONFIG_CACHE
    if _CONFIG_CACHE is not None:
        return _CONFIG_CACHE

    explicit_path = _EXPLICIT_CONFIG_PATH
    if explicit_path is not None and not explicit_path.is_file():
        raise FileNotFoundError(f"config.yaml が見つかりません: {explicit_path}")

    discovered_path: Path | None = None
    for p in _default_config_candidates():
        if p.is_file():
            discovered_path = p
            break

    payload = _load_packaged_default_config()
    if discovered_path is not None:
        payload.update(_load_yaml_config(discovered_path))
    if explicit_path is not None:
        payload.update(_load_yaml_config(explicit_path))

    version = _as_int(payload.get("version"), key="version")
    if version != 1:
        raise RuntimeError(f"未対応の config.yaml version です: got={version}")

    paths = _as_mapping(payload.get("paths"), key="paths")
    output_dir = _as_optional_path(paths.get("output_dir"))
    if output_dir is None:
        raise RuntimeError(
            "paths.output_dir が未設定です（同梱 default_config.yaml を確認してください）"
        )

    fxaa = _as_mapping(payload.get("fxaa"), key="fxaa")
    edge_threshold = _as_float(fxaa.get("edge_threshold"), key="fxaa.edge_threshold")
    if edge_threshold < 0.0:
        raise ValueError(
            f"fxaa.edge_threshold は 0 以上である必要があります: got={edge_threshold}"
        )

    export = _as_mapping(payload.get("export"), key="export")
    ppm = _as_mapping(export.get("ppm"), key="export.ppm")
    ppm_format = _as_choice(ppm.get("format"), key="export.ppm.format", choices=_PPM_FORMATS)

    cfg = RuntimeConfig(
        config_path=explicit_path or discovered_path,
        output_dir=output_dir,
        render=_parse_render(payload),
        fxaa_edge_threshold=edge_threshold,
        patterns=_parse_patterns(payload),
        ppm_format=ppm_format,
    )
    _CONFIG_CACHE = cfg
    return cfg


def output_root_dir() -> Path:
    """出力ルートディレクトリを返す。"""

    return runtime_config().output_dir


__all__ = [
    "PatternDefaults",
    "RenderDefaults",
    "RuntimeConfig",
    "output_root_dir",
    "runtime_config",
    "set_config_path",
]
