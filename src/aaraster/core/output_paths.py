# どこで: `src/aaraster/core/output_paths.py`。
# 何を: 描画設定から出力ファイル名と保存先パスを決める。
# なぜ: 出力名にサイズと AA 方式を埋め込み、比較用の画像を並べて置けるようにするため。

from __future__ import annotations

from pathlib import Path

from aaraster.core.runtime_config import output_root_dir

_AA_TAGS = {"none": "", "ssaa": "SSAA", "msaa": "MSAA", "fxaa": "FXAA"}


def _size_suffix(width: int, height: int) -> str:
    """サイズの接尾辞（例: `_1920x1080`）を返す。"""

    w = int(width)
    h = int(height)
    if w <= 0 or h <= 0:
        raise ValueError("出力サイズは正の値である必要がある")
    return f"_{w}x{h}"


def _aa_suffix(aa_mode: str) -> str:
    """AA 方式の接尾辞（例: `_MSAA`）を返す。none なら空文字を返す。"""

    key = str(aa_mode).strip().lower()
    if key not in _AA_TAGS:
        raise ValueError(f"unknown aa_mode: {aa_mode!r}")
    tag = _AA_TAGS[key]
    return f"_{tag}" if tag else ""


def default_output_filename(
    width: int,
    height: int,
    aa_mode: str,
    aa_level: int,
    *,
    ext: str = "ppm",
) -> str:
    """`output_<W>x<H>[_<AA>]_<level>.<ext>` 形式のファイル名を返す。"""

    ext_norm = str(ext).lstrip(".").strip()
    if not ext_norm:
        raise ValueError("ext は空でない必要がある")
    return f"output{_size_suffix(width, height)}{_aa_suffix(aa_mode)}_{int(aa_level)}.{ext_norm}"


def output_path_for_render(
    width: int,
    height: int,
    aa_mode: str,
    aa_level: int,
    *,
    output: str | Path | None = None,
) -> Path:
    """描画結果の保存先パスを返す。

    Notes
    -----
    - `output` が指定されていればそのまま使う（相対パスは cwd 基準）。
    - 未指定なら `paths.output_dir / default_output_filename(...)`。
    """

    if output is not None and str(output).strip():
        return Path(str(output)).expanduser()
    return output_root_dir() / default_output_filename(width, height, aa_mode, aa_level)


__all__ = ["default_output_filename", "output_path_for_render"]
