"""
どこで: `src/aaraster/export/ppm.py`。
何を: 解決済み画像バッファを PPM（P6 バイナリ / P3 テキスト）として保存する関数を提供する。
なぜ: 依存の少ない非圧縮形式で、AA 方式ごとの結果を画素単位で比較できるようにするため。
"""

from __future__ import annotations

import logging
from pathlib import Path

import numpy as np

from aaraster.core.image_buffer import ImageBuffer
from aaraster.core.runtime_config import runtime_config

logger = logging.getLogger(__name__)

PPM_FORMATS = ("binary", "ascii")
_MAXVAL = 255


def to_rgb8(buffer: ImageBuffer) -> np.ndarray:
    """色を 8bit に変換して shape `(height, width, 3)` の uint8 配列を返す。

    Notes
    -----
    各成分を [0, 1] へクリップしてから 255 を掛け、四捨五入せず切り捨てる。
    """

    clipped = np.clip(buffer.grid(), 0.0, 1.0)
    return np.floor(clipped * float(_MAXVAL)).astype(np.uint8)


def encode_ppm(buffer: ImageBuffer, *, fmt: str = "binary") -> bytes:
    """バッファを PPM のバイト列にして返す。"""

    fmt_norm = str(fmt).strip().lower()
    if fmt_norm not in PPM_FORMATS:
        raise ValueError(f"fmt は {PPM_FORMATS} のいずれかである必要がある: got={fmt!r}")

    rgb = to_rgb8(buffer)
    magic = "P6" if fmt_norm == "binary" else "P3"
    header = f"{magic}\n{buffer.width} {buffer.height}\n{_MAXVAL}\n".encode("ascii")
    if fmt_norm == "binary":
        return header + rgb.tobytes()

    # P3 は 1 行 = 画像 1 行。値は空白区切り。
    rows = [" ".join(str(int(v)) for v in row.reshape(-1)) for row in rgb]
    return header + ("\n".join(rows) + "\n").encode("ascii")


def export_ppm(buffer: ImageBuffer, path: str | Path, *, fmt: str | None = None) -> Path:
    """バッファを PPM として保存する。

    Parameters
    ----------
    buffer : ImageBuffer
        保存する画像。
    path : str or Path
        出力先パス。親ディレクトリが無ければ作成する。
    fmt : {"binary", "ascii"} or None
        None の場合は `config.yaml`（`export.ppm.format`）の設定値を使う。

    Returns
    -------
    Path
        保存先パス。
    """

    fmt_resolved = runtime_config().ppm_format if fmt is None else str(fmt)
    data = encode_ppm(buffer, fmt=fmt_resolved)

    _path = Path(path)
    _path.parent.mkdir(parents=True, exist_ok=True)
    _path.write_bytes(data)
    logger.info(
        "wrote %s (%dx%d, %s, %d bytes)",
        str(_path),
        buffer.width,
        buffer.height,
        fmt_resolved,
        len(data),
    )
    return _path


__all__ = ["PPM_FORMATS", "encode_ppm", "export_ppm", "to_rgb8"]
