# どこで: `src/aaraster/__main__.py`。
# 何を: `python -m aaraster [width] [height] [aa_type] [aa_level] [pattern] [output_file]` の CLI を提供する。
# なぜ: 設定ファイルの既定値を位置引数で上書きし、1 コマンドで PPM を書き出せるようにするため。

from __future__ import annotations

import argparse
import logging
import sys

from aaraster.core.output_paths import output_path_for_render
from aaraster.core.patterns import PATTERN_NAMES
from aaraster.core.pipeline import (
    make_render_settings,
    pattern_params_from_defaults,
    render_image,
)
from aaraster.core.runtime_config import runtime_config, set_config_path
from aaraster.core.sampling import AA_MODES, SAMPLING_MODES
from aaraster.export.ppm import export_ppm

logger = logging.getLogger("aaraster")

_EXIT_CONFIG_ERROR = 2


def _parse_args(argv: list[str]) -> argparse.Namespace:
    p = argparse.ArgumentParser(
        prog="python -m aaraster",
        description="パターンを AA 付きでラスタライズし PPM として保存する。",
    )
    p.add_argument("width", nargs="?", type=int, help="出力幅（height と同時指定）")
    p.add_argument("height", nargs="?", type=int, help="出力高さ（width と同時指定）")
    p.add_argument("aa_type", nargs="?", help=f"AA 方式: {', '.join(AA_MODES)}")
    p.add_argument("aa_level", nargs="?", type=int, help="AA レベル 1-8（範囲外は丸める）")
    p.add_argument("pattern", nargs="?", help=f"パターン: {', '.join(PATTERN_NAMES)}")
    p.add_argument("output_file", nargs="?", help="出力ファイル（省略時: output_dir 配下に自動命名）")
    p.add_argument("--config", default=None, help="config.yaml のパス")
    p.add_argument("--seed", type=int, default=None, help="voronoi の散布 seed")
    p.add_argument(
        "--fxaa-base",
        default=None,
        choices=SAMPLING_MODES,
        help="fxaa の下地を作るサンプリング方式",
    )
    p.add_argument("--ascii", action="store_true", help="P3（テキスト）で書き出す")
    p.add_argument(
        "--list",
        action="store_true",
        help="利用可能な AA 方式とパターンを一覧表示して終了する",
    )
    p.add_argument(
        "--log-level",
        default="WARNING",
        choices=("DEBUG", "INFO", "WARNING", "ERROR"),
        help="ログレベル（省略時: WARNING）",
    )
    return p.parse_args(argv)


def _pick_choice(value: str | None, *, default: str, choices: tuple[str, ...], label: str) -> str:
    """未指定なら既定値、未知の名前なら warning を出して既定値を返す。"""

    if value is None:
        return default
    key = str(value).strip().lower()
    if key in choices:
        return key
    logger.warning("unknown %s %r; falling back to %r", label, value, default)
    return default


def _print_builtins() -> None:
    print("aa_types:")
    for name in AA_MODES:
        print(name)
    print("")
    print("patterns:")
    for name in PATTERN_NAMES:
        print(name)


def main(argv: list[str] | None = None) -> int:
    if argv is None:
        argv = sys.argv[1:]
    if argv and argv[0] == "help":
        argv = ["--help"]

    args = _parse_args(list(argv))
    logging.basicConfig(
        level=getattr(logging, str(args.log_level)),
        format="%(levelname)s %(name)s: %(message)s",
    )

    if args.list:
        _print_builtins()
        return 0

    if args.config is not None:
        set_config_path(args.config)
    try:
        cfg = runtime_config()
    except (FileNotFoundError, RuntimeError, ValueError) as exc:
        print(f"error: {exc}", file=sys.stderr)
        return _EXIT_CONFIG_ERROR

    width, height = cfg.render.width, cfg.render.height
    if args.width is not None and args.height is not None:
        width, height = int(args.width), int(args.height)
    elif args.width is not None:
        logger.warning("width given without height; using %dx%d", width, height)

    aa_mode = _pick_choice(
        args.aa_type, default=cfg.render.aa_type, choices=AA_MODES, label="aa_type"
    )
    aa_level = cfg.render.aa_level if args.aa_level is None else int(args.aa_level)
    pattern_name = _pick_choice(
        args.pattern, default=cfg.render.pattern, choices=PATTERN_NAMES, label="pattern"
    )
    fxaa_base = cfg.render.fxaa_base if args.fxaa_base is None else str(args.fxaa_base)

    try:
        settings = make_render_settings(
            width,
            height,
            aa_mode=aa_mode,
            aa_level=aa_level,
            pattern=pattern_params_from_defaults(pattern_name, cfg.patterns, seed=args.seed),
            fxaa_base=fxaa_base,
            fxaa_threshold=cfg.fxaa_edge_threshold,
        )
    except ValueError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return _EXIT_CONFIG_ERROR

    path = output_path_for_render(
        settings.output_size.x,
        settings.output_size.y,
        settings.aa_mode,
        settings.aa_level,
        output=args.output_file,
    )
    buffer = render_image(settings)
    export_ppm(buffer, path, fmt="ascii" if args.ascii else None)
    print(str(path))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
