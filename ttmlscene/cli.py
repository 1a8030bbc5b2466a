"""
ttmlscene/cli.py

Command-line entry point: convert one TTML file into a scene manifest.

Exit codes: 0 success, 1 parse failure (or unreadable input), 2 no scenes.
"""

import argparse
import logging
import os
import sys
from typing import Optional, Sequence

from .config import DIALECT_ALIASES, ParseOptions, dialect_from_name
from .errors import ResultCode, TTMLSceneError
from .exporter import SceneExporter
from .pipeline import convert
from .preview import render_layout_preview

EXIT_CODES = {
    ResultCode.SUCCESS: 0,
    ResultCode.PARSE_FAILURE: 1,
    ResultCode.NO_SCENES_PRODUCED: 2,
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="ttmlscene",
        description="Cut a TTML / EBU-TT-D / IMSC1 subtitle document into timed, styled scenes.",
    )
    parser.add_argument("input", help="Path to the TTML document.")
    parser.add_argument("--dialect", default="ebu-tt-d", choices=sorted(DIALECT_ALIASES),
                        help="Input dialect (default: ebu-tt-d).")
    parser.add_argument("--track", type=int, default=0, help="Track index recorded on the cue pool.")
    parser.add_argument("--max-cues", type=int, default=None,
                        help="Refuse to segment documents with more cues than this.")
    parser.add_argument("-o", "--output", help="Write the scene manifest (XML) to this path.")
    parser.add_argument("--preview-dir", help="Write one layout preview PNG per scene into this directory.")
    parser.add_argument("--width", type=int, default=1920, help="Preview canvas width in pixels.")
    parser.add_argument("--height", type=int, default=1080, help="Preview canvas height in pixels.")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging output.")
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    logger = logging.getLogger("ttmlscene")

    try:
        with open(args.input, "rb") as f:
            data = f.read()
    except OSError as e:
        logger.error("Cannot read %s: %s", args.input, e)
        return 1

    dialect = dialect_from_name(args.dialect)
    options = ParseOptions(dialect=dialect, max_cues=args.max_cues)

    try:
        result = convert(data, dialect, track_index=args.track, options=options, logger=logger)
    except TTMLSceneError as e:
        # Hosting bounds (cue limit) end the run without scenes
        logger.error("%s", e)
        return EXIT_CODES[ResultCode.NO_SCENES_PRODUCED]

    if not result.ok:
        return EXIT_CODES[result.code]

    logger.info("%s: %s", os.path.basename(args.input), result.message)

    if args.output:
        language = result.document.language if result.document else ""
        title = os.path.splitext(os.path.basename(args.input))[0]
        SceneExporter(title=title, language=language, logger=logger).export(result.trees, args.output)

    if args.preview_dir:
        os.makedirs(args.preview_dir, exist_ok=True)
        for i, tree in enumerate(result.trees, start=1):
            render_layout_preview(tree, (args.width, args.height),
                                  os.path.join(args.preview_dir, f"scene_{i:05d}.png"))
        logger.info("[EXPORT] Wrote %d previews to %s", len(result.trees), args.preview_dir)

    return EXIT_CODES[ResultCode.SUCCESS]


if __name__ == "__main__":
    sys.exit(main())
