"""
ttmlscene/pipeline.py

One-call conversion: bytes -> Document Model -> Scenes -> compiled SceneTrees.

Document-level failures are reported through ConversionResult.code and never
hand partial output downstream. Hosting bounds (CueLimitExceeded,
SegmentationCancelled) propagate to the caller.
"""

import logging
from dataclasses import dataclass, replace
from typing import Callable, Optional, Tuple

from .compiler import SceneCompiler
from .config import Dialect, ParseOptions
from .errors import MalformedDocument, NoRenderableContent, NoScenesProduced, ResultCode
from .ingest import DocumentModel, TTMLIngester
from .models import Scene, SceneTree
from .segmenter import SceneSegmenter


@dataclass(frozen=True)
class ConversionResult:
    code: ResultCode
    scenes: Tuple[Scene, ...] = ()
    trees: Tuple[SceneTree, ...] = ()
    message: str = ""
    document: Optional[DocumentModel] = None

    @property
    def ok(self) -> bool:
        return self.code is ResultCode.SUCCESS


def convert(data: bytes, dialect: Dialect = Dialect.EBU_TT_D, track_index: int = 0,
            options: Optional[ParseOptions] = None, logger: Optional[logging.Logger] = None,
            progress_callback: Optional[Callable[[int, int, str], None]] = None,
            cancel_event=None) -> ConversionResult:
    options = replace(options or ParseOptions(), dialect=dialect)
    logger = logger or logging.getLogger(__name__)

    try:
        document = TTMLIngester(options, logger).parse_bytes(data, track_index)
    except MalformedDocument as e:
        logger.error("[INGEST] %s", e)
        return ConversionResult(code=ResultCode.PARSE_FAILURE, message=str(e))
    except NoRenderableContent as e:
        logger.error("[INGEST] %s", e)
        return ConversionResult(code=ResultCode.NO_SCENES_PRODUCED, message=str(e))

    try:
        scenes = SceneSegmenter(options, logger).create_scenes(document.pool, progress_callback, cancel_event)
    except NoScenesProduced as e:
        logger.error("[SEGMENT] %s", e)
        return ConversionResult(code=ResultCode.NO_SCENES_PRODUCED, message=str(e), document=document)

    compiler = SceneCompiler(document, logger=logger)
    trees = []
    for scene in scenes:
        tree = compiler.compile(scene)
        if tree is not None:
            trees.append(tree)

    return ConversionResult(
        code=ResultCode.SUCCESS,
        scenes=tuple(scenes),
        trees=tuple(trees),
        message=f"{len(scenes)} scenes from {len(document.pool)} cues",
        document=document,
    )
