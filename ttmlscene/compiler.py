"""
ttmlscene/compiler.py

Scene Compiler.
Builds the render tree for one Scene: one RegionArea per distinct region,
one Block per cue and one Element per text span, all with resolved styles.
Text lives in a scene-local buffer; Element.text_index points into it.
"""

import logging
from typing import Dict, List, Optional

from .ingest import DocumentModel
from .models import Block, Element, RegionArea, ResolvedStyle, Scene, SceneTree
from .styles import StyleResolver


class SceneCompiler:
    def __init__(self, document: DocumentModel, resolver: Optional[StyleResolver] = None,
                 logger: Optional[logging.Logger] = None):
        self.document = document
        self.logger = logger or logging.getLogger(__name__)
        self.resolver = resolver or StyleResolver(document, logger=self.logger)

    def compile(self, scene: Scene) -> Optional[SceneTree]:
        """Returns None for a scene without cues."""
        if not scene.cues:
            return None

        # Region styles are resolved once per region within this call
        region_styles: Dict[str, ResolvedStyle] = {}
        region_blocks: Dict[str, List[Block]] = {}
        text: List[str] = []

        for cue in scene.cues:
            region_style = region_styles.get(cue.region_id)
            if region_style is None:
                region = self.document.regions.get(cue.region_id)
                if region is None:
                    self.logger.warning("[COMPILE] Cue references unknown region '%s'; skipping it.", cue.region_id)
                    continue
                region_style = self.resolver.resolve_region(region)
                region_styles[cue.region_id] = region_style
                region_blocks[cue.region_id] = []

            paragraph = self.resolver.paragraph_style(cue)
            elements = []
            for span in cue.spans:
                style = self.resolver.resolve_element(cue, span, region_style, paragraph)
                elements.append(Element(style=style, text_index=len(text)))
                text.append(span.text + "\n" if span.line_break else span.text)

            block_style = self.resolver.resolve_block(cue, region_style)
            region_blocks[cue.region_id].append(Block(style=block_style, elements=tuple(elements)))

        regions = tuple(
            RegionArea(region_id=rid, style=region_styles[rid], blocks=tuple(blocks))
            for rid, blocks in region_blocks.items()
        )

        self.logger.debug("[COMPILE] Scene %d-%s: %d regions, %d elements",
                          scene.start_ns, scene.end_ns, len(regions), len(text))

        return SceneTree(start_ns=scene.start_ns, end_ns=scene.end_ns, regions=regions, text=tuple(text))
