"""
ttmlscene/exporter.py

Scene manifest writer.
Serializes compiled SceneTrees to a pretty-printed XML event list:

<Scenes>
  <Description> ... </Description>
  <Scene begin="0" end="1000000000">
    <Region id="r1" x=".." y=".." width=".." height=".." background="#..">
      <Block background="#.." textAlign="center">
        <Element color="#.." fontSize="..">text</Element>

Times are in nanoseconds; geometry is in fractions of the root container.
"""

import logging
import os
import xml.etree.ElementTree as ET
from typing import Iterable, Optional
from xml.dom import minidom

from .models import ResolvedStyle, SceneTree


def _fmt(value: float) -> str:
    return f"{value:.6f}".rstrip('0').rstrip('.') or "0"


class SceneExporter:
    def __init__(self, title: str = "ttmlscene export", language: str = "", logger: Optional[logging.Logger] = None):
        self.title = title
        self.language = language
        self.logger = logger or logging.getLogger(__name__)

    def build_xml(self, trees: Iterable[SceneTree]) -> ET.Element:
        root = ET.Element("Scenes", Version="1.0")

        # Header
        desc = ET.SubElement(root, "Description")
        ET.SubElement(desc, "Name", Title=self.title)
        ET.SubElement(desc, "Language", Code=self.language or "und")

        count = 0
        for tree in trees:
            count += 1
            scene = ET.SubElement(root, "Scene", begin=str(tree.start_ns))
            if tree.end_ns is not None:
                scene.set("end", str(tree.end_ns))

            for area in tree.regions:
                s = area.style
                region = ET.SubElement(scene, "Region",
                                       id=area.region_id,
                                       x=_fmt(s.origin_x),
                                       y=_fmt(s.origin_y),
                                       width=_fmt(s.extent_w),
                                       height=_fmt(s.extent_h),
                                       displayAlign=s.display_align.value,
                                       writingMode=s.writing_mode.value)
                if not s.background_color.is_transparent:
                    region.set("background", s.background_color.to_hex())
                if any((s.padding_before, s.padding_end, s.padding_after, s.padding_start)):
                    region.set("padding", " ".join(_fmt(p) for p in (
                        s.padding_before, s.padding_end, s.padding_after, s.padding_start)))

                for block in area.blocks:
                    b = ET.SubElement(region, "Block",
                                      textAlign=block.style.text_align.value,
                                      lineHeight=_fmt(block.style.line_height))
                    if not block.style.background_color.is_transparent:
                        b.set("background", block.style.background_color.to_hex())

                    for element in block.elements:
                        e = ET.SubElement(b, "Element", **self._element_attrs(element.style))
                        e.text = tree.element_text(element)

        self.logger.debug("[EXPORT] Built manifest with %d scenes", count)
        return root

    def _element_attrs(self, s: ResolvedStyle) -> dict:
        attrs = {
            "color": s.color.to_hex(),
            "fontFamily": s.font_family,
            "fontSize": _fmt(s.font_size),
        }
        if s.font_style.value != "normal":
            attrs["fontStyle"] = s.font_style.value
        if s.font_weight.value != "normal":
            attrs["fontWeight"] = s.font_weight.value
        if s.text_decoration.value != "none":
            attrs["textDecoration"] = s.text_decoration.value
        if s.text_direction.value != "ltr":
            attrs["direction"] = s.text_direction.value
        if not s.background_color.is_transparent:
            attrs["background"] = s.background_color.to_hex()
        return attrs

    def to_string(self, trees: Iterable[SceneTree]) -> str:
        # Pretty Print
        return minidom.parseString(ET.tostring(self.build_xml(trees))).toprettyxml(indent="  ")

    def export(self, trees: Iterable[SceneTree], output_path: str) -> str:
        output_abs = os.path.abspath(output_path)
        parent = os.path.dirname(output_abs)
        if parent:
            os.makedirs(parent, exist_ok=True)

        xml_str = self.to_string(trees)
        with open(output_abs, "w", encoding="utf-8") as f:
            f.write(xml_str)

        self.logger.info("[EXPORT] Generated: %s", output_abs)
        return output_abs
