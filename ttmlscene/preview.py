"""
ttmlscene/preview.py

Layout preview for one compiled scene.
Paints region boxes and block backgrounds onto a transparent RGBA canvas,
so region geometry can be checked by eye. No text shaping is done: each
block is drawn as a band whose height follows its line count, font size
and line height, stacked according to the region's displayAlign.
"""

import os
from typing import Optional, Tuple

from PIL import Image, ImageDraw

from .models import Block, DisplayAlign, SceneTree

# Outline drawn around every region, whether or not it has a background
REGION_OUTLINE = (255, 255, 0, 255)


def _block_height(block: Block, tree: SceneTree) -> float:
    """Band height as a fraction of the root container."""
    lines = 1 + sum(tree.element_text(e).count("\n") for e in block.elements)
    if block.elements and tree.element_text(block.elements[-1]).endswith("\n"):
        lines -= 1
    font_size = max((e.style.font_size for e in block.elements), default=block.style.font_size)
    return lines * font_size * block.style.line_height


def render_layout_preview(tree: SceneTree, size: Tuple[int, int] = (1920, 1080),
                          output_path: Optional[str] = None) -> Image.Image:
    width, height = size
    # Create base canvas (Transparent)
    canvas = Image.new("RGBA", (width, height), (0, 0, 0, 0))
    draw = ImageDraw.Draw(canvas)

    for area in tree.regions:
        s = area.style
        left = s.origin_x * width
        top = s.origin_y * height
        right = (s.origin_x + s.extent_w) * width
        bottom = (s.origin_y + s.extent_h) * height
        box = [round(left), round(top), max(round(left), round(right) - 1), max(round(top), round(bottom) - 1)]

        if not s.background_color.is_transparent:
            c = s.background_color
            draw.rectangle(box, fill=(c.r, c.g, c.b, c.a))
        draw.rectangle(box, outline=REGION_OUTLINE)

        # Content area inside the padding
        inner_top = s.origin_y + s.padding_before
        inner_bottom = s.origin_y + s.extent_h - s.padding_after
        inner_left = s.origin_x + s.padding_start
        inner_right = s.origin_x + s.extent_w - s.padding_end

        heights = [_block_height(b, tree) for b in area.blocks]
        total = sum(heights)
        if s.display_align is DisplayAlign.AFTER:
            y = inner_bottom - total
        elif s.display_align is DisplayAlign.CENTER:
            y = (inner_top + inner_bottom - total) / 2
        else:
            y = inner_top

        # Later blocks paint over earlier ones
        for block, h in zip(area.blocks, heights):
            c = block.style.background_color
            if not c.is_transparent:
                band = [round(inner_left * width), round(y * height),
                        max(round(inner_left * width), round(inner_right * width) - 1),
                        max(round(y * height), round((y + h) * height) - 1)]
                draw.rectangle(band, fill=(c.r, c.g, c.b, c.a))
            y += h

    if output_path:
        parent = os.path.dirname(os.path.abspath(output_path))
        os.makedirs(parent, exist_ok=True)
        canvas.save(output_path, optimize=True)

    return canvas
