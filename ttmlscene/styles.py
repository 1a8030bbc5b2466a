"""
ttmlscene/styles.py

The Style Resolver.
Turns the partial StyleSets of the Document Model into fully populated,
normalized ResolvedStyles for regions, blocks (paragraphs) and elements (spans).

Cascade for one scope:
    referenced styles (in list order, later wins) -> inline attributes
Inheritance down the tree:
    initial -> region -> body -> div(s) -> p -> span(s)
Only INHERITABLE properties flow down; backgrounds and layout stay put.
"""

import logging
from typing import Dict, Iterable, Optional, Tuple

from .ingest import DocumentModel
from .models import (
    EMPTY_STYLE, TRANSPARENT, Color, Cue, Length, LengthUnit, Region, ResolvedStyle, Scope, StyleSet,
    TextSpan,
)


def blend_colors(under: Color, over: Color) -> Color:
    """The upper color wins unless it is fully transparent."""
    return over if over.a != 0 else under


class StyleResolver:
    def __init__(self, document: DocumentModel, logger: Optional[logging.Logger] = None):
        self.document = document
        self.logger = logger or logging.getLogger(__name__)
        # Named styles never change after ingest, so each chain is flattened once
        self._effective: Dict[str, StyleSet] = {}
        for sid in document.styles:
            self._effective[sid] = self._expand(sid, ())

    # --- NAMED STYLES ---
    def _expand(self, sid: str, visiting: Tuple[str, ...]) -> StyleSet:
        definition = self.document.styles.get(sid)
        if definition is None:
            return EMPTY_STYLE
        visiting = visiting + (sid,)
        result = EMPTY_STYLE
        for ref in definition.referenced_ids:
            if ref in visiting:
                self.logger.warning("[STYLE] Style reference cycle %s -> %s; ignoring the reference.",
                                    " -> ".join(visiting), ref)
                continue
            expanded = self._effective[ref] if ref in self._effective else self._expand(ref, visiting)
            result = result.merge_from(expanded)
        return result.merge_from(definition.style_set)

    def effective_style(self, style_id: str) -> StyleSet:
        """A named style with its own references folded in. Unknown ids give an empty set."""
        return self._effective.get(style_id, EMPTY_STYLE)

    def specified(self, style_set: StyleSet, style_ids: Iterable[str]) -> StyleSet:
        """Referenced styles in order, then the inline attributes on top."""
        merged = EMPTY_STYLE
        for sid in style_ids:
            merged = merged.merge_from(self.effective_style(sid))
        return merged.merge_from(style_set)

    def scope_style(self, scope: Scope) -> StyleSet:
        return self.specified(scope.style_set, scope.style_ids)

    def region_style(self, region: Region) -> StyleSet:
        """Specified region style, on top of the document's <initial> values."""
        return self.document.initial_style.merge_from(self.specified(region.style_set, region.referenced_ids))

    def cascade(self, parent: StyleSet, scopes: Iterable[Scope]) -> StyleSet:
        """Walks down 'scopes', letting each one inherit from the one above."""
        current = parent
        for scope in scopes:
            current = self.scope_style(scope).inherit_from(current)
        return current

    # --- RESOLUTION ---
    def resolve_region(self, region: Region) -> ResolvedStyle:
        s = self.region_style(region)
        cols, rows = self.document.cell_columns, self.document.cell_rows

        origin_x, origin_y = 0.0, 0.0
        if s.origin is not None:
            origin_x = self._horizontal("origin", s.origin[0], cols, 0.0)
            origin_y = self._vertical("origin", s.origin[1], rows, 0.0)

        extent_w, extent_h = 1.0, 1.0
        if s.extent is not None:
            extent_w = self._horizontal("extent", s.extent[0], cols, 1.0)
            extent_h = self._vertical("extent", s.extent[1], rows, 1.0)
        # The region may not spill past the root container
        extent_w = max(0.0, min(extent_w, 1.0 - origin_x))
        extent_h = max(0.0, min(extent_h, 1.0 - origin_y))

        padding = (0.0, 0.0, 0.0, 0.0)
        if s.padding is not None:
            before, end, after, start = s.padding
            padding = (
                self._padding(before, extent_h, rows, vertical=True),
                self._padding(end, extent_w, cols, vertical=False),
                self._padding(after, extent_h, rows, vertical=True),
                self._padding(start, extent_w, cols, vertical=False),
            )

        return self._build(
            s,
            background_color=s.background_color or TRANSPARENT,
            origin_x=origin_x,
            origin_y=origin_y,
            extent_w=extent_w,
            extent_h=extent_h,
            padding_before=padding[0],
            padding_end=padding[1],
            padding_after=padding[2],
            padding_start=padding[3],
        )

    def paragraph_style(self, cue: Cue) -> StyleSet:
        """Computed (not yet normalized) style of the cue's paragraph."""
        region = self.document.regions.get(cue.region_id)
        base = self.region_style(region) if region is not None else self.document.initial_style
        return self.cascade(base, cue.scopes)

    def resolve_block(self, cue: Cue, region_style: ResolvedStyle) -> ResolvedStyle:
        s = self.paragraph_style(cue)

        # region <-> div once, then the result <-> paragraph once
        div_bg = TRANSPARENT
        for scope in cue.division_scopes:
            div_bg = blend_colors(div_bg, self.scope_style(scope).background_color or TRANSPARENT)
        p_bg = self.scope_style(cue.paragraph_scope).background_color or TRANSPARENT
        background = blend_colors(blend_colors(region_style.background_color, div_bg), p_bg)

        return self._build(s, layout=region_style, background_color=background,
                           cell_columns=cue.cell_columns, cell_rows=cue.cell_rows)

    def resolve_element(self, cue: Cue, span: TextSpan, region_style: ResolvedStyle,
                        paragraph: Optional[StyleSet] = None) -> ResolvedStyle:
        if paragraph is None:
            paragraph = self.paragraph_style(cue)
        s = self.cascade(paragraph, span.scopes)

        background = TRANSPARENT
        for scope in span.scopes:
            background = blend_colors(background, self.scope_style(scope).background_color or TRANSPARENT)

        return self._build(s, layout=region_style, background_color=background,
                           cell_columns=cue.cell_columns, cell_rows=cue.cell_rows)

    # --- NORMALIZATION ---
    def _build(self, s: StyleSet, layout: Optional[ResolvedStyle] = None, cell_columns: Optional[int] = None,
               cell_rows: Optional[int] = None, **overrides) -> ResolvedStyle:
        """
        Fills every ResolvedStyle field from 's', falling back to the
        platform defaults. Layout fields are copied from 'layout' when given.
        """
        defaults = ResolvedStyle()
        cols = cell_columns or self.document.cell_columns
        rows = cell_rows or self.document.cell_rows

        # Font size is relative to one cell row (100% == 1c)
        font_size = 1.0 / rows
        if s.font_size is not None:
            if s.font_size.unit is LengthUnit.PERCENTAGE:
                font_size = s.font_size.value / 100.0 / rows
            else:
                font_size = self._vertical("fontSize", s.font_size, rows, font_size)

        line_height = defaults.line_height
        if s.line_height is not None:
            if s.line_height.unit is LengthUnit.PERCENTAGE:
                line_height = s.line_height.value / 100.0
            elif font_size > 0:
                absolute = self._vertical("lineHeight", s.line_height, rows, None)
                if absolute is not None:
                    line_height = absolute / font_size

        line_padding = defaults.line_padding
        if s.line_padding is not None:
            line_padding = self._horizontal("linePadding", s.line_padding, cols, line_padding)

        values = dict(
            text_direction=s.text_direction or defaults.text_direction,
            font_family=s.font_family or defaults.font_family,
            font_size=font_size,
            line_height=line_height,
            text_align=s.text_align or defaults.text_align,
            color=s.color or defaults.color,
            font_style=s.font_style or defaults.font_style,
            font_weight=s.font_weight or defaults.font_weight,
            text_decoration=s.text_decoration or defaults.text_decoration,
            unicode_bidi=s.unicode_bidi or defaults.unicode_bidi,
            wrap_option=s.wrap_option or defaults.wrap_option,
            multi_row_align=s.multi_row_align or defaults.multi_row_align,
            line_padding=line_padding,
        )

        if layout is not None:
            for name in ("origin_x", "origin_y", "extent_w", "extent_h", "display_align", "padding_before",
                         "padding_end", "padding_after", "padding_start", "writing_mode", "show_background",
                         "overflow"):
                values[name] = getattr(layout, name)
        else:
            values.update(
                display_align=s.display_align or defaults.display_align,
                writing_mode=s.writing_mode or defaults.writing_mode,
                show_background=s.show_background or defaults.show_background,
                overflow=s.overflow or defaults.overflow,
            )

        values.update(overrides)
        return ResolvedStyle(**values)

    def _horizontal(self, name: str, length: Length, cell_columns: int, fallback):
        return self._normalize(name, length, cell_columns, 0, fallback)

    def _vertical(self, name: str, length: Length, cell_rows: int, fallback):
        return self._normalize(name, length, cell_rows, 1, fallback)

    def _normalize(self, name: str, length: Length, cells: int, axis: int, fallback):
        if length.unit is LengthUnit.PERCENTAGE:
            return length.value / 100.0
        if length.unit is LengthUnit.CELL:
            return length.value / cells
        root = self.document.root_extent
        if root is None:
            self.logger.warning("[STYLE] %s uses pixels (%gpx) but the root has no pixel extent; ignoring it.",
                                name, length.value)
            return fallback
        return length.value / root[axis]

    def _padding(self, length: Length, extent: float, cells: int, vertical: bool) -> float:
        if length.unit is LengthUnit.PERCENTAGE:
            # Padding percentages are relative to the region, not the root
            return length.value / 100.0 * extent
        return self._normalize("padding", length, cells, 1 if vertical else 0, 0.0)
