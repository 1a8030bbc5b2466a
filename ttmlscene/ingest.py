"""
ttmlscene/ingest.py

Logic for turning a TTML document (TTML1, EBU-TT-D, IMSC1) into the Document Model.

Key Responsibilities:
1. Root checks: the document element must be <tt>.
2. Head Parsing: <styling> (named styles, <initial>) and <layout> (regions).
3. Body Walk: depth-first over body -> div -> p -> span, carrying an immutable
   stack of Scopes. Each level gets a copy; nothing is reverted on return.
4. Timing: every text leaf gets its own begin/end or inherits the nearest
   ancestor's. Leaves of one <p> sharing an interval become one Cue.
5. Whitespace: xml:space="default" folds line feeds and collapses space runs.

Local problems (bad timestamps, missing timing, bad attributes, unknown
regions) are logged and the affected cue or attribute is skipped.
"""

import logging
import re
from dataclasses import dataclass, field
from fractions import Fraction
from types import MappingProxyType
from typing import Dict, List, Mapping, Optional, Tuple

from .attributes import map_attributes, parse_cell_resolution, parse_root_extent, parse_time
from .config import ParseOptions
from .errors import (
    AttributeConstraintViolation, InvalidTimestamp, MalformedDocument, MissingTiming, NoRenderableContent,
)
from .models import (
    EMPTY_STYLE, Cue, Length, LengthUnit, Region, Scope, StyleDefinition, StyleSet, TextSpan,
)
from .pool import CuePool
from .tree import MarkupNode, parse_markup

# Region id used when the document declares no <region> at all
DEFAULT_REGION_ID = ""

# Marks a begin/end that was present but unparseable
_INVALID = object()

SPACE_RUN_RE = re.compile(r' {2,}')

# XML whitespace only; U+00A0 and friends are content
XML_SPACE = " \t\r\n"


@dataclass(frozen=True)
class DocumentModel:
    """Everything the later stages need from one document. Read-only once built."""
    pool: CuePool
    regions: Mapping[str, Region]
    styles: Mapping[str, StyleDefinition]
    initial_style: StyleSet = EMPTY_STYLE
    cell_columns: int = 32
    cell_rows: int = 15
    # Pixel size of the root container (tts:extent on <tt>), if declared
    root_extent: Optional[Tuple[float, float]] = None
    language: str = ""


@dataclass
class _Leaf:
    text: str
    scopes: Tuple[Scope, ...]
    interval: Tuple[object, object]
    line_break: bool = False
    # Whitespace-only text between other content, kept as a single space
    blank: bool = False


@dataclass
class _DocumentContext:
    """Per-call parse state, so one ingester can be reused (and shared) safely."""
    options: ParseOptions
    track_index: int
    cell_columns: int = 32
    cell_rows: int = 15
    root_extent: Optional[Tuple[float, float]] = None
    frame_rate: Fraction = Fraction(30)
    tick_rate: int = 1
    preserve_space: bool = False
    language: str = ""
    initial_style: StyleSet = EMPTY_STYLE
    styles: Dict[str, StyleDefinition] = field(default_factory=dict)
    regions: Dict[str, Region] = field(default_factory=dict)
    implicit_region: bool = False
    cues: List[Cue] = field(default_factory=list)


class TTMLIngester:
    """
    Parses a TTML node tree into a DocumentModel.
    Implements a recursive descent over the body to capture style inheritance.
    """

    def __init__(self, options: Optional[ParseOptions] = None, logger: Optional[logging.Logger] = None):
        self.options = options or ParseOptions()
        self.logger = logger or logging.getLogger(__name__)

    def parse_bytes(self, data: bytes, track_index: int = 0) -> DocumentModel:
        return self.parse(parse_markup(data), track_index)

    def parse(self, root: Optional[MarkupNode], track_index: int = 0) -> DocumentModel:
        """
        Main entry point. Walks the tree once and returns the populated model.
        """
        if root is None:
            raise MalformedDocument("Document has no root element")
        if root.name != "tt":
            raise MalformedDocument(f"Root element of document is not tt:tt (found <{root.name}>)")

        ctx = _DocumentContext(options=self.options, track_index=track_index)
        self._parse_meta(root, ctx)

        # 1. Parse <head> definitions
        head = root.find_child("head")
        if head is not None:
            self._parse_head(head, ctx)
        else:
            self.logger.debug("[INGEST] No <head> element found.")

        if not ctx.regions:
            # No layout at all: everything goes to one region covering the root container
            ctx.implicit_region = True
            ctx.regions[DEFAULT_REGION_ID] = Region(
                id=DEFAULT_REGION_ID,
                style_set=StyleSet(
                    origin=(Length(0.0, LengthUnit.PERCENTAGE), Length(0.0, LengthUnit.PERCENTAGE)),
                    extent=(Length(100.0, LengthUnit.PERCENTAGE), Length(100.0, LengthUnit.PERCENTAGE)),
                ),
            )

        # 2. Parse <body>
        body = root.find_child("body")
        if body is not None:
            self._recurse_node(body, ctx, scopes=(), interval=(None, None), region_id=None,
                               preserve_space=ctx.preserve_space)

        if not ctx.cues:
            raise NoRenderableContent("No cue with a resolvable begin/end pair was found")

        self.logger.info("[INGEST] Track %d: %d cues, %d regions, %d styles",
                         track_index, len(ctx.cues), len(ctx.regions), len(ctx.styles))

        return DocumentModel(
            pool=CuePool(ctx.cues, track_index=track_index),
            regions=MappingProxyType(dict(ctx.regions)),
            styles=MappingProxyType(dict(ctx.styles)),
            initial_style=ctx.initial_style,
            cell_columns=ctx.cell_columns,
            cell_rows=ctx.cell_rows,
            root_extent=ctx.root_extent,
            language=ctx.language,
        )

    # --- METADATA & HEADER PARSING ---
    def _parse_meta(self, root: MarkupNode, ctx: _DocumentContext):
        opts = ctx.options

        # 1. Cell Resolution (ttp:cellResolution)
        try:
            ctx.cell_columns, ctx.cell_rows = parse_cell_resolution(
                root.get_attr("cellResolution"), (opts.default_cell_columns, opts.default_cell_rows))
        except AttributeConstraintViolation as e:
            self.logger.warning("[INGEST] %s; using %dx%d", e, opts.default_cell_columns, opts.default_cell_rows)
            ctx.cell_columns, ctx.cell_rows = opts.default_cell_columns, opts.default_cell_rows

        # 2. Dimensions (tts:extent)
        try:
            ctx.root_extent = parse_root_extent(root.get_attr("extent"))
        except AttributeConstraintViolation as e:
            self.logger.warning("[INGEST] Ignoring root extent: %s", e)

        # 3. Frame Rate (ttp:frameRate * ttp:frameRateMultiplier)
        ctx.frame_rate = Fraction(opts.default_frame_rate)
        fps = root.get_attr("frameRate")
        if fps:
            try:
                ctx.frame_rate = Fraction(int(fps))
            except ValueError:
                self.logger.warning("[INGEST] Ignoring invalid frameRate '%s'", fps)
        mult = root.get_attr("frameRateMultiplier")
        if mult:
            parts = mult.split()
            try:
                ctx.frame_rate *= Fraction(int(parts[0]), int(parts[1]))
            except (IndexError, ValueError, ZeroDivisionError):
                self.logger.warning("[INGEST] Ignoring invalid frameRateMultiplier '%s'", mult)
        if ctx.frame_rate <= 0:
            self.logger.warning("[INGEST] Non-positive frame rate; using %d", opts.default_frame_rate)
            ctx.frame_rate = Fraction(opts.default_frame_rate)

        # 4. Tick Rate (ttp:tickRate)
        ctx.tick_rate = opts.default_tick_rate
        tick = root.get_attr("tickRate")
        if tick:
            try:
                ctx.tick_rate = int(tick)
            except ValueError:
                self.logger.warning("[INGEST] Ignoring invalid tickRate '%s'", tick)
            if ctx.tick_rate <= 0:
                ctx.tick_rate = opts.default_tick_rate

        # 5. Whitespace & language
        ctx.preserve_space = root.get_attr("space") == "preserve"
        lang = root.get_attr("lang")
        if lang:
            # Handle cases like "en-US" -> just "en"
            ctx.language = lang.split('-')[0].lower()

        self.logger.debug("[INGEST] cellResolution %dx%d, frame rate %.3f, tick rate %d",
                          ctx.cell_columns, ctx.cell_rows, float(ctx.frame_rate), ctx.tick_rate)

    def _parse_head(self, head: MarkupNode, ctx: _DocumentContext):
        for styling in head.iter_children("styling"):
            for node in styling.children:
                if node.name == "initial":
                    ctx.initial_style = ctx.initial_style.merge_from(self._map(node, ctx))
                elif node.name == "style":
                    sid = node.get_attr("id")
                    if not sid:
                        self.logger.warning("[INGEST] Styles must have an ID; skipping <style>.")
                        continue
                    if sid in ctx.styles:
                        self.logger.warning("[INGEST] Duplicate style id '%s'; keeping the first.", sid)
                        continue
                    ctx.styles[sid] = StyleDefinition(
                        id=sid,
                        style_set=self._map(node, ctx),
                        referenced_ids=self._split_ids(node),
                    )

        for layout in head.iter_children("layout"):
            for node in layout.iter_children("region"):
                self._parse_region(node, ctx)

        # References can only be checked once every <style> is known
        for sid, definition in list(ctx.styles.items()):
            known = self._known_style_ids(definition.referenced_ids, ctx, f"style '{sid}'")
            if known != definition.referenced_ids:
                ctx.styles[sid] = StyleDefinition(id=sid, style_set=definition.style_set, referenced_ids=known)
        for rid, region in list(ctx.regions.items()):
            known = self._known_style_ids(region.referenced_ids, ctx, f"region '{rid}'")
            if known != region.referenced_ids:
                ctx.regions[rid] = Region(id=rid, style_set=region.style_set, referenced_ids=known)

    def _parse_region(self, node: MarkupNode, ctx: _DocumentContext):
        rid = node.get_attr("id")
        if not rid:
            self.logger.warning("[INGEST] Regions must have an ID; skipping <region>.")
            return
        if rid in ctx.regions:
            self.logger.warning("[INGEST] Duplicate region id '%s'; keeping the first.", rid)
            return

        # Nested <style> children style the region itself; inline attributes win over them
        style_set = EMPTY_STYLE
        for nested in node.iter_children("style"):
            style_set = style_set.merge_from(self._map(nested, ctx))
        style_set = style_set.merge_from(self._map(node, ctx))

        ctx.regions[rid] = Region(id=rid, style_set=style_set, referenced_ids=self._split_ids(node))

    # --- RECURSION LOGIC ---
    def _recurse_node(self, node: MarkupNode, ctx: _DocumentContext, scopes: Tuple[Scope, ...],
                      interval, region_id: Optional[str], preserve_space: bool):
        if node.name not in ("body", "div", "p"):
            # Text directly inside body/div is not presented; anything else is foreign markup
            return

        scope = Scope(kind=node.name, style_set=self._map(node, ctx), style_ids=self._style_ids(node, ctx))
        current_scopes = scopes + (scope,)
        current_interval = self._merge_interval(node, ctx, interval)
        current_region = node.get_attr("region") or region_id
        current_preserve = self._space_mode(node, preserve_space)

        if node.name == "p":
            self._create_cues(node, ctx, current_scopes, current_interval, current_region, current_preserve)
            return

        for child in node.children:
            if not child.is_text:
                self._recurse_node(child, ctx, current_scopes, current_interval, current_region, current_preserve)

    def _create_cues(self, p_node: MarkupNode, ctx: _DocumentContext, scopes: Tuple[Scope, ...],
                     interval, region_id: Optional[str], preserve_space: bool):
        if region_id is None:
            if ctx.implicit_region:
                region_id = DEFAULT_REGION_ID
            else:
                self.logger.warning("[INGEST] No region found above <p> (%s); skipping it.", self._describe(p_node))
                return
        elif region_id not in ctx.regions:
            self.logger.warning("[INGEST] <p> (%s) references unknown region '%s'; skipping it.",
                                self._describe(p_node), region_id)
            return

        leaves: List[_Leaf] = []
        self._collect_leaves(p_node, ctx, (), interval, preserve_space, leaves)
        leaves = self._drop_stray_blanks(leaves)

        # Group leaves by interval, in order of first appearance
        groups: Dict[Tuple[int, int], List[TextSpan]] = {}
        for leaf in leaves:
            begin, end = leaf.interval
            if begin is _INVALID or end is _INVALID:
                # Already reported when the attribute was read
                continue
            if begin is None or end is None:
                self.logger.warning("[INGEST] %s", MissingTiming(
                    f"No timing found for content of <p> ({self._describe(p_node)}); dropping it."))
                continue
            groups.setdefault((begin, end), []).append(
                TextSpan(text=leaf.text, scopes=leaf.scopes, line_break=leaf.line_break))

        for (begin, end), spans in groups.items():
            try:
                cue = Cue(
                    start_us=begin,
                    end_us=end,
                    region_id=region_id,
                    scopes=scopes,
                    cell_columns=ctx.cell_columns,
                    cell_rows=ctx.cell_rows,
                    spans=tuple(spans),
                )
            except InvalidTimestamp as e:
                self.logger.warning("[INGEST] Rejecting cue in <p> (%s): %s", self._describe(p_node), e)
                continue
            ctx.cues.append(cue)

    def _collect_leaves(self, node: MarkupNode, ctx: _DocumentContext, span_scopes: Tuple[Scope, ...],
                        interval, preserve_space: bool, leaves: List[_Leaf]):
        for child in node.children:
            if child.is_text:
                raw = child.text or ""
                if not raw:
                    continue
                if not preserve_space and not raw.strip(XML_SPACE):
                    leaves.append(_Leaf(text=" ", scopes=span_scopes, interval=interval, blank=True))
                    continue
                leaves.append(_Leaf(text=self._handle_whitespace(raw, preserve_space),
                                    scopes=span_scopes, interval=interval))

            elif child.name == "span":
                scope = Scope(kind="span", style_set=self._map(child, ctx), style_ids=self._style_ids(child, ctx))
                self._collect_leaves(child, ctx, span_scopes + (scope,),
                                     self._merge_interval(child, ctx, interval),
                                     self._space_mode(child, preserve_space), leaves)

            elif child.name == "br":
                br_interval = self._merge_interval(child, ctx, interval)
                # Whitespace right before a line break separates nothing
                while leaves and leaves[-1].blank:
                    leaves.pop()
                last = leaves[-1] if leaves else None
                if last is not None and not last.line_break and last.interval == br_interval:
                    last.line_break = True
                else:
                    leaves.append(_Leaf(text="", scopes=span_scopes, interval=br_interval, line_break=True))

    @staticmethod
    def _drop_stray_blanks(leaves: List[_Leaf]) -> List[_Leaf]:
        """
        A blank leaf survives only as a separator between two pieces of text
        shown at the same time. At the edges of the paragraph, next to a line
        break or next to text that already carries a space, it is dropped.
        """
        kept: List[_Leaf] = []
        for i, leaf in enumerate(leaves):
            if not leaf.blank:
                kept.append(leaf)
                continue
            prev = kept[-1] if kept else None
            nxt = next((other for other in leaves[i + 1:] if not other.blank), None)
            if prev is None or nxt is None or prev.blank or prev.line_break:
                continue
            if not nxt.text or prev.text.endswith(" ") or nxt.text.startswith(" "):
                continue
            if not (prev.interval == leaf.interval == nxt.interval):
                continue
            kept.append(leaf)
        return kept

    # --- UTILS ---
    def _map(self, node: MarkupNode, ctx: _DocumentContext) -> StyleSet:
        return map_attributes(node, ctx.options, self.logger)

    def _merge_interval(self, node: MarkupNode, ctx: _DocumentContext, inherited):
        """Own begin/end where present, the ancestor's otherwise."""
        begin, end = inherited
        for attr in ("begin", "end"):
            raw = node.get_attr(attr)
            if raw is None:
                continue
            try:
                value = parse_time(raw, ctx.options.dialect, ctx.frame_rate, ctx.tick_rate)
            except InvalidTimestamp as e:
                self.logger.warning("[INGEST] %s on <%s> (%s); its content will be skipped.",
                                    e, node.name, self._describe(node))
                value = _INVALID
            if attr == "begin":
                begin = value
            else:
                end = value
        return begin, end

    def _space_mode(self, node: MarkupNode, inherited: bool) -> bool:
        space = node.get_attr("space")
        if space == "preserve":
            return True
        if space == "default":
            return False
        return inherited

    def _handle_whitespace(self, text: str, preserve_space: bool) -> str:
        if preserve_space:
            return text
        # Replace linefeeds with spaces, then compress runs of spaces
        return SPACE_RUN_RE.sub(" ", text.replace("\r\n", " ").replace("\n", " "))

    def _split_ids(self, node: MarkupNode) -> Tuple[str, ...]:
        raw = node.get_attr("style")
        return tuple(raw.split()) if raw else ()

    def _style_ids(self, node: MarkupNode, ctx: _DocumentContext) -> Tuple[str, ...]:
        return self._known_style_ids(self._split_ids(node), ctx, f"<{node.name}> ({self._describe(node)})")

    def _known_style_ids(self, ids: Tuple[str, ...], ctx: _DocumentContext, owner: str) -> Tuple[str, ...]:
        known = []
        for sid in ids:
            if sid in ctx.styles:
                known.append(sid)
            else:
                self.logger.warning("[INGEST] %s references an unknown style (%s)", owner, sid)
        return tuple(known)

    def _describe(self, node: MarkupNode) -> str:
        return f"id={node.get_attr('id')}" if node.get_attr("id") else "no id"
