"""
ttmlscene/models.py

The Unified Data Model.
Value types shared by every stage of the pipeline: attribute values, the
partial StyleSet used while cascading, the fully populated ResolvedStyle,
document entities (Region, StyleDefinition, Cue) and the compiled render tree.

Every type here is frozen. Stages build new values instead of editing old ones.
"""

from dataclasses import dataclass, field, fields, replace
from enum import Enum
from typing import Optional, Tuple

from .errors import InvalidTimestamp


# --- ATTRIBUTE VALUES ---
class LengthUnit(Enum):
    PIXEL = "px"
    PERCENTAGE = "%"
    CELL = "c"


@dataclass(frozen=True)
class Length:
    value: float
    unit: LengthUnit


@dataclass(frozen=True)
class Color:
    r: int
    g: int
    b: int
    a: int = 255

    @property
    def is_transparent(self) -> bool:
        return self.a == 0

    def to_hex(self) -> str:
        return f"#{self.r:02x}{self.g:02x}{self.b:02x}{self.a:02x}"


TRANSPARENT = Color(0, 0, 0, 0)
WHITE = Color(255, 255, 255, 255)


class TextDirection(Enum):
    LTR = "ltr"
    RTL = "rtl"


class TextAlign(Enum):
    START = "start"
    LEFT = "left"
    CENTER = "center"
    RIGHT = "right"
    END = "end"


class DisplayAlign(Enum):
    BEFORE = "before"
    CENTER = "center"
    AFTER = "after"


class WritingMode(Enum):
    LRTB = "lrtb"
    RLTB = "rltb"
    TBRL = "tbrl"
    TBLR = "tblr"


class FontStyle(Enum):
    NORMAL = "normal"
    ITALIC = "italic"


class FontWeight(Enum):
    NORMAL = "normal"
    BOLD = "bold"


class TextDecoration(Enum):
    NONE = "none"
    UNDERLINE = "underline"


class WrapOption(Enum):
    WRAP = "wrap"
    NO_WRAP = "noWrap"


class MultiRowAlign(Enum):
    AUTO = "auto"
    START = "start"
    CENTER = "center"
    END = "end"


class Overflow(Enum):
    HIDDEN = "hidden"
    VISIBLE = "visible"


class ShowBackground(Enum):
    ALWAYS = "always"
    WHEN_ACTIVE = "whenActive"


class UnicodeBidi(Enum):
    NORMAL = "normal"
    EMBED = "embed"
    OVERRIDE = "bidiOverride"


# --- STYLE MODEL ---
# Properties a child scope picks up from its parent when it does not set them.
# Everything else (backgrounds, layout, bidi) stays on the element that declares it.
INHERITABLE = frozenset({
    "text_direction",
    "font_family",
    "font_size",
    "line_height",
    "text_align",
    "color",
    "font_style",
    "font_weight",
    "text_decoration",
    "wrap_option",
    "multi_row_align",
    "line_padding",
})


@dataclass(frozen=True)
class StyleSet:
    """
    Represents a set of visual attributes as declared in the document.
    Attributes are Optional; 'None' means "inherit from enclosing scope".
    """
    text_direction: Optional[TextDirection] = None
    font_family: Optional[str] = None
    font_size: Optional[Length] = None
    line_height: Optional[Length] = None
    text_align: Optional[TextAlign] = None
    color: Optional[Color] = None
    background_color: Optional[Color] = None
    font_style: Optional[FontStyle] = None
    font_weight: Optional[FontWeight] = None
    text_decoration: Optional[TextDecoration] = None
    unicode_bidi: Optional[UnicodeBidi] = None
    wrap_option: Optional[WrapOption] = None
    multi_row_align: Optional[MultiRowAlign] = None
    line_padding: Optional[Length] = None

    # -- Region layout --
    origin: Optional[Tuple[Length, Length]] = None
    extent: Optional[Tuple[Length, Length]] = None
    display_align: Optional[DisplayAlign] = None
    overflow: Optional[Overflow] = None
    # before, end, after, start
    padding: Optional[Tuple[Length, Length, Length, Length]] = None
    writing_mode: Optional[WritingMode] = None
    show_background: Optional[ShowBackground] = None

    def merge_from(self, other: 'StyleSet') -> 'StyleSet':
        """
        Returns a NEW StyleSet that is a copy of 'self',
        overwritten by any non-None attributes found in 'other'.
        """
        changes = {f.name: getattr(other, f.name) for f in fields(other) if getattr(other, f.name) is not None}
        return replace(self, **changes) if changes else self

    def inherit_from(self, parent: 'StyleSet') -> 'StyleSet':
        """
        Returns a NEW StyleSet where inheritable attributes this set leaves
        unset are taken from 'parent'.

        Percentage font sizes compound: a child at 50% under a parent at 200%
        ends up at 100% of the parent's reference.
        """
        changes = {}
        for name in INHERITABLE:
            mine = getattr(self, name)
            theirs = getattr(parent, name)
            if theirs is None:
                continue
            if mine is None:
                changes[name] = theirs
            elif name == "font_size" and mine.unit is LengthUnit.PERCENTAGE:
                changes[name] = Length(theirs.value * mine.value / 100.0, theirs.unit)
        return replace(self, **changes) if changes else self

    def is_empty(self) -> bool:
        return all(getattr(self, f.name) is None for f in fields(self))


EMPTY_STYLE = StyleSet()


@dataclass(frozen=True)
class ResolvedStyle:
    """
    Fully resolved style for one renderable unit (region, block or element).
    Lengths are fractions of the root presentation area.
    The defaults are the platform fallback values.
    """
    text_direction: TextDirection = TextDirection.LTR
    font_family: str = "default"
    font_size: float = 1.0
    line_height: float = 1.25
    text_align: TextAlign = TextAlign.START
    color: Color = WHITE
    background_color: Color = TRANSPARENT
    font_style: FontStyle = FontStyle.NORMAL
    font_weight: FontWeight = FontWeight.NORMAL
    text_decoration: TextDecoration = TextDecoration.NONE
    unicode_bidi: UnicodeBidi = UnicodeBidi.NORMAL
    wrap_option: WrapOption = WrapOption.WRAP
    multi_row_align: MultiRowAlign = MultiRowAlign.AUTO
    line_padding: float = 0.0

    origin_x: float = 0.0
    origin_y: float = 0.0
    extent_w: float = 1.0
    extent_h: float = 1.0
    display_align: DisplayAlign = DisplayAlign.BEFORE
    padding_before: float = 0.0
    padding_end: float = 0.0
    padding_after: float = 0.0
    padding_start: float = 0.0
    writing_mode: WritingMode = WritingMode.LRTB
    show_background: ShowBackground = ShowBackground.ALWAYS
    overflow: Overflow = Overflow.HIDDEN


# --- DOCUMENT ENTITIES ---
@dataclass(frozen=True)
class StyleDefinition:
    """A named <style>; 'referenced_ids' lets one style extend others."""
    id: str
    style_set: StyleSet = EMPTY_STYLE
    referenced_ids: Tuple[str, ...] = ()


@dataclass(frozen=True)
class Region:
    """Defines a layout box."""
    id: str
    style_set: StyleSet = EMPTY_STYLE
    referenced_ids: Tuple[str, ...] = ()


@dataclass(frozen=True)
class Scope:
    """One level of the inheritance stack: body, div, p or span."""
    kind: str
    style_set: StyleSet = EMPTY_STYLE
    style_ids: Tuple[str, ...] = ()


@dataclass(frozen=True)
class TextSpan:
    """
    The smallest atomic unit of text.
    'scopes' holds the span levels between the paragraph and this text.
    'line_break' marks a <br/> right after the text.
    """
    text: str
    scopes: Tuple[Scope, ...] = ()
    line_break: bool = False


@dataclass(frozen=True, eq=False)
class Cue:
    """
    A paragraph's content for one [start_us, end_us) interval.
    Compared by identity: two cues with the same text are still two cues.
    """
    start_us: int
    end_us: int
    region_id: str
    scopes: Tuple[Scope, ...] = ()
    cell_columns: int = 32
    cell_rows: int = 15
    spans: Tuple[TextSpan, ...] = ()

    def __post_init__(self):
        if self.start_us >= self.end_us:
            raise InvalidTimestamp(f"Cue start ({self.start_us}us) must be before end ({self.end_us}us)")

    @property
    def duration_us(self) -> int:
        return self.end_us - self.start_us

    @property
    def paragraph_scope(self) -> Scope:
        return self.scopes[-1] if self.scopes else Scope(kind="p")

    @property
    def division_scopes(self) -> Tuple[Scope, ...]:
        return tuple(s for s in self.scopes if s.kind == "div")

    def contains(self, time_us: int) -> bool:
        return self.start_us <= time_us < self.end_us

    @property
    def text(self) -> str:
        return "".join(s.text + ("\n" if s.line_break else "") for s in self.spans)


@dataclass(frozen=True)
class Scene:
    """A maximal interval with a constant set of active cues. end_ns None = still open."""
    start_ns: int
    end_ns: Optional[int]
    cues: Tuple[Cue, ...]

    @property
    def is_open(self) -> bool:
        return self.end_ns is None

    @property
    def duration_ns(self) -> Optional[int]:
        if self.end_ns is None:
            return None
        return self.end_ns - self.start_ns


# --- RENDER TREE ---
@dataclass(frozen=True)
class Element:
    style: ResolvedStyle
    text_index: int


@dataclass(frozen=True)
class Block:
    style: ResolvedStyle
    elements: Tuple[Element, ...] = ()


@dataclass(frozen=True)
class RegionArea:
    region_id: str
    style: ResolvedStyle
    blocks: Tuple[Block, ...] = ()


@dataclass(frozen=True)
class SceneTree:
    """Compiled scene. 'text' is the scene-local buffer Element.text_index points into."""
    start_ns: int
    end_ns: Optional[int]
    regions: Tuple[RegionArea, ...] = ()
    text: Tuple[str, ...] = field(default_factory=tuple)

    def element_text(self, element: Element) -> str:
        return self.text[element.text_index]
