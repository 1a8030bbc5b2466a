"""
ttmlscene/attributes.py

Attribute Mapping & Unit Parsing.
Converts raw attribute strings (tts:color="#FF0000", tts:extent="80% 10%",
begin="00:00:01.500") into typed values of the data model.

Every helper raises a *local* error (InvalidTimestamp or
AttributeConstraintViolation). map_attributes() catches the attribute ones,
logs a warning and leaves that field unset so the cascade falls through.
"""

import logging
import re
from fractions import Fraction
from typing import Optional, Tuple

from PIL import ImageColor

from .config import Dialect, ParseOptions
from .errors import AttributeConstraintViolation, InvalidTimestamp
from .models import (
    Color, DisplayAlign, FontStyle, FontWeight, Length, LengthUnit, MultiRowAlign, Overflow,
    ShowBackground, StyleSet, TextAlign, TextDecoration, TextDirection, UnicodeBidi, WrapOption,
    WritingMode,
)

# HH:MM:SS(.fraction)
CLOCK_TIME_RE = re.compile(r'^(\d+):(\d+):(\d+)(?:\.(\d+))?$')
# HH:MM:SS:FF(.subframes)
FRAME_TIME_RE = re.compile(r'^(\d+):(\d+):(\d+):(\d+)(?:\.(\d+))?$')
# 1.5s, 200ms, 12f, 900000t
OFFSET_TIME_RE = re.compile(r'^(\d+(?:\.\d+)?)(h|ms|m|s|f|t)$')
# Regex for unit splitting (e.g. "10px" -> "10", "px")
UNIT_RE = re.compile(r'^([+-]?[0-9]*\.?[0-9]+)(px|%|c)$')

US_PER_SECOND = 1000000


# --- TIME ---
def parse_time(t_str: str, dialect: Dialect = Dialect.EBU_TT_D,
               frame_rate: Fraction = Fraction(30), tick_rate: int = 1) -> int:
    """
    Parses a TTML time expression into integer microseconds.
    EBU-TT-D only allows clock time; TTML1 and IMSC1 also accept
    frame-based clock time and offset time (h, m, s, ms, f, t).
    """
    if t_str is None:
        raise InvalidTimestamp("Missing time expression")
    t_str = t_str.strip()

    m = CLOCK_TIME_RE.match(t_str)
    if m:
        hours, minutes, seconds = int(m.group(1)), int(m.group(2)), int(m.group(3))
        _check_clock_bounds(t_str, minutes, seconds)
        # Fraction digits scale to microseconds; anything past 6 digits is truncated
        fraction_us = int((m.group(4) or "").ljust(6, "0")[:6])
        return (hours * 3600 + minutes * 60 + seconds) * US_PER_SECOND + fraction_us

    if dialect.allows_offset_time:
        m = FRAME_TIME_RE.match(t_str)
        if m:
            hours, minutes, seconds, frames = (int(g) for g in m.groups()[:4])
            _check_clock_bounds(t_str, minutes, seconds)
            if frames >= frame_rate:
                raise InvalidTimestamp(f"Frame count out of range for {float(frame_rate):.3f} fps: {t_str}")
            whole = (hours * 3600 + minutes * 60 + seconds) * US_PER_SECOND
            return whole + int(Fraction(frames) * US_PER_SECOND / frame_rate)

        m = OFFSET_TIME_RE.match(t_str)
        if m:
            value = Fraction(m.group(1))
            metric = m.group(2)
            if metric == "h":
                us = value * 3600 * US_PER_SECOND
            elif metric == "m":
                us = value * 60 * US_PER_SECOND
            elif metric == "s":
                us = value * US_PER_SECOND
            elif metric == "ms":
                us = value * 1000
            elif metric == "f":
                us = value * US_PER_SECOND / frame_rate
            else:
                us = value * US_PER_SECOND / tick_rate
            return int(us)

    raise InvalidTimestamp(f"Badly formatted time string: {t_str}")


def _check_clock_bounds(t_str: str, minutes: int, seconds: int):
    if minutes > 59 or seconds > 60:
        raise InvalidTimestamp(f"Invalid time string (minutes or seconds out-of-bounds): {t_str}")


# --- LENGTHS ---
def parse_length(name: str, token: str) -> Length:
    match = UNIT_RE.match(token.strip())
    if not match:
        raise AttributeConstraintViolation(name, token, "not a length (expected px, % or c)")
    return Length(float(match.group(1)), LengthUnit(match.group(2)))


def parse_length_pair(name: str, value: str) -> Tuple[Length, Length]:
    parts = value.split()
    if len(parts) != 2:
        raise AttributeConstraintViolation(name, value, "expected two lengths")
    return parse_length(name, parts[0]), parse_length(name, parts[1])


def parse_padding(value: str) -> Tuple[Length, Length, Length, Length]:
    """
    Expands 1-4 padding lengths to (before, end, after, start),
    following the CSS shorthand order TTML uses.
    """
    parts = [parse_length("padding", p) for p in value.split()]
    if len(parts) == 1:
        return parts[0], parts[0], parts[0], parts[0]
    if len(parts) == 2:
        return parts[0], parts[1], parts[0], parts[1]
    if len(parts) == 3:
        return parts[0], parts[1], parts[2], parts[1]
    if len(parts) == 4:
        return parts[0], parts[1], parts[2], parts[3]
    raise AttributeConstraintViolation("padding", value, "expected 1 to 4 lengths")


def parse_cell_resolution(value: Optional[str], default: Tuple[int, int]) -> Tuple[int, int]:
    if not value:
        return default
    parts = value.split()
    try:
        cols, rows = int(parts[0]), int(parts[1])
    except (IndexError, ValueError):
        raise AttributeConstraintViolation("cellResolution", value, "expected two integers")
    if cols <= 0 or rows <= 0:
        raise AttributeConstraintViolation("cellResolution", value, "must be positive")
    return cols, rows


def parse_root_extent(value: Optional[str]) -> Optional[Tuple[float, float]]:
    """tts:extent on <tt> defines the pixel size of the root container."""
    if not value:
        return None
    w, h = parse_length_pair("extent", value)
    if w.unit is not LengthUnit.PIXEL or h.unit is not LengthUnit.PIXEL:
        raise AttributeConstraintViolation("extent", value, "root extent must be in pixels")
    if w.value <= 0 or h.value <= 0:
        raise AttributeConstraintViolation("extent", value, "root extent must be positive")
    return w.value, h.value


# --- COLORS ---
def parse_color(name: str, value: str) -> Color:
    """
    Accepts '#RRGGBB', '#RRGGBBAA', 'rgb(...)', 'rgba(...)' and named colors.
    """
    v = value.strip()
    if v.lower() == "transparent":
        return Color(0, 0, 0, 0)
    try:
        r, g, b, a = ImageColor.getcolor(v, "RGBA")
    except ValueError:
        raise AttributeConstraintViolation(name, value, "invalid color string")
    return Color(r, g, b, a)


# --- ENUMERATIONS ---
WRITING_MODES = {
    "lrtb": WritingMode.LRTB,
    "lr": WritingMode.LRTB,
    "rltb": WritingMode.RLTB,
    "rl": WritingMode.RLTB,
    "tbrl": WritingMode.TBRL,
    "tb": WritingMode.TBRL,
    "tblr": WritingMode.TBLR,
}


def parse_enum(name: str, value: str, enum_cls):
    for member in enum_cls:
        if member.value == value:
            return member
    raise AttributeConstraintViolation(name, value, f"not a valid {enum_cls.__name__}")


def _parse_writing_mode(name, value):
    if value not in WRITING_MODES:
        raise AttributeConstraintViolation(name, value, "not a valid WritingMode")
    return WRITING_MODES[value]


def _parse_text_decoration(name, value):
    # Keep the underline flag; the other decoration tokens have no counterpart
    tokens = value.split()
    if "underline" in tokens:
        return TextDecoration.UNDERLINE
    if tokens and all(t in ("none", "noUnderline", "lineThrough", "noLineThrough", "overline", "noOverline")
                      for t in tokens):
        return TextDecoration.NONE
    raise AttributeConstraintViolation(name, value, "not a valid TextDecoration")


# --- STYLE SET MAPPING ---
def map_attributes(node, options: ParseOptions, logger: Optional[logging.Logger] = None) -> StyleSet:
    """
    Builds the StyleSet declared directly on 'node' (inline tts:* attributes).
    Invalid attributes are dropped with a warning.
    """
    logger = logger or logging.getLogger(__name__)
    values = {}

    def take(attr, field_name, parser):
        raw = node.get_attr(attr)
        if raw is None:
            return
        try:
            values[field_name] = parser(attr, raw.strip())
        except AttributeConstraintViolation as e:
            logger.warning("[INGEST] Dropping attribute on <%s>: %s", node.name, e)

    take("direction", "text_direction", lambda n, v: parse_enum(n, v, TextDirection))
    take("fontFamily", "font_family", lambda n, v: _parse_font_family(n, v, options))
    take("fontSize", "font_size", lambda n, v: parse_length(n, (v.split() or [""])[0]))
    take("lineHeight", "line_height", lambda n, v: _parse_line_height(n, v, options))
    take("textAlign", "text_align", lambda n, v: parse_enum(n, v, TextAlign))
    take("color", "color", parse_color)
    take("backgroundColor", "background_color", parse_color)
    take("fontStyle", "font_style", lambda n, v: parse_enum(n, v, FontStyle))
    take("fontWeight", "font_weight", lambda n, v: parse_enum(n, v, FontWeight))
    take("textDecoration", "text_decoration", _parse_text_decoration)
    take("unicodeBidi", "unicode_bidi", lambda n, v: parse_enum(n, v, UnicodeBidi))
    take("wrapOption", "wrap_option", lambda n, v: parse_enum(n, v, WrapOption))
    take("multiRowAlign", "multi_row_align", lambda n, v: parse_enum(n, v, MultiRowAlign))
    take("linePadding", "line_padding", parse_length)
    take("origin", "origin", parse_length_pair)
    take("extent", "extent", parse_length_pair)
    take("displayAlign", "display_align", lambda n, v: parse_enum(n, v, DisplayAlign))
    take("overflow", "overflow", lambda n, v: parse_enum(n, v, Overflow))
    take("padding", "padding", lambda n, v: parse_padding(v))
    take("writingMode", "writing_mode", _parse_writing_mode)
    take("showBackground", "show_background", lambda n, v: parse_enum(n, v, ShowBackground))

    return StyleSet(**values)


def _parse_font_family(name, value, options: ParseOptions) -> str:
    if not value:
        raise AttributeConstraintViolation(name, value, "empty font family")
    if len(value) > options.max_font_family_length:
        raise AttributeConstraintViolation(
            name, value[:32] + "...", f"font family name exceeds {options.max_font_family_length} characters")
    return value


def _parse_line_height(name, value, options: ParseOptions) -> Length:
    if value == "normal":
        return Length(options.normal_line_height * 100.0, LengthUnit.PERCENTAGE)
    return parse_length(name, value)
