"""
ttmlscene/errors.py

Exception taxonomy and caller-facing result codes.

Two severities:
- Document level (MalformedDocument, NoRenderableContent, NoScenesProduced):
  the whole conversion stops and nothing is handed downstream.
- Local (InvalidTimestamp, MissingTiming, AttributeConstraintViolation):
  raised by the parsing helpers, caught by the ingester at the cue/attribute
  boundary, logged as a warning. Parsing continues.
"""

from enum import Enum


class ResultCode(Enum):
    SUCCESS = "success"
    PARSE_FAILURE = "parse_failure"
    NO_SCENES_PRODUCED = "no_scenes_produced"


class TTMLSceneError(Exception):
    """Base class for everything raised by ttmlscene."""


# --- DOCUMENT LEVEL ---
class MalformedDocument(TTMLSceneError):
    """Unparseable bytes, or a missing / wrong root element."""


class NoRenderableContent(TTMLSceneError):
    """The document parsed, but no cue had a resolvable begin/end pair."""


class NoScenesProduced(TTMLSceneError):
    """Segmentation of the cue pool yielded zero scenes."""


# --- LOCAL ---
class InvalidTimestamp(TTMLSceneError, ValueError):
    """A time expression could not be parsed, or begin >= end."""


class MissingTiming(TTMLSceneError):
    """A content element has no begin/end on itself or any ancestor."""


class AttributeConstraintViolation(TTMLSceneError, ValueError):
    """A single styling attribute failed a domain constraint."""

    def __init__(self, attribute: str, value: str, reason: str):
        super().__init__(f"{attribute}={value!r}: {reason}")
        self.attribute = attribute
        self.value = value
        self.reason = reason


# --- HOSTING BOUNDS ---
class CueLimitExceeded(TTMLSceneError):
    """The cue pool is larger than the configured segmentation bound."""


class SegmentationCancelled(TTMLSceneError):
    """The cancel event was set while scenes were being built."""
