"""
ttmlscene/config.py

Parse options and dialect selection.
Defaults mirror the values the EBU-TT-D / TTML standards prescribe when a document
is silent (cell resolution 32x15, 'normal' line height 125%).
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class Dialect(Enum):
    TTML1 = "ttml"
    EBU_TT_D = "ebu-tt-d"
    IMSC1 = "imsc1"

    @property
    def allows_offset_time(self) -> bool:
        # EBU-TT-D restricts timing to clock time "HH:MM:SS.fraction"
        return self is not Dialect.EBU_TT_D


DIALECT_ALIASES = {
    "ttml": Dialect.TTML1,
    "ttml1": Dialect.TTML1,
    "dfxp": Dialect.TTML1,
    "ebu": Dialect.EBU_TT_D,
    "ebu-tt-d": Dialect.EBU_TT_D,
    "ebuttd": Dialect.EBU_TT_D,
    "imsc": Dialect.IMSC1,
    "imsc1": Dialect.IMSC1,
}


def dialect_from_name(name: str) -> Dialect:
    key = name.strip().lower()
    if key not in DIALECT_ALIASES:
        raise ValueError(f"Unknown dialect '{name}'. Choose from: {', '.join(sorted(DIALECT_ALIASES))}")
    return DIALECT_ALIASES[key]


@dataclass(frozen=True)
class ParseOptions:
    """Knobs for one conversion. Instances are immutable and may be shared between threads."""
    dialect: Dialect = Dialect.EBU_TT_D

    # ttp:cellResolution fallback
    default_cell_columns: int = 32
    default_cell_rows: int = 15

    # tts:fontFamily values longer than this are dropped
    max_font_family_length: int = 128

    # lineHeight="normal"
    normal_line_height: float = 1.25

    # ttp:frameRate / ttp:tickRate fallbacks (TTML1 defaults)
    default_frame_rate: int = 30
    default_tick_rate: int = 1

    # Segmentation is quadratic in cue count; None disables the bound
    max_cues: Optional[int] = None
