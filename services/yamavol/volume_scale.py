"""
Volume unit conversions for Yamaha amplifiers.

The amplifier speaks in raw steps (0-161).  Each step is 0.5 dB, so raw 0 is
-80.5 dB and raw 161 is 0.0 dB.  Percent is a display scale over the same
range.

Every conversion that lands on an integer rounds half-up, so the three
scales agree with each other:
  - from_db(to_db(raw)) == raw for every raw value
  - from_percent(to_percent(raw)) is within one step of raw

Out-of-range input, infinities included, clamps to the range ends.  NaN has
no sensible volume and raises ValueError.
"""

import math

RAW_MIN = 0
RAW_MAX = 161
DB_STEP = 0.5
DB_MIN = -80.5
DB_MAX = DB_MIN + RAW_MAX * DB_STEP


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def clamp_raw(raw: float) -> int:
    """Clamp a raw volume to the amplifier's range, rounding half-up."""
    if isinstance(raw, float) and math.isnan(raw):
        raise ValueError("volume is NaN")
    return _round_half_up(max(RAW_MIN, min(RAW_MAX, raw)))


def to_db(raw: int) -> float:
    """Raw steps -> dB.  Callers clamp first for meaningful results."""
    return raw * DB_STEP + DB_MIN


def to_percent(raw: int) -> int:
    return _round_half_up(raw * 100 / RAW_MAX)


def from_db(db: float) -> int:
    return clamp_raw((db - DB_MIN) / DB_STEP)


def from_percent(percent: float) -> int:
    return clamp_raw(percent * RAW_MAX / 100)


def format_db(raw: int) -> str:
    """dB as shown in the dB entry field, e.g. ``-30.5``."""
    return "%.1f" % to_db(raw)


def format_display(raw: int) -> str:
    """Caption under the slider, e.g. ``-30.5 dB (62%)``."""
    return "%.1f dB (%d%%)" % (to_db(raw), to_percent(raw))
