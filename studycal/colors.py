"""Achievement rate to colour band mapping, plus per-theme colour tokens.

Band thresholds are policy, so they live in named lookup tables. Each
table row is ``(lower, upper_exclusive, band)``; ``None`` as the upper
bound means unbounded. Tables must partition [0, inf) with no gaps.
"""

from __future__ import annotations

import math
from collections.abc import Callable
from typing import Any

from studycal.models import ColorToken
from studycal.timecalc import round_half_up

WHITE = "white"
YELLOW = "yellow"
GREEN = "green"
BROWN = "brown"
BLUE = "blue"
BLACK = "black"
PURPLE = "purple"

BANDS = (WHITE, YELLOW, GREEN, BROWN, BLUE, BLACK, PURPLE)

BandTable = tuple[tuple[int, int | None, str], ...]

CANONICAL_BANDS: BandTable = (
    (0, 50, WHITE),
    (50, 60, YELLOW),
    (60, 70, GREEN),
    (70, 80, BROWN),
    (80, 90, BLUE),
    (90, 100, BLACK),
    (100, 101, PURPLE),
    (101, 120, BLACK),
    (120, 130, PURPLE),
    (130, 140, GREEN),
    (140, 150, WHITE),
    (150, None, WHITE),
)

# Older threshold set: no blue band, 80-119 black around an exact-100 purple.
LEGACY_BANDS: BandTable = (
    (0, 50, WHITE),
    (50, 60, YELLOW),
    (60, 70, GREEN),
    (70, 80, BROWN),
    (80, 100, BLACK),
    (100, 101, PURPLE),
    (101, 120, BLACK),
    (120, 130, BROWN),
    (130, 140, GREEN),
    (140, None, WHITE),
)

BAND_TABLES: dict[str, BandTable] = {
    "canonical": CANONICAL_BANDS,
    "legacy": LEGACY_BANDS,
}


def get_band_table(name: str) -> BandTable:
    try:
        return BAND_TABLES[name]
    except KeyError:
        raise ValueError(f"Unknown band table: {name!r}") from None


def _normalize_rate(rate: Any) -> int:
    if isinstance(rate, bool) or not isinstance(rate, (int, float)):
        return 0
    if isinstance(rate, int):
        return max(0, rate)
    if not math.isfinite(rate) or rate < 0:
        return 0
    return round_half_up(rate)


def band_for_rate(rate: Any, table: BandTable = CANONICAL_BANDS) -> str:
    """Map an achievement rate to its colour band.

    Negative, non-finite or non-numeric rates count as 0; fractional rates
    are rounded like the rate formula does.
    """
    value = _normalize_rate(rate)
    for lower, upper, band in table:
        if value >= lower and (upper is None or value < upper):
            return band
    raise ValueError(f"Band table does not cover rate {value}")


# ── Themes ────────────────────────────────────────────────────

CLASSIC_PALETTE = {
    WHITE: "#ffffff",
    YELLOW: "#fef08a",
    GREEN: "#bbf7d0",
    BROWN: "#b45309",
    BLUE: "#bfdbfe",
    BLACK: "#111827",
    PURPLE: "#e9d5ff",
}

DARK_TEXT = "#111827"
LIGHT_TEXT = "#ffffff"

GREEN_LIGHTEST = "#f0fdf4"
GREEN_DARKEST = "#14532d"

GITHUB_EMPTY = "#ebedf0"
GITHUB_LOW = "#9be9a8"
GITHUB_HIGH = "#216e39"


def _hex_to_rgb(value: str) -> tuple[int, int, int]:
    value = value.lstrip("#")
    return int(value[0:2], 16), int(value[2:4], 16), int(value[4:6], 16)


def _mix(start: str, end: str, t: float) -> str:
    """Linear interpolation between two hex colours, t in [0, 1]."""
    t = min(1.0, max(0.0, t))
    a = _hex_to_rgb(start)
    b = _hex_to_rgb(end)
    return "#" + "".join(f"{round(x + (y - x) * t):02x}" for x, y in zip(a, b))


def _foreground_for(background: str) -> str:
    r, g, b = _hex_to_rgb(background)
    # Rec. 601 luma
    luma = 0.299 * r + 0.587 * g + 0.114 * b
    return DARK_TEXT if luma >= 140 else LIGHT_TEXT


def classic_theme(band: str, rate: int) -> ColorToken:
    background = CLASSIC_PALETTE.get(band, CLASSIC_PALETTE[WHITE])
    return ColorToken(band=band, theme="classic", background=background, foreground=_foreground_for(background))


def green_theme(band: str, rate: int) -> ColorToken:
    """Green intensity stepped by band order, white lightest to purple darkest."""
    level = BANDS.index(band) if band in BANDS else 0
    background = _mix(GREEN_LIGHTEST, GREEN_DARKEST, level / (len(BANDS) - 1))
    return ColorToken(band=band, theme="green", background=background, foreground=_foreground_for(background))


def github_theme(band: str, rate: int) -> ColorToken:
    """Contribution-graph style: interpolated by rate, saturating at 100%."""
    value = _normalize_rate(rate)
    if value == 0:
        background = GITHUB_EMPTY
    else:
        background = _mix(GITHUB_LOW, GITHUB_HIGH, min(value, 100) / 100)
    return ColorToken(band=band, theme="github", background=background, foreground=_foreground_for(background))


THEMES: dict[str, Callable[[str, int], ColorToken]] = {
    "classic": classic_theme,
    "green": green_theme,
    "github": github_theme,
}


def color_for(rate: Any, theme: str = "classic", table: BandTable = CANONICAL_BANDS) -> ColorToken:
    """Band plus visual token for a rate under the given theme."""
    render = THEMES.get(theme)
    if render is None:
        raise ValueError(f"Unknown colour theme: {theme!r}")
    return render(band_for_rate(rate, table), _normalize_rate(rate))
