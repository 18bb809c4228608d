"""Configuration constants, canvas settings, and .env loading.

WHY: Centralizes the values a deployment may want to change (canvas size,
export frame rate, font file) so they are easy to find and override.
Style tables (curves, semantic bundles, typography presets) are NOT here —
they live beside the code that owns them so each table stays complete for
its enum.

HOW: python-dotenv loads the .env file on import. Constants are defined as
module-level values read from the environment with defaults. The
CompilerSettings dataclass bundles the geometry a compile pass needs so
concurrent compiles with different canvases never share state.

RULES:
- Canvas defaults to 960x540 layout units
- Layout padding is 80 units on every edge; collision margin is 40
- FALLBACK_PALETTE is used when the payload supplies no palette at all
- All defaults can be overridden via environment variables
"""

from __future__ import annotations

import os
from dataclasses import dataclass

from dotenv import load_dotenv

# Load .env from the project root (where the script is run from)
load_dotenv()


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        raise ValueError(
            "Environment variable {} must be a number, got {!r}.".format(name, raw)
        )


# ---------------------------------------------------------------------------
# Canvas geometry
# ---------------------------------------------------------------------------

CANVAS_WIDTH = _env_float("LYRIC_CANVAS_WIDTH", 960.0)
CANVAS_HEIGHT = _env_float("LYRIC_CANVAS_HEIGHT", 540.0)

LAYOUT_PADDING = 80.0
"""Minimum distance between any word center and the canvas edge."""

COLLISION_PADDING = 24.0
"""Extra room added around an anchor word's box before overlap testing."""

COLLISION_MARGIN = 40.0
"""Edge margin applied to a collision box while it is being pushed."""

COLLISION_MAX_PASSES = 6

# ---------------------------------------------------------------------------
# Export / rendering defaults
# ---------------------------------------------------------------------------

DEFAULT_EXPORT_FPS = int(_env_float("LYRIC_EXPORT_FPS", 30))
DEFAULT_FONT_PATH = os.getenv("LYRIC_FONT_PATH", "").strip() or None

FALLBACK_PALETTE: tuple[str, str, str] = ("#0a0a0f", "#a855f7", "#ffffff")
"""Background, accent, text."""

DEFAULT_TEXT_COLOR = "#ffffff"


@dataclass(frozen=True)
class CompilerSettings:
    """Canvas geometry for one compile pass.

    WHY: Layout, collision resolution, and final clamping all need the same
    canvas numbers. Passing one frozen object keeps them consistent and lets
    two compiles with different canvases run side by side.

    RULES:
    - width/height are in layout units (the same units the measurer returns)
    - padding bounds every compiled word position
    """

    canvas_width: float = CANVAS_WIDTH
    canvas_height: float = CANVAS_HEIGHT
    padding: float = LAYOUT_PADDING
    collision_padding: float = COLLISION_PADDING
    collision_margin: float = COLLISION_MARGIN
    collision_max_passes: int = COLLISION_MAX_PASSES
