"""Shared test fixtures for the lyric_compiler test suite.

WHY: Most test modules need the same small song: three lyric lines with
word timings, a beat grid, and a direction that exercises sections,
the storyboard, word directives, letter sequencing and a semantic
bundle. Centralizing it here keeps every module testing the same data.

HOW: SAMPLE_PAYLOAD is the raw JSON-shaped dict (as the editor would
send it). Fixtures hand out a deep copy, the parsed ScenePayload, and a
compiled scene built with the deterministic character-width measurer.

RULES:
- Fixtures never touch the filesystem or environment (tests that need
  files use tmp_path)
- Layout always uses CharWidthMeasurer so results don't depend on fonts
- The sample song runs 0.0 → 6.0 seconds with a beat every 0.5s
"""

import copy
from typing import Any, Dict

import pytest

from lyric_compiler.config import CompilerSettings
from lyric_compiler.core.compiler import compile_scene
from lyric_compiler.core.layout import CharWidthMeasurer
from lyric_compiler.core.payload import parse_payload


# ---------------------------------------------------------------------------
# Sample song
# ---------------------------------------------------------------------------
#
# Expected grouping:
#   line 0 "I love you"            → group 0-0, 3 words, anchor "love"
#   line 1 "Hearts shatter tonight." → group 1-0, anchor "shatter" (7 letters)
#   line 2 "Rise above the storm"  → group 2-0, anchor "storm"
#
# Sections: [0, 0.5) drift with a Wide shot, [0.5, 1] glitch.

SAMPLE_PAYLOAD: Dict[str, Any] = {
    "lines": [
        {"text": "I love you", "start": 0.0, "end": 2.0},
        {"text": "Hearts shatter tonight.", "start": 2.0, "end": 4.0},
        {"text": "Rise above the storm", "start": 4.0, "end": 6.5},
    ],
    "words": [
        {"word": "I", "start": 0.0, "end": 0.1},
        {"word": "love", "start": 0.1, "end": 0.2},
        {"word": "you", "start": 0.2, "end": 0.3},
        {"word": "Hearts", "start": 2.0, "end": 2.4},
        {"word": "shatter", "start": 2.5, "end": 2.9},
        {"word": "tonight.", "start": 3.0, "end": 3.5},
        {"word": "Rise", "start": 4.0, "end": 4.5},
        {"word": "above", "start": 4.6, "end": 5.0},
        {"word": "the", "start": 5.1, "end": 5.3},
        {"word": "storm", "start": 5.4, "end": 6.0},
    ],
    "beat_grid": {
        "bpm": 120,
        "beats": [i * 0.5 for i in range(13)],
        "confidence": 0.9,
    },
    "cinematic_direction": {
        "emotionalArc": "surge",
        "sections": [
            {"startRatio": 0.0, "endRatio": 0.5, "motion": "drift", "shotType": "Wide"},
            {"startRatio": 0.5, "endRatio": 1.0, "motion": "glitch"},
        ],
        "storyboard": [
            {
                "lineIndex": 2,
                "entryStyle": "slams-in",
                "exitStyle": "burns-out",
                "shotType": "Close",
                "iconGlyph": "bolt",
            },
        ],
        "wordDirectives": [
            {"word": "shatter", "emphasisLevel": 4, "letterSequence": True, "exit": "scatter-letters"},
            {"word": "storm", "emphasisLevel": 5, "visualMetaphor": "shockwave"},
            {"word": "Rise", "kineticClass": "RISING", "colorOverride": "#00ff00"},
        ],
    },
}


@pytest.fixture
def sample_payload_data():
    """A fresh deep copy of the raw sample payload dict."""
    return copy.deepcopy(SAMPLE_PAYLOAD)


@pytest.fixture
def sample_payload(sample_payload_data):
    """The sample payload parsed into a ScenePayload."""
    return parse_payload(sample_payload_data)


@pytest.fixture
def measurer():
    return CharWidthMeasurer()


@pytest.fixture
def settings():
    """Default 960x540 canvas geometry."""
    return CompilerSettings()


@pytest.fixture
def sample_scene(sample_payload, measurer, settings):
    """The sample payload compiled with the character-width measurer."""
    return compile_scene(sample_payload, measurer=measurer, settings=settings)


@pytest.fixture
def sample_words(sample_scene):
    """Compiled word id → CompiledWord for the sample scene."""
    return {word.id: word for _, word in sample_scene.iter_words()}
