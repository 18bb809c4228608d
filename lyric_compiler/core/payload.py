"""Typed, lenient parsing of the scene payload and its direction object.

WHY: The payload combines data from three producers — the transcriber
(lines, timed words), the beat detector (beat grid), and the direction
generator (styles, sections, storyboard, word directives). The first two
have a fixed shape; the direction is generated text and routinely arrives
with missing fields, misspelled style names, or wrong types. The compiler
must never fail on a bad direction, but it must fail loudly when the
words themselves are unusable.

HOW: Two layers:
  1. jsonschema validates the top-level shape against
     schemas/scene_payload.schema.json (lines/words/beat grid types).
     A violation raises PayloadError.
  2. Pydantic models parse everything into frozen, typed objects. Every
     direction field goes through a "before" validator that turns bad
     values into None (enums via coerce_enum, numbers via _number_or_none,
     lists via _dict_items), so defaults are resolved later by name.

RULES:
- Wire names are camelCase inside the direction (emphasisLevel,
  visualMetaphor, ...) and snake_case at the top level (beat_grid,
  cinematic_direction, frame_state, auto_palettes) except songStart/songEnd
- Unknown enum strings → None, never an exception
- wordDirectives is accepted as a list or as a {word: directive} map
- songStart/songEnd default to the first word start / last word end
- All models are frozen; the parsed payload is safe to share
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Annotated, Any, Optional

import jsonschema
from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, ValidationError, model_validator

from lyric_compiler.core.styles import (
    STYLE_ALIASES,
    BeatResponse,
    BehaviorStyle,
    EmotionalArc,
    EntryStyle,
    ExitStyle,
    GhostDirection,
    KineticClass,
    MotionProfile,
    ShotType,
    TypographyPreset,
    VisualMetaphor,
    VisualMode,
    coerce_enum,
)

logger = logging.getLogger(__name__)

_SCHEMA_PATH = Path(__file__).resolve().parent.parent / "schemas" / "scene_payload.schema.json"

_CACHED_SCHEMA: Optional[dict] = None


class PayloadError(ValueError):
    """The payload's top-level shape is unusable (not a direction problem)."""


def _get_schema() -> dict:
    """Load and cache the payload JSON schema."""
    global _CACHED_SCHEMA
    if _CACHED_SCHEMA is None:
        with open(_SCHEMA_PATH, encoding="utf-8") as f:
            _CACHED_SCHEMA = json.load(f)
    return _CACHED_SCHEMA


# ---------------------------------------------------------------------------
# Lenient field coercion
# ---------------------------------------------------------------------------


def _number_or_none(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value.strip())
        except ValueError:
            return None
    return None


def _int_or_none(value: Any) -> Optional[int]:
    number = _number_or_none(value)
    return None if number is None else int(number)


def _str_or_none(value: Any) -> Optional[str]:
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


def _bool_or_false(value: Any) -> bool:
    return value is True


def _dict_or_none(value: Any) -> Optional[dict]:
    return value if isinstance(value, dict) else None


def _dict_items(value: Any) -> list:
    if isinstance(value, (list, tuple)):
        return [item for item in value if isinstance(item, dict)]
    return []


def _numbers(value: Any) -> list:
    if not isinstance(value, (list, tuple)):
        return []
    return [n for n in (_number_or_none(v) for v in value) if n is not None]


def _strings(value: Any) -> list:
    if not isinstance(value, (list, tuple)):
        return []
    return [v for v in value if isinstance(v, str)]


def _palettes(value: Any) -> list:
    if not isinstance(value, (list, tuple)):
        return []
    return [_strings(p) for p in value if _strings(p)]


def _emphasis(value: Any) -> int:
    number = _number_or_none(value)
    if number is None:
        return 1
    return max(1, min(5, int(round(number))))


def _lenient(enum_cls: Any) -> BeforeValidator:
    return BeforeValidator(lambda v: coerce_enum(enum_cls, v, STYLE_ALIASES))


def _word_directive_items(value: Any) -> list:
    """Accept both the array form and the legacy {word: directive} map form."""
    if isinstance(value, dict):
        items = []
        for key, directive in value.items():
            if not isinstance(directive, dict):
                continue
            merged = dict(directive)
            merged.setdefault("word", key)
            items.append(merged)
        return items
    return _dict_items(value)


def _manifest_word_directives(value: Any) -> dict:
    """Normalize ``{"line-group": [..] | {"0": ..}}`` to ``{"line-group": {0: ..}}``."""
    if not isinstance(value, dict):
        return {}
    result: dict = {}
    for key, per_word in value.items():
        if isinstance(per_word, (list, tuple)):
            indexed = {i: d for i, d in enumerate(per_word) if isinstance(d, dict)}
        elif isinstance(per_word, dict):
            indexed = {}
            for raw_index, d in per_word.items():
                index = _int_or_none(raw_index)
                if index is not None and isinstance(d, dict):
                    indexed[index] = d
        else:
            continue
        result[str(key)] = indexed
    return result


OptFloat = Annotated[Optional[float], BeforeValidator(_number_or_none)]
OptInt = Annotated[Optional[int], BeforeValidator(_int_or_none)]
OptStr = Annotated[Optional[str], BeforeValidator(_str_or_none)]
Flag = Annotated[bool, BeforeValidator(_bool_or_false)]

OptEntry = Annotated[Optional[EntryStyle], _lenient(EntryStyle)]
OptExit = Annotated[Optional[ExitStyle], _lenient(ExitStyle)]
OptBehavior = Annotated[Optional[BehaviorStyle], _lenient(BehaviorStyle)]
OptMetaphor = Annotated[Optional[VisualMetaphor], _lenient(VisualMetaphor)]
OptKinetic = Annotated[Optional[KineticClass], _lenient(KineticClass)]
OptMotion = Annotated[Optional[MotionProfile], _lenient(MotionProfile)]
OptTypography = Annotated[Optional[TypographyPreset], _lenient(TypographyPreset)]
OptShot = Annotated[Optional[ShotType], _lenient(ShotType)]
OptArc = Annotated[Optional[EmotionalArc], _lenient(EmotionalArc)]
OptBeatResponse = Annotated[Optional[BeatResponse], _lenient(BeatResponse)]
OptVisualMode = Annotated[Optional[VisualMode], _lenient(VisualMode)]
OptGhostDirection = Annotated[Optional[GhostDirection], _lenient(GhostDirection)]


class _PayloadModel(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True, populate_by_name=True)


# ---------------------------------------------------------------------------
# Transcript and beat grid
# ---------------------------------------------------------------------------


class LyricLine(_PayloadModel):
    """One lyric line with its time span. Missing bounds stay None."""

    text: str = ""
    start: OptFloat = None
    end: OptFloat = None
    tag: OptStr = None


class TimedWord(_PayloadModel):
    """One transcribed word. Shape is enforced by the JSON schema."""

    word: str
    start: float
    end: float


class BeatGrid(_PayloadModel):
    bpm: OptFloat = None
    beats: Annotated[tuple[float, ...], BeforeValidator(_numbers)] = ()
    confidence: OptFloat = None


# ---------------------------------------------------------------------------
# Direction
# ---------------------------------------------------------------------------


class WordDirective(_PayloadModel):
    """Externally supplied semantic tag for one word (read-only).

    RULES:
    - emphasis_level is clamped to 1–5; anything unparsable becomes 1
    - entry/behavior/exit are explicit per-word style overrides
    - visual_metaphor selects a semantic effect bundle
    - letter_sequence explodes the word into per-letter compiled words
    """

    word: str = ""
    emphasis_level: Annotated[int, BeforeValidator(_emphasis)] = Field(1, alias="emphasisLevel")
    kinetic_class: OptKinetic = Field(None, alias="kineticClass")
    entry: OptEntry = None
    behavior: OptBehavior = None
    exit: OptExit = None
    visual_metaphor: OptMetaphor = Field(None, alias="visualMetaphor")
    ghost_trail: Flag = Field(False, alias="ghostTrail")
    ghost_count: OptInt = Field(None, alias="ghostCount")
    ghost_spacing: OptFloat = Field(None, alias="ghostSpacing")
    ghost_direction: OptGhostDirection = Field(None, alias="ghostDirection")
    letter_sequence: Flag = Field(False, alias="letterSequence")
    trail: OptStr = None
    color_override: OptStr = Field(None, alias="colorOverride")


class Section(_PayloadModel):
    """A timeline section (new format) or chapter (legacy format).

    Both formats carry the same fields the compiler reads, so one model
    serves both lists.
    """

    section_index: OptInt = Field(None, alias="sectionIndex")
    description: OptStr = None
    mood: OptStr = None
    motion: OptMotion = None
    texture: OptStr = None
    typography: OptTypography = None
    atmosphere: OptStr = None
    shot_type: OptShot = Field(None, alias="shotType")
    start_sec: OptFloat = Field(None, alias="startSec")
    end_sec: OptFloat = Field(None, alias="endSec")
    start_ratio: OptFloat = Field(None, alias="startRatio")
    end_ratio: OptFloat = Field(None, alias="endRatio")
    emotional_intensity: OptFloat = Field(None, alias="emotionalIntensity")


class StoryboardEntry(_PayloadModel):
    line_index: OptInt = Field(None, alias="lineIndex")
    entry_style: OptStr = Field(None, alias="entryStyle")
    exit_style: OptStr = Field(None, alias="exitStyle")
    hero_word: OptStr = Field(None, alias="heroWord")
    shot_type: OptShot = Field(None, alias="shotType")
    icon_glyph: OptStr = Field(None, alias="iconGlyph")
    icon_style: OptStr = Field(None, alias="iconStyle")
    icon_position: OptStr = Field(None, alias="iconPosition")
    icon_scale: OptFloat = Field(None, alias="iconScale")


class PhysicsProfile(_PayloadModel):
    heat: OptFloat = None
    beat_response: OptBeatResponse = Field(None, alias="beatResponse")
    weight: OptStr = None
    chaos: OptStr = None


class VisualWorld(_PayloadModel):
    physics_profile: Annotated[Optional[PhysicsProfile], BeforeValidator(_dict_or_none)] = Field(
        None, alias="physicsProfile"
    )
    palette: Annotated[tuple[str, ...], BeforeValidator(_strings)] = ()


class Direction(_PayloadModel):
    """The high-level direction for the whole song.

    WHY: Every field here is optional. The compiler resolves each missing
    or unrecognized value to a named default, so this model only records
    what was actually usable.
    """

    motion: OptMotion = None
    typography: OptTypography = None
    texture: OptStr = None
    atmosphere: OptStr = None
    palette: OptStr = None
    emotional_arc: OptArc = Field(None, alias="emotionalArc")
    scene_tone: OptStr = Field(None, alias="sceneTone")
    sections: Annotated[tuple[Section, ...], BeforeValidator(_dict_items)] = ()
    chapters: Annotated[tuple[Section, ...], BeforeValidator(_dict_items)] = ()
    storyboard: Annotated[tuple[StoryboardEntry, ...], BeforeValidator(_dict_items)] = ()
    word_directives: Annotated[tuple[WordDirective, ...], BeforeValidator(_word_directive_items)] = Field(
        (), alias="wordDirectives"
    )
    visual_world: Annotated[Optional[VisualWorld], BeforeValidator(_dict_or_none)] = Field(
        None, alias="visualWorld"
    )

    @property
    def physics_profile(self) -> Optional[PhysicsProfile]:
        return self.visual_world.physics_profile if self.visual_world else None


class ManifestWordDirective(_PayloadModel):
    entry_style: OptEntry = Field(None, alias="entryStyle")
    behavior: OptBehavior = None
    exit_style: OptExit = Field(None, alias="exitStyle")


class FrameStateHints(_PayloadModel):
    """Scene-manifest overrides produced alongside the direction.

    RULES:
    - word_directives is keyed "lineIndex-groupIndex", then word position
    """

    visual_mode: OptVisualMode = Field(None, alias="visualMode")
    stagger: OptFloat = None
    word_directives: Annotated[
        dict[str, dict[int, ManifestWordDirective]], BeforeValidator(_manifest_word_directives)
    ] = Field(default_factory=dict, alias="wordDirectives")


# ---------------------------------------------------------------------------
# Whole payload
# ---------------------------------------------------------------------------


class ScenePayload(_PayloadModel):
    """Everything one compile pass needs.

    RULES:
    - song_start/song_end are filled from the words (then lines) when absent
    - palette is the single global palette; auto_palettes are per-section
    """

    lines: Annotated[tuple[LyricLine, ...], BeforeValidator(_dict_items)] = ()
    words: Annotated[tuple[TimedWord, ...], BeforeValidator(_dict_items)] = ()
    bpm: OptFloat = None
    beat_grid: Annotated[Optional[BeatGrid], BeforeValidator(_dict_or_none)] = None
    direction: Annotated[Optional[Direction], BeforeValidator(_dict_or_none)] = Field(
        None, alias="cinematic_direction"
    )
    frame_state: Annotated[Optional[FrameStateHints], BeforeValidator(_dict_or_none)] = None
    palette: Annotated[tuple[str, ...], BeforeValidator(_strings)] = ()
    auto_palettes: Annotated[tuple[tuple[str, ...], ...], BeforeValidator(_palettes)] = ()
    song_start: float = Field(0.0, alias="songStart")
    song_end: float = Field(0.0, alias="songEnd")

    @model_validator(mode="before")
    @classmethod
    def _fill_song_bounds(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        data = dict(data)
        words = [w for w in (data.get("words") or []) if isinstance(w, dict)]
        lines = [ln for ln in (data.get("lines") or []) if isinstance(ln, dict)]
        start = _number_or_none(data.get("songStart", data.get("song_start")))
        end = _number_or_none(data.get("songEnd", data.get("song_end")))
        if start is None:
            starts = [_number_or_none(w.get("start")) for w in words] or [
                _number_or_none(ln.get("start")) for ln in lines
            ]
            starts = [s for s in starts if s is not None]
            start = min(starts) if starts else 0.0
        if end is None:
            ends = [_number_or_none(w.get("end")) for w in words] or [
                _number_or_none(ln.get("end")) for ln in lines
            ]
            ends = [e for e in ends if e is not None]
            end = max(ends) if ends else start
        data.pop("song_start", None)
        data.pop("song_end", None)
        data["songStart"] = start
        data["songEnd"] = end
        return data


def parse_payload(data: Any) -> ScenePayload:
    """Validate the payload shape and parse it into a ScenePayload.

    WHY: This is the single entry point from raw JSON to the typed payload.
    Callers (CLI, session, tests) never construct models by hand.

    HOW: jsonschema.validate() against the bundled schema, then
    ScenePayload.model_validate(). Schema and model errors are both
    re-raised as PayloadError so callers handle one exception type.

    Args:
        data: Parsed JSON (a dict).

    Returns:
        Frozen ScenePayload.

    Raises:
        PayloadError: If the top-level shape is invalid.
    """
    if not isinstance(data, dict):
        raise PayloadError("Scene payload must be a JSON object, got {}.".format(type(data).__name__))
    try:
        jsonschema.validate(instance=data, schema=_get_schema())
    except jsonschema.ValidationError as e:
        location = "/".join(str(p) for p in e.absolute_path) or "<root>"
        raise PayloadError("Invalid scene payload at {}: {}".format(location, e.message)) from e
    try:
        payload = ScenePayload.model_validate(data)
    except ValidationError as e:
        raise PayloadError("Invalid scene payload: {}".format(e)) from e
    logger.debug(
        "Parsed payload: %d lines, %d words, direction=%s",
        len(payload.lines), len(payload.words), payload.direction is not None,
    )
    return payload


def load_payload(path: str | Path) -> ScenePayload:
    """Read a payload JSON file from disk and parse it."""
    try:
        data = json.loads(Path(path).read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise PayloadError("{} is not valid JSON: {}".format(path, e)) from e
    return parse_payload(data)
