"""Direction resolution: motion profile, visual mode, typography, word styles.

WHY: The direction object names high-level choices ("weighted" motion,
"storm" texture, "slams-in" for line 4). Before words can be compiled,
those choices have to become concrete defaults, and every word needs an
entry/behavior/exit triple even when the direction says nothing about it.

HOW: Lookup tables keyed by MotionProfile give each profile its style
pool and timing. assign_word_animations() walks a fixed precedence list
and falls back to a deterministic index into the profile's pools, so a
payload with no directives still compiles to the same styles every time.

RULES:
- Motion: direction motion, else heat > 0.75 → weighted,
  heat < 0.3 → drift, else fluid
- Visual mode: frame-state mode, else explosive for weighted/glitch
  motion or storm/fire texture, intimate for drift motion or
  petals/snow texture, else cinematic
- Typography: direction preset, else clean-modern
- Word style precedence (per field): explicit directive field >
  semantic bundle > frame-state word directive (when it has an entry)
  > IMPACT kinetic class > storyboard line style > profile defaults
- Default pool index: (line×7 + word×3) mod 4
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Sequence

from lyric_compiler.core.ir import WordMetaEntry
from lyric_compiler.core.payload import (
    Direction,
    FrameStateHints,
    ManifestWordDirective,
    ScenePayload,
    StoryboardEntry,
)
from lyric_compiler.core.semantics import SemanticEffect
from lyric_compiler.core.styles import (
    BehaviorStyle,
    EntryStyle,
    ExitStyle,
    KineticClass,
    MotionProfile,
    TypographyPreset,
    VisualMode,
    require_complete,
)

DEFAULT_STAGGER = 0.05
DEFAULT_HEAT = 0.5
HOT_THRESHOLD = 0.75
COLD_THRESHOLD = 0.3
DEFAULT_TYPOGRAPHY = TypographyPreset.CLEAN_MODERN

EXPLOSIVE_TEXTURES = frozenset({"storm", "fire"})
INTIMATE_TEXTURES = frozenset({"petals", "snow"})


@dataclass(frozen=True)
class MotionDefaults:
    entries: tuple[EntryStyle, ...]
    behaviors: tuple[BehaviorStyle, ...]
    exits: tuple[ExitStyle, ...]
    entry_duration: float
    exit_duration: float
    behavior_intensity: float


def _defaults(entries, behaviors, exits, entry_duration, exit_duration, intensity) -> MotionDefaults:
    return MotionDefaults(
        entries=tuple(EntryStyle(e) for e in entries),
        behaviors=tuple(BehaviorStyle(b) for b in behaviors),
        exits=tuple(ExitStyle(x) for x in exits),
        entry_duration=entry_duration,
        exit_duration=exit_duration,
        behavior_intensity=intensity,
    )


MOTION_DEFAULTS: dict[MotionProfile, MotionDefaults] = {
    MotionProfile.WEIGHTED: _defaults(
        ("slam-down", "drop", "plant", "stomp"),
        ("pulse", "vibrate", "pulse", "grow"),
        ("shatter", "snap-out", "burn-out"),
        0.1, 0.12, 1.2,
    ),
    MotionProfile.FLUID: _defaults(
        ("rise", "materialize", "breathe-in", "drift-in"),
        ("float", "grow", "float", "lean"),
        ("dissolve", "drift-up", "linger"),
        0.35, 0.4, 0.6,
    ),
    MotionProfile.ELASTIC: _defaults(
        ("explode-in", "punch-in", "breathe-in"),
        ("pulse", "orbit", "pulse", "float"),
        ("punch-out", "snap-out"),
        0.15, 0.1, 1.0,
    ),
    MotionProfile.DRIFT: _defaults(
        ("whisper", "surface", "drift-in", "bloom"),
        ("float", "flicker", "float", "grow"),
        ("evaporate", "linger", "sink"),
        0.5, 0.6, 0.4,
    ),
    MotionProfile.GLITCH: _defaults(
        ("snap-in", "cut-in", "shatter-in"),
        ("vibrate", "flicker", "vibrate", "orbit"),
        ("cut-out", "snap-out", "burn-out"),
        0.05, 0.06, 1.4,
    ),
}

LINGER_BY_PROFILE: dict[MotionProfile, float] = {
    MotionProfile.WEIGHTED: 0.15,
    MotionProfile.FLUID: 0.55,
    MotionProfile.ELASTIC: 0.2,
    MotionProfile.DRIFT: 0.8,
    MotionProfile.GLITCH: 0.05,
}

require_complete(MOTION_DEFAULTS, MotionProfile, "MOTION_DEFAULTS")
require_complete(LINGER_BY_PROFILE, MotionProfile, "LINGER_BY_PROFILE")

# Storyboard line styles. "fades" maps to the profile's second pool entry.
STORYBOARD_ENTRY_STYLES: dict[str, EntryStyle] = {
    "rises": EntryStyle.RISE,
    "slams-in": EntryStyle.SLAM_DOWN,
    "fractures-in": EntryStyle.SHATTER_IN,
    "materializes": EntryStyle.MATERIALIZE,
    "hiding": EntryStyle.WHISPER,
    "cuts": EntryStyle.SNAP_IN,
}
STORYBOARD_EXIT_STYLES: dict[str, ExitStyle] = {
    "dissolves-upward": ExitStyle.DRIFT_UP,
    "burns-out": ExitStyle.BURN_OUT,
    "shatters": ExitStyle.SHATTER,
    "lingers": ExitStyle.LINGER,
}
STORYBOARD_FADES = "fades"


@dataclass(frozen=True)
class WordAnimation:
    entry: EntryStyle
    behavior: BehaviorStyle
    exit: ExitStyle


# ---------------------------------------------------------------------------
# Scene-level resolution
# ---------------------------------------------------------------------------


def resolve_motion_profile(direction: Optional[Direction]) -> MotionProfile:
    if direction is not None and direction.motion is not None:
        return direction.motion
    profile = direction.physics_profile if direction is not None else None
    heat = profile.heat if profile is not None and profile.heat is not None else DEFAULT_HEAT
    if heat > HOT_THRESHOLD:
        return MotionProfile.WEIGHTED
    if heat < COLD_THRESHOLD:
        return MotionProfile.DRIFT
    return MotionProfile.FLUID


def resolve_visual_mode(payload: ScenePayload) -> VisualMode:
    if payload.frame_state is not None and payload.frame_state.visual_mode is not None:
        return payload.frame_state.visual_mode
    direction = payload.direction
    motion = direction.motion if direction else None
    texture = (direction.texture or "").lower() if direction else ""
    if motion in (MotionProfile.WEIGHTED, MotionProfile.GLITCH) or texture in EXPLOSIVE_TEXTURES:
        return VisualMode.EXPLOSIVE
    if motion is MotionProfile.DRIFT or texture in INTIMATE_TEXTURES:
        return VisualMode.INTIMATE
    return VisualMode.CINEMATIC


def resolve_typography(direction: Optional[Direction]) -> TypographyPreset:
    if direction is not None and direction.typography is not None:
        return direction.typography
    return DEFAULT_TYPOGRAPHY


def resolve_stagger(frame_state: Optional[FrameStateHints]) -> float:
    if frame_state is not None and frame_state.stagger is not None:
        return frame_state.stagger
    return DEFAULT_STAGGER


def index_storyboard(storyboard: Sequence[StoryboardEntry]) -> dict[int, StoryboardEntry]:
    """Map line index → storyboard entry.

    Entries carrying lineIndex are keyed by it; the others by their
    position in the list. The first entry for a line wins.
    """
    indexed: dict[int, StoryboardEntry] = {}
    for position, entry in enumerate(storyboard):
        key = entry.line_index if entry.line_index is not None else position
        indexed.setdefault(key, entry)
    return indexed


# ---------------------------------------------------------------------------
# Per-word resolution
# ---------------------------------------------------------------------------


def variation_seed(line_index: int, word_index: int) -> int:
    return (line_index * 7 + word_index * 3) % 4


def _pick(pool: Sequence, index: int):
    return pool[index % len(pool)]


def _storyboard_styles(
    story: Optional[StoryboardEntry],
    defaults: MotionDefaults,
    seed: int,
) -> WordAnimation:
    entry_name = story.entry_style.lower() if story and story.entry_style else None
    exit_name = story.exit_style.lower() if story and story.exit_style else None

    if entry_name == STORYBOARD_FADES:
        entry = _pick(defaults.entries, 1)
    else:
        entry = STORYBOARD_ENTRY_STYLES.get(entry_name or "") or _pick(defaults.entries, seed)

    if exit_name == STORYBOARD_FADES:
        exit_style = _pick(defaults.exits, 1)
    else:
        exit_style = STORYBOARD_EXIT_STYLES.get(exit_name or "") or _pick(defaults.exits, seed)

    return WordAnimation(entry=entry, behavior=_pick(defaults.behaviors, seed), exit=exit_style)


def assign_word_animations(
    word: WordMetaEntry,
    defaults: MotionDefaults,
    story: Optional[StoryboardEntry] = None,
    manifest: Optional[ManifestWordDirective] = None,
    semantic: Optional[SemanticEffect] = None,
) -> WordAnimation:
    """Resolve one word's entry, behavior, and exit styles.

    WHY: Styles can come from five places of decreasing specificity. The
    most specific source that names a style wins, field by field, and the
    profile pools guarantee every word still gets a full triple.

    HOW: Build the base triple from the first matching coarse source
    (frame-state directive with an entry, IMPACT class, storyboard or
    profile pools), lay the semantic bundle over it, then lay the
    directive's explicit entry/behavior/exit fields over that.

    Args:
        word: The word (its directive, line index, and word index).
        defaults: The line's motion-profile defaults.
        story: Storyboard entry for the word's line, if any.
        manifest: Frame-state directive for this word, if any.
        semantic: The word's semantic bundle, if any.

    Returns:
        WordAnimation with all three styles set.
    """
    directive = word.directive
    if manifest is not None and manifest.entry_style is not None:
        base = WordAnimation(
            entry=manifest.entry_style,
            behavior=manifest.behavior or BehaviorStyle.NONE,
            exit=manifest.exit_style or defaults.exits[0],
        )
    elif directive is not None and directive.kinetic_class is KineticClass.IMPACT:
        base = WordAnimation(entry=EntryStyle.SLAM_DOWN, behavior=BehaviorStyle.PULSE, exit=ExitStyle.BURN_OUT)
    else:
        base = _storyboard_styles(story, defaults, variation_seed(word.line_index, word.word_index))

    if semantic is not None:
        base = WordAnimation(entry=semantic.entry, behavior=semantic.behavior, exit=semantic.exit)

    if directive is None:
        return base
    return WordAnimation(
        entry=directive.entry or base.entry,
        behavior=directive.behavior or base.behavior,
        exit=directive.exit or base.exit,
    )
