"""Intermediate and output dataclasses for a compiled lyric scene.

WHY: The compiler resolves everything a renderer needs (timing, layout,
style, color, chapters, beats) ahead of playback. The result has to be a
single, well-typed, immutable object that samplers, exporters, and
formatters all consume without re-deriving anything.

HOW: Two groups of frozen dataclasses:
  Intermediate (compile-time only):
    WordMetaEntry  — one timed word enriched with its directive and line
    PhraseGroup    — contiguous words shown together, with one anchor word
    LayoutHint     — per-group slot and line offset for layout
    GroupPosition  — laid-out (x, y, font size) per word of a group
  Output (the CompiledScene contract):
    AnimState          — the neutral-default animation partial
    CompiledWord       — one placed, styled, timed word (or letter)
    CompiledPhraseGroup
    BeatEvent
    ChapterTypography / CompiledChapter
    AnimParams         — playback constants (linger, stagger, durations)
    CompiledScene      — the whole scene

RULES:
- Every dataclass is frozen; sequences are tuples
- All times are float seconds on the song clock
- All positions are layout units on the configured canvas
- AnimState defaults are the neutral partial: no offset, scale 1,
  alpha 1, no skew/glow/blur/rotation
"""

from __future__ import annotations

from dataclasses import dataclass, field

from lyric_compiler.core.payload import WordDirective
from lyric_compiler.core.styles import (
    BehaviorStyle,
    EmitterType,
    EntryStyle,
    ExitStyle,
    MotionProfile,
    ShotType,
    TypographyPreset,
    VisualMode,
)


# ---------------------------------------------------------------------------
# Intermediate
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class WordMetaEntry:
    """One timed word joined with its directive and owning line.

    RULES:
    - clean_word: lowercase, alphanumerics only (the directive lookup key)
    - line_index: first line with start <= word.start < end, else 0
    - word_index: running position of the word within its line
    - directive: None when no directive matches clean_word
    """

    word: str
    start: float
    end: float
    clean_word: str
    line_index: int
    word_index: int = 0
    directive: WordDirective | None = None

    @property
    def emphasis_level(self) -> int:
        return self.directive.emphasis_level if self.directive else 1


@dataclass(frozen=True)
class PhraseGroup:
    """Contiguous words from one line, displayed together.

    RULES:
    - words is non-empty and ordered by start time
    - anchor_word_idx is a valid index into words
    - start/end span the first word's start to the last word's end
    """

    line_index: int
    group_index: int
    words: tuple[WordMetaEntry, ...]
    anchor_word_idx: int
    start: float
    end: float

    @property
    def key(self) -> str:
        return "{}-{}".format(self.line_index, self.group_index)


@dataclass(frozen=True)
class LayoutHint:
    position_slot: int = 0
    line_offset: float = 0.0


@dataclass(frozen=True)
class GroupPosition:
    x: float
    y: float
    font_size: float
    is_anchor: bool
    is_filler: bool = False


# ---------------------------------------------------------------------------
# Output
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class AnimState:
    """A partial animation transform, combined by the frame sampler."""

    offset_x: float = 0.0
    offset_y: float = 0.0
    scale_x: float = 1.0
    scale_y: float = 1.0
    alpha: float = 1.0
    skew_x: float = 0.0
    glow_mult: float = 0.0
    blur: float = 0.0
    rotation: float = 0.0


NEUTRAL_STATE = AnimState()


@dataclass(frozen=True)
class CompiledWord:
    """One fully resolved word (or letter, when letter-sequenced).

    WHY: A renderer should be able to draw this word at any time using only
    these fields plus the curves module. Nothing here needs the payload.

    RULES:
    - id: "{line}-{group}-{word}" or "{line}-{group}-{word}-L{letter}"
    - x/y lie inside the padded canvas
    - letter_index/letter_total/letter_offset_x/letter_delay are set only
      for letter-sequenced entries
    - entry_duration_mult scales the profile entry duration for this word
    """

    id: str
    text: str
    clean_word: str
    word_index: int
    x: float
    y: float
    base_font_size: float
    font_weight: int
    font_family: str
    color: str
    entry: EntryStyle
    behavior: BehaviorStyle
    exit: ExitStyle
    behavior_intensity: float
    emphasis_level: int
    is_anchor: bool
    is_filler: bool = False
    has_semantic_color: bool = False
    glow: float = 1.0
    scale_x: float = 1.0
    scale_y: float = 1.0
    alpha_max: float = 1.0
    entry_duration_mult: float = 1.0
    emitter: EmitterType = EmitterType.NONE
    trail: str | None = None
    ghost_trail: bool = False
    ghost_count: int = 0
    ghost_spacing: float = 0.0
    ghost_direction: str | None = None
    icon_glyph: str | None = None
    icon_style: str | None = None
    icon_position: str | None = None
    icon_scale: float | None = None
    letter_index: int | None = None
    letter_total: int | None = None
    letter_offset_x: float = 0.0
    letter_delay: float = 0.0

    @property
    def is_letter(self) -> bool:
        return self.letter_index is not None


@dataclass(frozen=True)
class CompiledPhraseGroup:
    """A placed phrase group: its words plus the profile it animates with."""

    line_index: int
    group_index: int
    anchor_word_idx: int
    start: float
    end: float
    words: tuple[CompiledWord, ...]
    motion_profile: MotionProfile
    stagger_delay: float
    entry_duration: float
    exit_duration: float
    linger_duration: float
    behavior_intensity: float

    @property
    def key(self) -> str:
        return "{}-{}".format(self.line_index, self.group_index)


@dataclass(frozen=True)
class BeatEvent:
    time: float
    spring_velocity: float
    glow_max: float
    is_downbeat: bool
    strength: float


@dataclass(frozen=True)
class ChapterTypography:
    font_family: str
    font_weight: int
    hero_weight: int
    text_transform: str
    letter_spacing: float
    preset: TypographyPreset


@dataclass(frozen=True)
class CompiledChapter:
    index: int
    start_ratio: float
    end_ratio: float
    target_zoom: float
    emotional_intensity: float
    typography: ChapterTypography
    atmosphere: str
    palette: tuple[str, ...]
    motion_profile: MotionProfile
    shot_type: ShotType = ShotType.MEDIUM
    tension_stage: str | None = None


@dataclass(frozen=True)
class AnimParams:
    """Playback constants shared by every group unless the group overrides them."""

    linger: float
    stagger: float
    entry_duration: float
    exit_duration: float


@dataclass(frozen=True)
class CompiledScene:
    """The immutable compile result — the contract with every consumer.

    RULES:
    - phrase_groups are ordered by start time (stable)
    - word_count is the number of CompiledWords across all groups
      (letters count individually)
    - beat_events are sorted by time
    - chapters tile [0, 1] of the song duration
    """

    song_start: float
    song_end: float
    duration_sec: float
    canvas_width: float
    canvas_height: float
    visual_mode: VisualMode
    motion_profile: MotionProfile
    base_font_size: float
    base_font_family: str
    base_font_weight: int
    text_transform: str
    palette: tuple[str, ...]
    auto_palettes: tuple[tuple[str, ...], ...]
    anim_params: AnimParams
    phrase_groups: tuple[CompiledPhraseGroup, ...]
    beat_events: tuple[BeatEvent, ...]
    chapters: tuple[CompiledChapter, ...]
    bpm: float
    word_count: int
    emotional_arc: str = "slow-burn"
    climax_ratio: float = 0.65
    warnings: tuple[str, ...] = field(default_factory=tuple)

    def iter_words(self):
        """Yield (group, word) pairs in compile order."""
        for group in self.phrase_groups:
            for word in group.words:
                yield group, word
