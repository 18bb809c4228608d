"""Scene compiler: payload → immutable CompiledScene.

WHY: Renderers sample a scene sixty times a second and an exporter may
step it thousands of times. Everything that does not depend on the
clock (grouping, layout, collision, style resolution, chapters, beats)
is resolved here, once per payload change, so sampling is pure lookup
plus curve evaluation.

HOW: The pipeline runs leaves first:
  1. Scene-level defaults: visual mode, motion profile, typography,
     animation timing, chapters, and each line's motion profile
  2. Word timeline → phrase groups → layout hints
  3. Per group: layout, per-word styling, letter expansion
  4. Collision resolution on anchor boxes; net moves applied to every
     word of a group, then every word clamped to the padded canvas
  5. Beat events, palette, arc, and assembly

RULES:
- Deterministic: same payload + same measurer results → same scene
- Never raises on missing or malformed direction fields; defaults apply
- Zero words → no phrase groups, chapters and beats still resolved
- A word's color: directive colorOverride, else metaphor color, else
  palette[2] of the palette at the word's point in the song, else white
- Group timing (entry/exit/linger/behavior intensity) follows the
  motion profile of the chapter holding the line's midpoint
"""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Optional, Sequence

from lyric_compiler.config import DEFAULT_FONT_PATH, DEFAULT_TEXT_COLOR, CompilerSettings
from lyric_compiler.core.beats import (
    resolve_beat_response,
    resolve_bpm,
    resolve_heat,
    synthesize_beat_events,
)
from lyric_compiler.core.chapters import (
    DEFAULT_ARC,
    TYPOGRAPHY_PRESETS,
    climax_ratio,
    find_chapter_index,
    resolve_chapters,
    resolve_palette,
)
from lyric_compiler.core.collision import GroupBox, resolve_collisions
from lyric_compiler.core.direction import (
    LINGER_BY_PROFILE,
    MOTION_DEFAULTS,
    assign_word_animations,
    index_storyboard,
    resolve_motion_profile,
    resolve_stagger,
    resolve_typography,
    resolve_visual_mode,
)
from lyric_compiler.core.grouping import build_phrase_groups
from lyric_compiler.core.ir import (
    AnimParams,
    ChapterTypography,
    CompiledChapter,
    CompiledPhraseGroup,
    CompiledScene,
    CompiledWord,
    GroupPosition,
    PhraseGroup,
    WordMetaEntry,
)
from lyric_compiler.core.layout import (
    DEFAULT_BASE_FONT_SIZE,
    CharWidthMeasurer,
    PillowMeasurer,
    TextMeasurer,
    base_font_size_for,
    compute_layout_hints,
    display_text,
    layout_group,
)
from lyric_compiler.core.payload import ScenePayload, StoryboardEntry
from lyric_compiler.core.semantics import expand_letters, resolve_semantic_effect
from lyric_compiler.core.styles import EmitterType, MotionProfile
from lyric_compiler.core.timeline import build_word_timeline

logger = logging.getLogger(__name__)

MIN_SONG_DURATION = 0.01
PALETTE_TEXT_INDEX = 2


def default_measurer() -> TextMeasurer:
    """PillowMeasurer on LYRIC_FONT_PATH when set, else CharWidthMeasurer."""
    if DEFAULT_FONT_PATH:
        return PillowMeasurer(font_path=DEFAULT_FONT_PATH)
    return CharWidthMeasurer()


def line_motion_profiles(
    payload: ScenePayload,
    chapters: Sequence[CompiledChapter],
    fallback: MotionProfile,
) -> dict[int, MotionProfile]:
    """Motion profile per line: the chapter holding the line's midpoint."""
    duration = max(MIN_SONG_DURATION, payload.song_end - payload.song_start)
    profiles: dict[int, MotionProfile] = {}
    for index, line in enumerate(payload.lines):
        if not chapters:
            profiles[index] = fallback
            continue
        start = line.start if line.start is not None else payload.song_start
        end = line.end if line.end is not None else start
        ratio = ((start + end) / 2.0 - payload.song_start) / duration
        profiles[index] = chapters[find_chapter_index(chapters, ratio)].motion_profile
    return profiles


# ---------------------------------------------------------------------------
# Per-word compilation
# ---------------------------------------------------------------------------


def _word_color(
    payload: ScenePayload,
    chapters: Sequence[CompiledChapter],
    entry: WordMetaEntry,
    duration: float,
) -> str:
    line_end = None
    if entry.line_index < len(payload.lines):
        line_end = payload.lines[entry.line_index].end
    if line_end is None:
        line_end = entry.start
    ratio = ((entry.start + line_end) / 2.0 - payload.song_start) / duration
    palette = resolve_palette(payload, chapters, ratio)
    if len(palette) > PALETTE_TEXT_INDEX:
        return palette[PALETTE_TEXT_INDEX]
    return DEFAULT_TEXT_COLOR


def _compile_word(
    payload: ScenePayload,
    chapters: Sequence[CompiledChapter],
    group: PhraseGroup,
    word_position: int,
    position: GroupPosition,
    typography: ChapterTypography,
    profile: MotionProfile,
    story: Optional[StoryboardEntry],
    duration: float,
) -> CompiledWord:
    entry = group.words[word_position]
    directive = entry.directive
    semantic = resolve_semantic_effect(directive)
    manifest = None
    if payload.frame_state is not None:
        manifest = payload.frame_state.word_directives.get(group.key, {}).get(word_position)
    defaults = MOTION_DEFAULTS[profile]
    styles = assign_word_animations(entry, defaults, story, manifest, semantic)

    override = directive.color_override if directive else None
    semantic_color = semantic.color if semantic else None
    color = override or semantic_color or _word_color(payload, chapters, entry, duration)

    emitter_trail = semantic.emitter.value if semantic else "none"
    return CompiledWord(
        id="{}-{}-{}".format(group.line_index, group.group_index, word_position),
        text=display_text(entry.word, typography.text_transform),
        clean_word=entry.clean_word,
        word_index=word_position,
        x=position.x,
        y=position.y,
        base_font_size=position.font_size,
        font_weight=semantic.font_weight if semantic else typography.font_weight,
        font_family=typography.font_family,
        color=color,
        entry=styles.entry,
        behavior=styles.behavior,
        exit=styles.exit,
        behavior_intensity=defaults.behavior_intensity,
        emphasis_level=entry.emphasis_level,
        is_anchor=position.is_anchor,
        is_filler=position.is_filler,
        has_semantic_color=bool(override or semantic_color),
        glow=semantic.glow if semantic else 1.0,
        scale_x=semantic.scale_x if semantic else 1.0,
        scale_y=semantic.scale_y if semantic else 1.0,
        alpha_max=semantic.alpha_max if semantic else 1.0,
        entry_duration_mult=semantic.entry_duration_mult if semantic else 1.0,
        emitter=semantic.emitter if semantic else EmitterType.NONE,
        trail=(directive.trail if directive else None) or emitter_trail,
        ghost_trail=bool(directive and directive.ghost_trail),
        ghost_count=(directive.ghost_count if directive else None) or 0,
        ghost_spacing=(directive.ghost_spacing if directive else None) or 0.0,
        ghost_direction=directive.ghost_direction.value if directive and directive.ghost_direction else None,
        icon_glyph=story.icon_glyph if story else None,
        icon_style=story.icon_style if story else None,
        icon_position=story.icon_position if story else None,
        icon_scale=story.icon_scale if story else None,
    )


def _clamp(value: float, low: float, high: float) -> float:
    if low > high:
        return (low + high) / 2.0
    return max(low, min(high, value))


def _clamp_word(word: CompiledWord, dx: float, dy: float, settings: CompilerSettings) -> CompiledWord:
    pad = settings.padding
    return replace(
        word,
        x=_clamp(word.x + dx, pad, settings.canvas_width - pad),
        y=_clamp(word.y + dy, pad, settings.canvas_height - pad),
    )


# ---------------------------------------------------------------------------
# Orchestration
# ---------------------------------------------------------------------------


def compile_scene(
    payload: ScenePayload,
    measurer: Optional[TextMeasurer] = None,
    settings: Optional[CompilerSettings] = None,
) -> CompiledScene:
    """Compile a parsed payload into an immutable CompiledScene.

    Args:
        payload: Parsed ScenePayload (see core.payload.parse_payload).
        measurer: Text measurer used for layout, letters, and collision
            boxes. Defaults to default_measurer(). Not shared across
            threads.
        settings: Canvas geometry. Defaults to CompilerSettings().

    Returns:
        CompiledScene with phrase groups sorted by start time.
    """
    settings = settings or CompilerSettings()
    measurer = measurer or default_measurer()
    direction = payload.direction
    duration = max(MIN_SONG_DURATION, payload.song_end - payload.song_start)
    warnings: list[str] = []

    # Step 1: scene-level defaults
    visual_mode = resolve_visual_mode(payload)
    motion = resolve_motion_profile(direction)
    preset = resolve_typography(direction)
    typography = TYPOGRAPHY_PRESETS[preset]
    defaults = MOTION_DEFAULTS[motion]
    anim_params = AnimParams(
        linger=LINGER_BY_PROFILE[motion],
        stagger=resolve_stagger(payload.frame_state),
        entry_duration=defaults.entry_duration,
        exit_duration=defaults.exit_duration,
    )
    chapters = resolve_chapters(payload, preset, motion)
    line_profiles = line_motion_profiles(payload, chapters, motion)
    storyboard = index_storyboard(direction.storyboard if direction else ())

    # Step 2: timeline, groups, hints
    timeline = build_word_timeline(
        payload.words or (),
        payload.lines,
        direction.word_directives if direction else None,
    )
    groups = build_phrase_groups(timeline)
    hints = compute_layout_hints(
        groups,
        payload.lines,
        anim_params.entry_duration,
        anim_params.exit_duration,
        anim_params.linger,
        anim_params.stagger,
    )
    logger.debug("Grouped %d words into %d phrase groups", len(timeline), len(groups))

    # Step 3: layout and per-word styling
    compiled: list[CompiledPhraseGroup] = []
    boxes: list[GroupBox] = []
    for group in groups:
        story = storyboard.get(group.line_index)
        profile = line_profiles.get(group.line_index, motion)
        group_defaults = MOTION_DEFAULTS[profile]
        linger = LINGER_BY_PROFILE[profile]
        positions = layout_group(
            group,
            visual_mode,
            base_font_size_for(story.shot_type if story else None),
            typography.font_weight,
            typography.font_family,
            measurer,
            settings=settings,
            hint=hints.get(group.key),
            text_transform=typography.text_transform,
        )

        words: list[CompiledWord] = []
        anchor: Optional[CompiledWord] = None
        for i, position in enumerate(positions):
            word = _compile_word(
                payload, chapters, group, i, position, typography, profile, story, duration,
            )
            if i == group.anchor_word_idx:
                anchor = word
            directive = group.words[i].directive
            if directive is not None and directive.letter_sequence:
                words.extend(expand_letters(word, measurer, settings))
            else:
                words.append(word)

        anchor = anchor or words[0]
        anchor_width = measurer.measure(anchor.text, anchor.font_family, anchor.font_weight, anchor.base_font_size)
        boxes.append(GroupBox.for_anchor(
            key=group.key,
            x=anchor.x,
            y=anchor.y,
            text_width=anchor_width,
            font_size=anchor.base_font_size,
            emphasis=anchor.emphasis_level,
            vis_start=group.start - group_defaults.entry_duration - anim_params.stagger * len(words),
            vis_end=group.end + linger + group_defaults.exit_duration,
            padding=settings.collision_padding,
        ))
        compiled.append(CompiledPhraseGroup(
            line_index=group.line_index,
            group_index=group.group_index,
            anchor_word_idx=group.anchor_word_idx,
            start=group.start,
            end=group.end,
            words=tuple(words),
            motion_profile=profile,
            stagger_delay=anim_params.stagger,
            entry_duration=group_defaults.entry_duration,
            exit_duration=group_defaults.exit_duration,
            linger_duration=linger,
            behavior_intensity=group_defaults.behavior_intensity,
        ))

    # Step 4: collision resolution, then the final clamp
    result = resolve_collisions(boxes, settings)
    if not result.converged:
        warnings.append(
            "collision resolution did not converge after {} passes".format(result.passes)
        )
    placed: list[CompiledPhraseGroup] = []
    for group in compiled:
        dx, dy = result.deltas.get(group.key, (0.0, 0.0))
        placed.append(replace(
            group,
            words=tuple(_clamp_word(w, dx, dy, settings) for w in group.words),
        ))
    placed.sort(key=lambda g: g.start)

    # Step 5: beats, palette, assembly
    beats = payload.beat_grid.beats if payload.beat_grid is not None else ()
    beat_events = synthesize_beat_events(beats, resolve_heat(direction), resolve_beat_response(direction))
    arc = (direction.emotional_arc if direction else None) or DEFAULT_ARC
    word_count = sum(len(g.words) for g in placed)

    logger.info(
        "Compiled scene: %d groups, %d words, %d beats, %d chapters (%s, %s)",
        len(placed), word_count, len(beat_events), len(chapters), motion.value, visual_mode.value,
    )

    return CompiledScene(
        song_start=payload.song_start,
        song_end=payload.song_end,
        duration_sec=duration,
        canvas_width=settings.canvas_width,
        canvas_height=settings.canvas_height,
        visual_mode=visual_mode,
        motion_profile=motion,
        base_font_size=DEFAULT_BASE_FONT_SIZE,
        base_font_family=typography.font_family,
        base_font_weight=typography.font_weight,
        text_transform=typography.text_transform,
        palette=tuple(resolve_palette(payload, chapters)),
        auto_palettes=tuple(tuple(p) for p in payload.auto_palettes),
        anim_params=anim_params,
        phrase_groups=tuple(placed),
        beat_events=beat_events,
        chapters=chapters,
        bpm=resolve_bpm(payload),
        word_count=word_count,
        emotional_arc=arc.value,
        climax_ratio=climax_ratio(arc),
        warnings=tuple(warnings),
    )
