"""Chapter resolution: per-section zoom, typography, atmosphere, palette.

WHY: A song is directed in sections (verse, chorus, bridge...). Each
section can change the camera distance, the typeface, the atmosphere
and the palette. The renderer only needs to know, for a point in the
song, which chapter it is in and what that chapter resolved to.

HOW: Chapter sources come from the legacy ``chapters`` list when it is
non-empty, else from ``sections`` enriched with ratios, else three
default chapters. Each source is then resolved against the lookup
tables below and the direction's global values.

RULES:
- Ratios: explicit ratio, else derived from startSec/endSec, else
  i/n and (i+1)/n
- Zoom: section shot type, else storyboard[index] shot type, else Medium
- Typography: section preset, else the global preset
- Atmosphere: section, else direction, else "cinematic"
- Palette: the auto palette of the chapter holding the midpoint (when
  more than one auto palette was given), else the first auto palette,
  else the global palette, else FALLBACK_PALETTE
- Intensity: section value, else 0.5 + 0.5×i/n (defaults: 0.4/0.7/1.0)
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Sequence

from lyric_compiler.config import FALLBACK_PALETTE
from lyric_compiler.core.ir import ChapterTypography, CompiledChapter
from lyric_compiler.core.payload import ScenePayload, Section
from lyric_compiler.core.styles import (
    EmotionalArc,
    MotionProfile,
    ShotType,
    TypographyPreset,
    require_complete,
)

DEFAULT_ATMOSPHERE = "cinematic"
DEFAULT_ARC = EmotionalArc.SLOW_BURN
DEFAULT_CLIMAX_RATIO = 0.65


def _typography(preset, family, weight, transform, spacing, hero) -> ChapterTypography:
    return ChapterTypography(
        font_family=family,
        font_weight=weight,
        hero_weight=hero,
        text_transform=transform,
        letter_spacing=spacing,
        preset=preset,
    )


TYPOGRAPHY_PRESETS: dict[TypographyPreset, ChapterTypography] = {
    p: _typography(p, *row) for p, row in {
        TypographyPreset.BOLD_IMPACT: ("Inter", 800, "uppercase", 0.5, 900),
        TypographyPreset.CLEAN_MODERN: ("Inter", 600, "none", 0.2, 700),
        TypographyPreset.ELEGANT_SERIF: ("Playfair Display", 500, "none", 0.15, 700),
        TypographyPreset.RAW_CONDENSED: ("Oswald", 600, "uppercase", 0.35, 800),
        TypographyPreset.WHISPER_SOFT: ("Inter", 400, "none", 0.25, 500),
        TypographyPreset.TECH_MONO: ("IBM Plex Mono", 500, "uppercase", 0.4, 700),
    }.items()
}

SHOT_ZOOM: dict[ShotType, float] = {
    ShotType.WIDE: 0.82,
    ShotType.MEDIUM: 1.0,
    ShotType.CLOSE: 1.15,
    ShotType.CLOSE_UP: 1.2,
    ShotType.EXTREME_CLOSE: 1.35,
    ShotType.FLOATING_IN_WORLD: 0.95,
}


@dataclass(frozen=True)
class TensionStage:
    stage: str
    start_ratio: float
    end_ratio: float
    motion_intensity: float
    camera_movement: str


def _stages(*rows) -> tuple[TensionStage, ...]:
    return tuple(TensionStage(*row) for row in rows)


TENSION_CURVES: dict[EmotionalArc, tuple[TensionStage, ...]] = {
    EmotionalArc.SLOW_BURN: _stages(
        ("Setup", 0.0, 0.3, 0.3, "Drift"),
        ("Build", 0.3, 0.6, 0.5, "PushIn"),
        ("Peak", 0.6, 0.85, 0.9, "Shake"),
        ("Release", 0.85, 1.0, 0.4, "Drift"),
    ),
    EmotionalArc.SURGE: _stages(
        ("Setup", 0.0, 0.15, 0.5, "PushIn"),
        ("Build", 0.15, 0.45, 0.7, "PushIn"),
        ("Peak", 0.45, 0.75, 1.0, "Shake"),
        ("Release", 0.75, 1.0, 0.5, "Drift"),
    ),
    EmotionalArc.COLLAPSE: _stages(
        ("Peak", 0.0, 0.3, 0.9, "Shake"),
        ("Build", 0.3, 0.6, 0.6, "PushIn"),
        ("Release", 0.6, 1.0, 0.2, "Drift"),
    ),
    EmotionalArc.DAWN: _stages(
        ("Setup", 0.0, 0.4, 0.2, "Drift"),
        ("Build", 0.4, 0.7, 0.5, "Rise"),
        ("Peak", 0.7, 1.0, 0.8, "PushIn"),
    ),
    EmotionalArc.FLATLINE: _stages(
        ("Setup", 0.0, 1.0, 0.5, "Drift"),
    ),
    EmotionalArc.ERUPTION: _stages(
        ("Setup", 0.0, 0.25, 0.15, "Drift"),
        ("Build", 0.25, 0.5, 0.5, "PushIn"),
        ("Peak", 0.5, 0.85, 1.0, "Shake"),
        ("Release", 0.85, 1.0, 0.4, "Drift"),
    ),
}

CLIMAX_RATIO: dict[EmotionalArc, float] = {
    EmotionalArc.SLOW_BURN: DEFAULT_CLIMAX_RATIO,
    EmotionalArc.SURGE: DEFAULT_CLIMAX_RATIO,
    EmotionalArc.COLLAPSE: 0.15,
    EmotionalArc.DAWN: 0.85,
    EmotionalArc.FLATLINE: DEFAULT_CLIMAX_RATIO,
    EmotionalArc.ERUPTION: 0.6,
}

require_complete(TYPOGRAPHY_PRESETS, TypographyPreset, "TYPOGRAPHY_PRESETS")
require_complete(SHOT_ZOOM, ShotType, "SHOT_ZOOM")
require_complete(TENSION_CURVES, EmotionalArc, "TENSION_CURVES")
require_complete(CLIMAX_RATIO, EmotionalArc, "CLIMAX_RATIO")


@dataclass(frozen=True)
class ChapterSource:
    """A section (or default chapter) with its ratios filled in."""

    index: int
    start_ratio: float
    end_ratio: float
    description: str
    default_intensity: float
    section: Optional[Section] = None


DEFAULT_CHAPTERS: tuple[ChapterSource, ...] = (
    ChapterSource(0, 0.0, 0.33, "Opening", 0.4),
    ChapterSource(1, 0.33, 0.66, "Middle", 0.7),
    ChapterSource(2, 0.66, 1.0, "Climax", 1.0),
)


def tension_stage_at(arc: Optional[EmotionalArc], ratio: float) -> TensionStage:
    curve = TENSION_CURVES[arc or DEFAULT_ARC]
    for stage in curve:
        if stage.start_ratio <= ratio <= stage.end_ratio:
            return stage
    return curve[0]


def climax_ratio(arc: Optional[EmotionalArc]) -> float:
    return CLIMAX_RATIO[arc or DEFAULT_ARC]


def _seconds_to_ratio(seconds: Optional[float], song_start: float, duration: float) -> Optional[float]:
    if seconds is None:
        return None
    return max(0.0, min(1.0, (seconds - song_start) / duration))


def enrich_sections(
    sections: Sequence[Section],
    song_start: float = 0.0,
    duration: float = 1.0,
) -> tuple[ChapterSource, ...]:
    """Give every section a start/end ratio (or return the default chapters).

    Args:
        sections: Sections in order (may be empty).
        song_start / duration: Used to convert startSec/endSec to ratios.

    Returns:
        One ChapterSource per section, or DEFAULT_CHAPTERS when empty.
    """
    if not sections:
        return DEFAULT_CHAPTERS
    duration = max(0.01, duration)
    count = len(sections)
    sources = []
    for i, section in enumerate(sections):
        start = section.start_ratio
        if start is None:
            start = _seconds_to_ratio(section.start_sec, song_start, duration)
        end = section.end_ratio
        if end is None:
            end = _seconds_to_ratio(section.end_sec, song_start, duration)
        sources.append(ChapterSource(
            index=i,
            start_ratio=start if start is not None else i / count,
            end_ratio=end if end is not None else (i + 1) / count,
            description=section.description or "Section {}".format(i + 1),
            default_intensity=0.5 + (i / count) * 0.5,
            section=section,
        ))
    return tuple(sources)


def chapter_sources(payload: ScenePayload) -> tuple[ChapterSource, ...]:
    direction = payload.direction
    duration = payload.song_end - payload.song_start
    if direction is not None and direction.chapters:
        return enrich_sections(direction.chapters, payload.song_start, duration)
    return enrich_sections(direction.sections if direction else (), payload.song_start, duration)


def find_chapter_index(chapters: Sequence, ratio: float) -> int:
    """Index of the chapter with start <= ratio < end, else the last one."""
    for i, chapter in enumerate(chapters):
        if chapter.start_ratio <= ratio < chapter.end_ratio:
            return i
    return max(0, len(chapters) - 1)


def resolve_palette(payload: ScenePayload, sources: Sequence, ratio: Optional[float] = None) -> tuple[str, ...]:
    """Palette for a point in the song (see module RULES for precedence)."""
    if payload.auto_palettes:
        if ratio is not None and len(payload.auto_palettes) > 1 and sources:
            index = None
            for i, source in enumerate(sources):
                if source.start_ratio <= ratio < source.end_ratio:
                    index = i
                    break
            if index is not None and index < len(payload.auto_palettes):
                return payload.auto_palettes[index]
        return payload.auto_palettes[0]
    if payload.palette:
        return payload.palette
    return FALLBACK_PALETTE


def resolve_chapters(
    payload: ScenePayload,
    typography: TypographyPreset,
    motion: MotionProfile,
) -> tuple[CompiledChapter, ...]:
    """Resolve every chapter of the song.

    WHY: Sections only carry overrides. The renderer needs each chapter
    fully resolved (zoom, fonts, atmosphere, palette, motion) so a frame
    lookup is a single index.

    Args:
        payload: Parsed payload.
        typography: Global typography preset (already defaulted).
        motion: Global motion profile (already defaulted).

    Returns:
        CompiledChapters in order.
    """
    direction = payload.direction
    storyboard = direction.storyboard if direction else ()
    arc = direction.emotional_arc if direction else None
    sources = chapter_sources(payload)

    chapters = []
    for source in sources:
        section = source.section
        shot = section.shot_type if section else None
        if shot is None and source.index < len(storyboard):
            shot = storyboard[source.index].shot_type
        shot = shot or ShotType.MEDIUM
        preset = (section.typography if section else None) or typography
        atmosphere = (
            (section.atmosphere if section else None)
            or (direction.atmosphere if direction else None)
            or DEFAULT_ATMOSPHERE
        )
        midpoint = (source.start_ratio + source.end_ratio) / 2.0
        intensity = section.emotional_intensity if section and section.emotional_intensity is not None else None
        chapters.append(CompiledChapter(
            index=source.index,
            start_ratio=source.start_ratio,
            end_ratio=source.end_ratio,
            target_zoom=SHOT_ZOOM[shot],
            emotional_intensity=intensity if intensity is not None else source.default_intensity,
            typography=TYPOGRAPHY_PRESETS[preset],
            atmosphere=atmosphere,
            palette=tuple(resolve_palette(payload, sources, midpoint)),
            motion_profile=(section.motion if section else None) or motion,
            shot_type=shot,
            tension_stage=tension_stage_at(arc, midpoint).stage,
        ))
    return tuple(chapters)
