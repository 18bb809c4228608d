"""Phrase grouping and anchor-word selection.

WHY: Showing words one at a time reads as flicker; showing a whole line
at once hides the rhythm. Phrase groups are short runs of same-line
words (normally at most five) that appear and animate together. Each group has
one anchor word that gets the big, primary screen position.

HOW: Words are bucketed per line (lines in order of first appearance).
A forward scan flushes the current group on terminal punctuation or at
MAX_GROUP_SIZE, but only once the group spans MIN_GROUP_DURATION, and
always at line end. Groups are stably sorted by start time, groups that
are still too short are merged into the following same-line group, and
finally every group's end is stretched to at least MIN_GROUP_DURATION.

RULES:
- Every word lands in exactly one group, in original order
- A group never mixes lines; it only grows past MAX_GROUP_SIZE while
  its words still span less than MIN_GROUP_DURATION
- A merged group keeps the first group's group_index
- Anchor score: 2×emphasis + 6×IMPACT + 4×RISING − 5×filler
  + 2×(len(clean) > 5) + 2×(len(clean) > 8)
- The highest score wins; on a tie the FIRST word wins
"""

from __future__ import annotations

import re
from typing import Sequence

from lyric_compiler.core.ir import PhraseGroup, WordMetaEntry
from lyric_compiler.core.styles import KineticClass

MIN_GROUP_DURATION = 0.4
MAX_GROUP_SIZE = 5

FILLER_WORDS = frozenset({
    "a", "an", "the", "to", "of", "and", "or", "but", "in", "on", "at",
    "for", "with", "from", "by", "up", "down", "is", "am", "are", "was",
    "were", "be", "been", "being", "it", "its", "that", "this", "these",
    "those", "i", "you", "he", "she", "we", "they",
})

# Anchor scoring weights.
EMPHASIS_WEIGHT = 2
IMPACT_BONUS = 6
RISING_BONUS = 4
FILLER_PENALTY = 5
LENGTH_BONUS = 2

_NATURAL_BREAK_RE = re.compile(r"[,.!?;]$")
_NON_LETTER_RE = re.compile(r"[^a-zA-Z]")


def is_filler_word(word: str) -> bool:
    return _NON_LETTER_RE.sub("", word).lower() in FILLER_WORDS


def anchor_score(entry: WordMetaEntry) -> int:
    kinetic = entry.directive.kinetic_class if entry.directive else None
    length = len(entry.clean_word)
    score = EMPHASIS_WEIGHT * entry.emphasis_level
    if kinetic is KineticClass.IMPACT:
        score += IMPACT_BONUS
    if kinetic is KineticClass.RISING:
        score += RISING_BONUS
    if is_filler_word(entry.word):
        score -= FILLER_PENALTY
    if length > 5:
        score += LENGTH_BONUS
    if length > 8:
        score += LENGTH_BONUS
    return score


def find_anchor_word(words: Sequence[WordMetaEntry]) -> int:
    """Return the index of the highest-scoring word (first one on ties).

    Args:
        words: Non-empty word list of one group.

    Returns:
        Index in ``[0, len(words))``.
    """
    best_index = 0
    best_score = None
    for index, entry in enumerate(words):
        score = anchor_score(entry)
        if best_score is None or score > best_score:
            best_score = score
            best_index = index
    return best_index


def _make_group(words: list[WordMetaEntry], line_index: int, group_index: int) -> PhraseGroup:
    return PhraseGroup(
        line_index=line_index,
        group_index=group_index,
        words=tuple(words),
        anchor_word_idx=find_anchor_word(words),
        start=words[0].start,
        end=words[-1].end,
    )


def merge_short_groups(groups: Sequence[PhraseGroup]) -> list[PhraseGroup]:
    """Fold each too-short group into the group right after it.

    WHY: A group that spans less than MIN_GROUP_DURATION would flash on
    screen for a few frames. Merging it forward keeps it readable.

    RULES:
    - Only merges when the next group is on the same line
    - Only merges when the combined size is <= MAX_GROUP_SIZE
    - The last group is never merged
    - The merged group spans first.start → next.end and is re-anchored
    """
    result: list[PhraseGroup] = []
    i = 0
    while i < len(groups):
        group = groups[i]
        if group.end - group.start < MIN_GROUP_DURATION and i < len(groups) - 1:
            following = groups[i + 1]
            if (
                following.line_index == group.line_index
                and len(group.words) + len(following.words) <= MAX_GROUP_SIZE
            ):
                merged = list(group.words) + list(following.words)
                result.append(PhraseGroup(
                    line_index=group.line_index,
                    group_index=group.group_index,
                    words=tuple(merged),
                    anchor_word_idx=find_anchor_word(merged),
                    start=group.start,
                    end=following.end,
                ))
                i += 2
                continue
        result.append(group)
        i += 1
    return result


def build_phrase_groups(timeline: Sequence[WordMetaEntry]) -> list[PhraseGroup]:
    """Partition a word timeline into time-sorted phrase groups.

    Args:
        timeline: Word entries in input order (from build_word_timeline).

    Returns:
        Phrase groups sorted by start time, merged, with ends stretched
        to at least MIN_GROUP_DURATION after their start.
    """
    by_line: dict[int, list[WordMetaEntry]] = {}
    for entry in timeline:
        by_line.setdefault(entry.line_index, []).append(entry)

    groups: list[PhraseGroup] = []
    for line_index, words in by_line.items():
        current: list[WordMetaEntry] = []
        group_index = 0
        for i, entry in enumerate(words):
            current.append(entry)
            duration = current[-1].end - current[0].start
            is_last = i == len(words) - 1
            is_break = bool(_NATURAL_BREAK_RE.search(entry.word))
            is_full = len(current) >= MAX_GROUP_SIZE
            if is_last or ((is_break or is_full) and duration >= MIN_GROUP_DURATION):
                groups.append(_make_group(current, line_index, group_index))
                group_index += 1
                current = []

    # list.sort is stable: same-start groups keep line/scan order
    groups.sort(key=lambda g: g.start)
    merged = merge_short_groups(groups)
    return [
        PhraseGroup(
            line_index=g.line_index,
            group_index=g.group_index,
            words=g.words,
            anchor_word_idx=g.anchor_word_idx,
            start=g.start,
            end=max(g.end, g.start + MIN_GROUP_DURATION),
        )
        for g in merged
    ]
