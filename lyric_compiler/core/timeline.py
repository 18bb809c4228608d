"""Word timeline construction: timed words → WordMetaEntry list.

WHY: Transcribed words arrive as a flat list with no link to lyric lines
or to the direction's word directives. Every later stage (grouping,
layout, style assignment) needs each word tagged with its line, its
position in that line, and its directive.

HOW: Build a directive map keyed by the normalized word, then walk the
words once, assigning each to the first line whose [start, end) holds
the word's start time.

RULES:
- clean form: non-ASCII-alphanumerics stripped, lowercased
- Directive key: lowercased, anything outside [a-z0-9] removed;
  empty keys are skipped and later directives win
- Missing line start → 0, missing line end → 9999
- Words matching no line go to line 0
- word_index is a running counter per line, in input order
"""

from __future__ import annotations

import re
from typing import Iterable, Optional, Sequence

from lyric_compiler.core.ir import WordMetaEntry
from lyric_compiler.core.payload import LyricLine, TimedWord, WordDirective

_NON_ALNUM_RE = re.compile(r"[^a-zA-Z0-9]")
_NON_KEY_RE = re.compile(r"[^a-z0-9]")

# Upper bound used for a lyric line with no end time.
_OPEN_LINE_END = 9999.0


def clean_word(text: str) -> str:
    """Lowercase ``text`` and drop every non-alphanumeric character."""
    return _NON_ALNUM_RE.sub("", text).lower()


def directive_key(word: str) -> str:
    return _NON_KEY_RE.sub("", word.lower())


def build_directive_map(directives: Iterable[WordDirective]) -> dict[str, WordDirective]:
    """Index word directives by their normalized word.

    Args:
        directives: Directives in payload order.

    Returns:
        Map from normalized word to its directive. When two directives
        normalize to the same key, the later one wins.
    """
    result: dict[str, WordDirective] = {}
    for directive in directives:
        key = directive_key(directive.word)
        if key:
            result[key] = directive
    return result


def find_line_index(time: float, lines: Sequence[LyricLine]) -> int:
    for index, line in enumerate(lines):
        start = line.start if line.start is not None else 0.0
        end = line.end if line.end is not None else _OPEN_LINE_END
        if start <= time < end:
            return index
    return 0


def build_word_timeline(
    words: Sequence[TimedWord],
    lines: Sequence[LyricLine],
    directives: Optional[Iterable[WordDirective]] = None,
) -> list[WordMetaEntry]:
    """Tag each timed word with its line, in-line position, and directive.

    WHY: The grouper works per line and the style resolver works per
    word; both need this join done once, consistently.

    HOW: Single pass over words in input order. The per-line counter
    gives word_index. The directive map lookup uses the clean form.

    Args:
        words: Transcribed words in input order.
        lines: Lyric lines with time spans.
        directives: Word directives from the direction (may be None).

    Returns:
        One WordMetaEntry per input word, in input order.
    """
    directive_map = build_directive_map(directives or ())
    per_line_count: dict[int, int] = {}
    timeline: list[WordMetaEntry] = []

    for word in words:
        line_index = find_line_index(word.start, lines)
        word_index = per_line_count.get(line_index, 0)
        per_line_count[line_index] = word_index + 1
        clean = clean_word(word.word)
        timeline.append(WordMetaEntry(
            word=word.word,
            start=word.start,
            end=word.end,
            clean_word=clean,
            line_index=line_index,
            word_index=word_index,
            directive=directive_map.get(clean),
        ))

    return timeline
