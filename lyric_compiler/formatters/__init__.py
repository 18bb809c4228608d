"""Output formatter registry — pluggable format hub.

WHY: The CLI (and any embedding application) needs a single lookup to
find the right formatter by name. A central dict makes it trivial to add
new formats: create the formatter class, import it here, add one line.

HOW: FORMATTERS maps string keys to formatter *classes* (not instances).
Callers instantiate as needed: ``formatter = FORMATTERS["scene_json"]()``.

RULES:
- Keys are snake_case identifiers (used in CLI flags)
- Values are BaseFormatter subclasses (not instances)
- Every formatter listed here must be importable without side effects
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from lyric_compiler.formatters.keyframes import KeyframesFormatter
from lyric_compiler.formatters.scene_json import SceneJsonFormatter

if TYPE_CHECKING:
    from lyric_compiler.formatters.base import BaseFormatter

FORMATTERS: dict[str, type[BaseFormatter]] = {
    "scene_json": SceneJsonFormatter,
    "keyframes": KeyframesFormatter,
}
