"""Abstract base formatter and output container.

WHY: Every output format consumes the same CompiledScene but produces
different file content. This base class enforces a consistent interface
so the CLI (and any embedding application) can work with any formatter
generically.

HOW: BaseFormatter is an ABC with two requirements — a ``name`` property
and a ``format()`` method. FormatterOutput is a plain dataclass that
bundles a file suffix with its content (a JSON string) and MIME type.
scene_to_dict() is the one place a CompiledScene becomes plain JSON data.

RULES:
- Subclasses MUST implement ``name`` (human-readable) and ``format()``
- ``format()`` returns a list — every current formatter returns one item
- ``suffix`` starts with a hyphen, e.g. ``"-scene.json"``
- The caller is responsible for prepending the source filename stem
- Enums serialize to their wire strings; tuples to lists
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import asdict, dataclass, is_dataclass
from enum import Enum
from typing import Any

from lyric_compiler.core.ir import CompiledScene


@dataclass
class FormatterOutput:
    """One output file produced by a formatter.

    Attributes:
        suffix: File suffix appended to the source stem,
                e.g. ``"-scene.json"`` → ``"song-scene.json"``.
        content: The file content as a JSON string.
        media_type: MIME type for the content, e.g. ``"application/json"``.
    """

    suffix: str
    content: str
    media_type: str


def to_jsonable(value: Any) -> Any:
    """Dataclasses, enums, tuples → dicts, strings, lists (recursively)."""
    if is_dataclass(value) and not isinstance(value, type):
        return to_jsonable(asdict(value))
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, dict):
        return {str(k): to_jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_jsonable(v) for v in value]
    return value


def scene_to_dict(scene: CompiledScene) -> dict[str, Any]:
    return to_jsonable(scene)


class BaseFormatter(ABC):
    """Abstract base for all output formatters.

    To add a new output format:
    1. Create a new file in formatters/
    2. Subclass BaseFormatter
    3. Implement format() and name
    4. Register in FORMATTERS dict in formatters/__init__.py
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Human-readable format name, e.g. 'Compiled scene JSON'."""

    @abstractmethod
    def format(self, scene: CompiledScene) -> list[FormatterOutput]:
        """Convert the compiled scene into one or more output files.

        Args:
            scene: The complete compiled scene.

        Returns:
            List of FormatterOutput objects, each containing a file suffix,
            content string, and MIME type.
        """
