"""Compiled scene JSON formatter — the whole CompiledScene as one file.

WHY: Renderers in other processes (a browser canvas, a video worker)
need the compiled timeline without re-running the compiler. Writing the
scene as JSON lets them load it and sample it with the same curve rules.

HOW: scene_to_dict() flattens the dataclasses; the result is validated
against schemas/compiled_scene.schema.json before it is returned, so a
broken file never leaves the process.

RULES:
- Keys are the dataclass field names (snake_case)
- Output is deterministic: sorted keys, fixed indentation
- A schema violation raises jsonschema.ValidationError
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Optional

import jsonschema

from lyric_compiler.core.ir import CompiledScene
from lyric_compiler.formatters.base import BaseFormatter, FormatterOutput, scene_to_dict

_SCHEMA_PATH = Path(__file__).resolve().parent.parent / "schemas" / "compiled_scene.schema.json"

_CACHED_SCHEMA: Optional[dict] = None


def _get_schema() -> dict:
    """Load and cache the compiled scene JSON schema."""
    global _CACHED_SCHEMA
    if _CACHED_SCHEMA is None:
        with open(_SCHEMA_PATH, encoding="utf-8") as f:
            _CACHED_SCHEMA = json.load(f)
    return _CACHED_SCHEMA


class SceneJsonFormatter(BaseFormatter):
    """Serializes a CompiledScene to schema-checked JSON."""

    def __init__(self, indent: Optional[int] = 2) -> None:
        self.indent = indent

    @property
    def name(self) -> str:
        return "Compiled scene JSON"

    def format(self, scene: CompiledScene) -> list[FormatterOutput]:
        data = scene_to_dict(scene)
        jsonschema.validate(instance=data, schema=_get_schema())
        content = json.dumps(data, indent=self.indent, sort_keys=True, ensure_ascii=False)
        return [FormatterOutput(suffix="-scene.json", content=content, media_type="application/json")]
