"""Compile-time core: payload parsing, IR, and the compile pipeline stages.

WHY: Everything that turns a ScenePayload into a CompiledScene lives
here. Each stage is a plain module with pure functions so it can be
tested in isolation and reused by the sampler.

HOW: payload.py parses input, ir.py defines the data structures, and
timeline → grouping → layout → collision → direction/semantics →
compiler produce the scene. curves.py, beats.py and chapters.py are the
shared lookup tables and formulas.

RULES:
- No module here does I/O except payload.load_payload()
- Enum-keyed tables are checked for completeness on import
- IR dataclasses are the contract — change with care
"""
