"""Scene session: holds the current CompiledScene, recompiles on change.

WHY: The editor sends the payload again after every tweak, often
unchanged. Compiling is the expensive step, so the session fingerprints
the payload and only recompiles when it actually differs. Consumers that
already hold a scene keep using it; a recompile swaps the session's
reference and never touches the old scene.

HOW: The fingerprint is the SHA-256 of the payload serialized as
canonical JSON (sorted keys, no whitespace). The scene reference and
fingerprint are guarded by a threading.Lock that is held only for the
swap, so readers are never blocked behind a compile. A second lock
serializes update() calls: one compile at a time uses the measurer, and
a slow compile of an older payload can never replace a newer scene.

RULES:
- update() returns True when it recompiled, False when unchanged
- An invalid payload raises PayloadError and leaves the current scene
- The session owns its measurer; do not share it with another session
- After concurrent updates the scene matches the last update to run
"""

from __future__ import annotations

import hashlib
import json
import logging
import threading
from typing import Any, Optional

from lyric_compiler.config import CompilerSettings
from lyric_compiler.core.compiler import compile_scene, default_measurer
from lyric_compiler.core.ir import CompiledScene
from lyric_compiler.core.layout import TextMeasurer
from lyric_compiler.core.payload import parse_payload

logger = logging.getLogger(__name__)


def payload_fingerprint(data: Any) -> str:
    canonical = json.dumps(data, sort_keys=True, separators=(",", ":"), ensure_ascii=False)
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()


class SceneSession:
    def __init__(
        self,
        measurer: Optional[TextMeasurer] = None,
        settings: Optional[CompilerSettings] = None,
    ) -> None:
        self._measurer = measurer or default_measurer()
        self._settings = settings
        self._lock = threading.Lock()
        self._compile_lock = threading.Lock()
        self._scene: Optional[CompiledScene] = None
        self._fingerprint: Optional[str] = None
        self.compile_count = 0

    @property
    def scene(self) -> Optional[CompiledScene]:
        with self._lock:
            return self._scene

    @property
    def fingerprint(self) -> Optional[str]:
        with self._lock:
            return self._fingerprint

    def update(self, data: dict) -> bool:
        """Compile ``data`` unless it matches the current payload.

        Updates are serialized on a compile lock, so the measurer is only
        ever used by one compile and the last update to arrive is the one
        left in place. Readers only wait for the reference swap.

        Args:
            data: Raw payload dict (as loaded from JSON).

        Returns:
            True if a new scene was compiled and swapped in.

        Raises:
            PayloadError: If the payload shape is invalid.
        """
        fingerprint = payload_fingerprint(data)
        with self._compile_lock:
            with self._lock:
                if fingerprint == self._fingerprint:
                    logger.debug("Payload unchanged (%s), keeping scene", fingerprint[:12])
                    return False

            scene = compile_scene(parse_payload(data), self._measurer, self._settings)

            with self._lock:
                self._scene = scene
                self._fingerprint = fingerprint
                self.compile_count += 1
        logger.info("Recompiled scene (%s)", fingerprint[:12])
        return True
