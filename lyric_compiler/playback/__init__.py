"""Playback: sample a CompiledScene at a time, live or in fixed export steps.

WHY: The compiled scene is a timeline. Something still has to turn
"t = 42.3s" into per-word transforms, drive the beat physics, and step
through a whole song for export. These consumers only read the scene.

HOW:
  - physics.py: the beat-reactive integrator protocol and a rest-state stand-in
  - sampler.py: sample_frame(scene, t, physics) → FrameState
  - export.py: FrameExporter, fixed 1/fps stepping with cancellation
  - session.py: SceneSession, recompiles only when the payload changes
"""
