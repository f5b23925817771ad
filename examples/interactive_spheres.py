#!/usr/bin/env python3
"""Interactive sphere tracer with first-person camera controls.

Each window frame rebuilds the animated demo scene, traces one frame at the
current subsampling level and shows it. With accumulation enabled, frames
are averaged until the sample cap is reached or something resets them.

Usage:
    python -m examples.interactive_spheres

Controls:
    W/A/S/D         Move forwards/left/backwards/right
    Space/Shift     Move up/down
    Left mouse drag Look around
    R               Toggle random frame seeds
    +/-             Increase/decrease subsampling
    P               Toggle accumulation
    ]/[             Increase/decrease the accumulation sample cap
    M               Toggle reset of accumulation on camera movement
    F               Toggle all-diffuse materials
    C               Reset accumulation
    N               Cycle demo scenes
    T               Pause/resume scene animation
    Escape          Quit
"""

from __future__ import annotations

import logging
import sys
import time

import taichi as ti

logger = logging.getLogger("interactive_spheres")

WINDOW_SIZE = (960, 720)
MOVE_SPEED = 3.0


def initialize_taichi() -> str:
    """Initialize Taichi with the best available backend.

    Returns:
        Name of the backend being used.
    """
    try:
        ti.init(arch=ti.gpu)
        return "GPU"
    except RuntimeError:
        ti.init(arch=ti.cpu)
        return "CPU"


def _handle_commands(window: ti.ui.Window, tracer, state: dict) -> None:
    """Map key presses to tracer commands."""
    for event in window.get_events(ti.ui.PRESS):
        key = event.key
        if key == ti.ui.ESCAPE:
            window.running = False
        elif key == "r":
            tracer.toggle_random_seed()
        elif key in ("=", "+"):
            tracer.increase_subsampling()
        elif key == "-":
            tracer.decrease_subsampling()
        elif key == "p":
            tracer.toggle_accumulation()
        elif key == "]":
            tracer.increase_accumulation_cap()
        elif key == "[":
            tracer.decrease_accumulation_cap()
        elif key == "m":
            tracer.toggle_reset_on_move()
        elif key == "f":
            tracer.toggle_diffuse_materials()
        elif key == "c":
            tracer.reset_accumulation()
        elif key == "n":
            state["scene_index"] = (state["scene_index"] + 1) % state["scene_count"]
            tracer.reset_accumulation("scene changed")
        elif key == "t":
            state["paused"] = not state["paused"]


def _handle_movement(window: ti.ui.Window, camera, dt: float, state: dict) -> None:
    """Move and rotate the camera from held keys and mouse drags."""
    step = MOVE_SPEED * dt
    if window.is_pressed("w"):
        camera.move_forwards(step)
    if window.is_pressed("s"):
        camera.move_backwards(step)
    if window.is_pressed("d"):
        camera.move_right(step)
    if window.is_pressed("a"):
        camera.move_left(step)
    if window.is_pressed(ti.ui.SPACE):
        camera.move_up(step)
    if window.is_pressed(ti.ui.SHIFT):
        camera.move_down(step)

    cursor = window.get_cursor_pos()
    if window.is_pressed(ti.ui.LMB) and state["cursor"] is not None:
        dx = cursor[0] - state["cursor"][0]
        dy = cursor[1] - state["cursor"][1]
        if dx != 0.0 or dy != 0.0:
            camera.mouse_rotate(dx, dy)
    state["cursor"] = cursor


def main() -> int:
    """Main entry point for the interactive sphere tracer.

    Returns:
        Exit code (0 for success, non-zero for error).
    """
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    backend = initialize_taichi()
    logger.info("Taichi backend: %s", backend)

    # Import after Taichi initialization
    from spheretracer.camera.camera import Camera
    from spheretracer.config import TracerConfig
    from spheretracer.core.progressive import Tracer
    from spheretracer.preview.export import to_uint8
    from spheretracer.scene.demo import DEMO_SCENES, build_scene

    config = TracerConfig()
    tracer = Tracer(config)
    camera = Camera.from_config((0.0, 1.5, 6.0), (0.0, 0.0, 0.0), config)

    window = ti.ui.Window("Sphere tracer", WINDOW_SIZE, vsync=True)
    canvas = window.get_canvas()

    state = {"scene_index": 0, "scene_count": len(DEMO_SCENES), "paused": False, "cursor": None}
    start = time.perf_counter()
    last = start
    anim_time = 0.0
    fps_frames, fps_start, fps = 0, start, 0.0

    try:
        while window.running:
            now = time.perf_counter()
            dt = now - last
            last = now
            if not state["paused"]:
                anim_time += dt

            _handle_commands(window, tracer, state)
            _handle_movement(window, camera, dt, state)

            scene = build_scene(anim_time, state["scene_index"])
            pixels = tracer.trace_frame(camera, scene, WINDOW_SIZE)

            # Both modes are displayed linearly
            # Canvas images are indexed (x, y) with y pointing up, like the buffer rows
            canvas.set_image(to_uint8(pixels).transpose(1, 0, 2).copy())

            fps_frames += 1
            if now - fps_start > 1.0:
                fps = fps_frames / (now - fps_start)
                fps_frames, fps_start = 0, now
            with window.GUI.sub_window("Stats", 0.02, 0.02, 0.3, 0.16) as w:
                w.text(f"FPS: {fps:.2f}")
                w.text(f"Mode: {tracer.mode}, samples: {tracer.sample_count}")
                w.text(f"Subsampling: {tracer.state.subsampling}")

            window.show()
    except KeyboardInterrupt:
        logger.info("Interrupted by user.")

    return 0


if __name__ == "__main__":
    sys.exit(main())
