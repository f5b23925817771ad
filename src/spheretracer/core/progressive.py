"""Frame dispatcher and progressive accumulator.

``Tracer`` turns a camera and a scene snapshot into a pixel buffer:

- The trace resolution is the target resolution divided by the subsampling
  divisor (at least one pixel in each direction).
- One primary ray is generated per pixel through the pixel centre. Rows are
  processed in parallel; each row only writes its own cells, and each pixel's
  generator is derived from ``(frame_seed, row, col)``, so a frame is
  reproducible for a given seed regardless of scheduling.
- In single-sample mode the frame is written as clamped 8-bit colour.
- In accumulation mode the frame is blended into a float buffer as a running
  average ``lerp(old, sample, 1 / (n + 1))`` until the sample cap is hit.

All frame-to-frame state lives in the ``Tracer`` instance (its
``AccumulationState`` and ``PixelBuffer``), so independent tracers never
interfere.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from spheretracer.camera.camera import Camera
    >>> from spheretracer.core.progressive import Tracer
    >>> from spheretracer.scene.demo import build_scene
    >>>
    >>> tracer = Tracer()
    >>> camera = Camera(position=(0.0, 2.0, 6.0), target=(0.0, 0.0, 0.0))
    >>> pixels = tracer.trace_frame(camera, build_scene(0.0, 1), (640, 480))
    >>> pixels.shape
    (120, 160, 3)
"""

import logging
from dataclasses import dataclass
from typing import Literal

import numpy as np
import taichi as ti
import taichi.math as tm

from spheretracer.config import MAX_FINITE_SAMPLES, UNBOUNDED_SAMPLES, TracerConfig
from spheretracer.core.buffer import PixelBuffer
from spheretracer.core.integrator import PathIntegrator
from spheretracer.core.ray import Ray
from spheretracer.core.rng import seed
from spheretracer.scene.scene import Scene, SceneBuffer

logger = logging.getLogger(__name__)

# Type alias for 3D vectors
vec3 = tm.vec3

RenderMode = Literal["single", "accumulate"]

_U32_MASK = 0xFFFFFFFF


@dataclass
class AccumulationState:
    """Mutable frame-to-frame state of a tracer.

    Attributes:
        sample_count: Samples blended into the float buffer so far (n).
        max_samples: Cap on n. 0 disables accumulation,
            ``UNBOUNDED_SAMPLES`` never stops.
        enabled: Whether progressive accumulation is switched on.
        reset_on_move: Reset accumulation when the camera moved.
        random_seed: Fresh random frame seeds, or a deterministic counter.
        diffuse_only: Render every sphere with a diffuse material.
        subsampling: Divisor between target and trace resolution.
        frame_counter: Next deterministic frame seed.
        previous_camera: Snapshot of the camera used for the previous frame.
    """

    sample_count: int = 0
    max_samples: int = 256
    enabled: bool = False
    reset_on_move: bool = True
    random_seed: bool = True
    diffuse_only: bool = False
    subsampling: int = 4
    frame_counter: int = 0
    previous_camera: tuple | None = None

    @property
    def accumulating(self) -> bool:
        """True when frames are blended into the float buffer."""
        return self.enabled and self.max_samples > 0

    @property
    def converged(self) -> bool:
        """True when the sample cap has been reached."""
        return self.sample_count >= self.max_samples


def trace_resolution(target_size: tuple[int, int], subsampling: int) -> tuple[int, int]:
    """Trace raster size for a target size and subsampling divisor.

    Raises:
        ValueError: If a target dimension is zero or negative.
    """
    width, height = target_size
    if width <= 0 or height <= 0:
        raise ValueError(f"Target dimensions ({width}x{height}) must be positive")
    return max(1, width // subsampling), max(1, height // subsampling)


def _camera_snapshot(camera, width: int, height: int) -> tuple:
    origin, x_axis, y_axis = camera.screen_vecs(width, height)
    return tuple(
        tuple(float(c) for c in v) for v in (camera.position, origin, x_axis, y_axis)
    )


@ti.func
def _sanitize(color: vec3) -> vec3:
    """Clamp negative values and replace NaN/Inf by zero."""
    result = tm.max(color, vec3(0.0, 0.0, 0.0))
    for c in ti.static(range(3)):
        if tm.isnan(result[c]) or tm.isinf(result[c]):
            result[c] = 0.0
    return result


@ti.data_oriented
class Tracer:
    """Renders frames of sphere scenes into a persistent pixel buffer.

    Args:
        config: Renderer configuration. Defaults to ``TracerConfig()``.
        rng: Host generator used for random frame seeds.
    """

    def __init__(self, config: TracerConfig | None = None, *, rng: np.random.Generator | None = None) -> None:
        self.config = config if config is not None else TracerConfig()
        self.integrator = PathIntegrator(self.config)
        self.buffer = PixelBuffer(self.config.error_color)
        self.scene_buffer = SceneBuffer(self.config.scene_capacity)
        self.state = AccumulationState(
            max_samples=self.config.max_samples,
            enabled=self.config.accumulate,
            reset_on_move=self.config.reset_on_move,
            random_seed=self.config.random_seed,
            subsampling=self.config.subsampling,
        )
        self._seed_rng = rng if rng is not None else np.random.default_rng()

    # -------------------------------------------------------------------------
    # Kernels
    # -------------------------------------------------------------------------

    @ti.kernel
    def _render(
        self,
        radiance: ti.template(),
        rgb8: ti.template(),
        spheres: ti.template(),
        n_spheres: ti.i32,
        width: ti.i32,
        height: ti.i32,
        cam_pos: vec3,
        screen_origin: vec3,
        x_axis: vec3,
        y_axis: vec3,
        frame_seed: ti.u32,
        blend: ti.f32,
        accumulate: ti.i32,
    ):
        # One parallel task per row; each row only touches its own cells
        for row in range(height):
            for col in range(width):
                u = (ti.cast(col, ti.f32) + 0.5) / ti.cast(width, ti.f32)
                v = (ti.cast(row, ti.f32) + 0.5) / ti.cast(height, ti.f32)
                primary = Ray(
                    origin=cam_pos,
                    direction=tm.normalize(screen_origin + u * x_axis + v * y_axis),
                    bounces=self.integrator.max_bounces,
                    throughput=vec3(1.0, 1.0, 1.0),
                    rng=seed(frame_seed, row, col),
                )
                color = _sanitize(self.integrator.trace(primary, spheres, n_spheres))
                idx = row * width + col
                if accumulate == 1:
                    radiance[idx] = tm.mix(radiance[idx], color, blend)
                else:
                    rgb8[idx] = ti.cast(tm.clamp(color, 0.0, 1.0) * 255.0, ti.u8)

    @ti.kernel
    def _trace_single(
        self,
        spheres: ti.template(),
        n_spheres: ti.i32,
        origin: vec3,
        direction: vec3,
        throughput: vec3,
        ray_seed: ti.u32,
    ) -> vec3:
        ray = Ray(
            origin=origin,
            direction=tm.normalize(direction),
            bounces=self.integrator.max_bounces,
            throughput=throughput,
            rng=seed(ray_seed, 0, 0),
        )
        return self.integrator.trace(ray, spheres, n_spheres)

    # -------------------------------------------------------------------------
    # Frame dispatch
    # -------------------------------------------------------------------------

    @property
    def mode(self) -> RenderMode:
        """"accumulate" when frames are blended, "single" otherwise."""
        return "accumulate" if self.state.accumulating else "single"

    @property
    def sample_count(self) -> int:
        """Samples accumulated into the float buffer so far."""
        return self.state.sample_count

    @property
    def pixels(self) -> np.ndarray:
        """Current buffer for display, shape (height, width, 3), row 0 at the bottom.

        Float32 radiance in accumulation mode, uint8 colour otherwise.
        """
        if self.state.accumulating:
            return self.buffer.radiance_numpy()
        return self.buffer.rgb8_numpy()

    def trace_frame(
        self,
        camera,
        scene: Scene,
        target_size: tuple[int, int],
        frame_seed: int | None = None,
    ) -> np.ndarray:
        """Render one frame and return the pixel buffer.

        Args:
            camera: Object with ``position`` and ``screen_vecs(width, height)``.
            scene: Scene snapshot for this frame.
            target_size: Target (width, height) in pixels before subsampling.
            frame_seed: Explicit frame seed; by default the seeding mode
                decides.

        Returns:
            The buffer as returned by ``pixels``.

        Raises:
            ValueError: If a target dimension is zero or negative.
        """
        state = self.state
        width, height = trace_resolution(target_size, state.subsampling)
        if (width, height) != (self.buffer.width, self.buffer.height):
            self.buffer.resize(width, height)
            self.reset_accumulation("resolution change")

        snapshot = _camera_snapshot(camera, width, height)
        if state.reset_on_move and state.previous_camera is not None and snapshot != state.previous_camera:
            self.reset_accumulation("camera moved")
        state.previous_camera = snapshot

        if state.accumulating and state.converged:
            return self.pixels

        self.scene_buffer.upload(scene, diffuse_only=state.diffuse_only)
        if frame_seed is None:
            frame_seed = self._next_frame_seed()

        blend = 1.0
        if state.accumulating:
            blend = 1.0 / (state.sample_count + 1)
        _, origin, x_axis, y_axis = snapshot
        self._render(
            self.buffer.radiance,
            self.buffer.rgb8,
            self.scene_buffer.spheres,
            self.scene_buffer.count,
            width,
            height,
            vec3(*snapshot[0]),
            vec3(*origin),
            vec3(*x_axis),
            vec3(*y_axis),
            frame_seed & _U32_MASK,
            blend,
            int(state.accumulating),
        )
        if state.accumulating:
            state.sample_count += 1
        return self.pixels

    def trace_ray(
        self,
        scene: Scene,
        origin: tuple[float, float, float],
        direction: tuple[float, float, float],
        *,
        throughput: tuple[float, float, float] = (1.0, 1.0, 1.0),
        seed: int = 0,
    ) -> tuple[float, float, float]:
        """Estimate the radiance along a single ray.

        Args:
            scene: Scene to trace against.
            origin: Ray origin.
            direction: Ray direction (normalized internally).
            throughput: Initial path throughput.
            seed: Seed of the ray's generator.

        Returns:
            Tuple of (R, G, B) radiance.
        """
        self.scene_buffer.upload(scene, diffuse_only=self.state.diffuse_only)
        color = self._trace_single(
            self.scene_buffer.spheres,
            self.scene_buffer.count,
            vec3(*origin),
            vec3(*direction),
            vec3(*throughput),
            seed & _U32_MASK,
        )
        return (float(color[0]), float(color[1]), float(color[2]))

    def _next_frame_seed(self) -> int:
        if self.state.random_seed:
            return int(self._seed_rng.integers(0, 2**32))
        frame_seed = self.state.frame_counter
        self.state.frame_counter += 1
        return frame_seed

    # -------------------------------------------------------------------------
    # Runtime commands
    # -------------------------------------------------------------------------

    def reset_accumulation(self, reason: str = "requested") -> None:
        """Discard accumulated samples; the next frame starts a new average."""
        if self.state.sample_count:
            logger.debug("Resetting accumulation after %d samples (%s)", self.state.sample_count, reason)
        self.state.sample_count = 0

    def toggle_random_seed(self) -> None:
        """Switch between random frame seeds and a deterministic frame counter."""
        self.state.random_seed = not self.state.random_seed
        self.state.frame_counter = 0
        logger.debug("Random seeding %s", "on" if self.state.random_seed else "off")
        self.reset_accumulation("seed mode toggled")

    def increase_subsampling(self) -> None:
        self.set_subsampling(self.state.subsampling + 1)

    def decrease_subsampling(self) -> None:
        self.set_subsampling(self.state.subsampling - 1)

    def set_subsampling(self, subsampling: int) -> None:
        """Set the subsampling divisor (floored at 1)."""
        subsampling = max(1, subsampling)
        if subsampling != self.state.subsampling:
            self.state.subsampling = subsampling
            logger.debug("Subsampling set to %d", subsampling)
            self.reset_accumulation("subsampling changed")

    def toggle_accumulation(self) -> None:
        """Switch progressive accumulation on or off."""
        self.state.enabled = not self.state.enabled
        logger.debug("Accumulation %s", "on" if self.state.enabled else "off")
        self.reset_accumulation("accumulation toggled")

    def increase_accumulation_cap(self) -> None:
        """Double the sample cap; past MAX_FINITE_SAMPLES the cap is removed."""
        cap = self.state.max_samples
        if cap == 0:
            cap = 1
        elif cap >= MAX_FINITE_SAMPLES:
            cap = UNBOUNDED_SAMPLES
        else:
            cap = min(cap * 2, MAX_FINITE_SAMPLES)
        self.state.max_samples = cap
        logger.debug("Accumulation cap set to %d", cap)

    def decrease_accumulation_cap(self) -> None:
        """Halve the sample cap; reaching 0 disables accumulation and resets it."""
        cap = self.state.max_samples
        if cap >= UNBOUNDED_SAMPLES:
            cap = MAX_FINITE_SAMPLES
        else:
            cap //= 2
        self.state.max_samples = cap
        logger.debug("Accumulation cap set to %d", cap)
        if cap == 0:
            self.reset_accumulation("accumulation cap reached 0")

    def toggle_reset_on_move(self) -> None:
        self.state.reset_on_move = not self.state.reset_on_move

    def toggle_diffuse_materials(self) -> None:
        """Switch between scene materials and all-diffuse materials."""
        self.state.diffuse_only = not self.state.diffuse_only
        self.reset_accumulation("materials toggled")

    def __repr__(self) -> str:
        return (
            f"Tracer(mode={self.mode!r}, size={self.buffer.width}x{self.buffer.height}, "
            f"samples={self.state.sample_count}/{self.state.max_samples})"
        )
