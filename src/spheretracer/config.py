"""Tracer configuration.

All numeric constants the renderer depends on (camera field of view, mouse
sensitivity, bounce budget, ray offset, light setup, accumulation defaults)
are collected in one frozen dataclass which is passed explicitly to the
components that need it. Alternate parameters for tests or tools are made
with ``dataclasses.replace``.

Example:
    >>> from dataclasses import replace
    >>> from spheretracer.config import TracerConfig
    >>> config = TracerConfig()
    >>> config.max_bounces
    3
    >>> shallow = replace(config, max_bounces=0)
"""

from dataclasses import dataclass

Color = tuple[float, float, float]
Point = tuple[float, float, float]

# Sample cap meaning "never stop accumulating"
UNBOUNDED_SAMPLES = 2**31 - 1

# Largest finite sample cap reachable through the runtime commands
MAX_FINITE_SAMPLES = 65536


def _check_unit_color(name: str, color: Color) -> None:
    if len(color) != 3:
        raise ValueError(f"{name} must have 3 components, got {len(color)}")
    for i, component in enumerate(color):
        if component < 0.0 or component > 1.0:
            raise ValueError(f"{name} component {i} = {component} is outside [0, 1].")


@dataclass(frozen=True)
class TracerConfig:
    """Configuration shared by the camera, integrator and frame dispatcher.

    Attributes:
        fov: Vertical field of view of the camera in degrees.
        mouse_sensitivity: Radians of rotation per unit of normalized mouse
            movement.
        max_bounces: Indirect bounces traced after the primary hit.
        ray_epsilon: Offset applied to secondary ray origins along their
            direction to avoid self-intersection.
        throughput_cutoff: Paths whose largest throughput channel is at or
            below this value are not continued.
        light_position: World position of the point light.
        light_emission: Emitted intensity of the point light (RGB).
        background_color: Radiance returned by rays that escape the scene.
        error_color: Sentinel colour for buffer cells not yet written.
        subsampling: Default divisor between target and trace resolution.
        accumulate: Whether progressive accumulation starts enabled.
        max_samples: Default accumulation cap (0 disables accumulation).
        reset_on_move: Whether camera movement resets accumulation.
        random_seed: Fresh random frame seeds (True) or a frame counter.
        scene_capacity: Initial number of spheres the device scene holds.
    """

    fov: float = 80.0
    mouse_sensitivity: float = 1.8
    max_bounces: int = 3
    ray_epsilon: float = 1e-4
    throughput_cutoff: float = 0.01
    light_position: Point = (10.0, 20.0, -10.0)
    light_emission: Color = (1400.0, 1330.0, 1260.0)
    background_color: Color = (0.5, 0.7, 1.0)
    error_color: Color = (1.0, 0.0, 1.0)
    subsampling: int = 4
    accumulate: bool = False
    max_samples: int = 256
    reset_on_move: bool = True
    random_seed: bool = True
    scene_capacity: int = 2048

    def __post_init__(self) -> None:
        if self.fov <= 0.0 or self.fov >= 180.0:
            raise ValueError(f"Field of view = {self.fov} must be in (0, 180) degrees.")
        if self.max_bounces < 0:
            raise ValueError(f"max_bounces = {self.max_bounces} is negative.")
        if self.ray_epsilon <= 0.0:
            raise ValueError(f"ray_epsilon = {self.ray_epsilon} must be positive.")
        if self.throughput_cutoff < 0.0:
            raise ValueError(f"throughput_cutoff = {self.throughput_cutoff} is negative.")
        if self.subsampling < 1:
            raise ValueError(f"subsampling = {self.subsampling} must be at least 1.")
        if self.max_samples < 0:
            raise ValueError(f"max_samples = {self.max_samples} is negative.")
        if self.scene_capacity < 1:
            raise ValueError(f"scene_capacity = {self.scene_capacity} must be at least 1.")
        if len(self.light_position) != 3:
            raise ValueError("light_position must have 3 components.")
        if len(self.light_emission) != 3 or any(c < 0.0 for c in self.light_emission):
            raise ValueError(f"light_emission = {self.light_emission} must be 3 non-negative values.")
        _check_unit_color("background_color", self.background_color)
        _check_unit_color("error_color", self.error_color)
