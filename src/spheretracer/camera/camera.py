"""First-person camera producing screen vectors for primary ray generation.

The tracer only relies on two things from a camera: its ``position`` and
``screen_vecs(width, height)``, which returns ``(screen_origin, x_axis,
y_axis)`` such that the world direction through normalized screen
coordinates ``(u, v)`` in [0, 1)^2 is::

    normalize(screen_origin + u * x_axis + v * y_axis)

``v = 0`` is the bottom row. World up is +Y.

Example:
    >>> from spheretracer.camera.camera import Camera
    >>> camera = Camera(position=(0.0, 1.0, 5.0), target=(0.0, 0.0, 0.0))
    >>> origin, x_axis, y_axis = camera.screen_vecs(640, 480)
"""

import math

import numpy as np
import numpy.typing as npt

WORLD_UP = np.array([0.0, 1.0, 0.0], dtype=np.float64)

Vec = npt.NDArray[np.float64]

# Pitch stays just short of straight up or down, where the right axis is undefined
MAX_PITCH = math.radians(89.0)


def _normalize(v: Vec) -> Vec:
    return v / np.linalg.norm(v)


def _rotate(v: Vec, axis: Vec, angle: float) -> Vec:
    """Rotate v about a unit axis by angle radians (Rodrigues' formula)."""
    cos_a = math.cos(angle)
    sin_a = math.sin(angle)
    return v * cos_a + np.cross(axis, v) * sin_a + axis * np.dot(axis, v) * (1.0 - cos_a)


class Camera:
    """A pinhole camera with a position and a forward direction.

    Attributes:
        position: Camera position in world space.
        direction: Unit forward direction.
        fov: Vertical field of view in degrees.
        mouse_sensitivity: Radians of rotation per unit of mouse movement.
    """

    def __init__(
        self,
        position: tuple[float, float, float],
        target: tuple[float, float, float],
        *,
        fov: float = 80.0,
        mouse_sensitivity: float = 1.8,
    ) -> None:
        self.position = np.asarray(position, dtype=np.float64)
        direction = np.asarray(target, dtype=np.float64) - self.position
        if np.linalg.norm(direction) == 0.0:
            raise ValueError("Camera target must differ from its position.")
        self.direction = _normalize(direction)
        self.fov = fov
        self.mouse_sensitivity = mouse_sensitivity

    @classmethod
    def from_config(cls, position, target, config) -> "Camera":
        """Create a camera using the field of view and sensitivity of a TracerConfig."""
        return cls(position, target, fov=config.fov, mouse_sensitivity=config.mouse_sensitivity)

    def screen_vecs(self, width: float, height: float) -> tuple[Vec, Vec, Vec]:
        """Screen origin and axes in world space.

        Args:
            width: Raster width in pixels.
            height: Raster height in pixels.

        Returns:
            Tuple (screen_origin, x_axis, y_axis). The origin is the
            bottom-left corner of the screen relative to the camera.
        """
        cam_right = _normalize(np.cross(self.direction, WORLD_UP))
        cam_up = _normalize(np.cross(cam_right, self.direction))
        aspect_ratio = width / height
        half_fov = math.radians(self.fov) / 2.0
        a = self.direction * math.cos(half_fov)
        b = cam_up * math.sin(half_fov)
        c = cam_right * math.sin(half_fov) * aspect_ratio
        screen_origin = a - c - b
        x_axis = 2.0 * (a - b - screen_origin)
        y_axis = 2.0 * (a - c - screen_origin)
        return screen_origin, x_axis, y_axis

    # -------------------------------------------------------------------------
    # Movement (driven by input handling)
    # -------------------------------------------------------------------------

    def move_forwards(self, d: float) -> None:
        """Move along the view direction projected onto the ground plane."""
        flat = np.array([self.direction[0], 0.0, self.direction[2]])
        self.position = self.position + _normalize(flat) * d

    def move_backwards(self, d: float) -> None:
        self.move_forwards(-d)

    def move_right(self, d: float) -> None:
        cam_right = _normalize(np.cross(self.direction, WORLD_UP))
        self.position = self.position + cam_right * d

    def move_left(self, d: float) -> None:
        self.move_right(-d)

    def move_up(self, d: float) -> None:
        self.position = self.position + WORLD_UP * d

    def move_down(self, d: float) -> None:
        self.move_up(-d)

    def mouse_rotate(self, dx: float, dy: float) -> None:
        """Yaw about world up by dx and pitch about the right axis by dy.

        Pitch is clamped to +-MAX_PITCH.

        Args:
            dx: Horizontal mouse movement in normalized screen units.
            dy: Vertical mouse movement in normalized screen units.
        """
        direction = _rotate(self.direction, WORLD_UP, -self.mouse_sensitivity * dx)
        right = _normalize(np.cross(direction, WORLD_UP))
        pitch = math.asin(float(np.clip(direction[1], -1.0, 1.0)))
        new_pitch = min(max(pitch - self.mouse_sensitivity * dy, -MAX_PITCH), MAX_PITCH)
        self.direction = _normalize(_rotate(direction, right, new_pitch - pitch))

    def __repr__(self) -> str:
        return f"Camera(position={self.position.tolist()}, direction={self.direction.tolist()}, fov={self.fov})"
