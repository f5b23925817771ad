"""Host-side scene description and its device copy.

A ``Scene`` is an unordered list of spheres rebuilt wholesale by whoever
drives the renderer, typically once per frame. The tracer never mutates it;
it copies each frame's snapshot into a ``SceneBuffer`` (a Taichi struct field
of ``Sphere`` records) before dispatching the frame.

Example:
    >>> from spheretracer.materials.dielectric import MaterialParams
    >>> from spheretracer.scene.scene import Scene
    >>> scene = Scene()
    >>> scene.add_sphere((0.0, 0.0, 0.0), 1.0, MaterialParams.diffuse((0.0, 0.0, 1.0)))
    0
    >>> len(scene)
    1
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator
from dataclasses import dataclass

import numpy as np
import numpy.typing as npt

from spheretracer.geometry.sphere import Sphere
from spheretracer.materials.dielectric import MaterialParams

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SphereParams:
    """A sphere as described by the scene builder.

    Attributes:
        center: Center point (x, y, z).
        radius: Radius, strictly positive.
        material: Surface material.
    """

    center: tuple[float, float, float]
    radius: float
    material: MaterialParams

    def __post_init__(self) -> None:
        if self.radius <= 0.0:
            raise ValueError(f"Sphere radius = {self.radius} must be positive.")


class Scene:
    """An unordered collection of spheres.

    Order carries no meaning for rendering; it only fixes the index returned
    by ``add_sphere``.
    """

    def __init__(self, spheres: Iterable[SphereParams] = ()) -> None:
        self._spheres: list[SphereParams] = list(spheres)

    def add_sphere(
        self,
        center: tuple[float, float, float],
        radius: float,
        material: MaterialParams,
    ) -> int:
        """Add a sphere and return its index.

        Raises:
            ValueError: If the radius is not positive.
        """
        self._spheres.append(SphereParams(tuple(center), float(radius), material))
        return len(self._spheres) - 1

    def __len__(self) -> int:
        return len(self._spheres)

    def __iter__(self) -> Iterator[SphereParams]:
        return iter(self._spheres)

    def to_numpy(self, capacity: int, *, diffuse_only: bool = False) -> dict:
        """Pack the scene into arrays matching a ``Sphere`` struct field.

        Rows past ``len(self)`` are zero padding.

        Args:
            capacity: Number of records in the destination field.
            diffuse_only: Replace every material by the diffuse preset of
                its own colour.

        Returns:
            A nested dict of float32 arrays keyed like the Sphere struct.

        Raises:
            RuntimeError: If the scene does not fit in ``capacity`` records.
        """
        if len(self._spheres) > capacity:
            raise RuntimeError(
                f"Scene has {len(self._spheres)} spheres, capacity is {capacity}"
            )
        centers = np.zeros((capacity, 3), dtype=np.float32)
        radii = np.zeros(capacity, dtype=np.float32)
        colors = np.zeros((capacity, 3), dtype=np.float32)
        fresnels = np.zeros((capacity, 3), dtype=np.float32)
        shininess = np.zeros(capacity, dtype=np.float32)
        for i, sphere in enumerate(self._spheres):
            material = sphere.material
            if diffuse_only:
                material = MaterialParams.diffuse(material.color)
            centers[i] = sphere.center
            radii[i] = sphere.radius
            colors[i] = material.color
            fresnels[i] = material.fresnel
            shininess[i] = material.shininess
        return {
            "center": centers,
            "radius": radii,
            "mat": {"color": colors, "fresnel": fresnels, "shininess": shininess},
        }


class SceneBuffer:
    """Device-side copy of a scene snapshot.

    Capacity only grows: uploading a scene larger than the current field
    allocates a new, larger field, and kernels taking ``spheres`` as a
    template argument are recompiled for it.

    Attributes:
        spheres: Taichi struct field of Sphere records.
        count: Number of valid records uploaded by the last ``upload``.
    """

    def __init__(self, capacity: int = 1024) -> None:
        if capacity < 1:
            raise ValueError(f"Scene capacity = {capacity} must be at least 1.")
        self._capacity = capacity
        self.spheres = Sphere.field(shape=capacity)
        self.count = 0

    @property
    def capacity(self) -> int:
        """Number of records the current field can hold."""
        return self._capacity

    def upload(self, scene: Scene, *, diffuse_only: bool = False) -> None:
        """Copy a scene snapshot into the device field.

        Args:
            scene: The scene to upload.
            diffuse_only: Render every sphere with a diffuse material.
        """
        if len(scene) > self._capacity:
            new_capacity = max(len(scene), 2 * self._capacity)
            logger.debug("Growing scene buffer from %d to %d spheres", self._capacity, new_capacity)
            self._capacity = new_capacity
            self.spheres = Sphere.field(shape=new_capacity)
        self.spheres.from_numpy(scene.to_numpy(self._capacity, diffuse_only=diffuse_only))
        self.count = len(scene)

    def centers_numpy(self) -> npt.NDArray[np.float32]:
        """Centers of the uploaded spheres, shape (count, 3)."""
        return self.spheres.center.to_numpy()[: self.count]

    def __repr__(self) -> str:
        return f"SceneBuffer(count={self.count}, capacity={self._capacity})"
