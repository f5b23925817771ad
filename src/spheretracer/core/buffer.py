"""Pixel buffer shared between the frame dispatcher and the display.

Pixels are stored row-major in flat Taichi fields, one cell per pixel, row 0
being the bottom row of the image. Two views exist: a float RGB field used
for progressive accumulation and an 8-bit RGB field used for single-sample
frames.

Capacity only grows. Resizing to fewer pixels keeps the allocation and only
shrinks the active region; resizing to more pixels allocates fields of exactly
the new size. Either way every active cell is reset to the error colour so
unwritten pixels are easy to spot.

Example:
    >>> buffer = PixelBuffer(error_color=(1.0, 0.0, 1.0))
    >>> buffer.resize(320, 200)
    >>> len(buffer)
    64000
"""

import logging

import numpy as np
import numpy.typing as npt
import taichi as ti
import taichi.math as tm

logger = logging.getLogger(__name__)

# Type alias for 3D vectors
vec3 = tm.vec3


@ti.kernel
def _fill_radiance(cells: ti.template(), count: ti.i32, color: vec3):
    for i in range(count):
        cells[i] = color


@ti.kernel
def _fill_rgb8(cells: ti.template(), count: ti.i32, color: vec3):
    for i in range(count):
        cells[i] = ti.cast(color * 255.0, ti.u8)


class PixelBuffer:
    """Row-major RGB buffer with grow-only capacity.

    Attributes:
        radiance: Float RGB field (accumulation mode).
        rgb8: 8-bit RGB field (single-sample mode).
    """

    def __init__(self, error_color: tuple[float, float, float] = (1.0, 0.0, 1.0)) -> None:
        self._error_color = tuple(float(c) for c in error_color)
        self._width = 0
        self._height = 0
        self._capacity = 0
        self.radiance = None
        self.rgb8 = None

    @property
    def width(self) -> int:
        return self._width

    @property
    def height(self) -> int:
        return self._height

    @property
    def capacity(self) -> int:
        """Number of cells allocated, at least ``len(self)``."""
        return self._capacity

    @property
    def error_color(self) -> tuple[float, float, float]:
        return self._error_color

    def __len__(self) -> int:
        return self._width * self._height

    def resize(self, width: int, height: int) -> None:
        """Set the active dimensions and fill every active cell with the error colour.

        Args:
            width: New width in pixels.
            height: New height in pixels.

        Raises:
            ValueError: If either dimension is zero or negative.
        """
        if width <= 0 or height <= 0:
            raise ValueError(f"Pixel buffer dimensions ({width}x{height}) must be positive")
        n = width * height
        if n > self._capacity:
            # Reserve exactly what is needed rather than over-allocating
            logger.debug("Growing pixel buffer from %d to %d cells", self._capacity, n)
            self.radiance = ti.Vector.field(3, dtype=ti.f32, shape=n)
            self.rgb8 = ti.Vector.field(3, dtype=ti.u8, shape=n)
            self._capacity = n
        self._width = width
        self._height = height
        self.clear()

    def clear(self) -> None:
        """Fill the active region of both views with the error colour."""
        if self._capacity == 0:
            return
        color = vec3(*self._error_color)
        _fill_radiance(self.radiance, len(self), color)
        _fill_rgb8(self.rgb8, len(self), color)

    def radiance_numpy(self) -> npt.NDArray[np.float32]:
        """Float view of the active region, shape (height, width, 3)."""
        return self._active(self.radiance, np.float32)

    def rgb8_numpy(self) -> npt.NDArray[np.uint8]:
        """8-bit view of the active region, shape (height, width, 3)."""
        return self._active(self.rgb8, np.uint8)

    def _active(self, cells, dtype) -> np.ndarray:
        if self._capacity == 0:
            return np.zeros((0, 0, 3), dtype=dtype)
        flat = cells.to_numpy()[: len(self)]
        return flat.reshape(self._height, self._width, 3).astype(dtype, copy=False)

    def __repr__(self) -> str:
        return f"PixelBuffer(width={self._width}, height={self._height}, capacity={self._capacity})"
