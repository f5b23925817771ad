"""Per-ray random number generation.

Each path owns a 32-bit generator state. States are derived from the frame
seed and the pixel coordinates with a PCG hash, so a pixel's random stream
depends only on ``(frame_seed, row, col)`` and never on which thread ran it
or in what order rows were processed.

Functions here are pure: they take a state and hand back the advanced state
instead of mutating shared storage.
"""

import taichi as ti

_PCG_MULTIPLIER = 747796405
_PCG_INCREMENT = 2891336453
_PCG_OUTPUT_MULTIPLIER = 277803737

# 2^-24, maps the top 24 bits of a word onto [0, 1)
_INV_2_24 = 1.0 / 16777216.0


@ti.func
def _pcg_output(state: ti.u32) -> ti.u32:
    shift = (state >> ti.u32(28)) + ti.u32(4)
    word = ((state >> shift) ^ state) * ti.u32(_PCG_OUTPUT_MULTIPLIER)
    return (word >> ti.u32(22)) ^ word


@ti.func
def pcg_hash(value: ti.u32) -> ti.u32:
    """PCG-RXS-M-XS hash of a 32-bit value."""
    state = value * ti.u32(_PCG_MULTIPLIER) + ti.u32(_PCG_INCREMENT)
    return _pcg_output(state)


@ti.func
def seed(frame_seed: ti.u32, row: ti.i32, col: ti.i32) -> ti.u32:
    """Derive the generator state of one pixel.

    Args:
        frame_seed: Seed shared by every pixel of the frame.
        row: Pixel row in the trace raster.
        col: Pixel column in the trace raster.

    Returns:
        The initial generator state for the pixel's primary ray.
    """
    h = pcg_hash(frame_seed)
    h = pcg_hash(h ^ ti.cast(row, ti.u32))
    return pcg_hash(h ^ ti.cast(col, ti.u32))


@ti.func
def rand_f32(state: ti.u32):
    """Draw a uniform float in [0, 1) and advance the generator.

    Args:
        state: Current generator state.

    Returns:
        A tuple (value, next_state).
    """
    next_state = state * ti.u32(_PCG_MULTIPLIER) + ti.u32(_PCG_INCREMENT)
    word = _pcg_output(next_state)
    value = ti.cast(word >> ti.u32(8), ti.f32) * _INV_2_24
    return value, next_state
