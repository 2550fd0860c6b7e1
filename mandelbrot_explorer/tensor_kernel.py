"""TensorFlow escape-time kernel for the band renderer."""

from __future__ import annotations

import os

from . import verbosity

if not verbosity.VERBOSE and os.environ.get("TF_CPP_MIN_LOG_LEVEL") is None:
    os.environ["TF_CPP_MIN_LOG_LEVEL"] = "3"

import numpy as np
import tensorflow as tf

from .renderer import HORIZON

if not verbosity.VERBOSE:
    tf.get_logger().setLevel("ERROR")

DEVICE = "/CPU:0"

_GRID_SPEC = tf.TensorSpec(shape=[None, None], dtype=tf.float64)


@tf.function
def _escape_step(
    zr: tf.Tensor,
    zi: tf.Tensor,
    cr: tf.Tensor,
    ci: tf.Tensor,
    ns: tf.Tensor,
    active: tf.Tensor,
) -> tuple[tf.Tensor, tf.Tensor, tf.Tensor, tf.Tensor]:
    """Check the escape radius, then advance the points that are still bounded."""

    zr2 = zr * zr
    zi2 = zi * zi
    horizon = tf.constant(HORIZON, dtype=zr.dtype)
    active = tf.logical_and(active, tf.logical_not(zr2 + zi2 > horizon))
    ns = ns + tf.cast(active, tf.int32)
    next_zi = tf.constant(2.0, dtype=zr.dtype) * zr * zi + ci
    zr = tf.where(active, zr2 - zi2 + cr, zr)
    zi = tf.where(active, next_zi, zi)
    return zr, zi, ns, active


@tf.function(input_signature=[_GRID_SPEC, _GRID_SPEC, tf.TensorSpec(shape=[], dtype=tf.int32)])
def _escape_run(cr: tf.Tensor, ci: tf.Tensor, limit: tf.Tensor) -> tf.Tensor:
    """Iterate every point of the grid with a TensorFlow while loop."""

    i = tf.constant(0, dtype=tf.int32)
    zr = tf.zeros_like(cr)
    zi = tf.zeros_like(ci)
    ns = tf.zeros_like(cr, dtype=tf.int32)
    active = tf.ones_like(cr, dtype=tf.bool)

    def cond(i, zr, zi, ns, active):
        return tf.logical_and(tf.less(i, limit), tf.reduce_any(active))

    def body(i, zr, zi, ns, active):
        zr, zi, ns, active = _escape_step(zr, zi, cr, ci, ns, active)
        return i + 1, zr, zi, ns, active

    _, _, _, ns, _ = tf.while_loop(cond, body, (i, zr, zi, ns, active))
    return ns


def escape_counts(cr: np.ndarray, ci: np.ndarray, limit: int) -> np.ndarray:
    """Escape iteration per point; points that stay bounded report ``limit``.

    A point that escapes at iteration ``n`` passed ``n`` radius checks before it,
    so the number of steps it stayed active is its escape count.
    """

    with tf.device(DEVICE):
        ns = _escape_run(
            tf.convert_to_tensor(cr, dtype=tf.float64),
            tf.convert_to_tensor(ci, dtype=tf.float64),
            tf.constant(limit, dtype=tf.int32),
        )
    return ns.numpy().astype(np.int64)
