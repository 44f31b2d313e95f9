from __future__ import annotations

from typing import Union

import numpy as np


U8_MAX = 255


def clamp_u8(value: Union[int, np.ndarray]) -> Union[int, np.ndarray]:
	"""Clamp an integer (or integer array) into [0,255]."""
	if isinstance(value, np.ndarray):
		return np.clip(value, 0, U8_MAX).astype(np.int32)
	return int(min(max(int(value), 0), U8_MAX))


def round_half_away(x: np.ndarray) -> np.ndarray:
	# np.rint rounds half to even; 8-bit quantization rounds half away from zero
	return np.sign(x) * np.floor(np.abs(x) + 0.5)


def quantize_unit(arr: Union[float, np.ndarray]) -> Union[int, np.ndarray]:
	"""
	Map intensities nominally in [0,1] to integers in [0,255].
	Scalars return int, arrays return int32 arrays of the same shape.
	"""
	a = np.nan_to_num(np.asarray(arr, dtype=np.float64), nan=0.0)
	q = np.clip(round_half_away(a * float(U8_MAX)), 0, U8_MAX).astype(np.int32)
	if q.ndim == 0:
		return int(q)
	return q
