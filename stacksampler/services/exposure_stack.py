from __future__ import annotations

from typing import List, Optional, Sequence, Tuple

import numpy as np

from stacksampler.services.image_utils import to_unit_float


def as_image(arr: np.ndarray) -> np.ndarray:
	"""
	View an exposure as an HxWxC float32 array. HxW arrays get a single channel axis.
	"""
	a = np.asarray(arr)
	if a.ndim == 2:
		a = a[..., np.newaxis]
	if a.ndim != 3:
		raise ValueError(f"Expected HxW or HxWxC image array, got shape {a.shape}")
	return to_unit_float(a)


def image_size(img: np.ndarray) -> Tuple[int, int]:
	"""Return (width, height)."""
	return int(img.shape[1]), int(img.shape[0])


def channel_count(img: np.ndarray) -> int:
	return 1 if img.ndim == 2 else int(img.shape[2])


def as_stack(stack: Sequence[np.ndarray]) -> List[np.ndarray]:
	return [as_image(img) for img in stack]


def stack_problem(stack: Sequence[np.ndarray], same_resolution: bool) -> Optional[str]:
	"""
	Describe why a stack cannot be sampled, or None when it is usable.
	Channel counts must always agree; resolutions only when pixel correspondence is needed.
	"""
	if any(img.shape[0] * img.shape[1] == 0 for img in stack):
		return "exposure has no pixels"
	channels = {channel_count(img) for img in stack}
	if len(channels) > 1:
		return f"exposures disagree on channel count: {sorted(channels)}"
	if same_resolution:
		sizes = {image_size(img) for img in stack}
		if len(sizes) > 1:
			res = sorted("{}x{}".format(w, h) for (w, h) in sizes)
			return f"exposures disagree on resolution: {res}"
	return None
