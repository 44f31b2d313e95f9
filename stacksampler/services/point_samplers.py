from __future__ import annotations

import logging
import math
from enum import Enum
from typing import List, Tuple, Union

import numpy as np


logger = logging.getLogger(__name__)


class SamplerType(str, Enum):
	MONTECARLO = "montecarlo"
	MONTECARLO_S = "montecarlo_s"
	REGULAR = "regular"
	DART_THROWING = "dart_throwing"


def parse_sampler_type(value: Union[str, SamplerType]) -> SamplerType:
	if isinstance(value, SamplerType):
		return value
	try:
		return SamplerType(str(value).strip().lower())
	except ValueError:
		supported = ", ".join(t.value for t in SamplerType)
		raise ValueError(f"Unknown sampler type {value!r} (supported: {supported})") from None


def _grid_side(n: int) -> int:
	return max(1, int(round(math.sqrt(n))))


def _montecarlo(rng: np.random.Generator, n: int) -> np.ndarray:
	return rng.random((n, 2))


def _stratified(rng: np.random.Generator, n: int) -> np.ndarray:
	k = _grid_side(n)
	gy, gx = np.mgrid[0:k, 0:k]
	cells = np.stack([gx.ravel(), gy.ravel()], axis=1).astype(np.float64)
	return (cells + rng.random(cells.shape)) / float(k)


def _regular(rng: np.random.Generator, n: int) -> np.ndarray:
	k = _grid_side(n)
	gy, gx = np.mgrid[0:k, 0:k]
	cells = np.stack([gx.ravel(), gy.ravel()], axis=1).astype(np.float64)
	return (cells + 0.5) / float(k)


def _dart_throwing(rng: np.random.Generator, n: int, max_attempts_per_point: int = 30) -> np.ndarray:
	"""Poisson-disk points by rejection; stops early when darts keep missing."""
	radius = 0.5 / math.sqrt(n)
	r2 = radius * radius
	accepted: List[np.ndarray] = []
	pts = np.empty((0, 2), dtype=np.float64)
	for _ in range(n * max_attempts_per_point):
		if len(accepted) >= n:
			break
		cand = rng.random(2)
		if pts.shape[0] and float(np.min(np.sum((pts - cand) ** 2, axis=1))) < r2:
			continue
		accepted.append(cand)
		pts = np.asarray(accepted)
	return pts


_GENERATORS = {
	SamplerType.MONTECARLO: _montecarlo,
	SamplerType.MONTECARLO_S: _stratified,
	SamplerType.REGULAR: _regular,
	SamplerType.DART_THROWING: _dart_throwing,
}


class PointSampler2D:
	"""
	Integer pixel coordinates over a width x height domain, generated per level.
	Level l requests count // 4**l points (at least one). Grid-based types round
	the count to a perfect square, dart throwing may return fewer points, so
	callers must read samples_at_level() instead of trusting the request.
	"""

	def __init__(self, sub_type: Union[str, SamplerType], domain: Tuple[int, int], count: int, levels: int = 1, seed: int = 0) -> None:
		width, height = int(domain[0]), int(domain[1])
		if width <= 0 or height <= 0:
			raise ValueError(f"Invalid sampling domain {width}x{height}")
		if count < 1 or levels < 1:
			raise ValueError("count and levels must be positive")
		self.sub_type = parse_sampler_type(sub_type)
		self.width = width
		self.height = height
		rng = np.random.default_rng(seed)
		gen = _GENERATORS[self.sub_type]
		self._levels: List[np.ndarray] = []
		for level in range(levels):
			n = max(1, count // (4 ** level))
			unit = gen(rng, n)
			xs = np.minimum((unit[:, 0] * width).astype(np.int64), width - 1)
			ys = np.minimum((unit[:, 1] * height).astype(np.int64), height - 1)
			self._levels.append(np.stack([xs, ys], axis=1))
		logger.debug("%s sampler over %dx%d: requested %d, level 0 has %d", self.sub_type.value, width, height, count, self.samples_at_level(0))

	@property
	def levels(self) -> int:
		return len(self._levels)

	def samples_at_level(self, level: int) -> int:
		return int(self._levels[level].shape[0])

	def sample_at(self, level: int, index: int) -> Tuple[int, int]:
		x, y = self._levels[level][index]
		return int(x), int(y)

	def coordinates(self, level: int = 0) -> np.ndarray:
		"""All (x, y) pairs of a level as an (N,2) int array."""
		return self._levels[level].copy()


def create_sampler(sub_type: Union[str, SamplerType], domain: Tuple[int, int], count: int, levels: int = 1, seed: int = 0) -> PointSampler2D:
	return PointSampler2D(sub_type, domain, count, levels=levels, seed=seed)
