"""
Stack sub-sampling for camera response calibration.

Picks a few per-channel 8-bit samples across every exposure of a bracket and
packs them into one flat int32 buffer with the layout

	index = channel * (n_samples * exposures) + sample * exposures + exposure

Entries are intensities in [0,255] or -1 when rejected as clipped.
"""

from __future__ import annotations

import logging
import math
from typing import List, Optional, Sequence, Tuple, Union

import numpy as np

from stacksampler.services.config import OUTLIER_HIGH, OUTLIER_LOW, SubSampleConfig
from stacksampler.services.exposure_stack import as_stack, channel_count, image_size, stack_problem
from stacksampler.services.histogram import HISTOGRAM_BINS, compute_histogram, cumulative
from stacksampler.services.point_samplers import SamplerType, create_sampler
from stacksampler.services.quantize import U8_MAX, clamp_u8, quantize_unit


logger = logging.getLogger(__name__)

INVALID_SAMPLE = -1


def packed_index(channel: int, sample: int, exposure: int, n_samples: int, exposures: int) -> int:
	return channel * (n_samples * exposures) + sample * exposures + exposure


def outlier_thresholds(low: float = OUTLIER_LOW, high: float = OUTLIER_HIGH) -> Tuple[int, int]:
	"""Integer (t_min, t_max) on the 255 scale: floor(0.05*255)=12, floor(0.95*255)=242."""
	return int(math.floor(low * U8_MAX)), int(math.floor(high * U8_MAX))


def grossberg_samples(stack: Sequence[np.ndarray], n_samples: int) -> np.ndarray:
	"""
	Histogram-quantile sampling (Grossberg & Nayar).

	Every exposure's cumulative histogram is inverted at the same quantiles
	u_i = i/(n-1), so the values of one sample slot are population-equivalent
	across exposures and need no pixel correspondence. Returns the packed buffer.
	"""
	exposures = len(stack)
	channels = channel_count(stack[0])
	div = float(max(n_samples - 1, 1))
	u = np.arange(n_samples, dtype=np.float64) / div

	logger.debug("Computing %d histograms", channels * exposures)
	packed = np.empty(channels * n_samples * exposures, dtype=np.int32)
	buf = packed.reshape(channels, n_samples, exposures)
	for k in range(channels):
		for j in range(exposures):
			cdf = cumulative(compute_histogram(stack[j], k, HISTOGRAM_BINS, "ldr"), normalize=True)
			# first bin whose cumulative value strictly exceeds u; past-the-end clamps to 255
			pos = np.searchsorted(cdf, u, side="right")
			buf[k, :, j] = clamp_u8(pos)
	return packed


def spatial_samples(stack: Sequence[np.ndarray], n_samples: int, sub_type: Union[str, SamplerType] = SamplerType.MONTECARLO_S, seed: int = 0) -> np.ndarray:
	"""
	Read the same pixel coordinates from every exposure.

	The point sampler may hand back a different count than requested; the
	returned buffer is sized by the actual count, which callers recover as
	len(buf) // (channels * exposures).
	"""
	exposures = len(stack)
	channels = channel_count(stack[0])
	sampler = create_sampler(sub_type, image_size(stack[0]), n_samples, levels=1, seed=seed)
	actual = sampler.samples_at_level(0)
	logger.debug("Spatial sub-sampling: %d samples (requested %d)", actual, n_samples)

	coords = sampler.coordinates(0)
	xs = coords[:, 0]
	ys = coords[:, 1]
	packed = np.empty(channels * actual * exposures, dtype=np.int32)
	buf = packed.reshape(channels, actual, exposures)
	for j, img in enumerate(stack):
		fetched = img[ys, xs, :]  # [N,C]
		buf[:, :, j] = quantize_unit(fetched).T
	return packed


def reject_outliers(buf: np.ndarray, low: float = OUTLIER_LOW, high: float = OUTLIER_HIGH) -> int:
	"""Overwrite likely-clipped entries with -1 in place; returns how many were rejected."""
	t_min, t_max = outlier_thresholds(low, high)
	mask = (buf <= t_min) | (buf > t_max)
	buf[mask] = INVALID_SAMPLE
	return int(np.count_nonzero(mask))


class SubSampleStack:
	"""
	Owns the packed sample buffer of the last compute() call.

	Not re-entrant: use one instance per worker or serialize calls externally.
	A stack with fewer than two exposures, fewer than two requested samples or
	inconsistent images leaves the empty state; check get_sample_count() > 0.
	"""

	def __init__(self) -> None:
		self.exposures = 0
		self.channels = 0
		self.n_samples = 0
		self.total = 0
		self._samples: Optional[np.ndarray] = None

	def destroy(self) -> None:
		self.exposures = 0
		self.channels = 0
		self.n_samples = 0
		self.total = 0
		self._samples = None

	def compute(
		self,
		stack: Sequence[np.ndarray],
		n_samples: int,
		remove_outliers: bool,
		spatial: bool = False,
		sub_type: Union[str, SamplerType] = SamplerType.MONTECARLO_S,
		seed: int = 0,
		outlier_low: float = OUTLIER_LOW,
		outlier_high: float = OUTLIER_HIGH,
	) -> None:
		self.destroy()

		if len(stack) < 2 or int(n_samples) < 2:
			logger.debug("Nothing to sample: %d exposures, %d samples requested", len(stack), int(n_samples))
			return

		images: List[np.ndarray] = as_stack(stack)
		problem = stack_problem(images, same_resolution=spatial)
		if problem is not None:
			logger.warning("Rejecting exposure stack: %s", problem)
			return

		self.channels = channel_count(images[0])
		self.exposures = len(images)

		if spatial:
			buf = spatial_samples(images, int(n_samples), sub_type=sub_type, seed=seed)
			self.n_samples = len(buf) // (self.channels * self.exposures)
		else:
			buf = grossberg_samples(images, int(n_samples))
			self.n_samples = int(n_samples)

		self.total = self.n_samples * self.channels * self.exposures
		if remove_outliers:
			rejected = reject_outliers(buf, outlier_low, outlier_high)
			logger.debug("Outlier rejection: %d of %d samples invalidated", rejected, self.total)
		# buf owns its memory; views from get() stay read-only
		buf.flags.writeable = False
		self._samples = buf

	def compute_from_config(self, stack: Sequence[np.ndarray], config: SubSampleConfig) -> None:
		self.compute(
			stack,
			config.n_samples,
			config.remove_outliers,
			spatial=config.spatial,
			sub_type=config.sub_type,
			seed=config.seed,
			outlier_low=config.outlier_low,
			outlier_high=config.outlier_high,
		)

	def get(self) -> Optional[np.ndarray]:
		"""Read-only view of the packed buffer; invalid after the next compute()/destroy()."""
		if self._samples is None:
			return None
		view = self._samples.view()
		view.flags.writeable = False
		return view

	def get_sample_count(self) -> int:
		return self.n_samples

	def sample(self, channel: int, slot: int, exposure: int) -> int:
		if self._samples is None:
			raise IndexError("No samples computed")
		if not (0 <= channel < self.channels and 0 <= slot < self.n_samples and 0 <= exposure < self.exposures):
			raise IndexError(f"Sample ({channel}, {slot}, {exposure}) out of range")
		return int(self._samples[packed_index(channel, slot, exposure, self.n_samples, self.exposures)])

	def as_tensor(self) -> Optional[np.ndarray]:
		"""The buffer viewed as [channels, samples, exposures]."""
		view = self.get()
		if view is None:
			return None
		return view.reshape(self.channels, self.n_samples, self.exposures)
