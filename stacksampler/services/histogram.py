from __future__ import annotations

import cv2
import numpy as np

from stacksampler.services.quantize import round_half_away


HISTOGRAM_BINS = 256
VALUE_DOMAINS = ("ldr", "lin")


def _bin_indices(values: np.ndarray, bins: int, value_domain: str) -> np.ndarray:
	v = np.nan_to_num(values.astype(np.float64), nan=0.0)
	if value_domain == "lin":
		# stretch the channel's own [min,max] over the bins
		lo = float(v.min()) if v.size else 0.0
		hi = float(v.max()) if v.size else 0.0
		v = (v - lo) / (hi - lo) if hi > lo else np.zeros_like(v)
	idx = round_half_away(v * float(bins - 1))
	return np.clip(idx, 0, bins - 1).astype(np.uint8)


def compute_histogram(image: np.ndarray, channel: int, bins: int = HISTOGRAM_BINS, value_domain: str = "ldr") -> np.ndarray:
	"""
	Count one channel of an HxWxC image into `bins` buckets.

	value_domain "ldr" treats values as [0,1] intensities quantized to 8-bit
	equivalents (bin = round(x*255) for 256 bins); "lin" stretches the channel's
	own range. Returns float64 counts of length `bins`.
	"""
	if value_domain not in VALUE_DOMAINS:
		raise ValueError(f"Unknown value domain: {value_domain!r}")
	if not 2 <= bins <= 256:
		raise ValueError("bins must be in [2,256]")
	img = np.asarray(image)
	plane = img if img.ndim == 2 else img[..., channel]
	idx = np.ascontiguousarray(_bin_indices(plane, bins, value_domain))
	if idx.ndim == 1:
		idx = idx[np.newaxis, :]
	hist = cv2.calcHist([idx], [0], None, [bins], [0, bins])
	return hist.reshape(-1).astype(np.float64)


def cumulative(counts: np.ndarray, normalize: bool = True) -> np.ndarray:
	"""
	Running sum of histogram counts. When normalized the result is non-decreasing
	in [0,1] with the last entry exactly 1 (all zeros for an empty histogram).
	"""
	cdf = np.cumsum(np.asarray(counts, dtype=np.float64))
	if normalize and cdf.size and cdf[-1] > 0:
		cdf = cdf / cdf[-1]
	return cdf
