from __future__ import annotations

import logging
from io import BytesIO
from typing import Any, Dict, List, Optional, Sequence

import numpy as np
import piexif
from PIL import Image


logger = logging.getLogger(__name__)


def _rational_to_float(x: Any) -> Optional[float]:
	if x is None:
		return None
	if isinstance(x, tuple) and len(x) == 2:
		num, den = x
		if not den:
			return None
		return float(num) / float(den)
	try:
		return float(x)
	except (TypeError, ValueError):
		return None


def _apex_to_time(apex: Optional[float]) -> Optional[float]:
	return 2.0 ** (-apex) if apex is not None else None


def exposure_time(data: bytes) -> Optional[float]:
	"""Exposure time in seconds from EXIF (ExposureTime, else APEX ShutterSpeedValue)."""
	try:
		exif = piexif.load(data).get("Exif", {})
	except Exception as e:
		# piexif raises bare ValueError/struct errors on files without an EXIF block
		logger.debug("No readable EXIF: %s", e)
		return None
	t = _rational_to_float(exif.get(piexif.ExifIFD.ExposureTime))
	if t is None:
		t = _apex_to_time(_rational_to_float(exif.get(piexif.ExifIFD.ShutterSpeedValue)))
	return t


def mean_brightness(data: bytes) -> float:
	with Image.open(BytesIO(data)) as img:
		return float(np.asarray(img.convert("L"), dtype=np.float64).mean())


def describe(data: bytes) -> Dict[str, Any]:
	return {"exposure_time_s": exposure_time(data), "mean_brightness": mean_brightness(data)}


def exposure_order(blobs: Sequence[bytes]) -> List[int]:
	"""
	Indices of encoded brackets sorted darkest to brightest.
	Uses EXIF exposure time when any frame carries it, mean brightness otherwise;
	frames missing the chosen key sort last, ties keep upload order.
	"""
	records = [describe(b) for b in blobs]
	key = "exposure_time_s" if any(r["exposure_time_s"] is not None for r in records) else "mean_brightness"
	return sorted(range(len(records)), key=lambda i: (float("inf") if records[i][key] is None else records[i][key], i))
