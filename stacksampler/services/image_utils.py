from __future__ import annotations

from io import BytesIO
from typing import Callable, Dict

import numpy as np
from PIL import ExifTags, Image


_ORIENTATION_OPS: Dict[int, Callable[[Image.Image], Image.Image]] = {
	2: lambda im: im.transpose(Image.FLIP_LEFT_RIGHT),
	3: lambda im: im.rotate(180, expand=True),
	4: lambda im: im.transpose(Image.FLIP_TOP_BOTTOM),
	5: lambda im: im.transpose(Image.FLIP_LEFT_RIGHT).rotate(90, expand=True),
	6: lambda im: im.rotate(270, expand=True),
	7: lambda im: im.transpose(Image.FLIP_LEFT_RIGHT).rotate(270, expand=True),
	8: lambda im: im.rotate(90, expand=True),
}


def exif_orientation(img: Image.Image) -> int:
	exif = img.getexif()
	if not exif:
		return 1
	for tag_id, value in exif.items():
		if ExifTags.TAGS.get(tag_id) == "Orientation":
			try:
				return int(value)
			except (TypeError, ValueError):
				return 1
	return 1


def apply_exif_orientation(img: Image.Image) -> Image.Image:
	op = _ORIENTATION_OPS.get(exif_orientation(img))
	return op(img) if op is not None else img


def to_unit_float(arr: np.ndarray) -> np.ndarray:
	"""
	Convert a pixel array to float32 in the nominal [0,1] range.
	Integer arrays are divided by their dtype maximum; float arrays pass through.
	"""
	a = np.asarray(arr)
	if a.dtype == np.bool_:
		return a.astype(np.float32)
	if np.issubdtype(a.dtype, np.integer):
		return (a.astype(np.float32) / float(np.iinfo(a.dtype).max)).astype(np.float32)
	if np.issubdtype(a.dtype, np.floating):
		return a.astype(np.float32, copy=False)
	raise TypeError(f"Unsupported pixel dtype: {a.dtype}")


def decode_image(data: bytes) -> np.ndarray:
	"""
	Decode an encoded image (JPEG/PNG/TIFF...) into an HxWx3 float32 array in [0,1].
	Values stay in the camera's encoded (non-linear) space: response calibration needs them as captured.
	"""
	img = Image.open(BytesIO(data))
	img = apply_exif_orientation(img)
	if img.mode != "RGB":
		img = img.convert("RGB")
	return to_unit_float(np.asarray(img))
