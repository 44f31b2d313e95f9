from __future__ import annotations

from io import BytesIO
from typing import Optional

import numpy as np
import piexif
from PIL import Image


def constant_stack(values, size=(2, 2), channels: int = 1):
	h, w = size
	return [np.full((h, w, channels), v, dtype=np.float32) for v in values]


def encode_png(level: int, size=(8, 8)) -> bytes:
	arr = np.full((size[1], size[0], 3), level, dtype=np.uint8)
	buf = BytesIO()
	Image.fromarray(arr, mode="RGB").save(buf, format="PNG")
	return buf.getvalue()


def encode_jpeg(level: int, exposure: Optional[tuple] = None, size=(8, 8)) -> bytes:
	arr = np.full((size[1], size[0], 3), level, dtype=np.uint8)
	buf = BytesIO()
	kwargs = {}
	if exposure is not None:
		kwargs["exif"] = piexif.dump({"0th": {}, "Exif": {piexif.ExifIFD.ExposureTime: exposure}})
	Image.fromarray(arr, mode="RGB").save(buf, format="JPEG", quality=95, **kwargs)
	return buf.getvalue()
