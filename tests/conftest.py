from __future__ import annotations

import numpy as np
import pytest


@pytest.fixture
def ramp_image() -> np.ndarray:
	# 16x16 single channel holding every 8-bit level exactly once
	return (np.arange(256, dtype=np.float32) / 255.0).reshape(16, 16, 1)


@pytest.fixture
def rgb_stack():
	rng = np.random.default_rng(7)
	base = rng.random((12, 10, 3)).astype(np.float32)
	return [np.clip(base * g, 0.0, 1.0).astype(np.float32) for g in (0.25, 0.5, 1.0, 2.0)]
