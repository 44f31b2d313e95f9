import numpy as np

from stacksampler.services.quantize import clamp_u8, quantize_unit


def test_quantize_unit_rounds_half_away_from_zero():
	assert quantize_unit(0.5) == 128  # 127.5
	assert quantize_unit(0.0) == 0
	assert quantize_unit(1.0) == 255
	assert quantize_unit(10.0 / 255.0) == 10


def test_quantize_unit_clamps_out_of_range():
	out = quantize_unit(np.array([-0.3, 1.7, np.nan], dtype=np.float32))
	assert out.dtype == np.int32
	assert out.tolist() == [0, 255, 0]


def test_clamp_u8_scalar_and_array():
	assert clamp_u8(-4) == 0
	assert clamp_u8(300) == 255
	assert clamp_u8(17) == 17
	assert clamp_u8(np.array([0, 256, 12])).tolist() == [0, 255, 12]
