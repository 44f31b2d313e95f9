from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from stacksampler.services.point_samplers import SamplerType, parse_sampler_type


DEFAULT_SAMPLES = 100
MAX_SAMPLES = 65536
OUTLIER_LOW = 0.05
OUTLIER_HIGH = 1.0 - OUTLIER_LOW


class SubSampleConfig(BaseModel):
	"""Settings for one SubSampleStack.compute call."""

	model_config = ConfigDict(extra="forbid")

	n_samples: int = Field(DEFAULT_SAMPLES, ge=0, le=MAX_SAMPLES, description="Requested samples per channel; spatial sub-types may adjust it")
	remove_outliers: bool = Field(True, description="Mark samples near black/white clipping as -1")
	spatial: bool = Field(False, description="Sample pixel coordinates instead of inverting histograms")
	sub_type: SamplerType = Field(SamplerType.MONTECARLO_S, description="Point sampler used by the spatial strategy")
	seed: int = Field(0, description="Seed of the point sampler")
	outlier_low: float = Field(OUTLIER_LOW, ge=0.0, le=1.0, description="Fraction of 255 at or below which samples are rejected")
	outlier_high: float = Field(OUTLIER_HIGH, ge=0.0, le=1.0, description="Fraction of 255 above which samples are rejected")

	@field_validator("sub_type", mode="before")
	@classmethod
	def _parse_sub_type(cls, v):
		return parse_sampler_type(v)

	@model_validator(mode="after")
	def _check_thresholds(self) -> "SubSampleConfig":
		if self.outlier_low >= self.outlier_high:
			raise ValueError("outlier_low must be below outlier_high")
		return self
