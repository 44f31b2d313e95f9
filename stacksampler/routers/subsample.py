from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, List

from fastapi import APIRouter, File, Form, HTTPException, UploadFile
from PIL import UnidentifiedImageError
from pydantic import ValidationError
from starlette.concurrency import run_in_threadpool

from stacksampler.services.config import DEFAULT_SAMPLES, SubSampleConfig
from stacksampler.services.image_utils import decode_image
from stacksampler.services.metadata import exposure_order
from stacksampler.services.point_samplers import SamplerType
from stacksampler.services.subsample import SubSampleStack


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/sampling", tags=["sampling"])


@router.get("/sub-types", summary="List point sampler sub-types for the spatial strategy")
def sub_types():
	return {"sub_types": [t.value for t in SamplerType], "default": SamplerType.MONTECARLO_S.value}


@router.post("/subsample", summary="Sub-sample an uploaded exposure bracket for response calibration")
async def subsample(
	files: List[UploadFile] = File(...),
	n_samples: int = Form(DEFAULT_SAMPLES),
	remove_outliers: bool = Form(True),
	spatial: bool = Form(False),
	sub_type: str = Form(SamplerType.MONTECARLO_S.value),
	seed: int = Form(0),
	order_by_exposure: bool = Form(True),
):
	try:
		config = SubSampleConfig(
			n_samples=n_samples,
			remove_outliers=remove_outliers,
			spatial=spatial,
			sub_type=sub_type,
			seed=seed,
		)
	except ValidationError as e:
		raise HTTPException(status_code=422, detail=e.errors(include_url=False, include_context=False))

	names: List[str] = []
	blobs: List[bytes] = []
	for f in files:
		blobs.append(await f.read())
		names.append(Path(f.filename or "image").name)

	return await run_in_threadpool(_sample_bracket, names, blobs, config, order_by_exposure)


def _sample_bracket(names: List[str], blobs: List[bytes], config: SubSampleConfig, order_by_exposure: bool) -> Dict[str, Any]:
	"""Decode, order and sub-sample one bracket; runs in the threadpool, off the event loop."""
	decoded = []
	for name, data in zip(names, blobs):
		try:
			decoded.append(decode_image(data))
		except (UnidentifiedImageError, OSError) as e:
			raise HTTPException(status_code=400, detail=f"Cannot decode {name}: {e}")

	order = exposure_order(blobs) if order_by_exposure else list(range(len(blobs)))
	stack = [decoded[i] for i in order]

	# one engine per request: SubSampleStack is not re-entrant
	engine = SubSampleStack()
	engine.compute_from_config(stack, config)
	samples = engine.get()
	logger.info("Sub-sampled %d exposures: %d samples x %d channels", engine.exposures, engine.get_sample_count(), engine.channels)

	return {
		"sample_count": engine.get_sample_count(),
		"channels": engine.channels,
		"exposures": engine.exposures,
		"order": [names[i] for i in order],
		"samples": samples.tolist() if samples is not None else [],
	}
