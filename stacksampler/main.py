import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from stacksampler.routers.subsample import router as subsample_router


def create_app() -> FastAPI:
	logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
	app = FastAPI(title="Stack Sampler - exposure sub-sampling API", version="0.1.0")

	# CORS (adjust origins in production)
	app.add_middleware(
		CORSMiddleware,
		allow_origins=["*"],
		allow_credentials=False,
		allow_methods=["*"],
		allow_headers=["*"],
	)

	app.include_router(subsample_router)

	return app


app = create_app()


if __name__ == "__main__":
	# Local dev server: uvicorn stacksampler.main:app --reload
	import uvicorn

	uvicorn.run("stacksampler.main:app", host="0.0.0.0", port=8000, reload=True)
