import argparse
import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app_state import AppState
from bodyline import __version__
from bodyline.config import get_config, set_config_path
from bodyline.pose.base import PoseDetector
from routers import analysis

logger = logging.getLogger(__name__)


def create_app(detector: Optional[PoseDetector] = None) -> FastAPI:
	"""
	Build the API app. `detector` overrides the configured backend (tests, replay).
	"""

	@asynccontextmanager
	async def lifespan(app: FastAPI):
		state = AppState(get_config(), detector=detector)
		app.state.state = state
		try:
			yield
		finally:
			state.close()

	app = FastAPI(title="bodyline", version=__version__, lifespan=lifespan)
	app.add_middleware(
		CORSMiddleware,
		allow_origins=["*"],
		allow_credentials=True,
		allow_methods=["*"],
		allow_headers=["*"],
	)
	app.include_router(analysis.router)
	return app


def main() -> None:
	parser = argparse.ArgumentParser(description="Posture skeleton analysis API.")
	parser.add_argument("--host", default="127.0.0.1")
	parser.add_argument("--port", type=int, default=8000)
	parser.add_argument("--config", default=None, help="Path to config.json (default: repo root).")
	parser.add_argument("--debug", action="store_true", help="Enable debug logging.")
	args = parser.parse_args()

	if args.debug:
		logging.basicConfig(level=logging.DEBUG, format='%(levelname)s:%(name)s:%(message)s')
	else:
		logging.basicConfig(level=logging.INFO, format='%(levelname)s:%(name)s:%(message)s')
	if args.config:
		set_config_path(args.config)

	import uvicorn

	uvicorn.run(create_app(), host=args.host, port=int(args.port))


app = create_app()


if __name__ == "__main__":
	main()
