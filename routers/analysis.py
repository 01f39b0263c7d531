"""Posture analysis routes. Routes: /health, /joints, /posture-lines, /analyze, /render, /angle."""
import asyncio
import logging
from io import BytesIO
from typing import Optional

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile
from fastapi.responses import Response
from PIL import Image, UnidentifiedImageError

from app_state import AppState, get_state
from bodyline import __version__
from bodyline.errors import PostureError
from bodyline.export import observations_from_rows, observations_to_dicts
from bodyline.pose.joints import parent_of
from bodyline.pose.posture import POSTURE_LINES, PostureLine, measure_all, measure_angle
from bodyline.pose.renderer import format_angle
from bodyline.pose.types import AnalysisState, Joint
from schemas.requests import AngleRequest
from schemas.responses import AnalyzeResponse, AngleResponse, JointRow, PostureLineRow

logger = logging.getLogger(__name__)

router = APIRouter(tags=["analysis"])


def _http_error(e: PostureError) -> HTTPException:
	return HTTPException(status_code=e.code, detail={"error": e.message, "error_code": e.error_code})


async def _read_image(upload: UploadFile) -> Image.Image:
	data = await upload.read()
	if not data:
		raise HTTPException(status_code=400, detail="Empty upload")
	try:
		img = Image.open(BytesIO(data))
		img.load()
	except (UnidentifiedImageError, OSError) as e:
		raise HTTPException(status_code=400, detail=f"Unreadable image: {e}")
	return img


def _parse_line(line: Optional[str]) -> Optional[PostureLine]:
	if not line:
		return None
	try:
		return PostureLine.parse(line)
	except PostureError as e:
		raise _http_error(e)


@router.get("/health")
async def health(state: AppState = Depends(get_state)):
	return {
		"ok": True,
		"version": __version__,
		"detector": state.detector.name() if state.detector else None,
		"detector_error": state.detector_error,
	}


@router.get("/joints", response_model=list[JointRow])
async def list_joints():
	"""The fixed joint hierarchy with bone colours."""
	rows = []
	for joint in Joint:
		parent, color = parent_of(joint)
		rows.append(JointRow(
			joint=joint.value,
			parent=parent.value if parent else None,
			color=list(color) if color else None,
		))
	return rows


@router.get("/posture-lines", response_model=list[PostureLineRow])
async def list_posture_lines():
	return [
		PostureLineRow(
			line=line.value,
			start=spec.start.value,
			vertex=spec.vertex.value,
			end=spec.end.value,
			vertical_reference=spec.vertical_reference,
			transform=spec.transform.value,
		)
		for line, spec in POSTURE_LINES.items()
	]


@router.post("/analyze", response_model=AnalyzeResponse)
async def analyze(image: UploadFile = File(...), state: AppState = Depends(get_state)):
	"""
	Detect joints on an uploaded image. A failed detection is not an HTTP error:
	`state` is "failed", `error` is set and `observations` is empty.
	"""
	img = await _read_image(image)
	try:
		analyzer = state.get_analyzer()
	except PostureError as e:
		raise _http_error(e)
	result = await asyncio.to_thread(analyzer.analyze_frame, img)
	angles = {}
	if result.state == AnalysisState.PROCESSED:
		angles = {line.value: angle for line, angle in measure_all(result.observations).items()}
	return AnalyzeResponse(
		state=result.state.value,
		width=result.image_size.width if result.image_size else None,
		height=result.image_size.height if result.image_size else None,
		error=result.error,
		observations=observations_to_dicts(result.observations),
		angles=angles,
	)


@router.post("/render")
async def render(
	image: UploadFile = File(...),
	line: Optional[str] = None,
	state: AppState = Depends(get_state),
):
	"""Return the uploaded image as PNG with the skeleton (and optional angle label) drawn on it."""
	posture_line = _parse_line(line)
	img = await _read_image(image)
	try:
		analyzer = state.get_analyzer()
	except PostureError as e:
		raise _http_error(e)
	result = await asyncio.to_thread(analyzer.analyze_frame, img)
	if result.state == AnalysisState.FAILED:
		raise HTTPException(status_code=422, detail={"error": result.error, "state": result.state.value})

	def _draw() -> bytes:
		if posture_line is not None:
			out = state.renderer.render_posture(img, result.observations, posture_line)
		else:
			out = state.renderer.render(img, result.observations)
		buf = BytesIO()
		out.save(buf, format="PNG")
		return buf.getvalue()

	try:
		png = await asyncio.to_thread(_draw)
	except PostureError as e:
		raise _http_error(e)
	return Response(content=png, media_type="image/png", headers={"Cache-Control": "no-store"})


@router.post("/angle", response_model=AngleResponse)
async def angle(payload: AngleRequest):
	"""Measure a posture line on previously exported observations."""
	try:
		posture_line = PostureLine.parse(payload.line)
	except PostureError as e:
		raise _http_error(e)
	try:
		observations = observations_from_rows([(r.joint, r.x, r.y) for r in payload.observations])
	except ValueError as e:
		raise HTTPException(status_code=400, detail=f"Invalid observation: {e}")
	value = measure_angle(observations, posture_line)
	return AngleResponse(line=posture_line.value, angle=value, label=format_angle(value))
