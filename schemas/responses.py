"""Pydantic response models for API docs."""
from typing import Dict, List, Optional

from pydantic import BaseModel


class JointRow(BaseModel):
	joint: str
	parent: Optional[str] = None
	color: Optional[List[float]] = None


class PostureLineRow(BaseModel):
	line: str
	start: str
	vertex: str
	end: str
	vertical_reference: bool
	transform: str


class ObservationOut(BaseModel):
	joint: str
	x: float
	y: float
	detected: bool


class AnalyzeResponse(BaseModel):
	"""Response from POST /analyze. `observations` is empty when detection failed."""

	state: str
	width: Optional[int] = None
	height: Optional[int] = None
	error: Optional[str] = None
	observations: List[ObservationOut] = []
	angles: Dict[str, float] = {}


class AngleResponse(BaseModel):
	line: str
	angle: float
	label: str
