"""Pydantic request body models."""
from typing import List

from pydantic import BaseModel, Field


class ObservationRow(BaseModel):
	"""One exported joint position. (0,0) means the joint was not detected."""

	joint: str = Field(..., description="Joint name, e.g. right_knee")
	x: float = Field(0.0, description="Image x in pixels")
	y: float = Field(0.0, description="Image y in pixels")


class AngleRequest(BaseModel):
	"""Request body for POST /angle. Measure a posture line on exported observations."""

	line: str = Field(..., description="Posture line, e.g. RightKneeAngle")
	observations: List[ObservationRow] = Field(default_factory=list)
