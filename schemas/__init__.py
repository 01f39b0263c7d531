"""Pydantic request/response models for API validation and docs."""
from schemas.requests import AngleRequest, ObservationRow
from schemas.responses import AnalyzeResponse, AngleResponse, JointRow, PostureLineRow

__all__ = [
	"AngleRequest",
	"ObservationRow",
	"AnalyzeResponse",
	"AngleResponse",
	"JointRow",
	"PostureLineRow",
]
