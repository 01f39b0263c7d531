from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import List, NamedTuple, Optional, Tuple


class Joint(str, Enum):
	"""
	Anatomical landmarks of the fixed pose skeleton.

	Values double as export names (CSV/JSON rows, API payloads).
	"""

	NOSE = "nose"
	LEFT_EYE = "left_eye"
	RIGHT_EYE = "right_eye"
	LEFT_EAR = "left_ear"
	RIGHT_EAR = "right_ear"
	NECK = "neck"
	LEFT_SHOULDER = "left_shoulder"
	RIGHT_SHOULDER = "right_shoulder"
	LEFT_ELBOW = "left_elbow"
	RIGHT_ELBOW = "right_elbow"
	LEFT_WRIST = "left_wrist"
	RIGHT_WRIST = "right_wrist"
	LEFT_HIP = "left_hip"
	RIGHT_HIP = "right_hip"
	LEFT_KNEE = "left_knee"
	RIGHT_KNEE = "right_knee"
	LEFT_ANKLE = "left_ankle"
	RIGHT_ANKLE = "right_ankle"
	ROOT = "root"

	@classmethod
	def parse(cls, name: str) -> "Joint":
		"""Accept `right_knee`, `RIGHT_KNEE` or the camelCase form `rightKnee`."""
		raw = str(name).strip()
		try:
			return cls(raw.lower())
		except ValueError:
			pass
		snake = "".join(("_" + ch.lower()) if ch.isupper() else ch for ch in raw).lstrip("_")
		return cls(snake)


class Point2D(NamedTuple):
	x: float
	y: float


# Exported in place of undetected joints.
SENTINEL = Point2D(0.0, 0.0)


class ImageSize(NamedTuple):
	width: int
	height: int


class Color(NamedTuple):
	"""RGBA colour with float components in [0..1]."""

	r: float
	g: float
	b: float
	a: float = 1.0

	def to_rgba8(self) -> Tuple[int, int, int, int]:
		return (
			int(round(self.r * 255)),
			int(round(self.g * 255)),
			int(round(self.b * 255)),
			int(round(self.a * 255)),
		)


@dataclass(frozen=True)
class RecognizedPoint:
	"""
	One joint as reported by a detector.

	- `location` is normalized to [0,1] with the origin at the bottom-left.
	- `confidence` <= 0 means the detector did not actually see the joint.
	"""

	location: Point2D
	confidence: float


@dataclass(frozen=True)
class JointObservation:
	"""
	A joint placed in image pixel space for one analyzed image.

	`position` is None when the joint was not detected; `exported` yields the
	`(0,0)` sentinel for those so existing consumers keep working.
	"""

	name: Joint
	position: Optional[Point2D] = None

	@property
	def detected(self) -> bool:
		return self.position is not None

	@property
	def exported(self) -> Point2D:
		return self.position if self.position is not None else SENTINEL

	def as_row(self) -> Tuple[str, float, float]:
		p = self.exported
		return (self.name.value, float(p.x), float(p.y))


class AnalysisState(str, Enum):
	"""
	Per-call progress: idle -> detecting -> processed (or failed).

	Idle and detecting only exist while a call is running; a returned
	PoseAnalysis always carries PROCESSED or FAILED.
	"""

	IDLE = "idle"
	DETECTING = "detecting"
	PROCESSED = "processed"
	FAILED = "failed"


@dataclass(frozen=True)
class PoseAnalysis:
	"""
	Result of analyzing a single image (or video frame).

	- `observations` holds one entry per configured joint, or is empty when
	  detection failed (`state == FAILED`, `error` set).
	"""

	state: AnalysisState
	image_size: Optional[ImageSize] = None
	observations: List[JointObservation] = field(default_factory=list)
	error: Optional[str] = None
	frame_index: Optional[int] = None

	@property
	def ok(self) -> bool:
		return self.state == AnalysisState.PROCESSED
