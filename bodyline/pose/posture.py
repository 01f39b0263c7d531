from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Dict, Mapping, Sequence

from bodyline.errors import UnknownPostureLine
from bodyline.pose.geometry import three_point_angle
from bodyline.pose.types import SENTINEL, Joint, JointObservation, Point2D


class AngleTransform(str, Enum):
	IDENTITY = "identity"
	MINUS_180 = "minus_180"
	NEGATE = "negate"

	def apply(self, angle: float) -> float:
		if self is AngleTransform.MINUS_180:
			return angle - 180.0
		if self is AngleTransform.NEGATE:
			return angle * -1.0
		return angle


class PostureLine(str, Enum):
	FORWARD_LINE = "ForwardLine"  # forward lean of the trunk
	CENTER_LINE = "CenterLine"  # spine tilt
	RIGHT_LINE = "RightLine"  # right hip sway over the ankle
	LEFT_LINE = "LeftLine"  # left side sway over the ankle
	RIGHT_KNEE_ANGLE = "RightKneeAngle"
	LEFT_KNEE_ANGLE = "LeftKneeAngle"

	@classmethod
	def parse(cls, name: str) -> "PostureLine":
		"""Accept `RightKneeAngle`, `RIGHT_KNEE_ANGLE` or `right_knee_angle`."""
		raw = str(name or "").strip()
		for line in cls:
			if raw == line.value or raw.upper() == line.name:
				return line
		raise UnknownPostureLine(name)


@dataclass(frozen=True)
class PostureLineSpec:
	"""
	Angle recipe for a posture line.

	- `vertical_reference`: the start point is replaced by (start.x, 0), i.e. a
	  vertical line through the start joint up to the top edge of the image.
	"""

	start: Joint
	vertex: Joint
	end: Joint
	vertical_reference: bool = False
	transform: AngleTransform = AngleTransform.IDENTITY


POSTURE_LINES: Mapping[PostureLine, PostureLineSpec] = MappingProxyType({
	PostureLine.FORWARD_LINE: PostureLineSpec(Joint.ROOT, Joint.ROOT, Joint.NECK, vertical_reference=True),
	PostureLine.CENTER_LINE: PostureLineSpec(Joint.ROOT, Joint.ROOT, Joint.NECK, vertical_reference=True),
	PostureLine.RIGHT_LINE: PostureLineSpec(Joint.RIGHT_ANKLE, Joint.RIGHT_ANKLE, Joint.RIGHT_HIP, vertical_reference=True),
	# measured against the right hip as well
	PostureLine.LEFT_LINE: PostureLineSpec(
		Joint.LEFT_ANKLE, Joint.LEFT_ANKLE, Joint.RIGHT_HIP,
		vertical_reference=True, transform=AngleTransform.NEGATE,
	),
	PostureLine.RIGHT_KNEE_ANGLE: PostureLineSpec(
		Joint.RIGHT_HIP, Joint.RIGHT_KNEE, Joint.RIGHT_ANKLE, transform=AngleTransform.MINUS_180,
	),
	PostureLine.LEFT_KNEE_ANGLE: PostureLineSpec(
		Joint.LEFT_HIP, Joint.LEFT_KNEE, Joint.LEFT_ANKLE, transform=AngleTransform.MINUS_180,
	),
})


def joint_point(observations: Sequence[JointObservation], name: Joint) -> Point2D:
	"""
	Position of the first observation named `name`; the (0,0) sentinel if the
	joint is missing or undetected.
	"""
	for obs in observations:
		if obs.name == name:
			return obs.exported
	return SENTINEL


def measure_angle(observations: Sequence[JointObservation], line: PostureLine) -> float:
	"""
	Angle of a named posture line in degrees.

	Undetected joints are not an error: they feed (0,0) into the geometry and
	give a degenerate value.
	"""
	spec = POSTURE_LINES[PostureLine.parse(line) if not isinstance(line, PostureLine) else line]
	start = joint_point(observations, spec.start)
	if spec.vertical_reference:
		start = Point2D(start.x, 0.0)
	vertex = joint_point(observations, spec.vertex)
	end = joint_point(observations, spec.end)
	return spec.transform.apply(three_point_angle(start, vertex, end))


def measure_all(observations: Sequence[JointObservation]) -> Dict[PostureLine, float]:
	return {line: measure_angle(observations, line) for line in POSTURE_LINES}
