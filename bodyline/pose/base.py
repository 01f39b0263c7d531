from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Dict, Mapping, Sequence

from bodyline.pose.types import Joint, Point2D, RecognizedPoint


class PoseDetector(ABC):
	"""
	Detector adapter interface.

	Implementations take a Pillow image and return, for each requested joint they
	recognized, a normalized location (origin bottom-left) and a confidence.
	Joints the model cannot see may be omitted. Failures raise (the analyzer
	converts them into an empty result).
	"""

	@abstractmethod
	def name(self) -> str: ...

	@abstractmethod
	def detect(self, image, joints: Sequence[Joint]) -> Mapping[Joint, RecognizedPoint]: ...

	@abstractmethod
	def close(self) -> None: ...

	def __enter__(self) -> "PoseDetector":
		return self

	def __exit__(self, *exc) -> None:
		self.close()


class StaticPoseDetector(PoseDetector):
	"""
	Returns a fixed set of recognized points for every image.

	Handy for replaying previously exported detections and for tests.
	"""

	def __init__(self, points: Mapping[Joint, RecognizedPoint]) -> None:
		self._points: Dict[Joint, RecognizedPoint] = dict(points)

	@classmethod
	def from_normalized(cls, coords: Mapping[Joint, tuple], confidence: float = 1.0) -> "StaticPoseDetector":
		return cls({j: RecognizedPoint(Point2D(float(x), float(y)), float(confidence)) for j, (x, y) in coords.items()})

	def name(self) -> str:
		return "static"

	def detect(self, image, joints: Sequence[Joint]) -> Mapping[Joint, RecognizedPoint]:
		return {j: p for j, p in self._points.items() if j in joints}

	def close(self) -> None:
		pass
