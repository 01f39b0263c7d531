"""Shared fixtures for the test suites."""
from typing import Mapping, Sequence

from PIL import Image

from bodyline.pose.base import PoseDetector
from bodyline.pose.types import Joint, JointObservation, Point2D, RecognizedPoint


def blank_image(width: int = 400, height: int = 300, mode: str = "RGB") -> Image.Image:
	return Image.new(mode, (width, height))


def obs(name: Joint, x: float = None, y: float = None) -> JointObservation:
	if x is None:
		return JointObservation(name=name)
	return JointObservation(name=name, position=Point2D(float(x), float(y)))


class FailingDetector(PoseDetector):
	def __init__(self, exc: Exception) -> None:
		self.exc = exc
		self.calls = 0

	def name(self) -> str:
		return "failing"

	def detect(self, image, joints: Sequence[Joint]) -> Mapping[Joint, RecognizedPoint]:
		self.calls += 1
		raise self.exc

	def close(self) -> None:
		pass
