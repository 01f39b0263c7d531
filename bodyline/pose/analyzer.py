from __future__ import annotations

import logging
from typing import Iterable, Iterator, List, Optional, Sequence

from bodyline.errors import PostureError
from bodyline.pose.base import PoseDetector
from bodyline.pose.coords import image_size_of, to_image_space
from bodyline.pose.joints import DEFAULT_JOINT_NAMES
from bodyline.pose.posture import PostureLine, measure_angle
from bodyline.pose.types import AnalysisState, Joint, JointObservation, PoseAnalysis

logger = logging.getLogger(__name__)


class PostureAnalyzer:
	"""
	Turns detector output for one image into an ordered joint list in pixel space.

	Holds no per-image state: every call builds and returns a fresh result, so one
	analyzer can serve many images (or threads) as long as the detector allows it.
	"""

	def __init__(self, detector: PoseDetector, joint_names: Sequence[Joint] = DEFAULT_JOINT_NAMES) -> None:
		names = tuple(joint_names)
		if len(set(names)) != len(names):
			raise ValueError("joint_names must not contain duplicates")
		self.detector = detector
		self.joint_names = names

	def analyze(self, image) -> List[JointObservation]:
		"""
		One observation per configured joint, in configured order. Empty when the
		detector failed or the image has no usable size.
		"""
		return self.analyze_frame(image).observations

	def analyze_frame(self, image, frame_index: Optional[int] = None) -> PoseAnalysis:
		try:
			size = image_size_of(image)
		except PostureError as e:
			logger.warning("[POSE] frame=%s rejected: %s", frame_index, e.message)
			return PoseAnalysis(state=AnalysisState.FAILED, error=e.message, frame_index=frame_index)

		try:
			recognized = self.detector.detect(image, self.joint_names) or {}
		except Exception as e:
			msg = e.message if isinstance(e, PostureError) else f"Unable to perform the request: {e!r}"
			logger.warning("[POSE] frame=%s detector %s failed: %s", frame_index, self.detector.name(), msg)
			return PoseAnalysis(state=AnalysisState.FAILED, image_size=size, error=msg, frame_index=frame_index)

		observations: List[JointObservation] = []
		for name in self.joint_names:
			point = recognized.get(name)
			if point is None or float(point.confidence) <= 0.0:
				observations.append(JointObservation(name=name))
				continue
			observations.append(JointObservation(name=name, position=to_image_space(point.location, size)))

		logger.debug(
			"[POSE] frame=%s %d/%d joints detected",
			frame_index,
			sum(1 for o in observations if o.detected),
			len(observations),
		)
		return PoseAnalysis(
			state=AnalysisState.PROCESSED,
			image_size=size,
			observations=observations,
			frame_index=frame_index,
		)

	def analyze_frames(self, frames: Iterable) -> Iterator[PoseAnalysis]:
		"""Analyze a frame sequence (e.g. decoded video); frames are independent."""
		for idx, frame in enumerate(frames):
			yield self.analyze_frame(frame, frame_index=idx)

	@staticmethod
	def measure_angle(observations: Sequence[JointObservation], line: PostureLine) -> float:
		return measure_angle(observations, line)
