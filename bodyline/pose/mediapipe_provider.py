from __future__ import annotations

import logging
from typing import Dict, Mapping, Optional, Sequence

import numpy as np

from bodyline.errors import DetectionUnavailable
from bodyline.pose.base import PoseDetector
from bodyline.pose.types import Joint, Point2D, RecognizedPoint

logger = logging.getLogger(__name__)

# Joint -> MediaPipe PoseLandmark attribute. neck and root are synthesized.
_LANDMARKS: Dict[Joint, str] = {
	Joint.NOSE: "NOSE",
	Joint.LEFT_EYE: "LEFT_EYE",
	Joint.RIGHT_EYE: "RIGHT_EYE",
	Joint.LEFT_EAR: "LEFT_EAR",
	Joint.RIGHT_EAR: "RIGHT_EAR",
	Joint.LEFT_SHOULDER: "LEFT_SHOULDER",
	Joint.RIGHT_SHOULDER: "RIGHT_SHOULDER",
	Joint.LEFT_ELBOW: "LEFT_ELBOW",
	Joint.RIGHT_ELBOW: "RIGHT_ELBOW",
	Joint.LEFT_WRIST: "LEFT_WRIST",
	Joint.RIGHT_WRIST: "RIGHT_WRIST",
	Joint.LEFT_HIP: "LEFT_HIP",
	Joint.RIGHT_HIP: "RIGHT_HIP",
	Joint.LEFT_KNEE: "LEFT_KNEE",
	Joint.RIGHT_KNEE: "RIGHT_KNEE",
	Joint.LEFT_ANKLE: "LEFT_ANKLE",
	Joint.RIGHT_ANKLE: "RIGHT_ANKLE",
}

_MIDPOINTS: Dict[Joint, tuple] = {
	Joint.NECK: (Joint.LEFT_SHOULDER, Joint.RIGHT_SHOULDER),
	Joint.ROOT: (Joint.LEFT_HIP, Joint.RIGHT_HIP),
}


def _midpoint(a: Optional[RecognizedPoint], b: Optional[RecognizedPoint]) -> Optional[RecognizedPoint]:
	if a is None or b is None:
		return None
	return RecognizedPoint(
		location=Point2D((a.location.x + b.location.x) / 2.0, (a.location.y + b.location.y) / 2.0),
		confidence=min(a.confidence, b.confidence),
	)


class MediaPipePoseProvider(PoseDetector):
	"""
	MediaPipe Pose detector for a single person.

	Notes:
	- MediaPipe landmarks use a top-left origin; they are flipped here so that the
	  detector contract (bottom-left origin) holds.
	- `visibility` is used as confidence (best-effort).
	- neck and root are the shoulder and hip midpoints.
	"""

	def __init__(
		self,
		model_complexity: int = 1,
		min_detection_confidence: float = 0.5,
	) -> None:
		try:
			import mediapipe as mp  # type: ignore
		except Exception as e:
			raise DetectionUnavailable(
				"MediaPipe is not installed. Install pose deps with: pip install '.[mediapipe]'"
			) from e

		self._mp = mp
		# Every image is independent: no tracking or landmark smoothing across calls.
		self._pose = mp.solutions.pose.Pose(
			static_image_mode=True,
			model_complexity=int(model_complexity),
			enable_segmentation=False,
			smooth_landmarks=False,
			min_detection_confidence=float(min_detection_confidence),
		)

	def name(self) -> str:
		return "mediapipe_pose"

	def detect(self, image, joints: Sequence[Joint]) -> Mapping[Joint, RecognizedPoint]:
		rgb = np.asarray(image.convert("RGB"))
		try:
			res = self._pose.process(rgb)
		except Exception as e:
			raise DetectionUnavailable(f"MediaPipe inference failed: {e!r}") from e
		if not res or not getattr(res, "pose_landmarks", None):
			return {}

		lm = res.pose_landmarks.landmark
		PL = self._mp.solutions.pose.PoseLandmark
		found: Dict[Joint, RecognizedPoint] = {}
		for joint, attr in _LANDMARKS.items():
			p = lm[int(getattr(PL, attr))]
			found[joint] = RecognizedPoint(
				location=Point2D(float(p.x), 1.0 - float(p.y)),
				confidence=float(getattr(p, "visibility", 0.0) or 0.0),
			)
		for joint, (a, b) in _MIDPOINTS.items():
			mid = _midpoint(found.get(a), found.get(b))
			if mid is not None:
				found[joint] = mid

		wanted = set(joints)
		return {j: p for j, p in found.items() if j in wanted}

	def close(self) -> None:
		if self._pose is not None:
			self._pose.close()
			self._pose = None
