"""
Explicit app state: single source of truth for runtime lifecycle.
Created in lifespan, attached to app.state.state; injected into routes via Depends(get_state).
"""
import logging
import threading
from typing import Optional

from fastapi import Request

from bodyline.config import AppConfig
from bodyline.errors import DetectionUnavailable
from bodyline.pose.analyzer import PostureAnalyzer
from bodyline.pose.base import PoseDetector
from bodyline.pose.renderer import SkeletonRenderer

logger = logging.getLogger(__name__)


class AppState:
	"""
	Holds the config, the (lazily created) detector and the shared renderer.

	Analyzer and renderer keep no per-request data; only detector creation and
	inference are serialized.
	"""

	cfg: AppConfig
	renderer: SkeletonRenderer
	detector: Optional[PoseDetector] = None
	detector_error: Optional[str] = None

	def __init__(self, cfg: AppConfig, detector: Optional[PoseDetector] = None) -> None:
		self.cfg = cfg
		self.renderer = SkeletonRenderer(cfg.render)
		self.detector = detector
		self.detector_error = None
		self.detector_lock = threading.Lock()

	def _create_detector(self) -> PoseDetector:
		backend = self.cfg.detector.backend
		if backend == "mediapipe":
			from bodyline.pose.mediapipe_provider import MediaPipePoseProvider

			return MediaPipePoseProvider(
				model_complexity=self.cfg.detector.model_complexity,
				min_detection_confidence=self.cfg.detector.min_detection_confidence,
			)
		raise DetectionUnavailable(f"Detector backend {backend!r} is not available")

	def get_analyzer(self) -> PostureAnalyzer:
		"""Analyzer bound to the shared detector. Raises DetectionUnavailable."""
		with self.detector_lock:
			if self.detector is None:
				try:
					self.detector = self._create_detector()
					self.detector_error = None
					logger.info("[POSE] detector %s ready", self.detector.name())
				except DetectionUnavailable as e:
					self.detector_error = e.message
					raise
		return PostureAnalyzer(_LockedDetector(self.detector, self.detector_lock), self.cfg.analyzer.joint_names)

	def close(self) -> None:
		with self.detector_lock:
			if self.detector is not None:
				self.detector.close()
				self.detector = None


class _LockedDetector(PoseDetector):
	"""Serializes calls into a detector that is not safe to share across threads."""

	def __init__(self, inner: PoseDetector, lock: threading.Lock) -> None:
		self._inner = inner
		self._lock = lock

	def name(self) -> str:
		return self._inner.name()

	def detect(self, image, joints):
		with self._lock:
			return self._inner.detect(image, joints)

	def close(self) -> None:
		pass


def get_state(request: Request) -> AppState:
	"""FastAPI dependency: the AppState attached to app.state in lifespan."""
	return request.app.state.state
