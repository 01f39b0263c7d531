import unittest
from types import SimpleNamespace

from bodyline.errors import DetectionUnavailable
from bodyline.pose.analyzer import PostureAnalyzer
from bodyline.pose.base import StaticPoseDetector
from bodyline.pose.joints import DEFAULT_JOINT_NAMES
from bodyline.pose.posture import PostureLine
from bodyline.pose.types import AnalysisState, ImageSize, Joint, Point2D, RecognizedPoint
from tests.helpers import FailingDetector, blank_image


class TestPostureAnalyzer(unittest.TestCase):
	"""Detector output -> ordered observations in pixel space."""

	def setUp(self):
		self.image = blank_image(400, 300)

	def test_one_observation_per_joint_in_configured_order(self):
		detector = StaticPoseDetector.from_normalized({Joint.RIGHT_KNEE: (0.25, 0.5)})
		observations = PostureAnalyzer(detector).analyze(self.image)
		self.assertEqual([o.name for o in observations], list(DEFAULT_JOINT_NAMES))
		knee = [o for o in observations if o.name == Joint.RIGHT_KNEE][0]
		self.assertEqual(knee.position, Point2D(100.0, 150.0))
		self.assertEqual(sum(1 for o in observations if o.detected), 1)

	def test_vertical_axis_is_flipped(self):
		detector = StaticPoseDetector.from_normalized({Joint.NOSE: (0.5, 0.9), Joint.ROOT: (0.5, 0.1)})
		analyzer = PostureAnalyzer(detector, [Joint.NOSE, Joint.ROOT])
		nose, root = analyzer.analyze(self.image)
		self.assertAlmostEqual(nose.position.y, 30.0)
		self.assertAlmostEqual(root.position.y, 270.0)
		self.assertLess(nose.position.y, root.position.y)

	def test_custom_joint_order(self):
		order = [Joint.LEFT_ANKLE, Joint.NECK, Joint.ROOT]
		detector = StaticPoseDetector.from_normalized({Joint.NECK: (0.5, 0.5)})
		observations = PostureAnalyzer(detector, order).analyze(self.image)
		self.assertEqual([o.name for o in observations], order)
		self.assertFalse(observations[0].detected)
		self.assertTrue(observations[1].detected)

	def test_zero_confidence_is_undetected(self):
		detector = StaticPoseDetector({
			Joint.RIGHT_HIP: RecognizedPoint(Point2D(0.5, 0.5), 0.0),
			Joint.LEFT_HIP: RecognizedPoint(Point2D(0.5, 0.5), -0.3),
		})
		observations = PostureAnalyzer(detector, [Joint.RIGHT_HIP, Joint.LEFT_HIP]).analyze(self.image)
		for obs in observations:
			self.assertFalse(obs.detected)
			self.assertEqual(obs.exported, Point2D(0.0, 0.0))
			self.assertEqual(obs.as_row()[1:], (0.0, 0.0))

	def test_detector_failure_gives_empty_result(self):
		detector = FailingDetector(RuntimeError("model crashed"))
		analyzer = PostureAnalyzer(detector)
		self.assertEqual(analyzer.analyze(self.image), [])
		result = analyzer.analyze_frame(self.image, frame_index=7)
		self.assertEqual(result.state, AnalysisState.FAILED)
		self.assertFalse(result.ok)
		self.assertEqual(result.observations, [])
		self.assertIn("model crashed", result.error)
		self.assertEqual(result.frame_index, 7)
		self.assertEqual(result.image_size, ImageSize(400, 300))

	def test_unavailable_detector_message_is_kept(self):
		analyzer = PostureAnalyzer(FailingDetector(DetectionUnavailable("no backend")))
		result = analyzer.analyze_frame(self.image)
		self.assertEqual(result.error, "no backend")

	def test_invalid_image_skips_detector(self):
		detector = FailingDetector(RuntimeError("should not run"))
		analyzer = PostureAnalyzer(detector)
		self.assertEqual(analyzer.analyze(SimpleNamespace(size=(0, 10))), [])
		self.assertEqual(analyzer.analyze(None), [])
		self.assertEqual(detector.calls, 0)

	def test_duplicate_joint_names_rejected(self):
		with self.assertRaises(ValueError):
			PostureAnalyzer(StaticPoseDetector({}), [Joint.NECK, Joint.NECK])

	def test_results_are_independent(self):
		detector = StaticPoseDetector.from_normalized({Joint.NECK: (0.5, 0.5)})
		analyzer = PostureAnalyzer(detector)
		first = analyzer.analyze(blank_image(100, 100))
		second = analyzer.analyze(blank_image(200, 200))
		neck = DEFAULT_JOINT_NAMES.index(Joint.NECK)
		self.assertEqual(first[neck].position, Point2D(50.0, 50.0))
		self.assertEqual(second[neck].position, Point2D(100.0, 100.0))

	def test_analyze_frames(self):
		detector = StaticPoseDetector.from_normalized({Joint.NECK: (0.5, 0.5)})
		frames = [blank_image(10, 10), SimpleNamespace(size=(0, 0)), blank_image(10, 10)]
		results = list(PostureAnalyzer(detector).analyze_frames(frames))
		self.assertEqual([r.frame_index for r in results], [0, 1, 2])
		self.assertEqual([r.ok for r in results], [True, False, True])

	def test_results_only_report_final_states(self):
		detector = StaticPoseDetector.from_normalized({Joint.NECK: (0.5, 0.5)})
		frames = [blank_image(10, 10), None]
		states = {r.state for r in PostureAnalyzer(detector).analyze_frames(frames)}
		self.assertEqual(states, {AnalysisState.PROCESSED, AnalysisState.FAILED})

	def test_measure_angle_passthrough(self):
		self.assertEqual(PostureAnalyzer.measure_angle([], PostureLine.LEFT_KNEE_ANGLE), -180.0)


if __name__ == "__main__":
	unittest.main(verbosity=2)
