import unittest
from io import BytesIO

from fastapi.testclient import TestClient
from PIL import Image

from bodyline.pose.base import StaticPoseDetector
from bodyline.pose.types import Joint
from server import create_app
from tests.helpers import FailingDetector, blank_image


def _png(width=200, height=100) -> bytes:
	buf = BytesIO()
	blank_image(width, height).save(buf, format="PNG")
	return buf.getvalue()


def _upload(data: bytes):
	return {"image": ("frame.png", data, "image/png")}


KNEE_ROWS = [
	{"joint": "right_hip", "x": 100, "y": 100},
	{"joint": "right_knee", "x": 100, "y": 150},
	{"joint": "right_ankle", "x": 120, "y": 200},
]


class TestAnalysisApi(unittest.TestCase):
	"""HTTP routes with a fixed detector."""

	@classmethod
	def setUpClass(cls):
		detector = StaticPoseDetector.from_normalized({
			Joint.NECK: (0.5, 0.8),
			Joint.ROOT: (0.5, 0.5),
			Joint.RIGHT_HIP: (0.45, 0.5),
			Joint.RIGHT_KNEE: (0.45, 0.3),
			Joint.RIGHT_ANKLE: (0.47, 0.1),
		})
		cls._cm = TestClient(create_app(detector=detector))
		cls.client = cls._cm.__enter__()

	@classmethod
	def tearDownClass(cls):
		cls._cm.__exit__(None, None, None)

	def test_health(self):
		r = self.client.get("/health")
		self.assertEqual(r.status_code, 200)
		self.assertEqual(r.json()["detector"], "static")

	def test_joints(self):
		rows = {row["joint"]: row for row in self.client.get("/joints").json()}
		self.assertEqual(len(rows), 19)
		self.assertIsNone(rows["root"]["parent"])
		self.assertEqual(rows["left_ear"]["parent"], "left_eye")
		self.assertEqual(rows["neck"]["color"], [1.0, 1.0, 0.0, 1.0])

	def test_posture_lines(self):
		rows = {row["line"]: row for row in self.client.get("/posture-lines").json()}
		self.assertEqual(len(rows), 6)
		self.assertEqual(rows["LeftLine"]["end"], "right_hip")
		self.assertEqual(rows["LeftLine"]["transform"], "negate")
		self.assertTrue(rows["ForwardLine"]["vertical_reference"])

	def test_analyze(self):
		r = self.client.post("/analyze", files=_upload(_png()))
		self.assertEqual(r.status_code, 200)
		body = r.json()
		self.assertEqual(body["state"], "processed")
		self.assertEqual((body["width"], body["height"]), (200, 100))
		self.assertEqual(len(body["observations"]), 19)
		neck = [o for o in body["observations"] if o["joint"] == "neck"][0]
		self.assertAlmostEqual(neck["x"], 100.0)
		self.assertAlmostEqual(neck["y"], 20.0)
		nose = [o for o in body["observations"] if o["joint"] == "nose"][0]
		self.assertEqual((nose["x"], nose["y"], nose["detected"]), (0.0, 0.0, False))
		self.assertIn("RightKneeAngle", body["angles"])

	def test_analyze_rejects_non_images(self):
		r = self.client.post("/analyze", files={"image": ("x.png", b"definitely not a png", "image/png")})
		self.assertEqual(r.status_code, 400)

	def test_render(self):
		r = self.client.post("/render", params={"line": "RightKneeAngle"}, files=_upload(_png()))
		self.assertEqual(r.status_code, 200)
		self.assertEqual(r.headers["content-type"], "image/png")
		with Image.open(BytesIO(r.content)) as img:
			self.assertEqual(img.size, (200, 100))

	def test_render_unknown_line(self):
		r = self.client.post("/render", params={"line": "Elbow"}, files=_upload(_png()))
		self.assertEqual(r.status_code, 400)

	def test_angle(self):
		r = self.client.post("/angle", json={"line": "RightKneeAngle", "observations": KNEE_ROWS})
		self.assertEqual(r.status_code, 200)
		body = r.json()
		self.assertAlmostEqual(body["angle"], -21.80140948635182, places=6)
		self.assertEqual(body["label"], "-21.8")

	def test_angle_without_observations(self):
		r = self.client.post("/angle", json={"line": "LeftKneeAngle"})
		self.assertEqual(r.status_code, 200)
		self.assertEqual(r.json()["angle"], -180.0)
		self.assertEqual(r.json()["label"], "-180.0")

	def test_angle_errors(self):
		r = self.client.post("/angle", json={"line": "Bogus", "observations": []})
		self.assertEqual(r.status_code, 400)
		self.assertEqual(r.json()["detail"]["error_code"], 20012)
		r = self.client.post("/angle", json={"line": "CenterLine", "observations": [{"joint": "tail", "x": 1, "y": 1}]})
		self.assertEqual(r.status_code, 400)


class TestFailingDetectorApi(unittest.TestCase):
	def setUp(self):
		self._cm = TestClient(create_app(detector=FailingDetector(RuntimeError("no person"))))
		self.client = self._cm.__enter__()

	def tearDown(self):
		self._cm.__exit__(None, None, None)

	def test_analyze_reports_failure(self):
		body = self.client.post("/analyze", files=_upload(_png())).json()
		self.assertEqual(body["state"], "failed")
		self.assertEqual(body["observations"], [])
		self.assertEqual(body["angles"], {})
		self.assertIn("no person", body["error"])

	def test_render_refuses_failed_detection(self):
		r = self.client.post("/render", files=_upload(_png()))
		self.assertEqual(r.status_code, 422)


if __name__ == "__main__":
	unittest.main(verbosity=2)
