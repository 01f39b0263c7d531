import csv
import tempfile
import unittest
from datetime import datetime
from pathlib import Path

from PIL import Image

from bodyline.export import (
	CSV_HEADER,
	export_jpeg,
	observations_from_rows,
	observations_to_dicts,
	observations_to_rows,
	read_observations_csv,
	timestamp_name,
	write_observations_csv,
)
from bodyline.pose.types import AnalysisState, Joint, Point2D, PoseAnalysis
from tests.helpers import blank_image, obs


class TestObservationRows(unittest.TestCase):
	def setUp(self):
		self.observations = [obs(Joint.NECK, 120.5, 80.0), obs(Joint.ROOT)]

	def test_rows_use_sentinel_for_undetected(self):
		self.assertEqual(
			observations_to_rows(self.observations),
			[("neck", 120.5, 80.0), ("root", 0.0, 0.0)],
		)

	def test_dicts(self):
		rows = observations_to_dicts(self.observations)
		self.assertEqual(rows[0], {"joint": "neck", "x": 120.5, "y": 80.0, "detected": True})
		self.assertFalse(rows[1]["detected"])

	def test_from_rows(self):
		back = observations_from_rows([("neck", "120.5", "80"), ("rightKnee", 0, 0)])
		self.assertEqual(back[0].position, Point2D(120.5, 80.0))
		self.assertEqual(back[1].name, Joint.RIGHT_KNEE)
		self.assertFalse(back[1].detected)
		with self.assertRaises(ValueError):
			observations_from_rows([("tail", 1, 1)])


class TestFiles(unittest.TestCase):
	def setUp(self):
		self._tmp = tempfile.TemporaryDirectory()
		self.dir = Path(self._tmp.name)

	def tearDown(self):
		self._tmp.cleanup()

	def test_csv_skips_failed_frames(self):
		analyses = [
			PoseAnalysis(AnalysisState.PROCESSED, observations=[obs(Joint.NECK, 1, 2), obs(Joint.ROOT)], frame_index=0),
			PoseAnalysis(AnalysisState.FAILED, error="boom", frame_index=1),
			PoseAnalysis(AnalysisState.PROCESSED, observations=[obs(Joint.NECK, 3, 4)], frame_index=2),
		]
		path = self.dir / "sub" / "poses.csv"
		self.assertEqual(write_observations_csv(analyses, path), 2)
		with open(path, newline="", encoding="utf-8") as fh:
			rows = list(csv.reader(fh))
		self.assertEqual(rows[0], CSV_HEADER)
		self.assertEqual(rows[1], ["0", "neck", "1.000", "2.000"])
		self.assertEqual(len(rows), 4)

		frames = read_observations_csv(path)
		self.assertEqual(sorted(frames), [0, 2])
		self.assertFalse(frames[0][1].detected)
		self.assertEqual(frames[2][0].position, Point2D(3.0, 4.0))

	def test_timestamp_name(self):
		now = datetime(2024, 1, 2, 3, 4, 5, 678000)
		self.assertEqual(timestamp_name(now), "2024-01-02T030405678.jpeg")
		self.assertEqual(timestamp_name(now, suffix=".png"), "2024-01-02T030405678.png")

	def test_export_jpeg(self):
		image = blank_image(64, 48, mode="RGBA")
		out = export_jpeg(image, self.dir / "snaps", quality=90, now=datetime(2024, 5, 6, 7, 8, 9))
		self.assertEqual(out.name, "2024-05-06T070809000.jpeg")
		with Image.open(out) as saved:
			self.assertEqual(saved.format, "JPEG")
			self.assertEqual(saved.size, (64, 48))

	def test_snapshot_names_carry_frame_index(self):
		now = datetime(2024, 5, 6, 7, 8, 9)
		first = export_jpeg(blank_image(8, 8), self.dir, now=now, frame_index=0)
		second = export_jpeg(blank_image(8, 8), self.dir, now=now, frame_index=1)
		self.assertEqual(first.name, "2024-05-06T070809000_f000000.jpeg")
		self.assertNotEqual(first, second)
		self.assertEqual(len(list(self.dir.glob("*.jpeg"))), 2)


if __name__ == "__main__":
	unittest.main(verbosity=2)
