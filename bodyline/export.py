"""
Observation and image export.

Rows are `(joint, x, y)` in image pixels with `(0,0)` meaning "not detected",
the format downstream spreadsheets already consume.
"""
from __future__ import annotations

import csv
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

from PIL import Image

from bodyline.pose.types import SENTINEL, Joint, JointObservation, PoseAnalysis, Point2D

logger = logging.getLogger(__name__)

CSV_HEADER = ["frame", "joint", "x", "y"]


def observations_to_rows(observations: Sequence[JointObservation]) -> List[Tuple[str, float, float]]:
	return [obs.as_row() for obs in observations]


def observations_to_dicts(observations: Sequence[JointObservation]) -> List[Dict[str, Any]]:
	out: List[Dict[str, Any]] = []
	for obs in observations:
		name, x, y = obs.as_row()
		out.append({"joint": name, "x": x, "y": y, "detected": obs.detected})
	return out


def observations_from_rows(rows: Iterable[Sequence[Any]]) -> List[JointObservation]:
	"""
	Rebuild observations from exported `(joint, x, y)` rows. A `(0,0)` row is read
	back as undetected.
	"""
	out: List[JointObservation] = []
	for row in rows:
		name, x, y = row[0], float(row[1]), float(row[2])
		p = Point2D(x, y)
		out.append(JointObservation(name=Joint.parse(str(name)), position=None if p == SENTINEL else p))
	return out


def write_observations_csv(analyses: Iterable[PoseAnalysis], path: Path) -> int:
	"""
	Write one row per joint per frame. Failed frames are skipped (they have no
	observations). Returns the number of frames written.
	"""
	path.parent.mkdir(parents=True, exist_ok=True)
	frames = 0
	with open(path, "w", newline="", encoding="utf-8") as fh:
		w = csv.writer(fh)
		w.writerow(CSV_HEADER)
		for i, analysis in enumerate(analyses):
			if not analysis.observations:
				continue
			frame = analysis.frame_index if analysis.frame_index is not None else i
			for name, x, y in observations_to_rows(analysis.observations):
				w.writerow([frame, name, f"{x:.3f}", f"{y:.3f}"])
			frames += 1
	return frames


def read_observations_csv(path: Path) -> Dict[int, List[JointObservation]]:
	by_frame: Dict[int, List[Tuple[str, float, float]]] = {}
	with open(path, "r", newline="", encoding="utf-8") as fh:
		for row in csv.DictReader(fh):
			by_frame.setdefault(int(row["frame"]), []).append((row["joint"], float(row["x"]), float(row["y"])))
	return {frame: observations_from_rows(rows) for frame, rows in sorted(by_frame.items())}


def timestamp_name(now: Optional[datetime] = None, suffix: str = ".jpeg") -> str:
	now = now or datetime.now(timezone.utc)
	return now.strftime("%Y-%m-%dT%H%M%S") + f"{now.microsecond // 1000:03d}" + suffix


def export_jpeg(
	image: Image.Image,
	directory: Path,
	quality: int = 100,
	now: Optional[datetime] = None,
	frame_index: Optional[int] = None,
) -> Path:
	"""
	Save `image` as `<timestamp>.jpeg` under `directory`. Video snapshots pass
	`frame_index` and are saved as `<timestamp>_f<index>.jpeg`, since several
	frames can be rendered within one millisecond.
	"""
	directory.mkdir(parents=True, exist_ok=True)
	suffix = f"_f{int(frame_index):06d}.jpeg" if frame_index is not None else ".jpeg"
	out = directory / timestamp_name(now, suffix=suffix)
	image.convert("RGB").save(out, format="JPEG", quality=int(quality))
	logger.info("[EXPORT] wrote %s", out)
	return out
