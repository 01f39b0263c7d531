from __future__ import annotations

import argparse
import logging
from pathlib import Path
from typing import Iterator, Optional

from bodyline.config import AppConfig, get_config, set_config_path
from bodyline.errors import PostureError
from bodyline.export import export_jpeg, write_observations_csv
from bodyline.pose.analyzer import PostureAnalyzer
from bodyline.pose.base import PoseDetector
from bodyline.pose.posture import PostureLine
from bodyline.pose.renderer import SkeletonRenderer
from bodyline.pose.types import PoseAnalysis
from bodyline.video_tools import FrameVideoWriter, iter_video_frames, parse_frame_rate, probe_video_stream_info

logger = logging.getLogger(__name__)


def _make_detector(cfg: AppConfig) -> PoseDetector:
	from bodyline.pose.mediapipe_provider import MediaPipePoseProvider

	return MediaPipePoseProvider(
		model_complexity=cfg.detector.model_complexity,
		min_detection_confidence=cfg.detector.min_detection_confidence,
	)


def source_fps(video_path: Path, default: float) -> float:
	"""Frame rate of the input stream, so the annotated video keeps its timing."""
	info = probe_video_stream_info(video_path)
	rate = info.get("avg_frame_rate")
	if not rate or rate == "0/0":
		rate = info.get("r_frame_rate")
	return parse_frame_rate(rate, default)


def process_video(
	video_path: Path,
	out_dir: Path,
	detector: PoseDetector,
	cfg: AppConfig,
	line: Optional[PostureLine] = None,
	write_video: bool = True,
	snapshot_every: int = 0,
) -> dict:
	"""
	Analyze every frame of a video.

	Writes `<stem>.csv` (joint rows per frame) and, when `write_video`, an annotated
	`<stem>_skeleton.mp4`. Frames whose detection fails are skipped in the CSV and
	passed through undrawn in the video.
	"""
	analyzer = PostureAnalyzer(detector, cfg.analyzer.joint_names)
	renderer = SkeletonRenderer(cfg.render)
	out_dir.mkdir(parents=True, exist_ok=True)
	stats = {"frames": 0, "failed": 0, "rendered": 0, "snapshots": 0}

	writer: Optional[FrameVideoWriter] = None
	if write_video:
		writer = FrameVideoWriter(
			out_dir / f"{video_path.stem}_skeleton.mp4",
			fps=source_fps(video_path, cfg.video.output_fps),
			codec=cfg.video.codec,
		)

	def _frames() -> Iterator[PoseAnalysis]:
		for idx, frame in enumerate(iter_video_frames(video_path)):
			result = analyzer.analyze_frame(frame, frame_index=idx)
			stats["frames"] += 1
			if not result.ok:
				stats["failed"] += 1
			if writer is not None or snapshot_every > 0:
				drawn = frame
				if result.ok:
					try:
						if line is not None:
							drawn = renderer.render_posture(frame, result.observations, line)
						else:
							drawn = renderer.render(frame, result.observations)
						stats["rendered"] += 1
					except PostureError as e:
						logger.warning("[VIDEO] frame=%d not rendered: %s", idx, e.message)
				if writer is not None:
					writer.write(drawn)
				if snapshot_every > 0 and idx % snapshot_every == 0:
					export_jpeg(drawn, out_dir / "snapshots", quality=cfg.export.jpeg_quality, frame_index=idx)
					stats["snapshots"] += 1
			yield result

	try:
		write_observations_csv(_frames(), out_dir / f"{video_path.stem}.csv")
	finally:
		if writer is not None:
			writer.close()
	logger.info(
		"[VIDEO] %s: %d frame(s), %d failed, %d rendered",
		video_path.name,
		stats["frames"],
		stats["failed"],
		stats["rendered"],
	)
	return stats


def main(argv: Optional[list[str]] = None) -> int:
	p = argparse.ArgumentParser(description="Analyze posture on every frame of a video")
	p.add_argument("video", help="Input video file")
	p.add_argument("--out-dir", default=None, help="Output directory (default: export.base_dir from config)")
	p.add_argument("--line", default=None, help="Posture line to label on each frame, e.g. RightKneeAngle")
	p.add_argument("--no-video", action="store_true", help="Only write the CSV")
	p.add_argument("--snapshot-every", type=int, default=0, help="Also save every Nth rendered frame as JPEG")
	p.add_argument("--config", default=None, help="Path to config.json")
	p.add_argument("--debug", action="store_true", help="Enable debug logging.")
	args = p.parse_args(argv)

	if args.debug:
		logging.basicConfig(level=logging.DEBUG, format='%(levelname)s:%(name)s:%(message)s')
	else:
		logging.basicConfig(level=logging.INFO, format='%(levelname)s:%(name)s:%(message)s')
	if args.config:
		set_config_path(args.config)
	cfg = get_config()

	try:
		line = PostureLine.parse(args.line) if args.line else None
	except PostureError as e:
		p.error(e.message)

	video = Path(args.video)
	if not video.exists():
		p.error(f"video not found: {video}")
	out_dir = Path(args.out_dir) if args.out_dir else Path(cfg.export.base_dir)

	try:
		detector = _make_detector(cfg)
	except PostureError as e:
		logging.error("%s", e.message)
		return 2
	with detector:
		process_video(
			video,
			out_dir,
			detector,
			cfg,
			line=line,
			write_video=not args.no_video,
			snapshot_every=max(0, int(args.snapshot_every)),
		)
	return 0


if __name__ == "__main__":
	raise SystemExit(main())
