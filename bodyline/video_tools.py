from __future__ import annotations

import json
import logging
import shutil
import subprocess
from pathlib import Path
from typing import Any, Iterator, Optional

from PIL import Image

logger = logging.getLogger(__name__)


def find_ffmpeg() -> Optional[str]:
	return shutil.which("ffmpeg")


def find_ffprobe() -> Optional[str]:
	return shutil.which("ffprobe")


def probe_video_stream_info(video_path: Path) -> dict[str, Any]:
	"""
	Return basic video stream info via ffprobe (width/height/fps if available).
	Best-effort; returns {} on failure.
	"""
	ffprobe = find_ffprobe()
	if not ffprobe or not video_path.exists():
		return {}
	try:
		p = subprocess.run(
			[
				ffprobe,
				"-v",
				"error",
				"-select_streams",
				"v:0",
				"-show_entries",
				"stream=width,height,r_frame_rate,avg_frame_rate",
				"-of",
				"json",
				str(video_path),
			],
			stdout=subprocess.PIPE,
			stderr=subprocess.DEVNULL,
			check=False,
			text=True,
		)
	except OSError:
		return {}
	try:
		data = json.loads(p.stdout or "{}")
	except ValueError:
		return {}
	streams = data.get("streams") or []
	if not streams:
		return {}
	s0 = streams[0] if isinstance(streams[0], dict) else {}
	return {
		"width": s0.get("width"),
		"height": s0.get("height"),
		"r_frame_rate": s0.get("r_frame_rate"),
		"avg_frame_rate": s0.get("avg_frame_rate"),
	}


def parse_frame_rate(rate: Any, default: float = 30.0) -> float:
	"""'30000/1001' -> 29.97"""
	if not rate:
		return default
	try:
		if isinstance(rate, str) and "/" in rate:
			num, den = rate.split("/", 1)
			return float(num) / float(den) if float(den) else default
		return float(rate)
	except ValueError:
		return default


def iter_video_frames(video_path: Path) -> Iterator[Image.Image]:
	"""
	Decode a video into RGB Pillow images, in decode order.

	Frames keep the stream's stored size and orientation (rotation metadata is
	ignored) so the raw pipe matches the probed width and height.

	The generator is single-pass; ffmpeg is terminated when the caller stops early.
	"""
	ffmpeg = find_ffmpeg()
	if not ffmpeg:
		raise RuntimeError("ffmpeg not found on PATH")
	info = probe_video_stream_info(video_path)
	width, height = int(info.get("width") or 0), int(info.get("height") or 0)
	if width <= 0 or height <= 0:
		raise RuntimeError(f"Could not read video dimensions of {video_path}")

	frame_bytes = width * height * 3
	proc = subprocess.Popen(
		[ffmpeg, "-v", "error", "-noautorotate", "-i", str(video_path), "-f", "rawvideo", "-pix_fmt", "rgb24", "-"],
		stdout=subprocess.PIPE,
		stderr=subprocess.DEVNULL,
	)
	try:
		while True:
			buf = proc.stdout.read(frame_bytes)
			if len(buf) < frame_bytes:
				break
			yield Image.frombytes("RGB", (width, height), buf)
	finally:
		proc.stdout.close()
		if proc.poll() is None:
			proc.terminate()
		proc.wait()


class FrameVideoWriter:
	"""
	Encode Pillow frames into an MP4 by piping raw RGB into ffmpeg.

	All frames must share the first frame's size. Use as a context manager:

		with FrameVideoWriter(out, fps=30) as w:
			for img in frames:
				w.write(img)
	"""

	def __init__(self, out_path: Path, fps: float = 30.0, codec: str = "libx264") -> None:
		self.out_path = Path(out_path)
		self.fps = float(fps) if fps and float(fps) > 0 else 30.0
		self.codec = codec
		self.frame_count = 0
		self._size: Optional[tuple] = None
		self._proc: Optional[subprocess.Popen] = None

	def _start(self, size: tuple) -> None:
		ffmpeg = find_ffmpeg()
		if not ffmpeg:
			raise RuntimeError("ffmpeg not found on PATH")
		self.out_path.parent.mkdir(parents=True, exist_ok=True)
		w, h = size
		self._size = size
		self._proc = subprocess.Popen(
			[
				ffmpeg,
				"-y",
				"-v",
				"error",
				"-f",
				"rawvideo",
				"-pix_fmt",
				"rgb24",
				"-s",
				f"{w}x{h}",
				"-r",
				str(self.fps),
				"-i",
				"-",
				"-an",
				"-c:v",
				self.codec,
				"-pix_fmt",
				"yuv420p",
				"-movflags",
				"+faststart",
				str(self.out_path),
			],
			stdin=subprocess.PIPE,
			stdout=subprocess.DEVNULL,
			stderr=subprocess.DEVNULL,
		)

	def write(self, image: Image.Image) -> None:
		if self._proc is None:
			self._start(image.size)
		if image.size != self._size:
			raise ValueError(f"frame size {image.size} != video size {self._size}")
		self._proc.stdin.write(image.convert("RGB").tobytes())
		self.frame_count += 1

	def close(self) -> bool:
		"""Finish encoding. Returns True if the output exists and is non-empty."""
		if self._proc is not None:
			self._proc.stdin.close()
			self._proc.wait()
			self._proc = None
			logger.info("[VIDEO] wrote %d frame(s) to %s", self.frame_count, self.out_path)
		return bool(self.out_path.exists() and self.out_path.stat().st_size > 0)

	def __enter__(self) -> "FrameVideoWriter":
		return self

	def __exit__(self, *exc) -> None:
		self.close()
