from __future__ import annotations

import logging
from contextlib import contextmanager
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterator, Mapping, Optional, Sequence, Tuple

from PIL import Image, ImageDraw, ImageFont

from bodyline.config import RenderConfig
from bodyline.errors import DrawingSurfaceFailure
from bodyline.pose.coords import image_size_of
from bodyline.pose.joints import BONE_TABLE, DRAWABLE_JOINTS, BoneLink, parent_of
from bodyline.pose.posture import PostureLine, measure_angle
from bodyline.pose.types import Joint, JointObservation, Point2D

logger = logging.getLogger(__name__)


def format_angle(angle: float) -> str:
	"""One decimal place, halves rounded away from zero (12.25 -> "12.3")."""
	return str(Decimal(repr(float(angle))).quantize(Decimal("0.1"), rounding=ROUND_HALF_UP))


@contextmanager
def drawing_surface(image: Image.Image) -> Iterator[Tuple[Image.Image, ImageDraw.ImageDraw]]:
	"""
	RGBA working copy of `image` plus a draw context on it.

	The source image is never touched. If the body raises, the copy is closed
	before the error propagates; on success the caller owns the copy.
	"""
	image_size_of(image)
	try:
		canvas = image.convert("RGBA")
	except Exception as e:
		raise DrawingSurfaceFailure(f"Could not copy {image.mode} image: {e!r}") from e
	try:
		draw = ImageDraw.Draw(canvas)
	except Exception as e:
		canvas.close()
		raise DrawingSurfaceFailure(f"Could not create draw context: {e!r}") from e
	try:
		yield canvas, draw
	except BaseException:
		canvas.close()
		raise


class SkeletonRenderer:
	"""
	Draws bones, joint markers and an optional angle label over a copy of an image.
	"""

	def __init__(
		self,
		config: Optional[RenderConfig] = None,
		catalog: Mapping[Joint, BoneLink] = BONE_TABLE,
		drawable: frozenset = DRAWABLE_JOINTS,
	) -> None:
		self.config = config or RenderConfig()
		self.catalog = catalog
		self.drawable = frozenset(drawable)
		self._font = None

	def _label_font(self):
		if self._font is None:
			cfg = self.config
			if cfg.label_font_path:
				self._font = ImageFont.truetype(cfg.label_font_path, cfg.label_font_size)
			else:
				self._font = ImageFont.load_default(size=cfg.label_font_size)
		return self._font

	def marker_radius(self, width: int, height: int) -> float:
		return max(width, height) / self.config.marker_radius_divisor

	def render(
		self,
		image: Image.Image,
		observations: Sequence[JointObservation],
		angle: Optional[float] = None,
	) -> Image.Image:
		"""
		Return a new image (same size and mode) with the skeleton drawn on it.

		Raises InvalidImageDimensions / DrawingSurfaceFailure.
		"""
		cfg = self.config
		with drawing_surface(image) as (canvas, draw):
			radius = self.marker_radius(*canvas.size)
			for obs in observations:
				if obs.name not in self.drawable:
					continue
				self._draw_bone(draw, obs, observations)
				# undetected joints are marked at the (0,0) sentinel
				self._draw_marker(draw, obs.exported, radius)
			if angle is not None:
				draw.text(cfg.label_origin, format_angle(angle), fill=cfg.label_color, font=self._label_font())

		if image.mode == canvas.mode:
			return canvas
		out = canvas.convert(image.mode)
		canvas.close()
		return out

	def render_posture(
		self,
		image: Image.Image,
		observations: Sequence[JointObservation],
		line: PostureLine,
	) -> Image.Image:
		return self.render(image, observations, angle=measure_angle(observations, line))

	def _draw_bone(self, draw: ImageDraw.ImageDraw, obs: JointObservation, observations: Sequence[JointObservation]) -> None:
		parent_name, color = parent_of(obs.name, self.catalog)
		if parent_name is None or obs.position is None:
			return
		parent = _first(observations, parent_name)
		# Undetected endpoints get no bone at all.
		if parent is None or parent.position is None:
			return
		fill = color.to_rgba8() if color is not None else self.config.bone_fallback_color
		draw.line(
			[(obs.position.x, obs.position.y), (parent.position.x, parent.position.y)],
			fill=fill,
			width=self.config.bone_line_width,
		)

	def _draw_marker(self, draw: ImageDraw.ImageDraw, center: Point2D, radius: float) -> None:
		cfg = self.config
		draw.ellipse(
			[center.x - radius, center.y - radius, center.x + radius, center.y + radius],
			outline=cfg.marker_color,
			width=cfg.marker_line_width,
		)


def _first(observations: Sequence[JointObservation], name: Joint) -> Optional[JointObservation]:
	for obs in observations:
		if obs.name == name:
			return obs
	return None
