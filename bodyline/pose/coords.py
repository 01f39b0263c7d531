from __future__ import annotations

from typing import Any

from bodyline.errors import InvalidImageDimensions
from bodyline.pose.types import ImageSize, Point2D


def to_image_space(normalized: Point2D, size: ImageSize) -> Point2D:
	"""
	Detector space -> image pixel space.

	Detector coordinates are normalized to [0,1] with the origin at the bottom-left;
	raster images put the origin at the top-left, hence the vertical flip.
	"""
	return Point2D(
		float(normalized.x) * float(size.width),
		(1.0 - float(normalized.y)) * float(size.height),
	)


def to_detector_space(point: Point2D, size: ImageSize) -> Point2D:
	"""Inverse of to_image_space (size must be valid)."""
	return Point2D(
		float(point.x) / float(size.width),
		1.0 - float(point.y) / float(size.height),
	)


def validate_size(width: Any, height: Any) -> ImageSize:
	try:
		w, h = int(width), int(height)
	except (TypeError, ValueError):
		raise InvalidImageDimensions(width, height)
	if w <= 0 or h <= 0:
		raise InvalidImageDimensions(w, h)
	return ImageSize(w, h)


def image_size_of(image: Any) -> ImageSize:
	"""
	Size of a Pillow image (or anything with a `(w, h)` `.size`), validated.
	"""
	size = getattr(image, "size", None)
	if not size or len(size) != 2:
		raise InvalidImageDimensions(None, None)
	return validate_size(size[0], size[1])
