from __future__ import annotations

import math

from bodyline.pose.types import Point2D


def distance(start: Point2D, end: Point2D) -> float:
	"""
	Euclidean distance in pixels. Callers that want whole pixels truncate
	themselves (see int_distance).
	"""
	dx = float(end.x) - float(start.x)
	dy = float(end.y) - float(start.y)
	return math.sqrt(dx * dx + dy * dy)


def int_distance(start: Point2D, end: Point2D) -> int:
	return int(distance(start, end))


def radian(origin: Point2D, target: Point2D) -> float:
	"""Direction of the ray origin->target, atan2 convention."""
	return math.atan2(float(target.y) - float(origin.y), float(target.x) - float(origin.x))


def radians_to_degrees(rad: float) -> float:
	return rad * 180.0 / math.pi


def degrees_to_radians(deg: float) -> float:
	return deg * math.pi / 180.0


def three_point_angle(start: Point2D, vertex: Point2D, end: Point2D) -> float:
	"""
	Signed angle ABC in degrees, swept from ray B->A to ray B->C.

	Range is (-360, 360); nothing is clamped. Coincident points give atan2(0,0) == 0.
	"""
	return radians_to_degrees(radian(vertex, end) - radian(vertex, start))


def normalize_degrees(angle: float) -> float:
	"""Fold an angle into [0, 360). Never applied implicitly."""
	out = math.fmod(float(angle), 360.0)
	if out < 0.0:
		out += 360.0
	return out if out < 360.0 else 0.0
