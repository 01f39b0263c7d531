from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

from bodyline.pose.joints import DEFAULT_JOINT_NAMES
from bodyline.pose.types import Joint

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AnalyzerConfig:
	# Order of the observation sequence; one entry per joint, always.
	joint_names: Tuple[Joint, ...] = DEFAULT_JOINT_NAMES


@dataclass(frozen=True)
class DetectorConfig:
	backend: str = "mediapipe"  # mediapipe / none
	model_complexity: int = 1
	min_detection_confidence: float = 0.5


@dataclass(frozen=True)
class RenderConfig:
	marker_color: Tuple[int, int, int, int] = (0, 255, 0, 255)
	marker_line_width: int = 2
	# Marker radius = max(width, height) / marker_radius_divisor
	marker_radius_divisor: float = 200.0
	bone_line_width: int = 2
	bone_fallback_color: Tuple[int, int, int, int] = (255, 255, 255, 255)
	label_origin: Tuple[int, int] = (60, 30)
	label_color: Tuple[int, int, int, int] = (255, 255, 0, 255)
	label_font_size: int = 32
	# Optional TrueType font; Pillow's bundled font is used when empty.
	label_font_path: str = ""


@dataclass(frozen=True)
class VideoConfig:
	# Used when the source frame rate cannot be probed.
	output_fps: int = 30
	codec: str = "libx264"


@dataclass(frozen=True)
class ExportConfig:
	base_dir: str = str(Path("data") / "exports")
	jpeg_quality: int = 100


@dataclass(frozen=True)
class AppConfig:
	analyzer: AnalyzerConfig = field(default_factory=AnalyzerConfig)
	detector: DetectorConfig = field(default_factory=DetectorConfig)
	render: RenderConfig = field(default_factory=RenderConfig)
	video: VideoConfig = field(default_factory=VideoConfig)
	export: ExportConfig = field(default_factory=ExportConfig)


_CONFIG_PATH: Optional[Path] = None
_CONFIG_CACHE: Optional[AppConfig] = None


def _repo_root() -> Path:
	# bodyline/config.py -> repo root is one level up.
	return Path(__file__).resolve().parents[1]


def get_default_config_path() -> Path:
	return _repo_root() / "config.json"


def set_config_path(path: str | Path) -> None:
	"""
	Override the config path (must be called before first get_config()).
	Intended for tooling/CLI use; server normally uses the default path.
	"""
	global _CONFIG_PATH
	global _CONFIG_CACHE
	_CONFIG_PATH = Path(path).expanduser().resolve()
	_CONFIG_CACHE = None


def _deep_get(d: Dict[str, Any], keys: list[str], default: Any = None) -> Any:
	cur: Any = d
	for k in keys:
		if not isinstance(cur, dict):
			return default
		cur = cur.get(k)
	return cur if cur is not None else default


def _as_int(v: Any, default: int) -> int:
	try:
		return int(v)
	except Exception:
		return int(default)


def _as_str(v: Any, default: str = "") -> str:
	return str(v) if v is not None else str(default)


def _as_float(v: Any, default: float) -> float:
	try:
		return float(v)
	except Exception:
		return float(default)


def _as_rgba(v: Any, default: Tuple[int, int, int, int]) -> Tuple[int, int, int, int]:
	"""[r,g,b] or [r,g,b,a] with 0..255 components."""
	if not isinstance(v, (list, tuple)) or len(v) not in (3, 4):
		return default
	try:
		vals = [max(0, min(255, int(c))) for c in v]
	except Exception:
		return default
	if len(vals) == 3:
		vals.append(255)
	return (vals[0], vals[1], vals[2], vals[3])


def _as_xy(v: Any, default: Tuple[int, int]) -> Tuple[int, int]:
	if not isinstance(v, (list, tuple)) or len(v) != 2:
		return default
	try:
		return (int(v[0]), int(v[1]))
	except Exception:
		return default


def _parse_joint_names(v: Any) -> Tuple[Joint, ...]:
	if not isinstance(v, list):
		return DEFAULT_JOINT_NAMES
	out: list[Joint] = []
	for raw in v:
		try:
			j = Joint.parse(str(raw))
		except ValueError:
			logger.warning("[CONFIG] unknown joint name %r ignored", raw)
			continue
		if j not in out:
			out.append(j)
	return tuple(out) if out else DEFAULT_JOINT_NAMES


def load_config(path: Optional[str | Path] = None) -> AppConfig:
	p = Path(path).expanduser().resolve() if path else (_CONFIG_PATH or get_default_config_path())
	if not p.exists():
		# Defaults-only config; app can still run.
		return AppConfig()
	try:
		raw = json.loads(p.read_text(encoding="utf-8"))
	except Exception:
		logger.warning("[CONFIG] %s is not valid JSON; using defaults", p)
		return AppConfig()

	if not isinstance(raw, dict):
		return AppConfig()

	joint_names = _parse_joint_names(_deep_get(raw, ["analyzer", "joint_names"], None))

	det_backend = _as_str(_deep_get(raw, ["detector", "backend"], "mediapipe"), "mediapipe").strip().lower()
	det_complexity = _as_int(_deep_get(raw, ["detector", "model_complexity"], 1), 1)
	det_min_conf = _as_float(_deep_get(raw, ["detector", "min_detection_confidence"], 0.5), 0.5)

	rd = RenderConfig()
	marker_color = _as_rgba(_deep_get(raw, ["render", "marker_color"], None), rd.marker_color)
	marker_lw = _as_int(_deep_get(raw, ["render", "marker_line_width"], rd.marker_line_width), rd.marker_line_width)
	marker_div = _as_float(_deep_get(raw, ["render", "marker_radius_divisor"], rd.marker_radius_divisor), rd.marker_radius_divisor)
	bone_lw = _as_int(_deep_get(raw, ["render", "bone_line_width"], rd.bone_line_width), rd.bone_line_width)
	bone_fallback = _as_rgba(_deep_get(raw, ["render", "bone_fallback_color"], None), rd.bone_fallback_color)
	label_origin = _as_xy(_deep_get(raw, ["render", "label_origin"], None), rd.label_origin)
	label_color = _as_rgba(_deep_get(raw, ["render", "label_color"], None), rd.label_color)
	label_size = _as_int(_deep_get(raw, ["render", "label_font_size"], rd.label_font_size), rd.label_font_size)
	label_font = _as_str(_deep_get(raw, ["render", "label_font_path"], ""), "").strip()

	video_fps = _as_int(_deep_get(raw, ["video", "output_fps"], 30), 30)
	video_codec = _as_str(_deep_get(raw, ["video", "codec"], "libx264"), "libx264").strip()

	export_dir = _as_str(_deep_get(raw, ["export", "base_dir"], str(Path("data") / "exports")), "")
	jpeg_quality = _as_int(_deep_get(raw, ["export", "jpeg_quality"], 100), 100)

	return AppConfig(
		analyzer=AnalyzerConfig(joint_names=joint_names),
		detector=DetectorConfig(
			backend=det_backend or "mediapipe",
			model_complexity=det_complexity if det_complexity in (0, 1, 2) else 1,
			min_detection_confidence=det_min_conf if 0.0 <= det_min_conf <= 1.0 else 0.5,
		),
		render=RenderConfig(
			marker_color=marker_color,
			marker_line_width=marker_lw if marker_lw > 0 else rd.marker_line_width,
			marker_radius_divisor=marker_div if marker_div > 0.0 else rd.marker_radius_divisor,
			bone_line_width=bone_lw if bone_lw > 0 else rd.bone_line_width,
			bone_fallback_color=bone_fallback,
			label_origin=label_origin,
			label_color=label_color,
			label_font_size=label_size if label_size > 0 else rd.label_font_size,
			label_font_path=label_font,
		),
		video=VideoConfig(
			output_fps=video_fps if video_fps > 0 else 30,
			codec=video_codec or "libx264",
		),
		export=ExportConfig(
			base_dir=export_dir or str(Path("data") / "exports"),
			jpeg_quality=jpeg_quality if 1 <= jpeg_quality <= 100 else 100,
		),
	)


def get_config() -> AppConfig:
	global _CONFIG_CACHE
	if _CONFIG_CACHE is None:
		_CONFIG_CACHE = load_config()
	return _CONFIG_CACHE
