"""
bodyline: pose skeleton overlay and posture-line angle analysis.

`bodyline.pose` holds the joint hierarchy, geometry, analyzer and renderer;
the top-level modules add config, export and the ffmpeg video tools.
"""

from pathlib import Path

_DEFAULT_VERSION = "0.1.0"


def _read_version() -> str:
	# VERSION sits next to the package in a source checkout only.
	vf = Path(__file__).resolve().parents[1] / "VERSION"
	try:
		val = vf.read_text(encoding="utf-8").strip()
	except OSError:
		return _DEFAULT_VERSION
	return val or _DEFAULT_VERSION


__version__ = _read_version()
