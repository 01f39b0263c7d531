"""
Posture analysis core.

This package holds the fixed joint hierarchy, detector -> image coordinate mapping,
angle geometry, the per-image analyzer and the skeleton overlay renderer. Detector
backends plug in through `bodyline.pose.base.PoseDetector`.
"""

