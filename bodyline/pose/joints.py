from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import Iterator, List, Mapping, Optional, Tuple

from bodyline.pose.types import Color, Joint


@dataclass(frozen=True)
class BoneLink:
	parent: Joint
	color: Color


FACE_COLOR = Color(1.0, 0.5763723254, 0.0, 1.0)
TORSO_COLOR = Color(1.0, 1.0, 0.0, 1.0)
LEFT_LEG_COLOR = Color(0.0, 0.4784313725, 1.0, 1.0)
RIGHT_ARM_COLOR = Color(0.0, 0.9914394021, 1.0, 1.0)
RIGHT_LEG_COLOR = Color(1.0, 0.1491314173, 0.0, 1.0)
LEFT_ARM_COLOR = Color(0.9098039269, 0.4784313738, 0.6431372762, 1.0)

# Child -> (parent, bone colour). A child has exactly one parent; `root` has none.
BONE_TABLE: Mapping[Joint, BoneLink] = MappingProxyType({
	# face
	Joint.NOSE: BoneLink(Joint.NECK, FACE_COLOR),
	Joint.RIGHT_EYE: BoneLink(Joint.NOSE, FACE_COLOR),
	Joint.LEFT_EYE: BoneLink(Joint.NOSE, FACE_COLOR),
	Joint.RIGHT_EAR: BoneLink(Joint.RIGHT_EYE, FACE_COLOR),
	Joint.LEFT_EAR: BoneLink(Joint.LEFT_EYE, FACE_COLOR),
	# torso
	Joint.NECK: BoneLink(Joint.ROOT, TORSO_COLOR),
	Joint.LEFT_SHOULDER: BoneLink(Joint.NECK, TORSO_COLOR),
	Joint.RIGHT_SHOULDER: BoneLink(Joint.NECK, TORSO_COLOR),
	Joint.RIGHT_HIP: BoneLink(Joint.ROOT, TORSO_COLOR),
	Joint.LEFT_HIP: BoneLink(Joint.ROOT, TORSO_COLOR),
	# left leg
	Joint.LEFT_KNEE: BoneLink(Joint.LEFT_HIP, LEFT_LEG_COLOR),
	Joint.LEFT_ANKLE: BoneLink(Joint.LEFT_KNEE, LEFT_LEG_COLOR),
	# right arm
	Joint.RIGHT_ELBOW: BoneLink(Joint.RIGHT_SHOULDER, RIGHT_ARM_COLOR),
	Joint.RIGHT_WRIST: BoneLink(Joint.RIGHT_ELBOW, RIGHT_ARM_COLOR),
	# right leg
	Joint.RIGHT_KNEE: BoneLink(Joint.RIGHT_HIP, RIGHT_LEG_COLOR),
	Joint.RIGHT_ANKLE: BoneLink(Joint.RIGHT_KNEE, RIGHT_LEG_COLOR),
	# left arm
	Joint.LEFT_ELBOW: BoneLink(Joint.LEFT_SHOULDER, LEFT_ARM_COLOR),
	Joint.LEFT_WRIST: BoneLink(Joint.LEFT_ELBOW, LEFT_ARM_COLOR),
})

# Order of the observation sequence produced by the analyzer.
DEFAULT_JOINT_NAMES: Tuple[Joint, ...] = (
	Joint.NECK,
	Joint.RIGHT_SHOULDER,
	Joint.RIGHT_HIP,
	Joint.RIGHT_ELBOW,
	Joint.RIGHT_WRIST,
	Joint.RIGHT_KNEE,
	Joint.RIGHT_ANKLE,
	Joint.ROOT,
	Joint.LEFT_HIP,
	Joint.LEFT_SHOULDER,
	Joint.LEFT_ELBOW,
	Joint.LEFT_WRIST,
	Joint.LEFT_KNEE,
	Joint.LEFT_ANKLE,
	Joint.NOSE,
	Joint.RIGHT_EYE,
	Joint.RIGHT_EAR,
	Joint.LEFT_EYE,
	Joint.LEFT_EAR,
)

DRAWABLE_JOINTS: frozenset = frozenset(Joint)


def parent_of(joint: Joint, catalog: Mapping[Joint, BoneLink] = BONE_TABLE) -> Tuple[Optional[Joint], Optional[Color]]:
	link = catalog.get(joint)
	if link is None:
		return (None, None)
	return (link.parent, link.color)


def iter_bones(catalog: Mapping[Joint, BoneLink] = BONE_TABLE) -> Iterator[Tuple[Joint, Joint, Color]]:
	"""Yield (child, parent, colour) for every bone in catalog order."""
	for child, link in catalog.items():
		yield child, link.parent, link.color


def path_to_root(joint: Joint, catalog: Mapping[Joint, BoneLink] = BONE_TABLE) -> List[Joint]:
	"""
	Walk parent links from `joint` up to the terminal node (inclusive).
	Raises ValueError if the catalog contains a cycle.
	"""
	out = [joint]
	seen = {joint}
	cur = joint
	while True:
		parent, _ = parent_of(cur, catalog)
		if parent is None:
			return out
		if parent in seen:
			raise ValueError(f"cycle in bone catalog at {parent.value}")
		out.append(parent)
		seen.add(parent)
		cur = parent


def without_bone(child: Joint, catalog: Mapping[Joint, BoneLink] = BONE_TABLE) -> Mapping[Joint, BoneLink]:
	"""Copy of `catalog` with the bone ending at `child` removed."""
	return MappingProxyType({j: link for j, link in catalog.items() if j != child})
