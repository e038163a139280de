"""Animation clips: per-node keyframe curves.

Times are in frames; `frames_per_second` converts to seconds.
Rotations are quaternions in (w, x, y, z) order.
"""

from dataclasses import dataclass, field
from typing import List, Tuple


@dataclass
class Keyframe:
    """A single keyframe: time (frames) and a value tuple."""
    time: float
    value: Tuple[float, ...]


@dataclass
class NodeAnimation:
    """Animation curves for one skeleton node."""
    node_name: str
    position: List[Keyframe] = field(default_factory=list)
    rotation: List[Keyframe] = field(default_factory=list)
    scale: List[Keyframe] = field(default_factory=list)


@dataclass
class AnimationData:
    """A complete animation clip."""
    name: str
    duration: float = 0.0                # in frames
    frames_per_second: float = 30.0
    channels: List[NodeAnimation] = field(default_factory=list)
    enable_root_motion: bool = False
    root_node_name: str = ""

    def get_length(self) -> float:
        """Clip length in seconds."""
        if self.frames_per_second <= 0.0:
            return 0.0
        return self.duration / self.frames_per_second

    def normalize_rotations(self):
        """Re-normalize every rotation key; zero quaternions become identity."""
        from mathutils import Quaternion

        for channel in self.channels:
            for key in channel.rotation:
                q = Quaternion(key.value)
                if q.magnitude <= 1e-12:
                    key.value = (1.0, 0.0, 0.0, 0.0)
                    continue
                q.normalize()
                key.value = (q.w, q.x, q.y, q.z)
