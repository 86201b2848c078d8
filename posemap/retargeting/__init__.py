"""Methods to map global sensor orientations onto the joints of a skeleton."""
from posemap.retargeting._pose_retargeter import PoseRetargeter

__all__ = ["PoseRetargeter"]
