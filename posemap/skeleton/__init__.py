"""The static joint hierarchy (skeleton) used for retargeting."""
from posemap.skeleton._definition import load_skeleton_definition, ybot_skeleton
from posemap.skeleton._skeleton_model import Joint, SkeletonModel, make_joint

__all__ = ["Joint", "SkeletonModel", "make_joint", "load_skeleton_definition", "ybot_skeleton"]
