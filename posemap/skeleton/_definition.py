"""Loaders for skeleton definitions."""
import json
from pathlib import Path
from typing import Mapping, Optional, Sequence, Union

from posemap.skeleton._skeleton_model import SkeletonModel
from posemap.utils.consts import YBOT_BONE_NAMES, YBOT_PARENTS
from posemap.utils.exceptions import SkeletonValidationError


def load_skeleton_definition(path: Union[str, Path]) -> SkeletonModel:
    """Load a skeleton from a json definition file.

    The file needs to follow the structure described in :meth:`~posemap.skeleton.SkeletonModel.from_definition`.
    Bind orientations are usually extracted once from the model asset that is later animated.

    Parameters
    ----------
    path
        Path to the json file

    Raises
    ------
    SkeletonValidationError
        If the file is not valid json or does not describe a valid joint tree

    """
    path = Path(path)
    try:
        definition = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise SkeletonValidationError(f"The skeleton definition {path} is not valid json: {e}") from e
    return SkeletonModel.from_definition(definition)


def ybot_skeleton(
    bind_orientations: Optional[Mapping[str, Sequence[float]]] = None,
    local_offsets: Optional[Mapping[str, Sequence[float]]] = None,
) -> SkeletonModel:
    """Create the reference skeleton with all twelve limb labels.

    The hierarchy follows the Mixamo "Y Bot" rig with `HIPS` as root.
    Without explicit bind orientations, all joints rest in the identity orientation.

    Examples
    --------
    >>> [j.label for j in ybot_skeleton()]
    ['HIPS', 'SP', 'SP2', 'H', 'RA', 'RFA', 'LA', 'LFA', 'RUL', 'RL', 'LUL', 'LL']

    """
    return SkeletonModel.from_parent_map(
        YBOT_PARENTS, bind_orientations=bind_orientations, local_offsets=local_offsets, bone_names=YBOT_BONE_NAMES
    )
