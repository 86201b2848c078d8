"""Base class for all algorithms."""

import json
from io import StringIO
from typing import Any, Dict, Mapping, Optional, Type, TypeVar, Union

import numpy as np
import pandas as pd
import tpcp
from scipy.spatial.transform import Rotation

from posemap.skeleton import SkeletonModel

BaseType = TypeVar("BaseType", bound="_BaseSerializable")  # noqa: invalid-name


def _hint_tuples(item):
    """Encode tuple values for json serialization.

    Modified based on: https://stackoverflow.com/questions/15721363/preserve-python-tuples-with-json
    """
    if isinstance(item, tuple):
        return dict(_obj_type="Tuple", tuple=item)
    if isinstance(item, list):
        return [_hint_tuples(e) for e in item]
    if isinstance(item, dict):
        return {key: _hint_tuples(value) for key, value in item.items()}
    return item


class _CustomEncoder(json.JSONEncoder):
    def encode(self, o: Any) -> str:
        return super().encode(_hint_tuples(o))

    def default(self, o):  # noqa: method-hidden
        if isinstance(o, _BaseSerializable):
            return o._to_json_dict()
        if isinstance(o, SkeletonModel):
            return dict(_obj_type="SkeletonModel", definition=o.to_definition())
        if isinstance(o, Rotation):
            return dict(_obj_type="Rotation", quat=o.as_quat().tolist())
        if isinstance(o, np.generic):
            return o.item()
        if isinstance(o, np.ndarray):
            return dict(_obj_type="Array", array=o.tolist())
        if isinstance(o, pd.DataFrame):
            return dict(_obj_type="DataFrame", df=o.to_json(orient="split"))
        if isinstance(o, pd.Series):
            return dict(_obj_type="Series", df=o.to_json(orient="split"))
        if o is tpcp.NOTHING:
            return dict(_obj_type="EmptyDefault")
        # Let the base class default method raise the TypeError
        return super().default(o)


def _custom_deserialize(json_obj):  # noqa: too-many-return-statements
    if "_posemap_obj" in json_obj:
        return _BaseSerializable._find_subclass(json_obj["_posemap_obj"])._from_json_dict(json_obj)
    if "_obj_type" in json_obj:
        if json_obj["_obj_type"] == "SkeletonModel":
            return SkeletonModel.from_definition(json_obj["definition"])
        if json_obj["_obj_type"] == "Rotation":
            return Rotation.from_quat(json_obj["quat"])
        if json_obj["_obj_type"] == "Array":
            return np.array(json_obj["array"])
        if json_obj["_obj_type"] in ["Series", "DataFrame"]:
            typ = "series" if json_obj["_obj_type"] == "Series" else "frame"
            return pd.read_json(StringIO(json_obj["df"]), orient="split", typ=typ)
        if json_obj["_obj_type"] == "EmptyDefault":
            return tpcp.NOTHING
        if json_obj["_obj_type"] == "Tuple":
            return tuple(json_obj["tuple"])
        raise ValueError("Unknown object type found in serialization!")

    return json_obj


class _BaseSerializable(tpcp.BaseTpcpObject):
    @classmethod
    def _get_subclasses(cls: Type[BaseType]):
        for subclass in cls.__subclasses__():
            yield from subclass._get_subclasses()
            yield subclass

    @classmethod
    def _find_subclass(cls: Type[BaseType], name: str) -> Type[BaseType]:
        for subclass in _BaseSerializable._get_subclasses():
            if subclass.__name__ == name:
                return subclass
        raise ValueError("No algorithm class with name {} exists".format(name))

    @classmethod
    def _from_json_dict(cls: Type[BaseType], json_dict: Dict) -> BaseType:
        params = json_dict["params"]
        input_data = {k: params[k] for k in tpcp.get_param_names(cls) if k in params}
        instance = cls(**input_data)
        return instance

    def _to_json_dict(self) -> Dict[str, Any]:
        json_dict: Dict[str, Union[str, Dict[str, Any]]] = {
            "_posemap_obj": self.__class__.__name__,
            "params": self.get_params(deep=False),
        }
        return json_dict

    def to_json(self) -> str:
        """Export the current object parameters as json.

        You can use the `from_json` method of any posemap algorithm to load the object again.

        .. warning:: This will only export the Parameters of the instance, but **not** any results!

        """
        final_dict = self._to_json_dict()
        return json.dumps(final_dict, indent=4, cls=_CustomEncoder)

    @classmethod
    def from_json(cls: Type[BaseType], json_str: str) -> BaseType:
        """Import an posemap object from its json representation.

        You can use the `to_json` method of a class to export it as a compatible json string.

        Parameters
        ----------
        json_str
            json formatted string

        """
        instance = json.loads(json_str, object_hook=_custom_deserialize)
        return instance


class BaseAlgorithm(tpcp.Algorithm, _BaseSerializable):
    """Base class for all algorithms.

    All type-specific algorithm classes should inherit from this class and need to

    1. overwrite `_action_methods` with the name of the actual action method of this class type
    2. implement a stub for the action method

    Attributes
    ----------
    _action_methods
        The name of the action method used by the Childclass

    """


class BaseOrientationNormalization(BaseAlgorithm):
    """Base class for all methods that enforce the unit-quaternion invariant on a single sample."""

    _action_methods = ("normalize",)

    normalized_orientation_: np.ndarray
    is_degenerate_: bool

    def normalize(self: BaseType, orientation: np.ndarray, label: Optional[str] = None) -> BaseType:
        """Normalize a single orientation sample."""
        raise NotImplementedError("Needs to be implemented by child class.")


class BaseCalibration(BaseAlgorithm):
    """Base class for all methods that collect samples and derive per-label reference orientations."""

    _action_methods = ("start", "collect", "finish")

    reference_orientations_: Dict[str, np.ndarray]

    def start(self: BaseType, now_ms: Optional[float] = None) -> BaseType:
        """Start a new collection window."""
        raise NotImplementedError("Needs to be implemented by child class.")

    def collect(self: BaseType, label: str, orientation: np.ndarray) -> BaseType:
        """Add a single sample to the running collection."""
        raise NotImplementedError("Needs to be implemented by child class.")

    def finish(self: BaseType) -> BaseType:
        """Close the collection window and compute the reference orientations."""
        raise NotImplementedError("Needs to be implemented by child class.")


class BaseCalibrationCorrection(BaseAlgorithm):
    """Base class for all methods that remove a calibration-time bias from a live sample."""

    _action_methods = ("correct",)

    corrected_orientation_: np.ndarray

    def correct(self: BaseType, label: str, orientation: np.ndarray) -> BaseType:
        """Correct a single live sample."""
        raise NotImplementedError("Needs to be implemented by child class.")


class BaseRetargeting(BaseAlgorithm):
    """Base class for all methods that compose global sensor orientations into local joint rotations."""

    _action_methods = ("retarget",)

    local_rotation_array_: np.ndarray

    def retarget(self: BaseType, global_pose: Mapping[str, np.ndarray]) -> BaseType:
        """Update the local rotations of all joints from the latest global orientations."""
        raise NotImplementedError("Needs to be implemented by child class.")
