"""A set of helper functions to make developing algorithms easier."""
from typing import Any, Dict, Hashable, TypeVar

_Hashable = TypeVar("_Hashable", bound=Hashable)
_HashableVar = TypeVar("_HashableVar", bound=Hashable)


def invert_result_dictionary(
    nested_dict: Dict[_Hashable, Dict[_HashableVar, Any]]
) -> Dict[_HashableVar, Dict[_Hashable, Any]]:
    """Invert result dictionaries that are obtained from per-label results.

    This method expects a two level dictionary and flips the levels.
    This means that if a value can be accessed as `nested_dict[k1][k2] = v` in the input, it can be accessed as
    `output_dict[k2][k1] = v`.

    Examples
    --------
    >>> in_dict = {"RA": {"reference": "q_ra", "count": 3}, "LA": {"reference": "q_la"}}
    >>> from pprint import pprint
    >>> pprint(invert_result_dictionary(in_dict))
    {'count': {'RA': 3}, 'reference': {'LA': 'q_la', 'RA': 'q_ra'}}

    """
    out: Dict[_HashableVar, Dict[_Hashable, Any]] = {}
    for ok, ov in nested_dict.items():
        for k, v in ov.items():
            nested = out.setdefault(k, {})
            nested[ok] = v
    return out


def set_params_from_dict(obj: Any, param_dict: Dict[str, Any], result_formatting: bool = False):
    """Update object attributes from dictionary.

    The object will be updated inplace.

    Parameters
    ----------
    obj
        The posemap obj to update
    param_dict
        The dictionary of new values to set/update
    result_formatting
        If True all keys will get a trailing "_", if they don't have one already.
        This marks them as "results" based on the tpcp guidelines.

    """
    for k, v in param_dict.items():
        if result_formatting is True:
            if not k.endswith("_"):
                k += "_"
        setattr(obj, k, v)
