import random
from typing import Any, Dict

import numpy as np
import pandas as pd
import pytest
from numpy.testing import assert_array_almost_equal, assert_array_equal
from pandas._testing import assert_frame_equal, assert_series_equal
from scipy.spatial.transform import Rotation
from tpcp import BaseTpcpObject

from posemap.utils.consts import LIMB_LABELS


@pytest.fixture(autouse=True)
def reset_random_seed():
    np.random.seed(10)
    random.seed(10)


@pytest.fixture()
def random_global_pose() -> Dict[str, np.ndarray]:
    return {label: Rotation.random().as_quat()[[3, 0, 1, 2]] for label in LIMB_LABELS}


class ManualTimer:
    """A drop-in for `threading.Timer` that only fires when told to."""

    instances = []

    def __init__(self, interval, function):
        self.interval = interval
        self.function = function
        self.started = False
        self.cancelled = False
        ManualTimer.instances.append(self)

    def start(self):
        self.started = True

    def cancel(self):
        self.cancelled = True

    def fire(self):
        return self.function()


@pytest.fixture()
def manual_timer():
    ManualTimer.instances = []
    yield ManualTimer
    ManualTimer.instances = []


class FakeClock:
    def __init__(self, start_s: float = 1000.0):
        self.now = start_s

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float):
        self.now += seconds


@pytest.fixture()
def fake_clock():
    return FakeClock()


def _get_params_without_nested_class(instance: BaseTpcpObject) -> Dict[str, Any]:
    return {k: v for k, v in instance.get_params().items() if not hasattr(v, "get_params")}


def compare_algo_objects(a, b):
    parameters = _get_params_without_nested_class(a)
    b_parameters = _get_params_without_nested_class(b)

    assert set(parameters.keys()) == set(b_parameters.keys())

    for p, value in parameters.items():
        json_val = b_parameters[p]
        compare_val(value, json_val, p)


def compare_val(value, json_val, name):
    if isinstance(value, BaseTpcpObject):
        compare_algo_objects(value, json_val)
    elif isinstance(value, np.ndarray):
        assert_array_equal(value, json_val)
    elif isinstance(value, dict):
        assert set(value.keys()) == set(json_val.keys()), name
        for k, v in value.items():
            compare_val(v, json_val[k], f"{name}_{k}")
    elif isinstance(value, (tuple, list)):
        assert len(value) == len(json_val)
        for i, (v, j) in enumerate(zip(value, json_val)):
            compare_val(v, j, f"{name}_{i}")
    elif isinstance(value, Rotation):
        assert_array_almost_equal(value.as_quat(), json_val.as_quat())
    elif isinstance(value, pd.DataFrame):
        assert_frame_equal(value, json_val, check_dtype=False)
    elif isinstance(value, pd.Series):
        assert_series_equal(value, json_val, check_dtype=False)
    else:
        assert value == json_val, name
