"""Message parsing and control interface of the sensor connections."""
from posemap.streaming._messages import SensorSample, parse_sensor_message
from posemap.streaming._replay import replay_records
from posemap.streaming._sensor_link import ControlToken, SensorLink

__all__ = ["SensorSample", "parse_sensor_message", "ControlToken", "SensorLink", "replay_records"]
