import json
import threading
import dataclasses
from dataclasses import dataclass, field
from typing import Callable, Optional, Union

Number = Union[int, float]

DIRECTIONS = ('CW', 'CCW', 'LEFT', 'RIGHT')

DEFAULT_MAX_SPEED = 100
DEFAULT_MIN_SPEED = 30


@dataclass(frozen=True)
class Location:
    latitude:  Number = 23.8103
    longitude: Number = 90.4125


DEFAULT_LOCATION = Location()


@dataclass(frozen=True)
class BoatState:
    power:     bool   = False
    speed:     Number = 0
    is_moving: bool   = False
    max_speed: Number = DEFAULT_MAX_SPEED
    min_speed: Number = DEFAULT_MIN_SPEED
    direction: str    = 'CW'      # CW/CCW: travel rotation, LEFT/RIGHT: steering
    location:  Location = field(default_factory=Location)

    def to_dict(self) -> dict:
        return {
            'power':     self.power,
            'speed':     self.speed,
            'isMoving':  self.is_moving,
            'maxSpeed':  self.max_speed,
            'minSpeed':  self.min_speed,
            'direction': self.direction,
            'location':  dataclasses.asdict(self.location),
        }

    def to_json(self) -> str:
        return json.dumps(self.to_dict())


def reset_state(state: BoatState) -> BoatState:
    """Motion and position back to defaults. Power and speed limits are kept."""
    return dataclasses.replace(
        state,
        speed=0,
        is_moving=False,
        direction='CW',
        location=DEFAULT_LOCATION,
    )


class StateStore:
    """Owner of the single BoatState shared by every client session."""

    def __init__(self, initial: Optional[BoatState] = None):
        self._state = initial if initial is not None else BoatState()
        self._lock = threading.Lock()

    def get(self) -> BoatState:
        return self._state

    def set(self, state: BoatState):
        with self._lock:
            self._state = state

    def reset(self) -> BoatState:
        return self.update(reset_state)

    def update(self, fn: Callable[[BoatState], BoatState]) -> BoatState:
        """Read-modify-write the current state; returns the committed value."""
        with self._lock:
            self._state = fn(self._state)
            return self._state
