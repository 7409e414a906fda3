"""Pure state transitions: (BoatState, Command) -> BoatState."""
import dataclasses

from commands import (Backward, ChangeSpeed, Forward, GetLocation, Left,
                      PowerToggle, Right, SaveLocation, Stop)
from state import BoatState, Location, reset_state


def _power_toggle(state: BoatState, cmd: PowerToggle) -> BoatState:
    return dataclasses.replace(state, power=cmd.data)


def _stop(state: BoatState, cmd: Stop) -> BoatState:
    return reset_state(state)


def _forward(state: BoatState, cmd: Forward) -> BoatState:
    return dataclasses.replace(state, direction='CW', speed=state.min_speed, is_moving=True)


def _backward(state: BoatState, cmd: Backward) -> BoatState:
    return dataclasses.replace(state, direction='CCW', speed=state.min_speed, is_moving=True)


def _left(state: BoatState, cmd: Left) -> BoatState:
    return dataclasses.replace(state, direction='LEFT')


def _right(state: BoatState, cmd: Right) -> BoatState:
    return dataclasses.replace(state, direction='RIGHT')


def _change_speed(state: BoatState, cmd: ChangeSpeed) -> BoatState:
    # min/max_speed are advertised to clients only
    return dataclasses.replace(state, speed=cmd.data)


def _save_location(state: BoatState, cmd: SaveLocation) -> BoatState:
    loc = Location(latitude=cmd.data.latitude, longitude=cmd.data.longitude)
    return dataclasses.replace(state, location=loc)


def _get_location(state: BoatState, cmd: GetLocation) -> BoatState:
    return state


_HANDLERS = {
    PowerToggle:  _power_toggle,
    Stop:         _stop,
    Forward:      _forward,
    Backward:     _backward,
    Left:         _left,
    Right:        _right,
    ChangeSpeed:  _change_speed,
    SaveLocation: _save_location,
    GetLocation:  _get_location,
}


def apply(state: BoatState, cmd) -> BoatState:
    """Return the state that results from applying *cmd*.

    Power is not checked: every command is accepted while powered off.
    VIDEO_FRAME carries no state and is rejected here.
    """
    handler = _HANDLERS.get(type(cmd))
    if handler is None:
        raise TypeError(f'{type(cmd).__name__} is not a state command')
    return handler(state, cmd)
