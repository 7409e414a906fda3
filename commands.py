"""
Inbound command vocabulary.

Every client message is validated into exactly one of the models below before
it reaches the interpreter. Text messages are JSON envelopes:

  {"event": "CHANGE_SPEED", "data": 45}

Binary messages are always VIDEO_FRAME payloads.

  POWER_TOGGLE       data: bool
  STOP               -
  FORWARD_MOVEMENT   -
  BACKWARD_MOVEMENT  -
  LEFT_MOVEMENT      -
  RIGHT_MOVEMENT     -
  CHANGE_SPEED       data: number (not clamped)
  SAVE_LOCATION      data: {"latitude": number, "longitude": number}
  GET_LOCATION       -
  VIDEO_FRAME        data: opaque, relayed untouched
"""
import json
from typing import Annotated, Any, Literal, Union

from pydantic import (BaseModel, ConfigDict, Field, StrictBool, StrictFloat,
                      StrictInt, TypeAdapter, ValidationError)

from errors import CommandValidationError

Number = Union[StrictInt, StrictFloat]


class _Command(BaseModel):
    model_config = ConfigDict(frozen=True, allow_inf_nan=False)


class LocationPayload(BaseModel):
    model_config = ConfigDict(frozen=True, allow_inf_nan=False)

    latitude:  Number
    longitude: Number


class PowerToggle(_Command):
    event: Literal['POWER_TOGGLE'] = 'POWER_TOGGLE'
    data:  StrictBool


class Stop(_Command):
    event: Literal['STOP'] = 'STOP'
    data:  Any = None


class Forward(_Command):
    event: Literal['FORWARD_MOVEMENT'] = 'FORWARD_MOVEMENT'
    data:  Any = None


class Backward(_Command):
    event: Literal['BACKWARD_MOVEMENT'] = 'BACKWARD_MOVEMENT'
    data:  Any = None


class Left(_Command):
    event: Literal['LEFT_MOVEMENT'] = 'LEFT_MOVEMENT'
    data:  Any = None


class Right(_Command):
    event: Literal['RIGHT_MOVEMENT'] = 'RIGHT_MOVEMENT'
    data:  Any = None


class ChangeSpeed(_Command):
    event: Literal['CHANGE_SPEED'] = 'CHANGE_SPEED'
    data:  Number


class SaveLocation(_Command):
    event: Literal['SAVE_LOCATION'] = 'SAVE_LOCATION'
    data:  LocationPayload


class GetLocation(_Command):
    event: Literal['GET_LOCATION'] = 'GET_LOCATION'
    data:  Any = None


class VideoFrame(_Command):
    event: Literal['VIDEO_FRAME'] = 'VIDEO_FRAME'
    data:  Any = None

    @property
    def is_binary(self) -> bool:
        return isinstance(self.data, (bytes, bytearray))


Command = Annotated[
    Union[PowerToggle, Stop, Forward, Backward, Left, Right,
          ChangeSpeed, SaveLocation, GetLocation, VideoFrame],
    Field(discriminator='event'),
]

_command_adapter: TypeAdapter = TypeAdapter(Command)


def parse_command(raw) -> Command:
    """Validate one raw channel message into a Command.

    Accepts bytes (video frame), a JSON text envelope or an already decoded
    dict. Raises CommandValidationError on anything else.
    """
    if isinstance(raw, (bytes, bytearray)):
        return VideoFrame(data=bytes(raw))

    if isinstance(raw, str):
        try:
            raw = json.loads(raw)
        except ValueError as e:
            raise CommandValidationError(f'message is not valid JSON: {e}') from e

    event = raw.get('event') if isinstance(raw, dict) else None
    try:
        return _command_adapter.validate_python(raw)
    except ValidationError as e:
        raise CommandValidationError(
            f'invalid {event or "command"}: {e.error_count()} error(s)', event=event,
        ) from e
