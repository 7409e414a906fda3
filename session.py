"""
Client sessions and the hub that connects them to the shared boat state.

Emission rules:
  BOAT_STATE    unicast to the session whose command produced it
  VIDEO_STREAM  broadcast to every session except the frame's sender
  error         unicast to the session that caused it
"""
import asyncio
import dataclasses
import json
import logging
import uuid
from typing import Dict, List, Optional

import interpreter
from commands import (Backward, ChangeSpeed, Forward, GetLocation, Left,
                      PowerToggle, Right, SaveLocation, Stop, VideoFrame,
                      parse_command)
from errors import CommandValidationError, TransportError
from state import BoatState, StateStore

logger = logging.getLogger(__name__)

BOAT_STATE   = 'BOAT_STATE'
VIDEO_STREAM = 'VIDEO_STREAM'
ERROR        = 'error'

TRANSPORT_ERROR_MESSAGE  = 'An error occurred'
VALIDATION_ERROR_MESSAGE = 'Invalid command'

_COMMAND_LOG = {
    PowerToggle:  lambda c: 'Boat powered on' if c.data else 'Boat powered off',
    Stop:         lambda c: 'Boat state reset to defaults',
    Forward:      lambda c: 'Boat moving forward',
    Backward:     lambda c: 'Boat moving backward',
    Left:         lambda c: 'Boat moving left',
    Right:        lambda c: 'Boat moving right',
    ChangeSpeed:  lambda c: f'Speed changed to: {c.data}',
    SaveLocation: lambda c: f'Location saved: {c.data.latitude}, {c.data.longitude}',
    GetLocation:  lambda c: 'Location requested',
}


def envelope(event: str, data) -> str:
    return json.dumps({'event': event, 'data': data})


def _power_off(state: BoatState) -> BoatState:
    if not state.power:
        return state
    return dataclasses.replace(state, power=False)


class ClientSession:
    """One connected channel. `ws` needs async send_text() and send_bytes()."""

    def __init__(self, ws, sid: Optional[str] = None):
        self.ws = ws
        self.id = sid or uuid.uuid4().hex

    async def emit(self, event: str, data):
        await self.send_text(envelope(event, data))

    async def send_text(self, text: str):
        await self.ws.send_text(text)

    async def send_bytes(self, data: bytes):
        await self.ws.send_bytes(data)

    def __repr__(self):
        return f'ClientSession({self.id})'


class SessionHub:
    def __init__(self, store: StateStore):
        self.store = store
        self._sessions: Dict[str, ClientSession] = {}

    # ------------------------------------------------------------------
    # Registry
    # ------------------------------------------------------------------

    def connect(self, session: ClientSession):
        self._sessions[session.id] = session

    def _unregister(self, session: ClientSession):
        self._sessions.pop(session.id, None)

    @property
    def sessions(self) -> List[ClientSession]:
        return list(self._sessions.values())

    def __len__(self):
        return len(self._sessions)

    # ------------------------------------------------------------------
    # Emission
    # ------------------------------------------------------------------

    async def send_state(self, session: ClientSession):
        await session.emit(BOAT_STATE, self.store.get().to_dict())

    async def relay_frame(self, sender: ClientSession, frame: VideoFrame):
        targets = [s for s in self.sessions if s.id != sender.id]
        if not targets:
            return

        if frame.is_binary:
            data = bytes(frame.data)
            sends = [s.send_bytes(data) for s in targets]
        else:
            text = envelope(VIDEO_STREAM, frame.data)
            sends = [s.send_text(text) for s in targets]

        results = await asyncio.gather(*sends, return_exceptions=True)
        for target, result in zip(targets, results):
            if isinstance(result, Exception):
                logger.warning(f'[{target.id}] video relay failed, dropping session: {result!r}')
                self._unregister(target)

    async def _emit_best_effort(self, session: ClientSession, event: str, data):
        try:
            await session.emit(event, data)
        except Exception as e:
            logger.debug(f'[{session.id}] {event} not delivered: {e!r}')

    # ------------------------------------------------------------------
    # Inbound events
    # ------------------------------------------------------------------

    async def handle_message(self, session: ClientSession, raw):
        """Validate, apply and answer one inbound message."""
        try:
            cmd = parse_command(raw)
        except CommandValidationError as e:
            logger.warning(f'[{session.id}] rejected command: {e}')
            await self._emit_best_effort(session, ERROR, VALIDATION_ERROR_MESSAGE)
            return

        if isinstance(cmd, VideoFrame):
            logger.debug(f'[{session.id}] Video frame received')
            await self.relay_frame(session, cmd)
            return

        self.store.update(lambda state: interpreter.apply(state, cmd))
        logger.info(_COMMAND_LOG[type(cmd)](cmd))
        await self.send_state(session)

    async def handle_transport_error(self, session: ClientSession, exc: TransportError):
        logger.error(f'[{session.id}] Socket error: {exc}')
        await self._emit_best_effort(session, ERROR, TRANSPORT_ERROR_MESSAGE)

    async def handle_disconnect(self, session: ClientSession):
        """Drop the session; a silent controller always means power off."""
        self._unregister(session)
        if self.store.get().power:
            self.store.update(_power_off)
            logger.info('Boat powered off')
        await self._emit_best_effort(session, BOAT_STATE, self.store.get().to_dict())
