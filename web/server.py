"""
FastAPI web server for the boat relay.

Endpoints:
  GET  /health                → liveness probe
  GET  /api/state             → current boat state snapshot (JSON)
  WS   /ws                    → command channel, state replies, video relay
"""
import logging
from datetime import datetime, timezone

from fastapi import FastAPI, WebSocket, WebSocketDisconnect, status
from fastapi.middleware.cors import CORSMiddleware

from errors import TransportError
from session import ClientSession, SessionHub
from state import StateStore

logger = logging.getLogger(__name__)

DEFAULT_FRONTEND_URL = 'http://localhost:3000'


def create_app(store: StateStore, frontend_url: str = DEFAULT_FRONTEND_URL) -> FastAPI:
    app = FastAPI(title='Boat Relay', docs_url=None, redoc_url=None)
    hub = SessionHub(store)
    app.state.store = store
    app.state.hub = hub

    app.add_middleware(
        CORSMiddleware,
        allow_origins=[frontend_url],
        allow_methods=['GET', 'POST'],
        allow_credentials=True,
    )

    # ------------------------------------------------------------------
    # REST
    # ------------------------------------------------------------------

    @app.get('/health')
    async def health():
        return {
            'status':    'healthy',
            'timestamp': datetime.now(timezone.utc).isoformat(),
        }

    @app.get('/api/state')
    async def get_state():
        return store.get().to_dict()

    # ------------------------------------------------------------------
    # WebSocket
    # ------------------------------------------------------------------

    @app.websocket('/ws')
    async def ws_endpoint(ws: WebSocket):
        # browsers always send Origin; other clients are not subject to CORS
        origin = ws.headers.get('origin')
        if origin is not None and origin != frontend_url:
            logger.warning(f'Rejected WebSocket from origin {origin} {ws.client}')
            await ws.close(code=status.WS_1008_POLICY_VIOLATION)
            return

        await ws.accept()
        session = ClientSession(ws)
        hub.connect(session)
        logger.info(f'Client connected: {session.id} {ws.client}')

        try:
            while True:
                message = await ws.receive()
                if message['type'] == 'websocket.disconnect':
                    break
                raw = message.get('bytes')
                if raw is None:
                    raw = message.get('text')
                await hub.handle_message(session, raw)
        except WebSocketDisconnect:
            pass
        except Exception as exc:
            await hub.handle_transport_error(session, TransportError(repr(exc)))
        finally:
            await hub.handle_disconnect(session)
            logger.info(f'Client disconnected: {session.id}')

    return app
