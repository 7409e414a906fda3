#!/usr/bin/env python3
import argparse
import asyncio
import logging
import os
import sys
from pathlib import Path

import yaml
import uvicorn

from state import BoatState, StateStore, DEFAULT_MAX_SPEED, DEFAULT_MIN_SPEED
from web.server import create_app, DEFAULT_FRONTEND_URL

logger = logging.getLogger('main')

DEFAULTS = {
    'host':         '0.0.0.0',
    'port':         5000,
    'frontend_url': DEFAULT_FRONTEND_URL,
    'max_speed':    DEFAULT_MAX_SPEED,
    'min_speed':    DEFAULT_MIN_SPEED,
    'log_level':    'INFO',
}

_ENV_KEYS = {
    'PORT':         ('port', int),
    'FRONTEND_URL': ('frontend_url', str),
}


def load_config(path: str, overrides: dict, environ=None) -> dict:
    """defaults < yaml file < environment < command line."""
    environ = os.environ if environ is None else environ

    cfg = dict(DEFAULTS)
    p = Path(path)
    if p.exists():
        cfg.update(yaml.safe_load(p.read_text()) or {})
    for var, (key, cast) in _ENV_KEYS.items():
        if environ.get(var):
            cfg[key] = cast(environ[var])
    cfg.update({k: v for k, v in overrides.items() if v is not None})
    return cfg


def setup_logging(level: str = 'INFO'):
    logging.basicConfig(
        level=getattr(logging, str(level).upper(), logging.INFO),
        format='%(asctime)s  %(levelname)-7s  %(name)s: %(message)s',
        datefmt='%H:%M:%S',
    )


def _log_uncaught(exc_type, exc, tb):
    logger.error('Uncaught exception', exc_info=(exc_type, exc, tb))


def _log_loop_exception(loop, context):
    exc = context.get('exception')
    logger.error(f'Unhandled rejection: {context.get("message")}', exc_info=exc)


def install_error_handlers(loop: asyncio.AbstractEventLoop):
    """Log process-level failures.

    Exceptions that reach the event loop handler are logged and the loop keeps
    serving. sys.excepthook only runs once the interpreter is already exiting,
    so it can record the failure but not prevent the exit.
    """
    sys.excepthook = _log_uncaught
    loop.set_exception_handler(_log_loop_exception)


async def run(cfg: dict):
    install_error_handlers(asyncio.get_running_loop())

    store = StateStore(BoatState(
        max_speed=cfg['max_speed'],
        min_speed=cfg['min_speed'],
    ))
    app = create_app(store, cfg['frontend_url'])

    uv_cfg = uvicorn.Config(
        app,
        host=cfg['host'],
        port=cfg['port'],
        log_level='warning',
        loop='none',
    )
    server = uvicorn.Server(uv_cfg)
    logger.info(f'Server running on port {cfg["port"]}')

    try:
        await server.serve()
    finally:
        logger.info('Shutdown complete')


def main():
    parser = argparse.ArgumentParser(description='Boat remote-control relay')
    parser.add_argument('--config',       default='config.yaml')
    parser.add_argument('--host',         default=None)
    parser.add_argument('--port',         type=int, default=None)
    parser.add_argument('--frontend-url', default=None)
    parser.add_argument('--log-level',    default=None)
    args = parser.parse_args()

    cfg = load_config(args.config, {
        'host':         args.host,
        'port':         args.port,
        'frontend_url': args.frontend_url,
        'log_level':    args.log_level,
    })
    setup_logging(cfg['log_level'])

    try:
        asyncio.run(run(cfg))
    except KeyboardInterrupt:
        logger.info('Stopped by user')


if __name__ == '__main__':
    main()
