from __future__ import annotations

import asyncio
import logging
import sys
from pathlib import Path

import pytest

from main import DEFAULTS, install_error_handlers, load_config


def test_defaults_when_file_missing(tmp_path: Path) -> None:
    cfg = load_config(str(tmp_path / 'missing.yaml'), {}, environ={})
    assert cfg == DEFAULTS
    assert cfg['port'] == 5000
    assert cfg['frontend_url'] == 'http://localhost:3000'


def test_precedence_file_env_cli(tmp_path: Path) -> None:
    path = tmp_path / 'config.yaml'
    path.write_text('port: 6000\nfrontend_url: http://file\nmin_speed: 10\n')

    cfg = load_config(str(path), {}, environ={})
    assert (cfg['port'], cfg['frontend_url'], cfg['min_speed']) == (6000, 'http://file', 10)

    cfg = load_config(str(path), {}, environ={'PORT': '7000', 'FRONTEND_URL': 'http://env'})
    assert (cfg['port'], cfg['frontend_url']) == (7000, 'http://env')

    cfg = load_config(str(path), {'port': 8000, 'host': None}, environ={'PORT': '7000'})
    assert cfg['port'] == 8000
    assert cfg['host'] == '0.0.0.0'


def test_empty_file_is_ignored(tmp_path: Path) -> None:
    path = tmp_path / 'config.yaml'
    path.write_text('')
    assert load_config(str(path), {}, environ={}) == DEFAULTS


def test_loop_errors_are_logged_and_loop_keeps_running(
    caplog: pytest.LogCaptureFixture, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.setattr(sys, 'excepthook', sys.excepthook)
    loop = asyncio.new_event_loop()
    try:
        install_error_handlers(loop)
        with caplog.at_level(logging.ERROR, logger='main'):
            loop.call_exception_handler({
                'message':   'Task exception was never retrieved',
                'exception': RuntimeError('boom'),
            })

        records = [r for r in caplog.records if r.name == 'main']
        assert len(records) == 1
        assert 'Task exception was never retrieved' in records[0].getMessage()
        assert records[0].exc_info[1].args == ('boom',)

        assert loop.run_until_complete(asyncio.sleep(0, result=42)) == 42
    finally:
        loop.close()


def test_uncaught_exceptions_are_logged(
    caplog: pytest.LogCaptureFixture, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.setattr(sys, 'excepthook', sys.excepthook)
    loop = asyncio.new_event_loop()
    try:
        install_error_handlers(loop)
        err = ValueError('bad')
        with caplog.at_level(logging.ERROR, logger='main'):
            sys.excepthook(ValueError, err, None)
    finally:
        loop.close()

    records = [r for r in caplog.records if r.name == 'main']
    assert [r.getMessage() for r in records] == ['Uncaught exception']
    assert records[0].exc_info[1] is err
