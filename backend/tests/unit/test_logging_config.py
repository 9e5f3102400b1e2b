"""
Unit tests for the structured logging setup.
"""

import json
import logging
import sys

import pytest

from backend.src.utils import logging_config
from backend.src.utils.logging_config import (
    ConsoleFormatter,
    JSONFormatter,
    configure_logging,
    get_logger,
    record_extras,
)


def _record(msg='Validation error', **extra):
    logger = logging.getLogger('planner_crm.test')
    return logger.makeRecord(
        'planner_crm.test', logging.WARNING, __file__, 12, msg, (), None, extra=extra
    )


class TestFormatters:
    def test_record_extras_only_returns_caller_fields(self):
        record = _record(path='/api/events', method='POST')
        assert record_extras(record) == {'path': '/api/events', 'method': 'POST'}

    def test_json_formatter_merges_extras(self):
        line = JSONFormatter().format(_record(path='/api/events', errors=[{'loc': ['title']}]))
        payload = json.loads(line)

        assert payload['level'] == 'WARNING'
        assert payload['logger'] == 'planner_crm.test'
        assert payload['message'] == 'Validation error'
        assert payload['path'] == '/api/events'
        assert payload['errors'] == [{'loc': ['title']}]

    def test_json_formatter_includes_exception(self):
        try:
            raise RuntimeError('boom')
        except RuntimeError:
            record = logging.getLogger('planner_crm.test').makeRecord(
                'planner_crm.test', logging.ERROR, __file__, 1, 'failed', (), sys.exc_info()
            )
        payload = json.loads(JSONFormatter().format(record))
        assert 'RuntimeError: boom' in payload['exception']

    def test_console_formatter_appends_key_values(self):
        line = ConsoleFormatter().format(_record('Unhandled exception', path='/x', method='GET'))
        assert 'WARNING planner_crm.test: Unhandled exception' in line
        assert line.endswith('path=/x method=GET')


class TestConfigureLogging:
    def test_development_logs_to_console(self, monkeypatch):
        monkeypatch.setenv('CRM_ENV', 'development')
        loggers = configure_logging(level='debug')

        assert set(loggers) == set(logging_config.LOGGER_NAMES)
        api = loggers['api']
        assert api.name == 'planner_crm.api'
        assert api.level == logging.DEBUG
        assert api.propagate is False
        assert len(api.handlers) == 1
        assert isinstance(api.handlers[0].formatter, ConsoleFormatter)

    def test_log_dir_writes_json_files(self, tmp_path):
        loggers = configure_logging(level='INFO', log_dir=str(tmp_path / 'logs'))
        loggers['services'].info('Created event', extra={'event_guid': 'evt_x'})
        for handler in loggers['services'].handlers:
            handler.flush()

        lines = (tmp_path / 'logs' / 'services.log').read_text().splitlines()
        assert json.loads(lines[-1])['event_guid'] == 'evt_x'

        for logger in loggers.values():
            for handler in logger.handlers:
                handler.close()
        configure_logging(level='WARNING')

    def test_unknown_level_falls_back_to_info(self):
        assert configure_logging(level='chatty')['db'].level == logging.INFO
        configure_logging(level='WARNING')


class TestGetLogger:
    def test_returns_named_logger(self):
        assert get_logger('websocket').name == 'planner_crm.websocket'

    def test_unknown_name_raises(self):
        with pytest.raises(ValueError, match='Unknown logger name: tools'):
            get_logger('tools')
