# caminho: backoffice_app/shared/logging.py
# Funções:
# - setup_logging(): inicializa logging (stdout + arquivo rotativo fora de ambientes serverless)
# - log_info/log_warning/log_error: atalhos padronizados (anexam o admin_id da requisição)

from __future__ import annotations

import logging
import os
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any

from backoffice_app.shared.request_context import get_current_admin_id

LOG_FORMAT = '%(asctime)s %(levelname)s [%(name)s] %(message)s'
LOG_DATEFMT = '%Y-%m-%d %H:%M:%S'
LOG_DIR = Path(__file__).resolve().parent.parent / 'logs'
LOG_FILE = LOG_DIR / 'backoffice_app.log'
LOGGER_NAME = 'backoffice_app'
CONFIG_STATE = {'logging': False}


def setup_logging(level: str = 'INFO', *, log_to_file: bool = True) -> None:
    # VERCEL / AWS_EXECUTION_ENV indicam ambiente serverless (sistema de arquivos somente leitura)
    is_serverless_env = os.environ.get('VERCEL') == '1' or 'AWS_LAMBDA' in os.environ.get('AWS_EXECUTION_ENV', '')

    root = logging.getLogger()
    if CONFIG_STATE['logging']:
        root.setLevel(level.upper())
        return

    stream_handler = logging.StreamHandler(sys.stdout)
    stream_handler.setFormatter(logging.Formatter(LOG_FORMAT, LOG_DATEFMT))
    root.setLevel(level.upper())
    root.addHandler(stream_handler)

    if log_to_file and not is_serverless_env:
        LOG_DIR.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(LOG_FILE, maxBytes=5 * 1024 * 1024, backupCount=5, encoding='utf-8')
        file_handler.setFormatter(logging.Formatter(LOG_FORMAT, LOG_DATEFMT))
        root.addHandler(file_handler)

    CONFIG_STATE['logging'] = True


def _log(event: str, payload: dict[str, Any], level: str) -> None:
    logger = logging.getLogger(LOGGER_NAME)
    admin_id = get_current_admin_id()
    if admin_id is not None and 'admin_id' not in payload:
        payload = {**payload, 'admin_id': admin_id}
    getattr(logger, level)('%s | %s', event, payload)


def log_info(event: str, payload: dict[str, Any]) -> None:
    _log(event, payload, 'info')


def log_warning(event: str, payload: dict[str, Any]) -> None:
    _log(event, payload, 'warning')


def log_error(event: str, payload: dict[str, Any]) -> None:
    _log(event, payload, 'error')
