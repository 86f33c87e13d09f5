# caminho: backoffice_app/interfaces/api/errors.py
# Funções:
# - register_exception_handlers(): converte HTTPException e erros de validação
#   no envelope {code, message, data}, com mensagem traduzida

from __future__ import annotations

from http import HTTPStatus

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from backoffice_app.interfaces.api.dependencies import get_user_locale
from backoffice_app.shared.i18n import get_translator
from backoffice_app.shared.logging import log_warning


def _translator_for(request: Request):
    return get_translator(get_user_locale(request.headers.get('accept-language')))


def _envelope(status_code: int, message: str, data=None, headers=None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=jsonable_encoder({'code': status_code, 'message': message, 'data': data}),
        headers=headers,
    )


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    _ = _translator_for(request)
    detail = exc.detail
    if isinstance(detail, dict):
        extra = {key: value for key, value in detail.items() if key != 'code'}
        message = _(detail.get('code') or 'HTTP_ERROR', **extra)
    elif isinstance(detail, str) and detail:
        message = _(detail)
    else:
        message = _('HTTP_ERROR')
    return _envelope(exc.status_code, message, headers=getattr(exc, 'headers', None))


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    _ = _translator_for(request)
    errors = [
        {'loc': list(error.get('loc', ())), 'msg': error.get('msg', ''), 'type': error.get('type', '')}
        for error in exc.errors()
    ]
    log_warning('REQUEST_VALIDATION_FAILED', {'path': request.url.path, 'errors': errors})
    return _envelope(HTTPStatus.UNPROCESSABLE_ENTITY, _('VALIDATION_ERROR'), data=errors)


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
