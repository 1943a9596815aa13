from __future__ import annotations

import logging
import os
from typing import Any, Dict, List, Optional

from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field, ValidationError
from starlette.datastructures import UploadFile

from clinilex import __version__
from clinilex.capabilities import get_catalog
from clinilex.config.defaults import PIPELINE, RT
from clinilex.mt import (
    AudioTranslationRequest,
    InputError,
    TranslationError,
    TranslationOrchestrator,
    TranslationRequest,
    get_orchestrator,
    user_message,
)
from clinilex.mt.core.types import GENERIC_FAILURE_MESSAGE

logger = logging.getLogger(__name__)

"""CliniLex HTTP API (FastAPI).

Endpoints:
- POST /api/translate -> JSON text request or multipart audio upload; returns
  {original, corrected, translated, confidence}
- GET /api/health -> liveness
- GET /api/languages -> supported languages with display names and speech locales
- GET /api/backends -> hosted/local backend configuration (no secrets)
"""

ALLOWED_ORIGINS = os.getenv(
    "CX_ALLOWED_ORIGINS",
    "http://localhost:3000,http://127.0.0.1:3000",
).split(",")

app = FastAPI(title="CliniLex API", version=__version__)

# Overridable in tests; falls back to the process-wide orchestrator
ORCHESTRATOR: Optional[TranslationOrchestrator] = None


def _orchestrator() -> TranslationOrchestrator:
    return ORCHESTRATOR or get_orchestrator()


# Global safety net: log exceptions, return generic 500 without internals
@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.error(
        "Unhandled exception on %s: %s", getattr(request.url, "path", "?"), exc, exc_info=True
    )
    return JSONResponse(status_code=500, content={"error": GENERIC_FAILURE_MESSAGE})


@app.middleware("http")
async def security_headers(request: Request, call_next):
    response = await call_next(request)
    response.headers["Permissions-Policy"] = "microphone=(self)"
    response.headers["Referrer-Policy"] = "no-referrer"
    response.headers["X-Content-Type-Options"] = "nosniff"
    return response


if RT.dev_mode:
    # CORS only in explicit dev mode, for a separately served UI
    app.add_middleware(
        CORSMiddleware,
        allow_origins=ALLOWED_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )


class TranslateReq(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    text: Optional[str] = None
    target_language: Optional[str] = Field(default=None, alias="targetLanguage")
    input_language: Optional[str] = Field(default=None, alias="inputLanguage")
    use_offline: bool = Field(default=False, alias="useOffline")
    medical_correction: Optional[bool] = Field(default=None, alias="medicalCorrection")
    simplify: bool = False
    tone: Optional[str] = None  # accepted for client compatibility; unused
    dialect: Optional[str] = None

    def to_request(self) -> TranslationRequest:
        return TranslationRequest.create(
            self.text,
            self.target_language,
            self.input_language,
            use_offline=self.use_offline,
            medical_correction=self.medical_correction,
            simplify=self.simplify,
            dialect=self.dialect,
            max_chars=PIPELINE.max_input_chars,
        )


def _form_str(value: Any) -> Optional[str]:
    if value is None or isinstance(value, UploadFile):
        return None
    return str(value)


async def _text_request(request: Request) -> TranslationRequest:
    try:
        payload = await request.json()
    except ValueError as e:
        raise InputError("Request body is not valid JSON.") from e
    if not isinstance(payload, dict):
        raise InputError("Request body must be a JSON object.")
    try:
        req = TranslateReq.model_validate(payload)
    except ValidationError as e:
        raise InputError("Invalid request fields.") from e
    return req.to_request()


async def _audio_request(request: Request) -> AudioTranslationRequest:
    form = await request.form()
    upload = form.get("file")
    if not isinstance(upload, UploadFile):
        raise InputError("No audio file uploaded")
    audio = await upload.read()
    return AudioTranslationRequest(
        audio=audio,
        target_language=_form_str(form.get("targetLanguage")) or PIPELINE.target_language,
        input_language=_form_str(form.get("inputLanguage")) or PIPELINE.input_language,
        use_offline=(_form_str(form.get("useOffline")) or "").lower() == "true",
        filename=upload.filename or "audio.webm",
        content_type=upload.content_type or "audio/webm",
    )


def _error_response(exc: TranslationError) -> JSONResponse:
    if isinstance(exc, InputError):
        return JSONResponse(status_code=400, content={"error": user_message(exc)})
    logger.error("Translation request failed: %s: %s", type(exc).__name__, exc)
    return JSONResponse(status_code=exc.status_code, content={"error": user_message(exc)})


@app.post("/api/translate")
async def api_translate(request: Request) -> JSONResponse:
    content_type = request.headers.get("content-type", "")
    orchestrator = _orchestrator()
    try:
        if content_type.startswith(("multipart/form-data", "application/x-www-form-urlencoded")):
            result = await orchestrator.translate_audio(await _audio_request(request))
        else:
            result = await orchestrator.translate(await _text_request(request))
    except TranslationError as e:
        return _error_response(e)
    return JSONResponse(result.to_dict())


@app.get("/api/health")
async def api_health() -> Dict[str, Any]:
    return {"status": "ok", "version": __version__}


@app.head("/api/health")
async def api_health_head() -> Response:
    return Response(status_code=200)


@app.get("/api/languages")
def api_languages() -> List[Dict[str, str]]:
    return [
        {
            "code": lang.code,
            "name": lang.display_name,
            "speechLocale": lang.speech_locale,
        }
        for lang in get_catalog().all()
    ]


@app.get("/api/backends")
def api_backends() -> Dict[str, Any]:
    return _orchestrator().resolver.describe()


def main() -> None:
    # Entry point for `python -m clinilex.api.server`
    import uvicorn

    uvicorn.run("clinilex.api.server:app", host="0.0.0.0", port=RT.api_port, reload=False)


if __name__ == "__main__":
    main()
