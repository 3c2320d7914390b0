"""FastAPI application for khqr."""
from __future__ import annotations

import logging

from fastapi import Depends, FastAPI, Header, HTTPException, Request, status
from fastapi.responses import JSONResponse, Response

from .config import DEV_API_KEY, settings
from .logging_conf import configure_logging
from .middleware import RequestLoggingMiddleware, route_path
from .monitoring import metrics_payload, record_service_error
from .schemas import DecodeResponse, GenerateKHQRRequest, GenerateKHQRResponse, PayloadRequest, VerifyResponse
from .services.errors import ServiceError
from .services.generator import KHQRGenerator
from .services.scan import VerificationService

app = FastAPI(title="khqr", version="0.1.0")
app.add_middleware(RequestLoggingMiddleware)

logger = logging.getLogger("khqr.api")


def _warn_insecure_defaults() -> None:
    if settings.api_key == DEV_API_KEY:
        logger.warning("api key uses the development default", extra={"config_key": "api_key"})


@app.on_event("startup")
async def on_startup() -> None:
    configure_logging()
    _warn_insecure_defaults()


async def require_api_key(x_api_key: str = Header(...)) -> None:
    if x_api_key != settings.api_key:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid API key")


def get_generator() -> KHQRGenerator:
    return KHQRGenerator(settings)


def get_verifier() -> VerificationService:
    return VerificationService()


@app.exception_handler(ServiceError)
async def service_error_handler(request: Request, exc: ServiceError) -> JSONResponse:
    path = route_path(request)
    logger.warning("service error", extra={"code": exc.code, "path": path, "method": request.method})
    record_service_error(exc.code, path)
    return JSONResponse(status_code=exc.status_code, content={"code": exc.code, "message": exc.message})


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("unhandled exception", extra={"path": route_path(request), "method": request.method})
    return JSONResponse(status_code=500, content={"code": "ERR_INTERNAL", "message": "Internal server error"})


@app.get("/health", tags=["system"])
async def health() -> dict[str, str]:
    return {"status": "ok"}


@app.get("/metrics", tags=["system"])
async def metrics() -> Response:
    payload, content_type = metrics_payload()
    return Response(content=payload, media_type=content_type)


@app.post("/v1/khqr", response_model=GenerateKHQRResponse, tags=["khqr"], dependencies=[Depends(require_api_key)])
async def generate_khqr(
    payload: GenerateKHQRRequest,
    generator: KHQRGenerator = Depends(get_generator),
) -> GenerateKHQRResponse:
    result = generator.generate(payload.to_config())
    return GenerateKHQRResponse(
        qr=result.payload,
        timestamp=result.timestamp,
        merchant_type=result.merchant_type,
        md5=result.md5,
        crc=result.crc,
    )


@app.post("/v1/khqr/verify", response_model=VerifyResponse, tags=["khqr"], dependencies=[Depends(require_api_key)])
async def verify_khqr(
    payload: PayloadRequest,
    verifier: VerificationService = Depends(get_verifier),
) -> VerifyResponse:
    return VerifyResponse(valid=verifier.verify(payload.payload))


@app.post("/v1/khqr/decode", response_model=DecodeResponse, tags=["khqr"], dependencies=[Depends(require_api_key)])
async def decode_khqr(
    payload: PayloadRequest,
    verifier: VerificationService = Depends(get_verifier),
) -> DecodeResponse:
    result = verifier.inspect(payload.payload)
    return DecodeResponse(valid=result.valid, fields=result.fields, templates=result.templates)
