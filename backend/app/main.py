import logging
import os
import time
import uuid

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.core.errors import ErrorBody, ErrorCode
from app.core.logging import setup_logging
from app.modules.core.router import router as core_router
from app.modules.points.router import router as points_router

setup_logging()

app = FastAPI(title="Family Points API")
logger = logging.getLogger("app.request")
startup_logger = logging.getLogger("app.startup")
startup_logger.info("startup complete")

allowed_origins = os.getenv("ALLOWED_ORIGINS", "")
origin_list = [origin.strip() for origin in allowed_origins.split(",") if origin.strip()]
if origin_list:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origin_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    fields = []
    for error in exc.errors():
        location = [str(part) for part in error.get("loc", ()) if part not in ("body", "query", "path")]
        fields.append(".".join(location) or "request")
    message = f"Invalid input: {', '.join(sorted(set(fields)))}" if fields else "Invalid input"
    logger.info("%s %s | validation failed | %s", request.method, request.url.path, message)
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"detail": ErrorBody(ErrorCode.InvalidInput, message)},
    )


@app.middleware("http")
async def request_logger(request: Request, call_next):
    request_id = request.headers.get("X-Request-Id") or str(uuid.uuid4())
    start = time.perf_counter()
    response = await call_next(request)
    duration_ms = int((time.perf_counter() - start) * 1000)

    parts = [f"{request.method} {request.url.path}"]
    if request.url.query:
        parts.append(f"query={request.url.query}")

    status_code = response.status_code
    if status_code >= 500:
        parts.append("ERROR: server error")
    elif status_code == 404:
        parts.append("ERROR: not found")
    elif status_code >= 400:
        parts.append("ERROR: client error")

    parts.append(f"status={status_code}")
    parts.append(f"{duration_ms}ms")
    parts.append(f"request_id={request_id}")

    log_msg = " | ".join(parts)
    if status_code >= 500:
        logger.error(log_msg)
    elif status_code >= 400:
        logger.warning(log_msg)
    else:
        logger.info(log_msg)

    response.headers["X-Request-Id"] = request_id
    return response


app.include_router(core_router)
app.include_router(points_router)
