from __future__ import annotations

import logging
import time

from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse, Response

from rowsearch.config import load_settings
from rowsearch.logging_utils import (
    clear_request_context,
    configure_logging,
    current_request_id,
    elapsed_ms,
    log_event,
    new_request_id,
    set_request_context,
)
from rowsearch.models import RowCheckRequest, RowCheckResponse, SearchRequest, SearchResponse, VariantInfo
from rowsearch.services.result_sink import format_rows_document
from rowsearch.services.row_search import VARIANTS, search_service

configure_logging()
logger = logging.getLogger(__name__)

app = FastAPI(title="Twelve-Tone Row Search")


@app.middleware("http")
async def request_logging_middleware(request: Request, call_next):
    request_id = request.headers.get("X-Request-ID") or new_request_id()
    set_request_context(request_id=request_id)
    started = time.perf_counter()
    log_event(logger, "request_started", route=request.url.path, method=request.method)
    try:
        response = await call_next(request)
    except Exception:
        log_event(logger, "request_completed", route=request.url.path, method=request.method, status_code=500, duration_ms=elapsed_ms(started))
        raise

    log_event(
        logger,
        "request_completed",
        route=request.url.path,
        method=request.method,
        status_code=response.status_code,
        duration_ms=elapsed_ms(started),
    )
    response.headers["X-Request-ID"] = request_id
    clear_request_context()
    return response


@app.exception_handler(Exception)
async def global_exception_handler(_request: Request, exc: Exception):
    request_id = current_request_id()
    logger.exception(
        "unhandled_exception",
        extra={"event": "unhandled_exception", "request_id": request_id},
    )
    response = JSONResponse(
        status_code=500,
        content={
            "detail": "Something went wrong while processing your request. Please try again.",
            "request_id": request_id,
        },
        headers={"X-Request-ID": request_id},
    )
    clear_request_context()
    return response


def _handle_user_error(action: str, exc: ValueError) -> HTTPException:
    log_event(logger, "request_failed", level=logging.WARNING, action=action, reason=str(exc))
    return HTTPException(
        status_code=422,
        detail={
            "message": f"{action} failed. {exc}",
            "request_id": current_request_id(),
        },
    )


def _search(payload: SearchRequest, action: str):
    try:
        return search_service.search(payload.variant, payload.prefix, use_cache=load_settings().cache_results)
    except ValueError as exc:
        raise _handle_user_error(action, exc) from exc


@app.get("/api/variants", response_model=list[VariantInfo])
def list_variants_endpoint():
    return [
        VariantInfo(
            name=variant.name,
            result_key=variant.result_key,
            description=variant.description,
            row_length=variant.row_length,
            domain=list(variant.domain),
            default_filename=variant.default_filename,
        )
        for variant in VARIANTS.values()
    ]


@app.post("/api/rows/check", response_model=RowCheckResponse)
def check_row_endpoint(payload: RowCheckRequest):
    try:
        check = search_service.check(payload.variant, payload.row)
    except ValueError as exc:
        raise _handle_user_error("Row check", exc) from exc

    log_event(logger, "row_check_completed", variant=payload.variant, valid=check.valid, failure_index=check.failure_index)
    return RowCheckResponse(
        variant=payload.variant,
        row=check.row,
        valid=check.valid,
        failure_index=check.failure_index,
        partial_sums=check.partial_sums,
        trichord_classes=check.trichord_classes,
        realized_row=check.realized_row,
    )


@app.post("/api/search", response_model=SearchResponse)
def search_endpoint(payload: SearchRequest):
    result, cache_hit = _search(payload, "Row search")
    return SearchResponse(
        variant=payload.variant,
        result_key=result.variant.result_key,
        prefix=list(result.prefix),
        count=result.count,
        rows=[list(row) for row in result.rows],
        candidates_tested=result.candidates_tested,
        duration_ms=result.duration_ms,
        cache_hit=cache_hit,
    )


@app.post("/api/search/export")
def export_search_endpoint(payload: SearchRequest):
    result, _cache_hit = _search(payload, "Row export")
    content = format_rows_document(result.variant.result_key, result.rows)
    log_event(logger, "export_completed", format="json", rows_written=result.count, output_size_bytes=len(content.encode("utf-8")))
    return Response(
        content=content,
        media_type="application/json",
        headers={
            "Content-Disposition": f"attachment; filename={result.variant.default_filename}",
            "X-Request-ID": current_request_id(),
        },
    )
