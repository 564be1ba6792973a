# main.py
from __future__ import annotations

import logging
import time

from fastapi import FastAPI, Request, Response, HTTPException
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware

from config import settings
from logging_config import setup_logging
from models import ItineraryDraft, TripIntent, TripPromptResponse, TripRequest
from request_context import new_request_id, get_request_id
from security import SecurityValidator, security_headers_middleware, validate_trip_text
from services.cache import TTLCache
from services.openai_service import generate_itinerary
from services.prompt_builder import build_structured_prompt
from services.trip_intent_service import assemble

# Initialize logging BEFORE creating the app
setup_logging(settings.log_level)
log = logging.getLogger("app")

app = FastAPI(
    title="Trip Intent API",
    version="0.1.0",
    description="Extracts origin, ordered destinations and durations from free-text trip requests",
)

itinerary_cache = TTLCache(max_entries=256)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ALLOW_ORIGINS,
    allow_credentials=False,
    allow_methods=settings.CORS_ALLOW_METHODS,
    allow_headers=settings.CORS_ALLOW_HEADERS,
    expose_headers=settings.CORS_EXPOSE_HEADERS,
)

app.middleware("http")(security_headers_middleware())


@app.middleware("http")
async def request_logging_mw(request: Request, call_next):
    rid = new_request_id(request.headers.get("x-request-id"))
    start = time.perf_counter()
    response: Response | None = None

    if request.method in ("POST", "PUT", "PATCH"):
        content_length = request.headers.get("content-length")
        if content_length and content_length.isdigit():
            try:
                SecurityValidator.validate_request_size(int(content_length), max_size=settings.MAX_REQUEST_BYTES)
            except HTTPException as e:
                return JSONResponse(status_code=e.status_code, content={"detail": e.detail}, headers={"X-Request-Id": rid})

    try:
        response = await call_next(request)
        response.headers["X-Request-Id"] = rid
        return response
    finally:
        dur_ms = int((time.perf_counter() - start) * 1000)
        log.info(
            f"{request.method} {request.url.path} -> {getattr(response, 'status_code', '?')} in {dur_ms}ms",
            extra={
                "request_id": rid,
                "path": request.url.path,
                "method": request.method,
                "status": getattr(response, "status_code", None),
                "duration_ms": dur_ms,
            },
        )


@app.get("/health")
def health():
    return {"status": "ok", "openai_key_loaded": bool(settings.OPENAI_API_KEY), "model": settings.OPENAI_MODEL}


@app.post("/trip_intent", response_model=TripIntent)
def trip_intent_endpoint(req: TripRequest) -> TripIntent:
    text = validate_trip_text(req.text)
    return assemble(text)


@app.post("/trip_prompt", response_model=TripPromptResponse)
def trip_prompt_endpoint(req: TripRequest) -> TripPromptResponse:
    text = validate_trip_text(req.text)
    trip = assemble(text)
    return TripPromptResponse(trip_intent=trip, prompt=build_structured_prompt(trip, text))


@app.post("/generate_itinerary", response_model=ItineraryDraft)
def generate_itinerary_endpoint(req: TripRequest) -> ItineraryDraft:
    text = validate_trip_text(req.text)
    trip = assemble(text)
    if not trip.destinations:
        log.info("No destinations recognized, asking for clarification", extra={"request_id": get_request_id()})
        raise HTTPException(
            status_code=422,
            detail="Couldn't tell where you want to go. Try something like '3 days in London'.",
        )
    if trip.total_duration_days > settings.MAX_ITINERARY_DAYS:
        raise HTTPException(
            status_code=400,
            detail=f"Trips are limited to {settings.MAX_ITINERARY_DAYS} days; this request spans {trip.total_duration_days}.",
        )
    return generate_itinerary(trip, text, cache=itinerary_cache)


log.info("Trip Intent API starting", extra={
    "environment": settings.APP_ENV,
    "debug_mode": settings.DEBUG,
    "cors_origins_count": len(settings.CORS_ALLOW_ORIGINS),
    "openai_model": settings.OPENAI_MODEL,
    "max_input_chars": settings.MAX_INPUT_CHARS,
})

# Production entry point
if __name__ == "__main__":
    import uvicorn

    log.info(f"Starting server on {settings.HOST}:{settings.PORT}")

    uvicorn.run(
        "main:app",
        host=settings.HOST,
        port=settings.PORT,
        workers=1,
        access_log=True,
        log_level="info" if settings.APP_ENV == "production" else "debug",
    )
