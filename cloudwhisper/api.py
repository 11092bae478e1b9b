"""FastAPI application exposing the Gemini prompt endpoint.

Run with: uvicorn cloudwhisper.api:app --reload --port 8000
"""

from __future__ import annotations

import json
import logging

from fastapi import FastAPI, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse

from cloudwhisper import config
from cloudwhisper.handler import handle_prompt_request

logging.basicConfig(
    level=config.LOG_LEVEL,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(
    title="CloudWhisper API",
    description="Weather-aware Gemini chat backend",
    version="0.1.0",
)


@app.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}


@app.post("/api/gemini")
async def gemini_prompt(request: Request) -> JSONResponse:
    """Answer a prompt with Gemini.

    The body is decoded here. Validation, the Gemini call and status
    mapping run in handle_prompt_request on the worker thread pool.
    """
    try:
        payload = await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        logger.warning("Rejected undecodable request body: %s", exc)
        return JSONResponse(status_code=400, content={"error": "Invalid request"})

    response = await run_in_threadpool(handle_prompt_request, payload)
    return JSONResponse(status_code=response.status_code, content=response.body)
