"""
Difficulty API endpoint
Rates a project title as easy, medium or hard
"""
from fastapi import APIRouter, Request, status
from fastapi.responses import JSONResponse
import asyncio
import json
import logging

from app.core.errors import ConfigurationError, MissingInputError, UpstreamError
from app.services.difficulty_service import difficulty_service

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Difficulty"])


@router.post(
    "/evaluate-difficulty",
    responses={
        200: {"description": '{"difficulty": "easy" | "medium" | "hard"}'},
        400: {"description": "Missing title"},
        500: {"description": "Missing OPENAI_API_KEY or unexpected error"},
        502: {"description": "OpenAI request failed"},
    },
)
async def evaluate_difficulty(request: Request):
    """
    Rate the DIY difficulty of a project title.

    Body: {"title": "..."}. Unlike the internal classifier this endpoint
    reports failures instead of falling back to medium.
    """
    try:
        raw_body = await request.body()
        body = json.loads(raw_body) if raw_body else {}
        if isinstance(body, str):
            body = json.loads(body)
        title = str((body or {}).get("title") or "").strip()

        loop = asyncio.get_running_loop()
        difficulty = await loop.run_in_executor(None, difficulty_service.evaluate, title)
        return {"difficulty": difficulty.value}

    except MissingInputError as e:
        return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"error": str(e)})
    except ConfigurationError as e:
        logger.error(f"Difficulty endpoint misconfigured: {e}")
        return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content={"error": str(e)})
    except UpstreamError as e:
        logger.error(f"OpenAI difficulty request failed: {e.details}")
        return JSONResponse(
            status_code=status.HTTP_502_BAD_GATEWAY,
            content={"error": str(e), "details": e.details},
        )
    except Exception as e:
        logger.error(f"Unexpected error rating difficulty: {e}", exc_info=True)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": "Unexpected error", "details": str(e)},
        )


@router.api_route("/evaluate-difficulty", methods=["GET", "PUT", "PATCH", "DELETE"], include_in_schema=False)
async def evaluate_difficulty_wrong_method():
    return JSONResponse(status_code=status.HTTP_405_METHOD_NOT_ALLOWED, content={"error": "Method not allowed"})
