"""FastAPI endpoints for the chat relay.

OPTIONS /chat - CORS preflight, empty 200
POST /chat - validate -> build prompt -> call Gemini -> respond
GET /health - configuration health check
"""

import json

import structlog
from fastapi import APIRouter, Request, Response
from fastapi.responses import JSONResponse

from backend.api.schemas import ChatErrorResponse, ChatResponse, parse_chat_request
from backend.core.errors import MissingCredential, ValidationError
from backend.core.prompt_builder import build_prompt

logger = structlog.get_logger(__name__)

router = APIRouter()

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Headers": "authorization, x-client-info, apikey, content-type",
}


@router.options("/chat")
def chat_preflight():
    """CORS preflight: never reaches validation or the upstream call."""
    return Response(content=b"", status_code=200, headers=CORS_HEADERS)


@router.api_route("/chat", methods=["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "TRACE", "CONNECT"])
async def chat(req: Request):
    """Relay a user message to Gemini and wrap the reply in the response envelope.

    Every failure, whatever its kind, is logged and returned as HTTP 500 with
    a ChatErrorResponse body.
    """
    config = req.app.state.config
    gemini = req.app.state.gemini

    try:
        if not config.gemini_api_key:
            raise MissingCredential("GEMINI_API_KEY is not set")

        if req.method != "POST":
            raise ValidationError(f"Method {req.method} is not supported")

        chat_request = parse_chat_request(await _read_json(req))

        logger.info(
            "chat.received",
            message=chat_request.message,
            history_len=len(chat_request.conversation_history),
        )

        prompt = build_prompt(
            chat_request.message,
            chat_request.conversation_history,
            limit=config.history_limit,
        )
        text = await gemini.generate(prompt)

        logger.info("chat.success", response_len=len(text))
        body = ChatResponse(response=text)
        return JSONResponse(content=body.model_dump(), status_code=200, headers=CORS_HEADERS)

    except Exception as e:
        logger.error("chat.failed", error=str(e), kind=type(e).__name__)
        body = ChatErrorResponse(error=str(e) or type(e).__name__)
        return JSONResponse(content=body.model_dump(), status_code=500, headers=CORS_HEADERS)


@router.get("/health")
def health(req: Request):
    """Report whether the upstream credential is configured."""
    gemini = req.app.state.gemini
    components = {"gemini": "ok" if gemini.is_healthy() else "missing_key"}
    status = "ok" if all(v == "ok" for v in components.values()) else "degraded"
    return {"status": status, "components": components}


async def _read_json(req: Request):
    """Decode the request body, mapping malformed JSON to ValidationError."""
    raw = await req.body()
    try:
        return json.loads(raw)
    except (json.JSONDecodeError, UnicodeDecodeError):
        raise ValidationError("Request body must be valid JSON")
