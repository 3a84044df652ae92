"""Credential-shielding chat-completion proxy: POST /api/openai."""

from __future__ import annotations

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse, Response
from fetchgate.adapters.azure_openai.upstream import (
    build_chat_completions_url,
    forward_chat_completion,
    resolve_azure_config,
)
from fetchgate.core.errors import ClientInputError, FetchGateError
from fetchgate.core.models import ChatCompletionRequest
from fetchgate.observability.events import OUTCOME_OK, chat_outcome
from fetchgate.util.logger import get_logger

router = APIRouter()
logger = get_logger("openai")

_ALL_METHODS = ("GET", "POST", "PUT", "PATCH", "DELETE", "HEAD")
MESSAGES_REQUIRED = "Invalid request: messages array required"


def parse_chat_request(body: object) -> ChatCompletionRequest:
    if not isinstance(body, dict) or not isinstance(body.get("messages"), list):
        raise ClientInputError(MESSAGES_REQUIRED)
    return ChatCompletionRequest.model_validate(body)


def _error_response(exc: FetchGateError) -> JSONResponse:
    failure = exc.to_failure()
    return JSONResponse(status_code=failure.http_status, content=failure.to_content())


@router.api_route("/api/openai", methods=list(_ALL_METHODS))
async def chat_completion_proxy(request: Request) -> Response:
    if request.method != "POST":
        return JSONResponse(status_code=405, content={"error": "Method not allowed"})

    deployment = None
    try:
        config = resolve_azure_config()
        deployment = config.deployment
        chat_request = parse_chat_request(await request.json())
        url = build_chat_completions_url(config)
        logger.info(
            "chat completion request deployment=%s messages=%d max_completion_tokens=%s json_mode=%s",
            config.deployment,
            len(chat_request.messages),
            chat_request.max_completion_tokens,
            chat_request.response_format is not None,
        )
        upstream = await forward_chat_completion(url, chat_request.to_upstream_payload(), config.api_key)
    except FetchGateError as exc:
        logger.warning("chat completion rejected status=%s error=%s", exc.status_code, exc)
        chat_outcome(outcome=exc.__class__.__name__, status=exc.status_code, deployment=deployment)
        return _error_response(exc)
    except Exception as exc:
        logger.exception("chat completion failed")
        chat_outcome(outcome="exception", status=500, deployment=deployment)
        return JSONResponse(status_code=500, content={"error": f"Failed to process OpenAI request: {exc}"})

    if not upstream.is_success:
        details = upstream.text
        logger.error("azure openai api error status=%s body_chars=%d", upstream.status_code, len(details))
        chat_outcome(outcome="upstream_error", status=upstream.status_code, deployment=deployment)
        return JSONResponse(
            status_code=upstream.status_code,
            content={
                "error": f"Azure OpenAI API error: {upstream.reason_phrase}",
                "details": details,
            },
        )

    chat_outcome(outcome=OUTCOME_OK, status=200, deployment=deployment, size=len(upstream.content))
    return Response(content=upstream.content, status_code=200, media_type="application/json")
