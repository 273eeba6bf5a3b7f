# aichat/views.py
import logging
from typing import Any, Dict

import requests
from django.conf import settings
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

logger = logging.getLogger(__name__)


def _chat_config() -> Dict[str, Any]:
    return settings.FARMLINK["AI_CHAT"]


def _extract_answer(payload: Any) -> str:
    """choices[0].message.content of a chat completion response."""
    if not isinstance(payload, dict):
        raise ValueError("Upstream response is not a JSON object")
    choices = payload.get("choices") or []
    if not isinstance(choices, list) or not choices:
        raise ValueError("Upstream response has no choices")
    first = choices[0]
    message = first.get("message") if isinstance(first, dict) else None
    content = message.get("content") if isinstance(message, dict) else None
    if not isinstance(content, str):
        raise ValueError("Upstream response has no message content")
    return content


@api_view(["POST"])
@permission_classes([IsAuthenticated])
def ai_chat(request):
    """
    POST /api/ai-chat/  {"message": "When should I top-dress maize?"}

    Forwards a single user message to the chat completion API:
      200 {"answer": "..."}
      400 {"error": "A valid message is required."}
      500 {"error": "OPENAI_API_KEY missing"}
      502 {"error": "AI service error", "details": "..."}
    """
    message = request.data.get("message") if hasattr(request.data, "get") else None
    if not isinstance(message, str) or len(message) < 2:
        return Response({"error": "A valid message is required."}, status=status.HTTP_400_BAD_REQUEST)

    conf = _chat_config()
    if not conf.get("API_KEY"):
        logger.error("AI chat requested but OPENAI_API_KEY is not configured")
        return Response({"error": "OPENAI_API_KEY missing"}, status=status.HTTP_500_INTERNAL_SERVER_ERROR)

    body = {
        "model": conf["MODEL"],
        "messages": [{"role": "user", "content": message}],
        "max_tokens": conf["MAX_TOKENS"],
        "temperature": conf["TEMPERATURE"],
    }
    headers = {
        "Authorization": f"Bearer {conf['API_KEY']}",
        "Content-Type": "application/json",
    }

    try:
        resp = requests.post(conf["API_URL"], json=body, headers=headers, timeout=conf["TIMEOUT"])
        resp.raise_for_status()
        answer = _extract_answer(resp.json())
    except (requests.RequestException, ValueError) as e:
        logger.warning("[ai-chat] upstream failure for user=%s: %s", request.user.pk, e)
        return Response(
            {"error": "AI service error", "details": str(e)},
            status=status.HTTP_502_BAD_GATEWAY,
        )

    logger.info("[ai-chat] user=%s chars_in=%d chars_out=%d", request.user.pk, len(message), len(answer))
    return Response({"answer": answer})
