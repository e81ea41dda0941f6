"""
Gemini API client — initialization and the forensic audit call.

The module-level `client` is created once on import using env vars.
`request_forensic_report` is the only entry point; it returns the raw JSON
text and leaves decoding to `aiguard.analysis.verdict`.
"""

import os
import logging

from google import genai
from google.genai import types

from aiguard.config import settings
from aiguard.schemas.forensics import MediaMode
from aiguard.integrations.gemini.prompts import SYSTEM_INSTRUCTION, get_execution_query
from aiguard.integrations.gemini.schema import build_response_schema

logger = logging.getLogger(__name__)

client = genai.Client(
    api_key=os.getenv("GEMINI_API_KEY"),
    http_options=types.HttpOptions(
        timeout=settings.gemini_http_timeout_ms,
        # A failed audit is terminal; retry policy belongs to the caller.
        retry_options=types.HttpRetryOptions(attempts=1),
    )
)


def build_request_config(mode: MediaMode) -> types.GenerateContentConfig:
    return types.GenerateContentConfig(
        system_instruction=SYSTEM_INSTRUCTION,
        thinking_config=types.ThinkingConfig(thinking_budget=settings.gemini_thinking_budget),
        temperature=settings.gemini_temperature,
        response_mime_type="application/json",
        response_schema=build_response_schema(mode),
    )


async def request_forensic_report(data: bytes, mime_type: str, mode: MediaMode) -> str:
    """
    Sends one media payload for a forensic audit and returns the response text.

    The SDK base64-encodes `data` for transport. Returns an empty string when
    the engine produced no text.
    """
    logger.info(f"[GEMINI] Requesting {mode.value} audit ({len(data)} bytes, {mime_type})")

    response = await client.aio.models.generate_content(
        model=settings.gemini_model,
        contents=[
            types.Part.from_bytes(data=data, mime_type=mime_type),
            get_execution_query(mode),
        ],
        config=build_request_config(mode),
    )

    usage = getattr(response, "usage_metadata", None)
    if usage is not None:
        logger.info(
            f"[GEMINI] Usage: prompt={usage.prompt_token_count}, "
            f"completion={usage.candidates_token_count}, total={usage.total_token_count}"
        )

    return response.text or ""
