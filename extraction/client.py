import logging
from typing import Optional

from google import genai
from google.genai import types

from . import config
from .exceptions import ExtractionFailed, MissingCredential
from .prompt import ExtractionRequest, FileReferencePart, TextPart

logger = logging.getLogger(__name__)


def _to_sdk_part(part) -> types.Part:
    if isinstance(part, TextPart):
        return types.Part.from_text(text=part.text)
    if isinstance(part, FileReferencePart):
        return types.Part.from_uri(file_uri=part.file_uri, mime_type=part.mime_type)
    raise TypeError(f"Unsupported request part: {type(part).__name__}")


def build_config(request: ExtractionRequest, schema: dict) -> types.GenerateContentConfig:
    tools = [types.Tool(google_search=types.GoogleSearch())] if request.enable_search else None
    return types.GenerateContentConfig(
        system_instruction=request.system_instruction,
        tools=tools,
        response_mime_type="application/json",
        response_schema=schema,
    )


async def execute(request: ExtractionRequest, schema: dict, model: Optional[str] = None) -> str:
    """
    Run one generation call and return the raw reply text.

    Exactly one request is made; there is no retry and no timeout beyond
    what the SDK transport applies. The credential is resolved here, per call.
    """
    api_key = config.get_api_key()
    if not api_key:
        raise MissingCredential(config.API_KEY_VARIABLES[0])

    model = model or config.GEMINI_MODEL
    client = genai.Client(api_key=api_key)
    contents = [types.Content(role="user", parts=[_to_sdk_part(p) for p in request.parts])]

    logger.info("Calling %s with %d part(s), search=%s", model, len(request.parts), request.enable_search)
    try:
        response = await client.aio.models.generate_content(
            model=model,
            contents=contents,
            config=build_config(request, schema),
        )
    except Exception as exc:
        logger.error("Generation call failed: %s", exc)
        raise ExtractionFailed(str(exc) or type(exc).__name__) from exc
    finally:
        # one client per call; release both transports it opened
        await client.aio.aclose()
        client.close()

    text = response.text
    if not text:
        raise ExtractionFailed("No response generated")
    return text
