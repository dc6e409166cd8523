"""
Structured extraction component for the dialogue pipeline.

Asks the LLM for a strict JSON category/price document. Best effort: any
failure yields an empty StructuredCategoryInfo.
"""
import json
import logging
from typing import Any, Dict

from pydantic import ValidationError

from config import LLM_CONFIG
from models.parameters import StructuredCategoryInfo
from utils.errors import ExtractionParseFailure, LLMRequestFailed, LLMUnconfigured
from utils.llm import call_gpt
from utils.prompts import STRUCTURED_EXTRACTION_PROMPT

logger = logging.getLogger(__name__)

async def extract_structured_category_info(query: str) -> StructuredCategoryInfo:
    """
    Extracts category and price hints from a message. Never raises.

    Args:
        query: The raw user message

    Returns:
        Parsed hints, empty when extraction fails
    """
    prompt = STRUCTURED_EXTRACTION_PROMPT.format(query=query)

    try:
        response_text = await call_gpt(prompt, model_override=LLM_CONFIG["structured_model"])
        logger.debug(f"Raw structured extraction result: {response_text}")

        info = StructuredCategoryInfo(**parse_first_json_object(response_text))
        logger.info(f"Extracted structured info: {info.model_dump(exclude_none=True)}")
        return info

    except ExtractionParseFailure as e:
        logger.warning(f"Failed to parse structured extraction reply: {str(e)}")
    except ValidationError as e:
        logger.warning(f"Structured extraction reply failed validation: {str(e)}")
    except (LLMUnconfigured, LLMRequestFailed) as e:
        logger.warning(f"Structured extraction skipped: {str(e)}")
    except Exception as e:
        logger.error(f"Structured extraction failed: {str(e)}")

    return StructuredCategoryInfo()

def parse_first_json_object(text: str) -> Dict[str, Any]:
    """
    Locate and decode the first JSON object embedded anywhere in text.

    Raises:
        ExtractionParseFailure: No JSON object could be decoded
    """
    decoder = json.JSONDecoder()
    start = text.find("{")

    while start != -1:
        try:
            value, _ = decoder.raw_decode(text, start)
            if isinstance(value, dict):
                return value
        except json.JSONDecodeError:
            pass
        start = text.find("{", start + 1)

    raise ExtractionParseFailure("No JSON object found in response")
