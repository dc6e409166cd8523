"""
LLM setup and utility functions.
"""
import logging
from typing import Dict, Any, Optional

import httpx

from config import LLM_CONFIG
from utils.errors import LLMRateLimited, LLMRequestFailed, LLMUnconfigured
from utils.prompts import RATE_LIMIT_MESSAGE, SYSTEM_PERSONA

logger = logging.getLogger(__name__)

def is_llm_configured() -> bool:
    return bool(LLM_CONFIG["api_key"])

def build_chat_request(prompt: str, model_override: Optional[str] = None) -> Dict[str, Any]:
    """
    Build the chat-completion request body.

    Args:
        prompt: The built prompt, sent as the only user turn
        model_override: Model to use instead of the configured default

    Returns:
        JSON body for the chat-completion endpoint
    """
    return {
        "model": model_override or LLM_CONFIG["model"],
        "messages": [
            {"role": "system", "content": SYSTEM_PERSONA},
            {"role": "user", "content": prompt}
        ],
        "max_tokens": LLM_CONFIG["max_tokens"],
        "temperature": LLM_CONFIG["temperature"]
    }

async def call_gpt(prompt: str,
                   model_override: Optional[str] = None,
                   client: Optional[httpx.AsyncClient] = None) -> str:
    """
    Send a single chat-completion request and return the reply text.

    Args:
        prompt: The built prompt
        model_override: Optional model name replacing the default
        client: Optional HTTP client; a short-lived one is created otherwise

    Returns:
        The trimmed text of the first completion choice, or the canned
        busy message when the service is rate-limited

    Raises:
        LLMUnconfigured: No API key is configured
        LLMRequestFailed: Non-success status other than 429, or transport error
    """
    if not is_llm_configured():
        raise LLMUnconfigured()

    payload = build_chat_request(prompt, model_override)
    headers = {
        "Content-Type": "application/json",
        "Authorization": f"Bearer {LLM_CONFIG['api_key']}"
    }

    try:
        if client is None:
            async with httpx.AsyncClient(timeout=LLM_CONFIG["timeout"]) as own_client:
                response = await own_client.post(LLM_CONFIG["api_url"], json=payload, headers=headers)
        else:
            response = await client.post(LLM_CONFIG["api_url"], json=payload, headers=headers)

        _raise_for_status(response)
        data = response.json()
        return data["choices"][0]["message"]["content"].strip()

    except LLMRateLimited:
        logger.warning("LLM service is rate-limited, returning busy message")
        return RATE_LIMIT_MESSAGE
    except httpx.HTTPError as e:
        logger.error(f"LLM request failed: {str(e)}")
        raise LLMRequestFailed(None, f"LLM request failed: {str(e)}") from e
    except (KeyError, IndexError, TypeError, ValueError) as e:
        logger.error(f"Malformed LLM response: {str(e)}")
        raise LLMRequestFailed(response.status_code, f"Malformed LLM response: {str(e)}") from e

def _raise_for_status(response: httpx.Response):
    if response.status_code == 429:
        raise LLMRateLimited("LLM service rate-limited")
    if not response.is_success:
        logger.error(f"LLM API error: {response.status_code}")
        raise LLMRequestFailed(response.status_code)

