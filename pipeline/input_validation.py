"""
Input validation components for the dialogue pipeline.
"""
import logging
from typing import Optional

logger = logging.getLogger(__name__)

MAX_MESSAGE_LENGTH = 2000

ERROR_MESSAGES = {
    "EMPTY_MESSAGE": "I noticed your message was empty. What kind of products are you looking for?",
    "MESSAGE_TOO_LONG": "Your message is quite long. Could you tell me what you're looking for in a few words?"
}

def validate_message(message: str) -> Optional[str]:
    """
    Validates the raw user message.

    Args:
        message: The user message

    Returns:
        Error code, or None when the message is acceptable
    """
    if not message or message.strip() == "":
        logger.info("Message validation failed: Empty message")
        return "EMPTY_MESSAGE"

    if len(message) > MAX_MESSAGE_LENGTH:
        logger.info(f"Message validation failed: Message too long ({len(message)} chars)")
        return "MESSAGE_TOO_LONG"

    return None

def validation_error_reply(error_code: str) -> str:
    return ERROR_MESSAGES.get(error_code, "I couldn't process your message. Could you try rephrasing it?")
