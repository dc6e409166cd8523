"""
Context building component for the dialogue pipeline.
"""
import logging
from typing import Any, Dict, List, Optional

from config import DIALOGUE_CONFIG
from models.chat import Product, UserContext
from utils.prompts import CHAT_CONTEXT_PROMPT, PRODUCT_EXPLANATION_PROMPT

logger = logging.getLogger(__name__)

PREFERENCE_SAMPLE_SIZE = 3

def build_chat_context(message: str,
                       user_context: UserContext,
                       conversation_history: Optional[List[Dict[str, Any]]] = None) -> str:
    """
    Renders the conversational prompt for the LLM.

    The age shown is the user's age + 1 ("next birthday" convention).

    Args:
        message: The current user message
        user_context: The assembled user context
        conversation_history: Prior turns as dicts with role and content

    Returns:
        Prompt string
    """
    history_window = DIALOGUE_CONFIG["history_window"]
    recent_turns = (conversation_history or [])[-history_window:]
    history_text = "\n".join(
        f"{turn.get('role', 'user')}: {turn.get('content', '')}" for turn in recent_turns
    )

    return CHAT_CONTEXT_PROMPT.format(
        name=user_context.name or "there",
        age=user_context.age + 1,
        gender=user_context.gender or "prefer-not-to-say",
        preferences=format_user_preferences(user_context),
        history=history_text,
        message=message
    )

def format_user_preferences(user_context: UserContext) -> str:
    """Human-readable summary of the user's most recent activity."""
    preferences = []

    if user_context.search_history:
        preferences.append(
            f"Recently searched: {', '.join(user_context.search_history[:PREFERENCE_SAMPLE_SIZE])}"
        )

    if user_context.liked_products:
        preferences.append(
            f"Liked products: {', '.join(user_context.liked_products[:PREFERENCE_SAMPLE_SIZE])}"
        )

    if user_context.purchase_history:
        preferences.append(
            f"Recently purchased: {', '.join(user_context.purchase_history[:PREFERENCE_SAMPLE_SIZE])}"
        )

    return "; ".join(preferences) if preferences else "No specific preferences yet"

def build_product_explanation_prompt(product: Product, user_context: UserContext) -> str:
    return PRODUCT_EXPLANATION_PROMPT.format(
        gender=user_context.gender,
        age=user_context.age,
        preferences=format_user_preferences(user_context),
        name=product.name,
        category=product.category or "N/A",
        brand=product.brand or "N/A",
        description=product.description or "No description",
        price=product.price
    )
