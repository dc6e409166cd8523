"""
State definitions for the dialogue graph.
"""
from typing import Dict, List, Any, Optional, TypedDict

from models.chat import UserContext, Product, ExternalProduct
from models.parameters import QueryAnalysis, StructuredCategoryInfo

class DialogueState(TypedDict):
    """
    Represents the state of one conversational turn.
    Maintains all information as it flows through the dialogue graph.
    """
    # Core message information
    message: str  # Raw user message
    user_context: Optional[UserContext]  # None for anonymous callers
    conversation_history: List[Dict[str, Any]]  # Prior turns as {role, content}
    analysis: Optional[QueryAnalysis]  # Rule-based analysis of the message

    # LLM exchange
    prompt: Optional[str]  # Built chat context
    llm_response: Optional[str]  # Reply text from the LLM
    llm_available: bool  # False once the dispatcher reports no credential
    should_search: bool  # Result of the shopping keyword gate
    structured_info: Optional[StructuredCategoryInfo]  # Hints from structured extraction

    # Results and response
    search_query: str  # Terms joined for the catalog and marketplace
    products: List[Product]  # Catalog results
    external_products: List[ExternalProduct]  # Marketplace results, kept separate
    follow_up_questions: List[str]  # Only set on the templated path
    response: Optional[str]  # Reply text returned to the user

    # Error handling
    error: Optional[str]  # Any error that occurred

    # Metadata
    metadata: Dict[str, Any]  # Metadata about the turn
