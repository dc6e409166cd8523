"""
FastAPI implementation for the conversational shopping assistant.
"""
import logging
from typing import Dict, Any, List, Optional
from fastapi import FastAPI, HTTPException, Depends, Header
from pydantic import BaseModel, ConfigDict
import uvicorn
import time
import uuid

from config import DIALOGUE_CONFIG, FEATURES
from models.chat import ChatMessage, ChatSession, Role
from services.chat_service import ChatService
from services.conversation_service import ConversationService, create_new_session
from utils.errors import LLMRequestFailed, LLMUnconfigured
from utils.llm import is_llm_configured

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)

logger = logging.getLogger(__name__)

# Initialize FastAPI
app = FastAPI(
    title="Conversational Shopping Assistant API",
    description="API for conversational product discovery",
    version="1.0.0"
)

# Initialize services
chat_service = ChatService()
conversation_service = ConversationService()

# API Models
class HistoryTurn(BaseModel):
    """One prior conversation turn."""
    role: Role
    content: str

class ChatRequest(BaseModel):
    """Chat request model."""
    message: str
    history: Optional[List[HistoryTurn]] = None

class ChatResponse(BaseModel):
    """Chat response model."""
    message: ChatMessage
    session_id: str
    request_id: str

class UserPreferencesRequest(BaseModel):
    """User preferences update request; unknown keys are stored as given."""
    model_config = ConfigDict(extra="allow")

    preferred_brands: Optional[List[str]] = None
    price_sensitivity: Optional[str] = None

class ExplanationResponse(BaseModel):
    product_id: str
    explanation: str

# Dependency for extracting user and session IDs
async def get_request_metadata(
    user_id: Optional[str] = Header(None, description="User ID for personalization"),
    session_id: Optional[str] = Header(None, description="Session ID for conversation tracking")
) -> Dict[str, Any]:
    """Extract request metadata; a session ID is generated when missing."""
    if not session_id:
        session_id = str(uuid.uuid4())

    return {
        "user_id": user_id,
        "session_id": session_id
    }

# API Routes
@app.get("/")
async def root():
    """Root endpoint."""
    return {"message": "Conversational Shopping Assistant API"}

@app.post("/ai/chat", response_model=ChatResponse)
async def chat(
    request: ChatRequest,
    metadata: Dict[str, Any] = Depends(get_request_metadata)
):
    """
    Process one chat message.

    Args:
        request: Chat request object
        metadata: Request metadata from headers

    Returns:
        Assistant reply with any products found
    """
    try:
        request_id = str(uuid.uuid4())
        user_id = metadata.get("user_id")
        session_id = metadata["session_id"]

        logger.info(f"Chat request: ID={request_id}, Message='{request.message}'")
        start_time = time.time()

        if request.history is not None:
            history = [turn.model_dump() for turn in request.history]
        elif user_id:
            history = await conversation_service.get_recent_history(
                user_id, limit=DIALOGUE_CONFIG["history_window"]
            )
        else:
            history = []

        if user_id:
            await conversation_service.save_chat_message(user_id, session_id, "user", request.message)

        reply = await chat_service.process_user_message(
            request.message,
            user_id=user_id,
            conversation_history=history
        )

        if user_id:
            await conversation_service.save_chat_message(
                user_id, session_id, "assistant", reply.content, reply.timestamp
            )

        execution_time = time.time() - start_time
        logger.info(f"Chat completed: ID={request_id}, Time={execution_time:.2f}s")

        return ChatResponse(message=reply, session_id=session_id, request_id=request_id)

    except Exception as e:
        logger.error(f"Chat error: {str(e)}")
        raise HTTPException(status_code=500, detail=str(e))

@app.post("/ai/sessions", response_model=ChatSession)
async def create_session():
    """Start a new chat session seeded with the welcome message."""
    return create_new_session()

@app.get("/ai/suggestions", response_model=List[str])
async def get_suggestions():
    return chat_service.get_suggestions()

@app.get("/ai/preferences/{user_id}", response_model=Dict[str, Any])
async def get_preferences(user_id: str):
    """
    Get preferences for a user.

    Args:
        user_id: User identifier

    Returns:
        User preferences
    """
    try:
        return await chat_service.personalization_service.get_user_preferences(user_id)

    except Exception as e:
        logger.error(f"Error getting preferences: {str(e)}")
        raise HTTPException(status_code=500, detail=str(e))

@app.put("/ai/preferences/{user_id}", response_model=Dict[str, Any])
async def update_preferences(user_id: str, preferences: UserPreferencesRequest):
    """
    Update preferences for a user.

    Args:
        user_id: User identifier
        preferences: Updated preferences

    Returns:
        Updated user preferences
    """
    try:
        preferences_dict = preferences.model_dump(exclude_unset=True)
        return await chat_service.personalization_service.update_user_preferences(user_id, preferences_dict)

    except Exception as e:
        logger.error(f"Error updating preferences: {str(e)}")
        raise HTTPException(status_code=500, detail=str(e))

@app.get("/ai/products/{product_id}/explain", response_model=ExplanationResponse)
async def explain_product(
    product_id: str,
    metadata: Dict[str, Any] = Depends(get_request_metadata)
):
    """
    Explain why a catalog product fits the requesting user.

    Args:
        product_id: Catalog product identifier
        metadata: Request metadata; the user-id header is required

    Returns:
        Explanation text
    """
    user_id = metadata.get("user_id")
    if not user_id:
        raise HTTPException(status_code=400, detail="user-id header is required")

    try:
        explanation = await chat_service.explain_product(product_id, user_id)
    except LLMUnconfigured:
        raise HTTPException(status_code=503, detail="AI service is not configured")
    except LLMRequestFailed as e:
        logger.error(f"Explanation request failed with status {e.status_code}")
        raise HTTPException(status_code=502, detail="AI service request failed")
    except Exception as e:
        logger.error(f"Error explaining product: {str(e)}")
        raise HTTPException(status_code=500, detail=str(e))

    if explanation is None:
        raise HTTPException(status_code=404, detail=f"Product not found: {product_id}")

    return ExplanationResponse(product_id=product_id, explanation=explanation)

@app.get("/ai/health")
async def health_check():
    """
    Health check endpoint.

    Returns:
        Health status
    """
    return {
        "status": "healthy",
        "llm_configured": is_llm_configured(),
        "features": FEATURES,
        "timestamp": time.time()
    }

if __name__ == "__main__":
    # Run the API using Uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
