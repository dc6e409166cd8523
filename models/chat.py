"""
Models for chat messages, sessions, user context and products.
"""
import uuid
from datetime import datetime, timezone
from typing import Dict, List, Optional, Any, Tuple, Literal
from pydantic import BaseModel, ConfigDict, Field

from models.parameters import QueryAnalysis, StructuredCategoryInfo

Role = Literal["user", "assistant"]

def utc_now() -> datetime:
    return datetime.now(timezone.utc)

class Product(BaseModel):
    """Catalog product as returned by the catalog search."""
    id: str
    name: str
    price: float
    stock_quantity: int = 0
    rating: float = 0.0
    description: Optional[str] = None
    category: Optional[str] = None
    brand: Optional[str] = None
    review_count: int = 0
    is_active: bool = True
    main_image: Optional[str] = None

class ExternalProduct(BaseModel):
    """Product listing scraped from the external marketplace."""
    name: str
    price: str
    rating: str = "No rating"
    link: str
    image: Optional[str] = None

class UserContext(BaseModel):
    """
    Read model of a user assembled per request.
    Activity lists are ordered most recent first.
    """
    id: str
    name: str = "there"
    age: int = 25
    gender: str = "prefer-not-to-say"
    preferences: Dict[str, Any] = Field(default_factory=dict)
    search_history: List[str] = Field(default_factory=list)
    liked_products: List[str] = Field(default_factory=list)
    cart_history: List[str] = Field(default_factory=list)
    purchase_history: List[str] = Field(default_factory=list)

class ChatMessage(BaseModel):
    """A single chat turn, optionally carrying analysis and search results."""
    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    role: Role
    content: str
    timestamp: datetime = Field(default_factory=utc_now)
    analysis: Optional[QueryAnalysis] = None
    products: Optional[List[Product]] = None
    external_products: Optional[List[ExternalProduct]] = None
    structured_info: Optional[StructuredCategoryInfo] = None
    follow_up_questions: Optional[List[str]] = None

class ChatSession(BaseModel):
    """Append-only, time-ordered list of chat messages."""
    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    messages: Tuple[ChatMessage, ...] = ()
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)
