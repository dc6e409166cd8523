"""
Parameter models for structured data extracted from shopping messages.
"""
import re
from typing import Optional, Tuple, Literal
from pydantic import BaseModel, ConfigDict, Field, field_validator

UserIntent = Literal["shopping", "general", "help", "greeting"]

# Define valid intents for validation
VALID_INTENTS = [
    "shopping",  # Looking for a product
    "general",   # General question or chit-chat
    "help",      # Asking what the assistant can do
    "greeting"   # Saying hello
]

class ProductFilters(BaseModel):
    """Structured constraints derived from a message. None means unconstrained."""
    model_config = ConfigDict(frozen=True)

    category: Optional[str] = None
    brand: Optional[str] = None
    min_price: Optional[float] = None
    max_price: Optional[float] = None
    min_rating: Optional[float] = None

    @field_validator('min_price', 'max_price', 'min_rating')
    @classmethod
    def validate_non_negative(cls, v):
        """Ensure bounds are non-negative."""
        if v is not None and v < 0:
            raise ValueError("Bound cannot be negative")
        return v

    def is_empty(self) -> bool:
        return not self.model_dump(exclude_none=True)

class QueryAnalysis(BaseModel):
    """Immutable result of analyzing one message."""
    model_config = ConfigDict(frozen=True)

    search_terms: Tuple[str, ...] = ()
    filters: ProductFilters = Field(default_factory=ProductFilters)
    confidence: float = Field(default=0.5, ge=0.0, le=1.0)
    is_product_query: bool = False
    user_intent: UserIntent = "general"
    original_query: str = ""

class StructuredCategoryInfo(BaseModel):
    """
    Category and price hints produced by the structured extraction call.
    Every field is optional; an empty instance means nothing could be extracted.
    """
    model_config = ConfigDict(frozen=True)

    main_category: Optional[str] = None
    subcategory: Optional[str] = None
    sub_subcategory: Optional[str] = None
    min_price: Optional[float] = None
    max_price: Optional[float] = None

    @field_validator('min_price', 'max_price', mode='before')
    @classmethod
    def coerce_price(cls, v):
        """Accept numeric strings such as "2,000" or "KSH 1500"."""
        if isinstance(v, str):
            cleaned = re.sub(r'[^\d.]', '', v)
            return float(cleaned) if cleaned else None
        return v

    def is_empty(self) -> bool:
        return not self.model_dump(exclude_none=True)
