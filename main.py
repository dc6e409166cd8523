"""
Main entry point for the conversational shopping assistant.
"""
import asyncio
import logging
from typing import Dict, Any, List, Optional

from config import get_config
from data.catalog import ProductCatalog
from services.chat_service import ChatService

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)

logger = logging.getLogger(__name__)

SAMPLE_PRODUCTS = [
    {"name": "HP Pavilion 15 Laptop", "brand": "HP", "category": "laptop",
     "price": 45000, "stock_quantity": 8, "rating": 4.4,
     "description": "15.6 inch laptop with 8GB RAM and 512GB SSD"},
    {"name": "Dell Inspiron 14 Laptop", "brand": "Dell", "category": "laptop",
     "price": 62000, "stock_quantity": 3, "rating": 4.2,
     "description": "14 inch laptop for work and study"},
    {"name": "Samsung Galaxy A54", "brand": "Samsung", "category": "smartphone",
     "price": 38000, "stock_quantity": 12, "rating": 4.5,
     "description": "Smartphone with a 50MP camera"},
    {"name": "Sony WH-1000XM4 Headphones", "brand": "Sony", "category": "headphones",
     "price": 32000, "stock_quantity": 1, "rating": 4.8,
     "description": "Wireless noise cancelling headphones"},
]

def initialize_system(catalog: Optional[ProductCatalog] = None) -> Dict[str, Any]:
    """Initialize the chat system."""
    logger.info("Initializing conversational shopping assistant")
    config = get_config()

    # Log configuration
    logger.info(f"System configured with: LLM={config['llm']['model']}, "
                f"Features={config['features']}")

    if catalog is None:
        catalog = ProductCatalog()
        for product in SAMPLE_PRODUCTS:
            catalog.add_product(product)

    return {
        "chat_service": ChatService(catalog=catalog),
        "config": config
    }

async def run_conversation(chat_service: ChatService, messages: List[str], user_id: Optional[str] = None):
    """
    Run a scripted conversation, feeding each reply back as history.

    Args:
        chat_service: Initialized chat service
        messages: User messages in order
        user_id: Optional user identifier
    """
    history: List[Dict[str, str]] = []

    for message in messages:
        print(f"\nUSER: {message}")
        reply = await chat_service.process_user_message(message, user_id=user_id, conversation_history=history)

        print(f"ASSISTANT: {reply.content}")
        if reply.analysis:
            print(f"Intent: {reply.analysis.user_intent}, Confidence: {reply.analysis.confidence:.2f}")
            print(f"Filters: {reply.analysis.filters.model_dump(exclude_none=True)}")
        for product in reply.products or []:
            print(f"  - {product.name}: {product.price:,.0f} KSH ({product.rating} stars, {product.stock_quantity} in stock)")
        for product in reply.external_products or []:
            print(f"  * [external] {product.name}: {product.price} {product.link}")
        print("-" * 80)

        history.append({"role": "user", "content": message})
        history.append({"role": "assistant", "content": reply.content})

    await chat_service.wait_for_background_tasks()


if __name__ == "__main__":
    # Initialize the system
    system = initialize_system()

    # Test messages including edge cases to test guardrails
    test_messages = [
        # Standard queries
        "Hello!",
        "I want an HP laptop under 50,000 KSH",
        "Show me laptops between 30,000 and 80,000",
        "Best rated headphones",

        # Edge cases
        "",  # Empty message
        "what is the weather forecast for tomorrow?",  # Non-shopping
    ]

    print("\n=== TESTING CONVERSATION ===")
    asyncio.run(run_conversation(system["chat_service"], test_messages))
