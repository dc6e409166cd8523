"""
Configuration settings for the conversational shopping assistant.
"""
import os
from typing import Dict, Any
from dotenv import load_dotenv

# Load environment variables
load_dotenv()

# LLM configuration
LLM_CONFIG = {
    "api_key": os.environ.get("OPENAI_API_KEY", os.environ.get("LLM_API_KEY", "")),
    "api_url": os.environ.get("LLM_API_URL", "https://api.openai.com/v1/chat/completions"),
    "model": os.environ.get("LLM_MODEL", "gpt-3.5-turbo"),
    "structured_model": os.environ.get("LLM_STRUCTURED_MODEL", "gpt-4"),
    "max_tokens": int(os.environ.get("LLM_MAX_TOKENS", "500")),
    "temperature": float(os.environ.get("LLM_TEMPERATURE", "0.7")),
    "timeout": float(os.environ.get("LLM_TIMEOUT", "8.0")),  # in seconds
}

# External marketplace configuration
MARKETPLACE_CONFIG = {
    "base_url": os.environ.get("MARKETPLACE_BASE_URL", "https://www.jumia.co.ke"),
    "timeout": float(os.environ.get("MARKETPLACE_TIMEOUT", "8.0")),  # in seconds
    "max_results": int(os.environ.get("MARKETPLACE_MAX_RESULTS", "10")),
    "user_agent": os.environ.get("MARKETPLACE_USER_AGENT", "Mozilla/5.0"),
}

# Database configuration
DB_CONFIG = {
    "use_database": os.environ.get("USE_DATABASE", "False").lower() == "true",
    "connection_string": os.environ.get("DB_CONNECTION_STRING", "sqlite:///data/shopping_assistant.db"),
    "catalog_file": os.environ.get("CATALOG_FILE", "data/products.json"),
    "users_file": os.environ.get("USERS_FILE", "data/users.json"),
}

# Dialogue configuration
DIALOGUE_CONFIG = {
    "history_window": int(os.environ.get("HISTORY_WINDOW", "10")),
    "low_stock_threshold": int(os.environ.get("LOW_STOCK_THRESHOLD", "2")),
    "max_preferred_categories": int(os.environ.get("MAX_PREFERRED_CATEGORIES", "10")),
    "search_limit": int(os.environ.get("SEARCH_LIMIT", "20")),
}

# Application configuration
APP_CONFIG = {
    "debug": os.environ.get("DEBUG", "False").lower() == "true",
    "log_level": os.environ.get("LOG_LEVEL", "INFO"),
}

# Feature flags
FEATURES = {
    "use_personalization": os.environ.get("USE_PERSONALIZATION", "True").lower() == "true",
    "use_external_marketplace": os.environ.get("USE_EXTERNAL_MARKETPLACE", "True").lower() == "true",
}

def get_config() -> Dict[str, Any]:
    """Return the complete configuration dictionary."""
    return {
        "llm": {**LLM_CONFIG, "api_key": "***" if LLM_CONFIG["api_key"] else ""},
        "marketplace": MARKETPLACE_CONFIG,
        "db": DB_CONFIG,
        "dialogue": DIALOGUE_CONFIG,
        "app": APP_CONFIG,
        "features": FEATURES
    }
