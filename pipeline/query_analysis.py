"""
Rule-based query analysis for the dialogue pipeline.

Pure functions with no I/O: intent detection, filter extraction and the
templated replies used when no LLM is available.
"""
import re
import logging
from typing import Dict, List, Optional, Tuple

from models.parameters import ProductFilters, QueryAnalysis
from utils.prompts import GENERAL_REPLY, GREETING_REPLY, HELP_REPLY
from utils.vocabulary import (
    BRAND_KEYWORDS,
    CATEGORY_SYNONYMS,
    COMPOUND_PREFIXES,
    CURRENCY_PATTERN,
    GREETINGS,
    HELP_WORDS,
    PRICE_KEYWORDS,
    PRODUCT_NOUNS,
    REPLY_SHOPPING_KEYWORDS,
    SHOPPING_KEYWORDS,
)

logger = logging.getLogger(__name__)

BASE_CONFIDENCE = 0.5
GREETING_CONFIDENCE = 0.9
HELP_CONFIDENCE = 0.8
PRICE_WEIGHT = 0.2
CATEGORY_WEIGHT = 0.2
BRAND_WEIGHT = 0.1
RATING_WEIGHT = 0.1

AMOUNT_PATTERN = r'(\d+(?:,\d+)*(?:\.\d+)?)'
CURRENCY_PREFIX = CURRENCY_PATTERN + r'?\.?\s*'

PRICE_PATTERN = re.compile(
    r'\b(' + '|'.join(PRICE_KEYWORDS) + r')\s*(?:to\s+|than\s+)?' + CURRENCY_PREFIX + AMOUNT_PATTERN,
    re.IGNORECASE
)
RANGE_PATTERN = re.compile(
    r'\b(?:between|from)\s*' + CURRENCY_PREFIX + AMOUNT_PATTERN +
    r'\s*(?:and|to|-)\s*' + CURRENCY_PREFIX + AMOUNT_PATTERN,
    re.IGNORECASE
)
RATING_PATTERN = re.compile(r'\b(?:rating|stars?)\s*(?:of|above|over)?\s*(\d+(?:\.\d+)?)', re.IGNORECASE)
RATING_PREFIX_PATTERN = re.compile(r'(?:rating|stars?)\s*$', re.IGNORECASE)

def analyze_query(query: str) -> QueryAnalysis:
    """
    Analyzes a raw message into intent, filters and search terms.

    Greeting and help requests short-circuit before any filter extraction.

    Args:
        query: The verbatim user message

    Returns:
        Immutable analysis of the message
    """
    text = normalize_text(query)

    if _contains_any_phrase(text, GREETINGS):
        logger.debug(f"Greeting detected in: '{query}'")
        return QueryAnalysis(
            confidence=GREETING_CONFIDENCE,
            user_intent="greeting",
            original_query=query
        )

    if _contains_any_phrase(text, HELP_WORDS):
        logger.debug(f"Help request detected in: '{query}'")
        return QueryAnalysis(
            confidence=HELP_CONFIDENCE,
            user_intent="help",
            original_query=query
        )

    search_terms: List[str] = []
    filters: Dict[str, object] = {}
    confidence = BASE_CONFIDENCE
    is_product_query = False

    # Price bounds
    price_info, price_matches = extract_price_info(text)
    if price_matches:
        filters.update(price_info)
        for _ in range(price_matches):
            confidence = min(confidence + PRICE_WEIGHT, 1.0)
        is_product_query = True

    # Category
    category = extract_category(text)
    if category:
        filters["category"] = category
        confidence = min(confidence + CATEGORY_WEIGHT, 1.0)
        is_product_query = True

    # Brand
    brand = extract_brand(text)
    if brand:
        filters["brand"] = brand
        search_terms.append(brand)
        confidence = min(confidence + BRAND_WEIGHT, 1.0)
        is_product_query = True

    # Generic product nouns
    for term in extract_product_terms(text):
        if term not in search_terms:
            search_terms.append(term)
            is_product_query = True

    # Rating floor
    rating = extract_rating(text)
    if rating is not None:
        filters["min_rating"] = rating
        confidence = min(confidence + RATING_WEIGHT, 1.0)
        is_product_query = True

    if not search_terms and is_product_query:
        search_terms = [query]

    analysis = QueryAnalysis(
        search_terms=tuple(search_terms),
        filters=ProductFilters(**filters),
        confidence=confidence,
        is_product_query=is_product_query,
        user_intent="shopping" if is_product_query else "general",
        original_query=query
    )
    logger.debug(f"Analyzed query '{query}': {analysis}")
    return analysis

def normalize_text(text: str) -> str:
    """Lowercase and collapse whitespace so phrases match across spacing."""
    return " ".join(text.lower().split())

def extract_price_info(text: str) -> Tuple[Dict[str, float], int]:
    """
    Extracts price bounds from text.

    Returns:
        Tuple of (bounds dict with min_price/max_price, number of price matches)
    """
    bounds: Dict[str, float] = {}
    matches = 0

    for match in PRICE_PATTERN.finditer(text):
        # "rating over 4" is a rating floor, not a price
        if RATING_PREFIX_PATTERN.search(text[:match.start()]):
            continue
        bound = PRICE_KEYWORDS[match.group(1).lower()]
        bounds[f"{bound}_price"] = _parse_amount(match.group(2))
        matches += 1

    range_match = RANGE_PATTERN.search(text)
    if range_match:
        low = _parse_amount(range_match.group(1))
        high = _parse_amount(range_match.group(2))
        bounds["min_price"], bounds["max_price"] = min(low, high), max(low, high)
        matches += 1

    return bounds, matches

def extract_category(text: str) -> Optional[str]:
    """First category whose synonym appears in the text, in table order."""
    return _first_table_match(text, CATEGORY_SYNONYMS)

def extract_brand(text: str) -> Optional[str]:
    """First brand whose keyword appears in the text, in table order."""
    return _first_table_match(text, BRAND_KEYWORDS)

def extract_product_terms(text: str) -> List[str]:
    """Product nouns mentioned in the text, including compounds such as "smartphones"."""
    return [word for word in PRODUCT_NOUNS if _mentions_noun(text, word)]

def extract_rating(text: str) -> Optional[float]:
    match = RATING_PATTERN.search(text)
    if match:
        return float(match.group(1))
    return None

def resolve_category(hint: Optional[str]) -> Optional[str]:
    """
    Maps a free-text category hint onto a known catalog category.

    Returns None when the hint does not resolve.
    """
    if not hint:
        return None
    text = normalize_text(hint)
    if text in CATEGORY_SYNONYMS:
        return text
    return extract_category(text)

def detect_shopping_intent(message: str, llm_response: str = "") -> bool:
    """
    Coarse, recall-oriented shopping gate over the message and the LLM reply.

    Looser than analyze_query. The message is scanned with a vocabulary that
    contains every analyzer signal, matched at the start of a word, so a
    product query always passes the gate. The reply is scanned with a narrower
    vocabulary: price connectives such as "up" or "from" are everyday words
    in LLM prose.
    """
    text = normalize_text(message)
    if _mentions_any(text, SHOPPING_KEYWORDS):
        return True

    reply = normalize_text(llm_response or "")
    return bool(reply) and _mentions_any(reply, REPLY_SHOPPING_KEYWORDS)

def catalog_search_query(analysis: QueryAnalysis) -> str:
    """
    Query string for the catalog search.

    When no vocabulary term was found the analysis carries the whole message
    as its only term. That message is not searched for; the filters alone
    select the products.
    """
    if analysis.search_terms == (analysis.original_query,):
        return ""
    return " ".join(analysis.search_terms)

def generate_response(analysis: QueryAnalysis, results_count: int) -> str:
    """
    Builds the templated reply used when the LLM is not involved.

    Args:
        analysis: The rule-based analysis of the message
        results_count: Number of catalog results found

    Returns:
        Reply text referencing the result count and filters
    """
    if analysis.user_intent == "greeting":
        return GREETING_REPLY
    if analysis.user_intent == "help":
        return HELP_REPLY
    if not analysis.is_product_query:
        return GENERAL_REPLY

    filters = analysis.filters
    plural = "s" if results_count != 1 else ""
    response = f"I found {results_count} product{plural} that match your request"

    if filters.category:
        response += f" for {filters.category}"

    if filters.max_price is not None:
        response += f" under {_format_amount(filters.max_price)} KSH"
    elif filters.min_price is not None:
        response += f" above {_format_amount(filters.min_price)} KSH"

    if filters.min_rating is not None:
        response += f" with rating {filters.min_rating:g}+ stars"

    if results_count == 0:
        return response + ". Try a different budget or a broader search."
    return response + ". Here are the best matches:"

def generate_follow_up_questions(analysis: QueryAnalysis) -> List[str]:
    """Questions that would narrow down an underspecified request."""
    questions = []
    filters = analysis.filters

    if not filters.category:
        questions.append("What type of product are you looking for?")

    if filters.max_price is None and filters.min_price is None:
        questions.append("What's your budget range?")

    if filters.min_rating is None:
        questions.append("Do you have any preference for product ratings?")

    return questions

def _parse_amount(raw: str) -> float:
    return float(raw.replace(",", ""))

def _format_amount(amount: float) -> str:
    if float(amount).is_integer():
        return f"{amount:,.0f}"
    return f"{amount:,.2f}"

def _contains_any_phrase(text: str, phrases) -> bool:
    return any(re.search(r'\b' + re.escape(phrase) + r'\b', text) for phrase in phrases)

def _starts_word(text: str, keyword: str) -> bool:
    return re.search(r'\b' + re.escape(keyword), text) is not None

def _mentions_word(text: str, keyword: str) -> bool:
    # Whole word, plural allowed: "laptops" but not "match" for "mac"
    return re.search(r'\b' + re.escape(keyword) + r'(?:e?s)?\b', text) is not None

def _mentions_noun(text: str, noun: str) -> bool:
    # Whole word or compound: "smartphones" mentions "phone", "address" does not mention "dress"
    prefixes = "|".join(COMPOUND_PREFIXES)
    return re.search(r'\b(?:' + prefixes + r')?' + re.escape(noun) + r'(?:e?s)?\b', text) is not None

def _mentions_any(text: str, keywords) -> bool:
    return (any(_starts_word(text, keyword) for keyword in keywords)
            or any(_mentions_noun(text, noun) for noun in PRODUCT_NOUNS))

def _first_table_match(text: str, table) -> Optional[str]:
    for name, keywords in table.items():
        for keyword in keywords:
            if _mentions_word(text, keyword):
                return name
    return None
