"""
Graph structure for the LangGraph dialogue pipeline.
"""
import logging
from typing import Any, Dict, List, Optional

from langgraph.graph import StateGraph, END

from config import DIALOGUE_CONFIG, FEATURES
from data.catalog import ProductCatalog
from models.chat import Product, UserContext
from models.parameters import ProductFilters, StructuredCategoryInfo
from models.state import DialogueState
from pipeline.context_builder import build_chat_context
from pipeline.input_validation import validate_message, validation_error_reply
from pipeline.query_analysis import (
    analyze_query,
    catalog_search_query,
    detect_shopping_intent,
    generate_follow_up_questions,
    generate_response,
    resolve_category,
)
from pipeline.structured_extraction import extract_structured_category_info
from services.marketplace_service import MarketplaceService
from utils.errors import LLMRequestFailed, LLMUnconfigured
from utils.llm import call_gpt
from utils.prompts import APOLOGY_REPLY, SEARCH_ERROR_REPLY

logger = logging.getLogger(__name__)

RATING_SORT = ("rating", "desc")

def initial_dialogue_state(message: str,
                           user_context: Optional[UserContext] = None,
                           conversation_history: Optional[List[Dict[str, Any]]] = None) -> DialogueState:
    """Create the state a turn starts from."""
    return DialogueState(
        message=message,
        user_context=user_context,
        conversation_history=conversation_history or [],
        analysis=None,
        prompt=None,
        llm_response=None,
        llm_available=True,
        should_search=False,
        structured_info=None,
        search_query="",
        products=[],
        external_products=[],
        follow_up_questions=[],
        response=None,
        error=None,
        metadata={}
    )

def merge_filters(filters: ProductFilters, structured_info: Optional[StructuredCategoryInfo]) -> ProductFilters:
    """
    Fill gaps in the rule-based filters with structured extraction hints.

    Rule-based values always win. A category hint is used only when it
    resolves to a known catalog category.
    """
    if structured_info is None or structured_info.is_empty():
        return filters

    updates = {}
    if filters.min_price is None and structured_info.min_price is not None:
        updates["min_price"] = structured_info.min_price
    if filters.max_price is None and structured_info.max_price is not None:
        updates["max_price"] = structured_info.max_price
    if filters.category is None:
        category = (resolve_category(structured_info.sub_subcategory)
                    or resolve_category(structured_info.subcategory)
                    or resolve_category(structured_info.main_category))
        if category:
            updates["category"] = category

    return filters.model_copy(update=updates) if updates else filters

def needs_external_sourcing(products: List[Product], low_stock_threshold: int) -> bool:
    """True when the catalog has nothing, or only near-exhausted stock."""
    return not products or all(p.stock_quantity <= low_stock_threshold for p in products)

def build_dialogue_graph(catalog: ProductCatalog, marketplace: MarketplaceService):
    """
    Create the LangGraph for one conversational turn.

    Args:
        catalog: Catalog search collaborator
        marketplace: External marketplace lookup collaborator

    Returns:
        Compiled graph; run it with ainvoke(initial_dialogue_state(...))
    """
    low_stock_threshold = DIALOGUE_CONFIG["low_stock_threshold"]

    async def validate_input(state: DialogueState) -> Dict[str, Any]:
        error_code = validate_message(state["message"])
        if error_code:
            return {
                "analysis": analyze_query(state["message"]),
                "response": validation_error_reply(error_code),
                "error": f"INPUT_VALIDATION: {error_code}"
            }
        return {"error": None}

    async def analyze_message(state: DialogueState) -> Dict[str, Any]:
        analysis = analyze_query(state["message"])
        logger.info(f"Rule-based intent: {analysis.user_intent}, confidence: {analysis.confidence:.2f}")
        return {"analysis": analysis}

    async def build_context(state: DialogueState) -> Dict[str, Any]:
        prompt = build_chat_context(state["message"], state["user_context"], state["conversation_history"])
        return {"prompt": prompt}

    async def call_llm(state: DialogueState) -> Dict[str, Any]:
        try:
            reply = await call_gpt(state["prompt"])
            return {"llm_response": reply}
        except LLMUnconfigured:
            logger.warning("LLM not configured, using templated reply")
            return {"llm_available": False}
        except LLMRequestFailed as e:
            logger.error(f"LLM request failed with status {e.status_code}")
            return {
                "response": APOLOGY_REPLY,
                "error": f"LLM_REQUEST_FAILED: {e.status_code}"
            }

    async def decide_search(state: DialogueState) -> Dict[str, Any]:
        analysis = state["analysis"]
        should_search = detect_shopping_intent(state["message"], state["llm_response"])

        if analysis.is_product_query and not should_search:
            logger.error(f"Shopping gate missed a product query: '{state['message']}'")

        updates = {"should_search": should_search, "response": state["llm_response"]}
        if should_search:
            updates["structured_info"] = await extract_structured_category_info(state["message"])
            updates["search_query"] = catalog_search_query(analysis)
        return updates

    async def search_catalog(state: DialogueState) -> Dict[str, Any]:
        filters = merge_filters(state["analysis"].filters, state["structured_info"])
        try:
            products = catalog.search(state["search_query"], filters, sort=RATING_SORT)
        except Exception as e:
            logger.error(f"Catalog search failed: {str(e)}")
            products = []
        return {
            "products": products,
            "metadata": {**state["metadata"], "applied_filters": filters.model_dump(exclude_none=True)}
        }

    async def source_external(state: DialogueState) -> Dict[str, Any]:
        query = state["search_query"] or state["message"]
        logger.info(f"Catalog insufficient for '{query}', checking external marketplace")
        external_products = await marketplace.lookup(query)
        return {"external_products": external_products}

    async def templated_reply(state: DialogueState) -> Dict[str, Any]:
        analysis = state["analysis"]
        updates = {"metadata": {**state["metadata"], "templated": True}}

        if not analysis.is_product_query:
            updates["response"] = generate_response(analysis, 0)
            if analysis.user_intent == "general":
                updates["follow_up_questions"] = generate_follow_up_questions(analysis)
            return updates

        search_query = catalog_search_query(analysis)
        try:
            products = catalog.search(search_query, analysis.filters, sort=RATING_SORT)
        except Exception as e:
            logger.error(f"Catalog search failed: {str(e)}")
            updates.update({"response": SEARCH_ERROR_REPLY, "error": f"SEARCH_ERROR: {str(e)}"})
            return updates

        updates.update({
            "search_query": search_query,
            "products": products,
            "response": generate_response(analysis, len(products)),
            "follow_up_questions": generate_follow_up_questions(analysis)
        })
        return updates

    def route_after_validation(state: DialogueState) -> str:
        return END if state["error"] else "analyze_message"

    def route_after_analysis(state: DialogueState) -> str:
        return "build_context" if state["user_context"] is not None else "templated_reply"

    def route_after_llm(state: DialogueState) -> str:
        if not state["llm_available"]:
            return "templated_reply"
        if state["error"]:
            return END
        return "decide_search"

    def route_after_decision(state: DialogueState) -> str:
        if state["should_search"] and state["analysis"].search_terms:
            return "search_catalog"
        return END

    def route_after_search(state: DialogueState) -> str:
        if FEATURES["use_external_marketplace"] and needs_external_sourcing(state["products"], low_stock_threshold):
            return "source_external"
        return END

    graph = StateGraph(DialogueState)

    # Add all nodes
    graph.add_node("validate_input", validate_input)
    graph.add_node("analyze_message", analyze_message)
    graph.add_node("build_context", build_context)
    graph.add_node("call_llm", call_llm)
    graph.add_node("decide_search", decide_search)
    graph.add_node("search_catalog", search_catalog)
    graph.add_node("source_external", source_external)
    graph.add_node("templated_reply", templated_reply)

    # Set entry point
    graph.set_entry_point("validate_input")

    # Conditional routing
    graph.add_conditional_edges(
        "validate_input",
        route_after_validation,
        {"analyze_message": "analyze_message", END: END}
    )
    graph.add_conditional_edges(
        "analyze_message",
        route_after_analysis,
        {"build_context": "build_context", "templated_reply": "templated_reply"}
    )
    graph.add_edge("build_context", "call_llm")
    graph.add_conditional_edges(
        "call_llm",
        route_after_llm,
        {"templated_reply": "templated_reply", "decide_search": "decide_search", END: END}
    )
    graph.add_conditional_edges(
        "decide_search",
        route_after_decision,
        {"search_catalog": "search_catalog", END: END}
    )
    graph.add_conditional_edges(
        "search_catalog",
        route_after_search,
        {"source_external": "source_external", END: END}
    )

    # Endpoints
    graph.add_edge("templated_reply", END)
    graph.add_edge("source_external", END)

    logger.info("Dialogue graph built successfully")
    return graph.compile()
