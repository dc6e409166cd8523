"""
Main chat service for handling conversational shopping requests.
"""
import asyncio
import logging
import time
from typing import Dict, Any, List, Optional, Set

from config import FEATURES
from data.catalog import ProductCatalog
from models.chat import ChatMessage, UserContext
from models.parameters import QueryAnalysis
from pipeline.context_builder import build_product_explanation_prompt
from pipeline.graph import build_dialogue_graph, initial_dialogue_state
from pipeline.input_validation import validate_message
from pipeline.query_analysis import analyze_query
from services.marketplace_service import MarketplaceService
from services.personalization_service import PersonalizationService
from utils.llm import call_gpt
from utils.prompts import APOLOGY_REPLY, SUGGESTIONS

logger = logging.getLogger(__name__)

class ChatService:
    """Service for handling chat messages end to end."""

    def __init__(self,
                 catalog: Optional[ProductCatalog] = None,
                 marketplace: Optional[MarketplaceService] = None,
                 personalization_service: Optional[PersonalizationService] = None):
        """Initialize the chat service."""
        logger.info("Initializing chat service")
        self.catalog = catalog or ProductCatalog.from_config()
        self.marketplace = marketplace or MarketplaceService()
        self.personalization_service = personalization_service or PersonalizationService()
        self.dialogue_executor = build_dialogue_graph(self.catalog, self.marketplace)
        self._background_tasks: Set[asyncio.Task] = set()

    async def process_user_message(self,
                                   message: str,
                                   user_id: Optional[str] = None,
                                   conversation_history: Optional[List[Dict[str, Any]]] = None) -> ChatMessage:
        """
        Process one user message into an assistant reply.

        Never raises: unexpected failures degrade to an apologetic reply.

        Args:
            message: The user's message
            user_id: Optional user identifier; anonymous callers get templated replies
            conversation_history: Prior turns as {role, content}

        Returns:
            Assistant chat message with analysis and any search results
        """
        start_time = time.time()
        message = (message or "").strip()
        user_context = None

        try:
            if user_id:
                user_context = await self.personalization_service.get_user_context(user_id)

            initial_state = initial_dialogue_state(message, user_context, conversation_history)
            result = await self.dialogue_executor.ainvoke(initial_state)

            if user_context is not None and validate_message(message) is None and FEATURES["use_personalization"]:
                self._schedule_learning(user_context, message, result["analysis"])

            execution_time = time.time() - start_time
            logger.info(f"Processed message in {execution_time:.2f}s, "
                        f"products: {len(result['products'])}, "
                        f"external: {len(result['external_products'])}, "
                        f"error: {result.get('error')}")

            return self._prepare_message(result)

        except Exception as e:
            logger.error(f"Chat processing failed: {str(e)}")
            return ChatMessage(
                role="assistant",
                content=APOLOGY_REPLY,
                analysis=self._safe_analysis(message),
                products=[]
            )

    async def explain_product(self, product_id: str, user_id: str) -> Optional[str]:
        """
        Ask the LLM why a catalog product suits a user.

        Returns:
            Explanation text, or None if the product does not exist
        """
        product = self.catalog.get_product_by_id(product_id)
        if product is None:
            return None

        user_context = await self.personalization_service.get_user_context(user_id)
        prompt = build_product_explanation_prompt(product, user_context)
        return await call_gpt(prompt)

    def get_suggestions(self) -> List[str]:
        return list(SUGGESTIONS)

    async def wait_for_background_tasks(self):
        """Wait until scheduled personalization updates finish."""
        if self._background_tasks:
            await asyncio.gather(*self._background_tasks, return_exceptions=True)

    def _schedule_learning(self, user_context: UserContext, message: str, analysis: QueryAnalysis):
        """Fire-and-forget personalization update, off the response path."""
        task = asyncio.create_task(
            self.personalization_service.update_user_learning(user_context, message, analysis)
        )
        self._background_tasks.add(task)
        task.add_done_callback(self._background_tasks.discard)

    def _prepare_message(self, result: Dict[str, Any]) -> ChatMessage:
        """
        Build the assistant message from the final dialogue state.

        Catalog and marketplace results stay in separate fields; the
        marketplace field is only set when it has results.
        """
        return ChatMessage(
            role="assistant",
            content=result.get("response") or APOLOGY_REPLY,
            analysis=result.get("analysis"),
            products=result.get("products") or [],
            external_products=result.get("external_products") or None,
            structured_info=result.get("structured_info"),
            follow_up_questions=result.get("follow_up_questions") or None
        )

    def _safe_analysis(self, message: str) -> Optional[QueryAnalysis]:
        try:
            return analyze_query(message)
        except Exception as e:
            logger.error(f"Query analysis failed: {str(e)}")
            return None
