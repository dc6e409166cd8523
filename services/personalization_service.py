"""
Service for user context assembly and preference learning.
"""
import logging
from collections import Counter
from datetime import date, datetime, timezone
from typing import Dict, Any, Optional

from config import DIALOGUE_CONFIG
from data.users import UserDataManager
from models.chat import UserContext
from models.parameters import QueryAnalysis

logger = logging.getLogger(__name__)

DEFAULT_AGE = 25

class PersonalizationService:
    """Service for managing user context and personalization."""

    def __init__(self, user_store: Optional[UserDataManager] = None,
                 max_preferred_categories: Optional[int] = None):
        """
        Initialize the personalization service.

        Args:
            user_store: User profile and history collaborator
            max_preferred_categories: Size bound of the category histogram
        """
        logger.info("Initializing personalization service")
        self.user_store = user_store or UserDataManager.from_config()
        self.history_window = DIALOGUE_CONFIG["history_window"]
        self.max_preferred_categories = (
            max_preferred_categories or DIALOGUE_CONFIG["max_preferred_categories"]
        )

    async def get_user_context(self, user_id: str, today: Optional[date] = None) -> UserContext:
        """
        Assemble the read model for a user.

        Args:
            user_id: The user identifier
            today: Reference date for the age computation

        Returns:
            User context; a default context when the lookup fails
        """
        try:
            profile = self.user_store.get_profile(user_id) or {}
            name = f"{profile.get('first_name') or ''} {profile.get('last_name') or ''}".strip()

            context = UserContext(
                id=user_id,
                name=name or "there",
                age=compute_age(profile.get("date_of_birth"), today),
                gender=profile.get("gender") or "prefer-not-to-say",
                preferences=profile.get("preferences") or {},
                search_history=self.user_store.get_recent_searches(user_id, self.history_window),
                liked_products=self.user_store.get_recent_activity(user_id, "like", self.history_window),
                cart_history=self.user_store.get_recent_activity(user_id, "cart", self.history_window),
                purchase_history=self.user_store.get_recent_activity(user_id, "purchase", self.history_window)
            )
            logger.debug(f"Assembled context for user: {user_id}")
            return context

        except Exception as e:
            logger.error(f"Error getting user context for {user_id}: {str(e)}")
            return UserContext(id=user_id)

    async def get_user_preferences(self, user_id: str) -> Dict[str, Any]:
        return self.user_store.get_preferences(user_id)

    async def update_user_preferences(self, user_id: str, preferences: Dict[str, Any]) -> Dict[str, Any]:
        """
        Merge and store preferences for a user.

        Returns:
            The stored preferences document
        """
        merged = {**self.user_store.get_preferences(user_id), **preferences}
        self.user_store.update_preferences(user_id, merged)
        logger.info(f"Updated preferences for user: {user_id}")
        return merged

    async def update_user_learning(self,
                                   user_context: UserContext,
                                   message: str,
                                   analysis: QueryAnalysis) -> Dict[str, Any]:
        """
        Record a message in search history and roll up category preferences.

        Failures are logged and never propagate.

        Args:
            user_context: The user's context
            message: The raw message
            analysis: Rule-based analysis of the message

        Returns:
            The new preferences document, or the prior one on failure
        """
        category = analysis.filters.category

        try:
            self.user_store.add_search_record(user_context.id, message, category or "general")

            current = self.user_store.get_preferences(user_context.id) or dict(user_context.preferences)
            new_preferences = {
                **current,
                "lastInteraction": datetime.now(timezone.utc).isoformat(),
                "totalInteractions": int(current.get("totalInteractions") or 0) + 1,
                "preferredCategories": record_category(
                    current.get("preferredCategories"),
                    category,
                    self.max_preferred_categories
                )
            }

            self.user_store.update_preferences(user_context.id, new_preferences)
            logger.info(f"Learned from interaction for user: {user_context.id}")
            return new_preferences

        except Exception as e:
            logger.error(f"Error updating user learning for {user_context.id}: {str(e)}")
            return user_context.preferences

def record_category(histogram, category: Optional[str], max_size: int) -> Dict[str, int]:
    """
    Count a category in a bounded histogram.

    Keys are kept in least-recently-used order. When a new category would
    exceed max_size, every count is first halved (rounding up) so old
    favourites decay, then the lowest count is evicted; ties evict the least
    recently used entry.

    Args:
        histogram: Existing {category: count} mapping, or a legacy list of categories
        category: Category to count; None leaves the histogram unchanged
        max_size: Maximum number of categories kept

    Returns:
        New histogram
    """
    if isinstance(histogram, list):
        counts = dict(Counter(histogram))
    else:
        counts = dict(histogram or {})

    if not category:
        _evict(counts, max_size)
        return counts

    if category not in counts and len(counts) >= max_size:
        counts = {name: (value + 1) // 2 for name, value in counts.items()}

    count = counts.pop(category, 0) + 1
    _evict(counts, max_size - 1)
    counts[category] = count
    return counts

def _evict(counts: Dict[str, int], max_size: int):
    while len(counts) > max(max_size, 0):
        # min() returns the first of equal counts, i.e. the least recent
        evicted = min(counts, key=counts.get)
        del counts[evicted]
        logger.debug(f"Evicted category from preferences: {evicted}")

def compute_age(date_of_birth, today: Optional[date] = None) -> int:
    """Whole calendar years since date_of_birth; DEFAULT_AGE when unknown."""
    if not date_of_birth:
        return DEFAULT_AGE
    if isinstance(date_of_birth, str):
        date_of_birth = date.fromisoformat(date_of_birth[:10])
    if isinstance(date_of_birth, datetime):
        date_of_birth = date_of_birth.date()

    today = today or date.today()
    had_birthday = (today.month, today.day) >= (date_of_birth.month, date_of_birth.day)
    return today.year - date_of_birth.year - (0 if had_birthday else 1)
