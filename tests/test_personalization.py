"""
Tests for user context assembly and preference learning.
"""
import unittest
import sys
import os
import logging
from datetime import date
from unittest.mock import MagicMock

# Add parent directory to path to allow imports
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from data.users import UserDataManager
from models.chat import UserContext
from pipeline.query_analysis import analyze_query
from services.personalization_service import PersonalizationService, compute_age, record_category
from utils.errors import PersonalizationWriteFailure

# Disable logging during tests
logging.disable(logging.CRITICAL)

class TestRecordCategory(unittest.TestCase):
    """Tests for the bounded category histogram."""

    def test_counts_category(self):
        self.assertEqual(record_category({"laptop": 2}, "laptop", 10), {"laptop": 3})
        self.assertEqual(record_category(None, "laptop", 10), {"laptop": 1})

    def test_none_category_leaves_histogram_unchanged(self):
        self.assertEqual(record_category({"laptop": 2}, None, 10), {"laptop": 2})

    def test_input_is_not_modified(self):
        histogram = {"laptop": 1}

        record_category(histogram, "camera", 10)

        self.assertEqual(histogram, {"laptop": 1})

    def test_legacy_list_is_converted(self):
        result = record_category(["laptop", "camera", "laptop"], "camera", 10)

        self.assertEqual(result, {"laptop": 2, "camera": 2})

    def test_size_is_bounded(self):
        histogram = {}
        for i in range(25):
            histogram = record_category(histogram, f"category-{i}", 10)

            self.assertLessEqual(len(histogram), 10)

    def test_evicts_lowest_count(self):
        histogram = {"laptop": 5, "camera": 1, "tablet": 3}

        result = record_category(histogram, "books", 3)

        self.assertEqual(result, {"laptop": 3, "tablet": 2, "books": 1})

    def test_ties_evict_least_recently_used(self):
        histogram = record_category({}, "laptop", 2)
        histogram = record_category(histogram, "camera", 2)

        histogram = record_category(histogram, "books", 2)

        self.assertEqual(histogram, {"camera": 1, "books": 1})

    def test_recount_refreshes_recency(self):
        histogram = {"laptop": 1, "camera": 1}
        histogram = record_category(histogram, "laptop", 2)

        histogram = record_category(histogram, "books", 2)

        self.assertEqual(histogram, {"laptop": 1, "books": 1})

    def test_old_counts_decay_when_full(self):
        histogram = {"laptop": 4, "camera": 4}

        histogram = record_category(histogram, "books", 2)
        self.assertEqual(histogram, {"camera": 2, "books": 1})

        histogram = record_category(histogram, "books", 2)
        histogram = record_category(histogram, "tablet", 2)
        self.assertEqual(histogram, {"books": 1, "tablet": 1})

class TestComputeAge(unittest.TestCase):
    """Tests for compute_age."""

    def test_before_and_after_birthday(self):
        self.assertEqual(compute_age(date(2000, 6, 15), today=date(2024, 6, 14)), 23)
        self.assertEqual(compute_age(date(2000, 6, 15), today=date(2024, 6, 15)), 24)

    def test_iso_string(self):
        self.assertEqual(compute_age("1990-01-01", today=date(2020, 1, 2)), 30)

    def test_unknown(self):
        self.assertEqual(compute_age(None), 25)

class TestPersonalizationService(unittest.IsolatedAsyncioTestCase):
    """Tests for PersonalizationService."""

    def setUp(self):
        """Set up test fixtures."""
        self.store = UserDataManager()
        self.service = PersonalizationService(user_store=self.store, max_preferred_categories=3)

    async def test_get_user_context(self):
        self.store.upsert_profile("u1", {
            "first_name": "Jane",
            "last_name": "Doe",
            "date_of_birth": "1994-03-10",
            "gender": "female"
        })
        self.store.add_search_record("u1", "hp laptop", "laptop")
        self.store.add_search_record("u1", "headphones", "headphones")
        self.store.record_activity("u1", "purchase", "Mouse")

        context = await self.service.get_user_context("u1", today=date(2024, 3, 9))

        self.assertEqual(context.name, "Jane Doe")
        self.assertEqual(context.age, 29)
        self.assertEqual(context.gender, "female")
        self.assertEqual(context.search_history, ["headphones", "hp laptop"])
        self.assertEqual(context.purchase_history, ["Mouse"])
        self.assertEqual(context.liked_products, [])

    async def test_unknown_user_gets_defaults(self):
        context = await self.service.get_user_context("nobody")

        self.assertEqual(context.name, "there")
        self.assertEqual(context.age, 25)
        self.assertEqual(context.gender, "prefer-not-to-say")

    async def test_lookup_failure_gets_defaults(self):
        store = MagicMock()
        store.get_profile.side_effect = RuntimeError("database down")
        service = PersonalizationService(user_store=store)

        context = await service.get_user_context("u1")

        self.assertEqual(context, UserContext(id="u1"))

    async def test_update_user_learning(self):
        context = UserContext(id="u1")

        await self.service.update_user_learning(context, "HP laptop under 50000", analyze_query("HP laptop under 50000"))
        preferences = await self.service.update_user_learning(context, "hello", analyze_query("hello"))

        self.assertEqual(preferences["totalInteractions"], 2)
        self.assertEqual(preferences["preferredCategories"], {"laptop": 1})
        self.assertIn("lastInteraction", preferences)
        self.assertEqual(await self.service.get_user_preferences("u1"), preferences)
        self.assertEqual(self.store.get_recent_searches("u1"), ["hello", "HP laptop under 50000"])

    async def test_update_user_learning_keeps_other_preferences(self):
        await self.service.update_user_preferences("u1", {"preferred_brands": ["HP"]})

        preferences = await self.service.update_user_learning(
            UserContext(id="u1"), "dell laptop", analyze_query("dell laptop")
        )

        self.assertEqual(preferences["preferred_brands"], ["HP"])

    async def test_write_failure_returns_prior_preferences(self):
        store = MagicMock()
        store.add_search_record.side_effect = PersonalizationWriteFailure("disk full")
        service = PersonalizationService(user_store=store)
        context = UserContext(id="u1", preferences={"totalInteractions": 4})

        preferences = await service.update_user_learning(context, "laptop", analyze_query("laptop"))

        self.assertEqual(preferences, {"totalInteractions": 4})
        store.update_preferences.assert_not_called()

    async def test_update_user_preferences_merges(self):
        await self.service.update_user_preferences("u1", {"preferred_brands": ["HP"]})

        merged = await self.service.update_user_preferences("u1", {"price_sensitivity": "high"})

        self.assertEqual(merged, {"preferred_brands": ["HP"], "price_sensitivity": "high"})


if __name__ == '__main__':
    unittest.main()
