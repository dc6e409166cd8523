"""
Tests for prompt context building.
"""
import unittest
import sys
import os
import logging

# Add parent directory to path to allow imports
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from models.chat import Product, UserContext
from pipeline.context_builder import (
    build_chat_context,
    build_product_explanation_prompt,
    format_user_preferences,
)

# Disable logging during tests
logging.disable(logging.CRITICAL)

class TestBuildChatContext(unittest.TestCase):
    """Tests for build_chat_context."""

    def setUp(self):
        """Set up test fixtures."""
        self.user_context = UserContext(
            id="user-1",
            name="Jane",
            age=30,
            gender="female",
            search_history=["hp laptop", "dell laptop", "headphones", "camera"],
            liked_products=["Sony WH-1000XM4"]
        )

    def test_prompt_contains_user_details(self):
        prompt = build_chat_context("I need a laptop", self.user_context, [])

        self.assertIn("Name: Jane", prompt)
        self.assertIn("Gender: female", prompt)
        self.assertIn('Jane says: "I need a laptop"', prompt)

    def test_age_is_shown_as_next_birthday(self):
        prompt = build_chat_context("hello", self.user_context, [])

        self.assertIn("Age: 31 years old", prompt)

    def test_history_is_limited_to_last_ten_turns(self):
        history = [{"role": "user", "content": f"message {i}"} for i in range(15)]

        prompt = build_chat_context("hello", self.user_context, history)

        self.assertNotIn("user: message 4\n", prompt)
        self.assertIn("user: message 5", prompt)
        self.assertIn("user: message 14", prompt)

    def test_missing_history(self):
        prompt = build_chat_context("hello", self.user_context, None)

        self.assertIn("CONVERSATION HISTORY:", prompt)

class TestFormatUserPreferences(unittest.TestCase):
    """Tests for format_user_preferences."""

    def test_uses_three_most_recent_items(self):
        user_context = UserContext(id="user-1", search_history=["a", "b", "c", "d"])

        summary = format_user_preferences(user_context)

        self.assertEqual(summary, "Recently searched: a, b, c")

    def test_combines_activity_lists(self):
        user_context = UserContext(
            id="user-1",
            search_history=["laptop"],
            liked_products=["HP Pavilion"],
            purchase_history=["Mouse"]
        )

        summary = format_user_preferences(user_context)

        self.assertEqual(
            summary,
            "Recently searched: laptop; Liked products: HP Pavilion; Recently purchased: Mouse"
        )

    def test_no_activity(self):
        self.assertEqual(format_user_preferences(UserContext(id="user-1")), "No specific preferences yet")

class TestProductExplanationPrompt(unittest.TestCase):
    """Tests for build_product_explanation_prompt."""

    def test_prompt_describes_product(self):
        product = Product(id="p1", name="HP Pavilion", price=45000, brand="HP", category="laptop")
        user_context = UserContext(id="user-1", age=28, gender="male")

        prompt = build_product_explanation_prompt(product, user_context)

        self.assertIn("Name: HP Pavilion", prompt)
        self.assertIn("Brand: HP", prompt)
        self.assertIn("age 28", prompt)
        self.assertIn("Description: No description", prompt)


if __name__ == '__main__':
    unittest.main()
