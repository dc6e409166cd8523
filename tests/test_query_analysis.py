"""
Tests for the rule-based query analyzer.
"""
import unittest
import sys
import os
import logging

# Add parent directory to path to allow imports
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from models.parameters import QueryAnalysis, VALID_INTENTS
from pipeline.query_analysis import (
    analyze_query,
    catalog_search_query,
    detect_shopping_intent,
    extract_price_info,
    generate_follow_up_questions,
    generate_response,
    resolve_category,
)

# Disable logging during tests
logging.disable(logging.CRITICAL)

SAMPLE_MESSAGES = [
    "I want an HP laptop under 50,000 KSH",
    "Show me laptops between 30,000 and 80,000",
    "Show me smartphones",
    "headphones with rating over 4",
    "cheap running shoes",
    "Samsung galaxy above 20000",
    "what is the weather like tomorrow",
    "Hello there",
    "can you help me",
    "",
]

class TestAnalyzeQuery(unittest.TestCase):
    """Tests for analyze_query."""

    def test_brand_category_and_budget(self):
        """Brand, category and a max price are all picked up."""
        analysis = analyze_query("I want an HP laptop under 50,000 KSH")

        self.assertEqual(analysis.filters.max_price, 50000)
        self.assertIsNone(analysis.filters.min_price)
        self.assertEqual(analysis.filters.category, "laptop")
        self.assertEqual(analysis.filters.brand, "hp")
        self.assertEqual(analysis.search_terms, ("hp", "laptop"))
        self.assertTrue(analysis.is_product_query)
        self.assertEqual(analysis.user_intent, "shopping")
        self.assertAlmostEqual(analysis.confidence, 1.0)

    def test_between_range(self):
        analysis = analyze_query("Show me laptops between 30,000 and 80,000")

        self.assertEqual(analysis.filters.min_price, 30000)
        self.assertEqual(analysis.filters.max_price, 80000)
        self.assertEqual(analysis.filters.category, "laptop")
        self.assertIn("laptop", analysis.search_terms)
        self.assertEqual(analysis.user_intent, "shopping")

    def test_between_overrides_single_bounds(self):
        """A range sets both bounds even after an 'under' match."""
        analysis = analyze_query("laptops under 100000 between 30000 and 60000")

        self.assertEqual(analysis.filters.min_price, 30000)
        self.assertEqual(analysis.filters.max_price, 60000)

    def test_reversed_range_is_swapped(self):
        bounds, matches = extract_price_info("between 80000 and 30000")

        self.assertEqual(bounds, {"min_price": 30000, "max_price": 80000})
        self.assertEqual(matches, 1)

    def test_from_to_range(self):
        bounds, _ = extract_price_info("laptops from 20,000 to 40,000")

        self.assertEqual(bounds["min_price"], 20000)
        self.assertEqual(bounds["max_price"], 40000)

    def test_currency_prefix(self):
        bounds, matches = extract_price_info("phones under ksh 15,500")

        self.assertEqual(bounds, {"max_price": 15500})
        self.assertEqual(matches, 1)

    def test_rating_is_not_a_price(self):
        analysis = analyze_query("headphones with rating over 4")

        self.assertEqual(analysis.filters.min_rating, 4.0)
        self.assertIsNone(analysis.filters.min_price)
        self.assertEqual(analysis.filters.category, "headphones")
        self.assertTrue(analysis.is_product_query)

    def test_compound_noun_is_a_search_term(self):
        analysis = analyze_query("Show me smartphones")

        self.assertEqual(analysis.filters.category, "smartphone")
        self.assertEqual(analysis.search_terms, ("phone",))
        self.assertEqual(catalog_search_query(analysis), "phone")

    def test_price_only_message_searches_by_filters(self):
        analysis = analyze_query("anything under 40,000")

        self.assertTrue(analysis.is_product_query)
        self.assertEqual(analysis.search_terms, ("anything under 40,000",))
        self.assertEqual(catalog_search_query(analysis), "")

    def test_noun_inside_unrelated_word_is_ignored(self):
        analysis = analyze_query("what is your address")

        self.assertEqual(analysis.search_terms, ())
        self.assertFalse(analysis.is_product_query)

    def test_brand_needs_a_whole_word(self):
        self.assertIsNone(analyze_query("a new coffee machine").filters.brand)
        self.assertEqual(analyze_query("a refurbished mac").filters.brand, "apple")

    def test_greeting(self):
        analysis = analyze_query("Hello there")

        self.assertEqual(analysis.user_intent, "greeting")
        self.assertEqual(analysis.confidence, 0.9)
        self.assertFalse(analysis.is_product_query)
        self.assertEqual(analysis.search_terms, ())
        self.assertTrue(analysis.filters.is_empty())

    def test_greeting_short_circuits_filters(self):
        analysis = analyze_query("hi, I need a laptop under 40000")

        self.assertEqual(analysis.user_intent, "greeting")
        self.assertTrue(analysis.filters.is_empty())

    def test_help(self):
        analysis = analyze_query("can you help me")

        self.assertEqual(analysis.user_intent, "help")
        self.assertEqual(analysis.confidence, 0.8)
        self.assertFalse(analysis.is_product_query)

    def test_words_inside_other_words_do_not_match(self):
        """'show' contains 'how' and 'and' contains 'd', neither should count."""
        analysis = analyze_query("show me a bag and a watch")

        self.assertNotEqual(analysis.user_intent, "help")
        self.assertIsNone(analysis.filters.brand)
        self.assertEqual(analysis.filters.category, "fashion")

    def test_general_message(self):
        analysis = analyze_query("what is the weather like tomorrow")

        self.assertEqual(analysis.user_intent, "general")
        self.assertFalse(analysis.is_product_query)
        self.assertEqual(analysis.confidence, 0.5)

    def test_invariants_hold(self):
        for message in SAMPLE_MESSAGES:
            analysis = analyze_query(message)

            self.assertIn(analysis.user_intent, VALID_INTENTS)
            self.assertGreaterEqual(analysis.confidence, 0.0)
            self.assertLessEqual(analysis.confidence, 1.0)
            self.assertEqual(analysis.original_query, message)

            if analysis.user_intent in ("greeting", "help"):
                self.assertFalse(analysis.is_product_query)
            else:
                has_signal = bool(analysis.search_terms) or not analysis.filters.is_empty()
                self.assertEqual(analysis.is_product_query, has_signal)

    def test_analysis_is_deterministic(self):
        for message in SAMPLE_MESSAGES:
            self.assertEqual(analyze_query(message), analyze_query(message))

    def test_analysis_is_immutable(self):
        analysis = analyze_query("HP laptop")

        with self.assertRaises(Exception):
            analysis.confidence = 0.1
        self.assertIsInstance(analysis, QueryAnalysis)

class TestShoppingGate(unittest.TestCase):
    """Tests for detect_shopping_intent."""

    def test_product_queries_pass_the_gate(self):
        for message in SAMPLE_MESSAGES:
            if analyze_query(message).is_product_query:
                self.assertTrue(detect_shopping_intent(message), message)

    def test_llm_reply_can_trigger_the_gate(self):
        self.assertTrue(detect_shopping_intent("tell me a joke", "I can recommend some gifts"))

    def test_chit_chat_does_not_trigger(self):
        self.assertFalse(detect_shopping_intent("tell me a joke", "Why did the chicken cross the road?"))

    def test_everyday_reply_words_do_not_trigger(self):
        conversations = [
            ("what's the weather tomorrow", "Expect sunshine with highs up to 25 degrees."),
            ("tell me a joke", "Here's one from my collection."),
            ("who won the match", "I'm not able to look that up."),
        ]
        for message, reply in conversations:
            self.assertFalse(detect_shopping_intent(message, reply), message)

    def test_compound_nouns_pass_the_gate(self):
        self.assertTrue(detect_shopping_intent("any good smartwatches?"))
        self.assertTrue(detect_shopping_intent("hi", "A leather handbag would make a lovely present."))

class TestTemplatedReplies(unittest.TestCase):
    """Tests for generate_response and generate_follow_up_questions."""

    def test_results_reply_mentions_count_and_filters(self):
        analysis = analyze_query("I want an HP laptop under 50,000 KSH")

        response = generate_response(analysis, 3)

        self.assertEqual(
            response,
            "I found 3 products that match your request for laptop under 50,000 KSH. Here are the best matches:"
        )

    def test_single_result_is_singular(self):
        analysis = analyze_query("laptops above 30000")

        response = generate_response(analysis, 1)

        self.assertTrue(response.startswith("I found 1 product that match"))
        self.assertIn("above 30,000 KSH", response)

    def test_no_results_reply(self):
        analysis = analyze_query("headphones with rating over 4")

        response = generate_response(analysis, 0)

        self.assertIn("I found 0 products", response)
        self.assertIn("rating 4+ stars", response)
        self.assertIn("Try a different budget", response)

    def test_greeting_reply_does_not_mention_products_found(self):
        response = generate_response(analyze_query("hello"), 0)

        self.assertNotIn("I found", response)

    def test_follow_up_questions_target_missing_filters(self):
        questions = generate_follow_up_questions(analyze_query("HP laptop under 50000"))

        self.assertEqual(questions, ["Do you have any preference for product ratings?"])

        questions = generate_follow_up_questions(analyze_query("something nice"))
        self.assertEqual(len(questions), 3)

class TestResolveCategory(unittest.TestCase):
    """Tests for resolve_category."""

    def test_known_category(self):
        self.assertEqual(resolve_category("Laptop"), "laptop")

    def test_synonym(self):
        self.assertEqual(resolve_category("Mobile Phones"), "smartphone")

    def test_unknown(self):
        self.assertIsNone(resolve_category("Electronics"))
        self.assertIsNone(resolve_category(None))


if __name__ == '__main__':
    unittest.main()
