"""
Tests for token classification, rendering and template registration.
"""

import unittest

from loggrams.gramdict import GramEngine
from loggrams.miner import TemplateMiner, TemplateRegistry, event_id_for


class TestTemplateRegistry(unittest.TestCase):
    """Test first-seen id assignment."""

    def test_ids_in_first_seen_order(self):
        registry = TemplateRegistry()

        self.assertEqual(registry.get_or_assign("a <*> "), 0)
        self.assertEqual(registry.get_or_assign("b <*> "), 1)
        self.assertEqual(registry.get_or_assign("a <*> "), 0)
        self.assertEqual(registry.get_or_assign("c "), 2)

        self.assertEqual(len(registry), 3)
        self.assertEqual(registry.lookup("b <*> "), 1)
        self.assertIsNone(registry.lookup("d "))

    def test_occurrences_and_event_ids(self):
        registry = TemplateRegistry()
        for template in ["x ", "y ", "x ", "x "]:
            registry.get_or_assign(template)

        entries = registry.entries()

        self.assertEqual([e.template_string for e in entries], ["x ", "y "])
        self.assertEqual([e.occurrences for e in entries], [3, 1])
        self.assertEqual(entries[0].event_id, event_id_for("x "))
        self.assertTrue(entries[0].event_id.startswith("e"))
        self.assertEqual(len(entries[0].event_id), 5)


class TestTemplateMiner(unittest.TestCase):
    """Test static/dynamic classification."""

    def setUp(self):
        self.engine = GramEngine(maximum_gram_dict_size=1000)
        self.miner = TemplateMiner(self.engine)

    def test_single_token_is_static(self):
        self.assertEqual(self.miner.classify(["alone"], 0.5), set())
        self.assertEqual(self.miner.classify(["alone"], 1.0), set())

    def test_empty_engine_marks_second_token_dynamic(self):
        """Test an unseen context has ratio 0 and is always dynamic."""
        dynamic = self.miner.classify(["x", "y"], 0.5)

        self.assertEqual(dynamic, {1})
        self.assertEqual(self.miner.render(["x", "y"], dynamic), "x <*> ")

    def test_seeded_sequence_is_static(self):
        tokens = ["token2a", "token2b", "token2c"]
        self.engine.ingest(tokens)

        self.assertEqual(self.miner.bigram_frequency("token2a", "token2b"), 1.0)
        self.assertEqual(self.miner.trigram_frequency("token2a", "token2b", "token2c"), 1.0)

        dynamic = self.miner.classify(tokens, 0.5)

        self.assertEqual(dynamic, set())
        self.assertEqual(self.miner.render(tokens, dynamic), "token2a token2b token2c ")

    def test_ratio_equal_to_threshold_is_dynamic(self):
        self.engine.ingest(["open", "a"])
        self.engine.ingest(["open", "b"])

        self.assertEqual(self.miner.bigram_frequency("open", "a"), 0.5)
        self.assertEqual(self.miner.classify(["open", "a"], 0.5), {1})
        self.assertEqual(self.miner.classify(["open", "a"], 0.49), set())

    def test_bigram_fallback_after_dynamic_token(self):
        """Test index i uses the (i-1, i) bigram when i-2 is dynamic."""
        for user in ["u1", "u2", "u3"]:
            self.engine.ingest(["login", user, "ok", "done"])

        tokens = ["login", "u4", "ok", "done"]
        dynamic = self.miner.classify(tokens, 0.5)

        # u4 unseen; "ok" uses the unseen login^u4^ok trigram; "done" falls
        # back to the ok^done bigram because u4 is dynamic
        self.assertEqual(dynamic, {1, 2})
        self.assertEqual(self.miner.render(tokens, dynamic), "login <*> <*> done ")

    def test_trigram_used_when_context_static(self):
        self.engine.ingest(["a", "b", "c"])
        self.engine.ingest(["a", "b", "d"])

        self.assertEqual(self.miner.trigram_frequency("a", "b", "c"), 0.5)
        self.assertEqual(self.miner.classify(["a", "b", "c"], 0.4), set())
        self.assertEqual(self.miner.classify(["a", "b", "c"], 0.5), {2})

    def test_placeholder_tokens_are_dynamic(self):
        for _ in range(5):
            self.engine.ingest(["from", "<*>", "port"])

        self.assertEqual(self.miner.classify(["from", "<*>", "port"], 0.5), {1})

    def test_render_is_deterministic(self):
        tokens = ["a", "b", "c", "d"]
        first = self.miner.render(tokens, {1, 3})

        for _ in range(3):
            self.assertEqual(self.miner.render(tokens, {1, 3}), first)
        self.assertEqual(first, "a <*> c <*> ")

    def test_parse_does_not_ingest(self):
        result = self.miner.parse(["x", "y"], 0.5)

        self.assertEqual(result.template_string, "x <*> ")
        self.assertEqual(result.template_id, 0)
        self.assertEqual(result.dynamic_token_values, {"dynamic_token_1": "y"})
        self.assertEqual(self.engine.stats()['unigrams'], 0)

    def test_parse_assigns_ids_in_order(self):
        first = self.miner.parse(["x", "y"], 0.5)
        second = self.miner.parse(["p", "q", "r"], 0.5)
        again = self.miner.parse(["x", "z"], 0.5)

        self.assertEqual(first.template_id, 0)
        self.assertEqual(second.template_id, 1)
        self.assertEqual(again.template_id, 0)

    def test_score_histogram(self):
        self.miner.classify(["x", "y", "z"], 0.5)

        self.assertEqual(self.miner.score_histogram(), {0.0: 2})


if __name__ == '__main__':
    unittest.main()
