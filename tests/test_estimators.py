from unittest import TestCase

from app.backend.services.estimators import estimate_confidence, estimate_usage, one_breath_cue


_FIVE_WORD_ANCHORS = ["one two three four five"] * 5


class EstimatorTests(TestCase):
	def test_long_input_low_panic_short_anchors(self) -> None:
		self.assertEqual(estimate_confidence(700, "low", _FIVE_WORD_ANCHORS), 0.93)

	def test_length_bands(self) -> None:
		self.assertEqual(estimate_confidence(400, "medium", _FIVE_WORD_ANCHORS), 0.75)
		self.assertEqual(estimate_confidence(200, "medium", _FIVE_WORD_ANCHORS), 0.6)
		self.assertEqual(estimate_confidence(100, "medium", _FIVE_WORD_ANCHORS), 0.5)

	def test_wordy_anchors_and_high_panic_lower_confidence(self) -> None:
		wordy = ["one two three four five six seven eight nine ten"] * 5
		self.assertEqual(estimate_confidence(200, "high", wordy), 0.45)
		seven = ["one two three four five six seven"] * 5
		self.assertEqual(estimate_confidence(200, "medium", seven), 0.55)

	def test_confidence_is_clamped(self) -> None:
		wordy = ["w " * 12] * 5
		self.assertEqual(estimate_confidence(50, "high", wordy), 0.35)

	def test_usage_tiers(self) -> None:
		self.assertEqual(estimate_usage(0, 0).tokens_estimated, 1)
		low = estimate_usage(3000, 200)
		self.assertEqual((low.tokens_estimated, low.cost_tier), (800, "low"))
		medium = estimate_usage(3004, 0)
		self.assertEqual((medium.tokens_estimated, medium.cost_tier), (801, "medium"))
		self.assertEqual(estimate_usage(10000, 0).cost_tier, "medium")
		high = estimate_usage(10000, 4)
		self.assertEqual((high.tokens_estimated, high.cost_tier), (2501, "high"))

	def test_one_breath_cue_chains_anchor_openings(self) -> None:
		cue = one_breath_cue(["Light makes ATP fast", "Water splits", "Calvin cycle fixes carbon"])
		self.assertEqual(cue, "Light makes ATP → Water splits → Calvin cycle fixes")
		self.assertIsNone(one_breath_cue([]))
