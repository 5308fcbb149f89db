from unittest import TestCase

from app.backend.errors import InputValidationError
from app.backend.validators.input_validator import validate_recall_request


_TEXT = "Mitosis has four phases: prophase, metaphase, anaphase and telophase."


class InputValidatorTests(TestCase):
	def test_defaults_applied_when_fields_absent(self) -> None:
		request = validate_recall_request({"text": f"  {_TEXT}  "})
		self.assertEqual(request.text, _TEXT)
		self.assertEqual(request.panic_level, "medium")
		self.assertEqual(request.mode, "revise")
		self.assertEqual(request.language, "en")
		self.assertFalse(request.one_breath)
		self.assertIsNone(request.verification_token)
		self.assertIsNone(request.requested_model)

	def test_explicit_fields_are_normalized(self) -> None:
		request = validate_recall_request(
			{
				"text": _TEXT,
				"panicLevel": "HIGH",
				"mode": "exam",
				"language": "PT-BR",
				"oneBreath": "true",
				"recaptchaToken": " tok ",
				"model": "gpt-4o-mini",
			}
		)
		self.assertEqual(request.panic_level, "high")
		self.assertEqual(request.mode, "exam")
		self.assertEqual(request.language, "pt-br")
		self.assertTrue(request.one_breath)
		self.assertEqual(request.verification_token, "tok")
		self.assertEqual(request.requested_model, "gpt-4o-mini")

	def test_one_breath_numeric_forms(self) -> None:
		self.assertTrue(validate_recall_request({"text": _TEXT, "oneBreath": 1}).one_breath)
		self.assertFalse(validate_recall_request({"text": _TEXT, "oneBreath": 0}).one_breath)
		self.assertFalse(validate_recall_request({"text": _TEXT, "oneBreath": "no"}).one_breath)

	def test_short_text_rejected(self) -> None:
		for body in ({}, {"text": None}, {"text": "too short"}, {"text": " " * 40}, {"text": 123}):
			with self.assertRaises(InputValidationError) as ctx:
				validate_recall_request(body)
			self.assertEqual(ctx.exception.status_code, 400)

	def test_short_text_on_warmup_request_is_a_warmup_signal(self) -> None:
		self.assertIsNone(validate_recall_request({"text": "hi"}, warmup=True))
		self.assertIsNone(validate_recall_request(None, warmup=True))

	def test_invalid_enums_rejected(self) -> None:
		for field, value in (("panicLevel", "extreme"), ("mode", "cram"), ("language", "english"), ("language", "e1")):
			with self.assertRaises(InputValidationError):
				validate_recall_request({"text": _TEXT, field: value})

	def test_non_object_body_rejected(self) -> None:
		with self.assertRaises(InputValidationError):
			validate_recall_request(["text"])
