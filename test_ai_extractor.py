import json
import unittest

from ai_extractor import (
    SYSTEM_PROMPT,
    ParameterExtractor,
    create_default_extraction,
    parse_completion,
    preprocess_request,
)
from llm_client import CompletionError
from parameters import ExtractedField, FieldSource
from validator import check_required_fields

LABELLED_REQUEST = (
    "Title: 'Campaign not being created' "
    "Issue Description: 'validation on last step isnt working'"
)


class FakeCompletion:
    def __init__(self, response=None, error=None):
        self.response = response
        self.error = error
        self.calls = []

    def complete(self, system_prompt, user_prompt):
        self.calls.append((system_prompt, user_prompt))
        if self.error is not None:
            raise self.error
        return self.response


def completion_json(**fields):
    return json.dumps(
        {
            name: {"value": value, "confidence": confidence}
            for name, (value, confidence) in fields.items()
        }
    )


class TestParameterExtractor(unittest.TestCase):
    def test_extracts_and_defaults(self):
        completion = FakeCompletion(
            completion_json(
                title=("Login button not working", 0.9),
                type=("Bug", 0.9),
                project=("FV Engineering", 0.9),
                description=("Users cannot authenticate on mobile devices", 0.9),
            )
        )
        extractor = ParameterExtractor(completion)

        result = extractor.extract_parameters(
            "Create a bug in FV Engineering called 'Login button not working' "
            "with description 'Users cannot authenticate on mobile devices'"
        )

        self.assertEqual(result.title.value, "Login button not working")
        self.assertEqual(result.project.value, "FV Engineering")
        self.assertEqual(result.type.value, "Bug")
        self.assertEqual(result.priority, ExtractedField("Medium", 1.0, FieldSource.DEFAULT))
        system_prompt, user_prompt = completion.calls[0]
        self.assertEqual(system_prompt, SYSTEM_PROMPT)
        self.assertIn("[PROJECT:FV Engineering]", user_prompt)

    def test_provider_failure_recovers_labelled_fields(self):
        extractor = ParameterExtractor(FakeCompletion(error=CompletionError("down")))

        result = extractor.extract_parameters(LABELLED_REQUEST)

        self.assertEqual(result.title.value, "Campaign not being created")
        self.assertEqual(result.description.value, "validation on last step isnt working")
        self.assertEqual(result.type.value, "Bug")
        self.assertEqual(result.project.value, "FV Demo (Issues)")
        self.assertTrue(check_required_fields(result).is_valid)

    def test_provider_failure_without_labels_gives_defaults(self):
        extractor = ParameterExtractor(FakeCompletion(error=CompletionError("down")))
        result = extractor.extract_parameters("The export button is broken")
        self.assertEqual(result, create_default_extraction())
        self.assertIsNone(result.title.value)

    def test_garbage_completion_gives_defaults(self):
        extractor = ParameterExtractor(FakeCompletion("I cannot help with that"))
        result = extractor.extract_parameters("The export button is broken")
        self.assertEqual(result, create_default_extraction())

    def test_missing_fields_patched_from_labels(self):
        completion = FakeCompletion(completion_json(title=(None, 0), type=("Task", 0.9)))
        extractor = ParameterExtractor(completion)

        result = extractor.extract_parameters(LABELLED_REQUEST)

        self.assertEqual(result.title, ExtractedField("Campaign not being created", 0.9))
        self.assertEqual(result.description.value, "validation on last step isnt working")
        self.assertEqual(result.type.value, "Task")
        self.assertIn('TITLE_FIELD: "Campaign not being created"', completion.calls[0][1])

    def test_invalid_values_are_normalized(self):
        completion = FakeCompletion(
            completion_json(
                title=("Export fails", 0.9),
                type=("Feature", 0.9),
                project=("product", 0.9),
                priority=("Urgent", 0.9),
                description=("CSV export times out", 0.9),
            )
        )
        result = ParameterExtractor(completion).extract_parameters("Export fails")
        self.assertEqual(result.type.value, "Bug")
        self.assertEqual(result.project.value, "FV Demo (Issues)")
        self.assertEqual(result.priority.value, "Medium")


class TestPreprocessRequest(unittest.TestCase):
    def test_labels_are_marked(self):
        self.assertEqual(
            preprocess_request("Title: 'Login broken' Description: 'Users cannot authenticate'"),
            'TITLE_FIELD: "Login broken" DESCRIPTION_FIELD: "Users cannot authenticate"',
        )

    def test_only_first_project_rule_applies(self):
        processed = preprocess_request("Create a bug in engineering for demo product")
        self.assertIn("in [PROJECT:FV Engineering]", processed)
        self.assertIn("for demo product", processed)

    def test_bare_demo_needs_in(self):
        self.assertEqual(preprocess_request("write docs for demo"), "write docs for demo")
        self.assertEqual(
            preprocess_request("log a bug in demo"), "log a bug in [PROJECT:FV Demo Issues]"
        )


class TestParseCompletion(unittest.TestCase):
    def test_code_fences_are_stripped(self):
        raw = '```json\n{"title": {"value": "Crash", "confidence": 0.8}}\n```'
        self.assertEqual(parse_completion(raw).title, ExtractedField("Crash", 0.8))

    def test_surrounding_prose_is_ignored(self):
        raw = 'Here you go: {"priority": {"value": "High", "confidence": 0.7}} thanks'
        self.assertEqual(parse_completion(raw).priority.value, "High")

    def test_fields_are_sanitized(self):
        raw = json.dumps(
            {
                "title": {"value": "X", "confidence": 1.5},
                "type": {"value": "", "confidence": 0.9},
                "project": "eng",
                "priority": {"value": "High", "confidence": "abc"},
            }
        )
        parsed = parse_completion(raw)
        self.assertEqual(parsed.title.confidence, 1.0)
        self.assertEqual(parsed.type, ExtractedField())
        self.assertEqual(parsed.project, ExtractedField())
        self.assertEqual(parsed.priority, ExtractedField("High", 0.0))
        self.assertIsNone(parsed.description.value)

    def test_non_finite_confidence_is_zero(self):
        raw = (
            '{"title": {"value": "Crash", "confidence": NaN}, '
            '"description": {"value": "Details", "confidence": Infinity}}'
        )
        parsed = parse_completion(raw)
        self.assertEqual(parsed.title, ExtractedField("Crash", 0.0))
        self.assertEqual(parsed.description.confidence, 0.0)
        self.assertFalse(check_required_fields(parsed).is_valid)

    def test_non_object_is_empty(self):
        self.assertIsNone(parse_completion("[1, 2, 3]").title.value)


if __name__ == "__main__":
    unittest.main()
