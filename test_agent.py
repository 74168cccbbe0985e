import json
import unittest
from unittest.mock import MagicMock

from agent import (
    CHAT_MESSAGE,
    JiraAgent,
    PromptValidationError,
    format_success_message,
    validate_prompt,
)
from ai_extractor import ParameterExtractor
from conversation_manager import ConversationManager
from jira_client import CreationResult, IssueSummary, JiraClient, JiraError
from parameters import IssueDescriptor

CREATE_PROMPT = (
    "Create a bug in FV Engineering called 'Login button not working' "
    "with description 'Users cannot authenticate on mobile devices'"
)


class FakeCompletion:
    def __init__(self, payload):
        self.payload = payload

    def complete(self, system_prompt, user_prompt):
        return json.dumps(self.payload)


FULL_PAYLOAD = {
    "title": {"value": "Login button not working", "confidence": 0.9},
    "type": {"value": "Bug", "confidence": 0.9},
    "project": {"value": "FV Engineering", "confidence": 0.9},
    "description": {"value": "Users cannot authenticate on mobile devices", "confidence": 0.9},
}


class TestValidatePrompt(unittest.TestCase):
    def test_rejects_bad_prompts(self):
        for prompt in (None, 123, "", "   ", "x" * 5001):
            with self.assertRaises(PromptValidationError):
                validate_prompt(prompt)

    def test_strips(self):
        self.assertEqual(validate_prompt("  hi there "), "hi there")
        self.assertEqual(validate_prompt("x" * 10, max_length=10), "x" * 10)


class TestJiraAgent(unittest.TestCase):
    def make_agent(self, payload=None):
        self.jira = MagicMock(spec=JiraClient)
        manager = ConversationManager(ParameterExtractor(FakeCompletion(payload or {})))
        return JiraAgent(manager, self.jira)

    def test_issue_created(self):
        agent = self.make_agent(FULL_PAYLOAD)
        self.jira.create_issue.return_value = CreationResult(
            success=True,
            key="ENG-1",
            url="https://example.atlassian.net/browse/ENG-1",
            project="FV Engineering",
            summary="Login button not working",
            issue_type="Bug",
            priority="Medium",
        )

        response = agent.handle(CREATE_PROMPT)

        self.assertEqual(response.action, "issue_created")
        self.assertTrue(response.success)
        self.assertEqual(response.data["issue"]["key"], "ENG-1")
        request = self.jira.create_issue.call_args.args[0]
        self.assertEqual(
            request.descriptor,
            IssueDescriptor(
                title="Login button not working",
                project="FV Engineering",
                issue_type="Bug",
                priority="Medium",
                description="Users cannot authenticate on mobile devices",
            ),
        )
        roles = [message["role"] for message in response.conversation_history]
        self.assertEqual(roles, ["user", "assistant"])
        payload = response.to_dict()
        self.assertIn("processing_time_ms", payload)
        self.assertIsNotNone(response.request_id)
        self.assertEqual(payload["request_id"], response.request_id)
        self.assertEqual(payload["issue"]["url"], "https://example.atlassian.net/browse/ENG-1")

    def test_jira_rejection(self):
        agent = self.make_agent(FULL_PAYLOAD)
        self.jira.create_issue.return_value = CreationResult(
            success=False, error="Jira rejected the request: priority: invalid"
        )

        response = agent.handle(CREATE_PROMPT)

        self.assertEqual(response.action, "issue_creation_failed")
        self.assertFalse(response.success)
        self.assertEqual(response.data["error"], "Jira rejected the request: priority: invalid")
        self.assertIn("priority: invalid", response.message)

    def test_jira_unreachable(self):
        agent = self.make_agent(FULL_PAYLOAD)
        self.jira.create_issue.side_effect = JiraError("Jira request failed: timeout")

        response = agent.handle(CREATE_PROMPT)

        self.assertEqual(response.action, "issue_creation_failed")
        self.assertIn("timeout", response.data["error"])

    def test_unexpected_creation_error(self):
        agent = self.make_agent(FULL_PAYLOAD)
        self.jira.create_issue.side_effect = ConnectionError("socket closed")

        response = agent.handle(CREATE_PROMPT)

        self.assertEqual(response.action, "issue_creation_failed")
        self.assertFalse(response.success)
        self.assertEqual(response.data["error"], "socket closed")
        self.assertEqual(response.conversation_history[-1]["role"], "assistant")

    def test_missing_fields(self):
        agent = self.make_agent()
        response = agent.handle("The export button is broken")
        self.assertEqual(response.action, "error")
        self.assertFalse(response.success)
        self.assertIn("title and description", response.message)
        self.jira.create_issue.assert_not_called()

    def test_search(self):
        agent = self.make_agent()
        self.jira.search_issues.return_value = [IssueSummary("ENG-1", "Login bug", "To Do")]

        response = agent.handle("search for issues about login")

        self.assertEqual(response.action, "search_results")
        self.jira.search_issues.assert_called_once_with("about login")
        self.assertEqual(response.data["search_query"], "about login")
        self.assertEqual(
            response.data["results"], [{"key": "ENG-1", "summary": "Login bug", "status": "To Do"}]
        )

    def test_search_failure(self):
        agent = self.make_agent()
        self.jira.search_issues.side_effect = JiraError("Search failed with status 500")
        response = agent.handle("find tickets about exports")
        self.assertEqual(response.action, "search_failed")
        self.assertFalse(response.success)

    def test_unexpected_search_error(self):
        agent = self.make_agent()
        self.jira.search_issues.side_effect = RuntimeError("boom")
        response = agent.handle("search for issues about login")
        self.assertEqual(response.action, "search_failed")
        self.assertEqual(response.data["error"], "boom")

    def test_chat(self):
        response = self.make_agent().handle("hello there")
        self.assertEqual(response.action, "chat_response")
        self.assertEqual(response.message, CHAT_MESSAGE)

    def test_invalid_prompt_raises(self):
        with self.assertRaises(PromptValidationError):
            self.make_agent().handle("")


class TestMessages(unittest.TestCase):
    def test_success_message(self):
        result = CreationResult(
            success=True,
            key="ENG-1",
            url="https://example.atlassian.net/browse/ENG-1",
            project="FV Engineering",
            summary="Login button not working",
        )
        self.assertEqual(
            format_success_message(result),
            'Created Jira issue ENG-1: "Login button not working" in FV Engineering. '
            "View it at https://example.atlassian.net/browse/ENG-1",
        )


if __name__ == "__main__":
    unittest.main()
