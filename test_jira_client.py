import unittest
from unittest.mock import patch

import requests  # type: ignore[import-untyped]

from conversation import IssueData
from issue_builder import build_issue_request
from jira_client import IssueSummary, JiraClient, JiraError, JiraProject


def make_request(**overrides):
    data = IssueData(
        title="Login button not working",
        project="FV Engineering",
        issue_type="Bug",
        priority="Medium",
        description="Users cannot authenticate on mobile devices",
    )
    for name, value in overrides.items():
        setattr(data, name, value)
    return build_issue_request(data)


def make_client(**kwargs):
    return JiraClient("example.atlassian.net", "bot@example.com", "token", **kwargs)


class TestCreateIssue(unittest.TestCase):
    @patch("jira_client.requests.post")
    @patch("jira_client.requests.get")
    def test_create_issue_success(self, mock_get, mock_post):
        mock_get.return_value.status_code = 200
        mock_get.return_value.json.return_value = {
            "values": [{"key": "ENG", "name": "FV Engineering"}]
        }
        mock_post.return_value.status_code = 201
        mock_post.return_value.json.return_value = {"key": "ENG-7"}

        result = make_client().create_issue(make_request())

        self.assertTrue(result.success)
        self.assertEqual(result.key, "ENG-7")
        self.assertEqual(result.url, "https://example.atlassian.net/browse/ENG-7")
        self.assertEqual(result.summary, "Login button not working")
        self.assertEqual(mock_get.call_args.kwargs["params"], {"query": "FV Engineering"})
        fields = mock_post.call_args.kwargs["json"]["fields"]
        self.assertEqual(fields["project"], {"key": "ENG"})
        self.assertEqual(fields["issuetype"], {"name": "Bug"})
        self.assertEqual(fields["priority"], {"name": "Medium"})
        self.assertEqual(fields["description"]["type"], "doc")

    @patch("jira_client.requests.post")
    @patch("jira_client.requests.get")
    def test_configured_project_key_skips_lookup(self, mock_get, mock_post):
        mock_post.return_value.status_code = 201
        mock_post.return_value.json.return_value = {"key": "FVE-1"}
        client = make_client(project_keys={"FV Engineering": "FVE"})

        result = client.create_issue(make_request())

        self.assertTrue(result.success)
        mock_get.assert_not_called()
        self.assertEqual(mock_post.call_args.kwargs["json"]["fields"]["project"], {"key": "FVE"})

    @patch("jira_client.requests.post")
    def test_empty_description_is_sent_blank(self, mock_post):
        mock_post.return_value.status_code = 201
        mock_post.return_value.json.return_value = {"key": "FVE-2"}
        client = make_client(project_keys={"FV Engineering": "FVE"})

        client.create_issue(make_request(description=""))

        description = mock_post.call_args.kwargs["json"]["fields"]["description"]
        self.assertEqual(description["content"], [{"type": "paragraph", "content": []}])

    @patch("jira_client.requests.post")
    def test_create_issue_failure(self, mock_post):
        mock_post.return_value.status_code = 400
        mock_post.return_value.text = "Bad Request"
        mock_post.return_value.json.return_value = {
            "errorMessages": [],
            "errors": {"summary": "required"},
        }
        client = make_client(project_keys={"FV Engineering": "FVE"})

        result = client.create_issue(make_request())

        self.assertFalse(result.success)
        self.assertEqual(result.error, "Jira rejected the request: summary: required")

    @patch("jira_client.requests.post")
    @patch("jira_client.requests.get")
    def test_unknown_project(self, mock_get, mock_post):
        mock_get.return_value.status_code = 200
        mock_get.return_value.json.return_value = {"values": []}

        result = make_client().create_issue(make_request())

        self.assertFalse(result.success)
        self.assertIn("was not found", result.error)
        mock_post.assert_not_called()

    @patch("jira_client.requests.post")
    def test_transport_error_raises(self, mock_post):
        mock_post.side_effect = requests.ConnectionError("down")
        client = make_client(project_keys={"FV Engineering": "FVE"})
        with self.assertRaises(JiraError):
            client.create_issue(make_request())
        self.assertEqual(mock_post.call_count, 1)


class TestFindProject(unittest.TestCase):
    @patch("jira_client.requests.get")
    def test_prefers_exact_name(self, mock_get):
        mock_get.return_value.status_code = 200
        mock_get.return_value.json.return_value = {
            "values": [
                {"key": "DPD", "name": "FV Demo (Product)"},
                {"key": "FVP", "name": "FV Product"},
            ]
        }
        self.assertEqual(make_client().find_project("fv product"), JiraProject("FVP", "FV Product"))

    @patch("jira_client.requests.get")
    def test_lookup_error_raises(self, mock_get):
        mock_get.return_value.status_code = 401
        with self.assertRaises(JiraError):
            make_client().find_project("FV Product")


class TestSearchIssues(unittest.TestCase):
    @patch("jira_client.requests.get")
    def test_search_issues(self, mock_get):
        mock_get.return_value.status_code = 200
        mock_get.return_value.json.return_value = {
            "issues": [
                {"key": "ENG-1", "fields": {"summary": "Login", "status": {"name": "To Do"}}}
            ]
        }

        issues = make_client().search_issues('login "page"')

        self.assertEqual(issues, [IssueSummary("ENG-1", "Login", "To Do")])
        params = mock_get.call_args.kwargs["params"]
        self.assertEqual(params["jql"], 'text ~ "login \\"page\\"" ORDER BY updated DESC')
        self.assertEqual(params["maxResults"], 5)

    @patch("jira_client.requests.get")
    def test_search_error_raises(self, mock_get):
        mock_get.return_value.status_code = 500
        with self.assertRaises(JiraError):
            make_client().search_issues("login")


if __name__ == "__main__":
    unittest.main()
