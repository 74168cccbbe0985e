import os
import unittest
from unittest.mock import patch

from jira_client import project_slug
from settings import AgentSettings


class TestProjectKeyMap(unittest.TestCase):
    @patch.dict(
        os.environ,
        {
            "JIRA_PROJECT_KEY_FV_ENGINEERING": "fve",
            "JIRA_PROJECT_KEY_FV_DEMO_ISSUES": " DPI ",
            "JIRA_PROJECT_KEY_EMPTY": "",
        },
        clear=True,
    )
    def test_env_overrides_are_keyed_by_slug(self):
        mapping = AgentSettings._build_project_key_map()
        self.assertEqual(mapping, {"fvengineering": "FVE", "fvdemoissues": "DPI"})
        self.assertEqual(mapping[project_slug("FV Demo (Issues)")], "DPI")


if __name__ == "__main__":
    unittest.main()
