# jira_client.py
"""Jira API client: issue creation, issue search and project lookup."""

from __future__ import annotations

import logging
import re
from dataclasses import asdict, dataclass
from typing import Any, Mapping, Optional, cast

import requests  # type: ignore[import-untyped]

from issue_builder import IssueRequest
from parameters import IssueDescriptor

logger = logging.getLogger(__name__)


class JiraError(RuntimeError):
    """Jira could not be reached or returned an unusable response."""


@dataclass
class CreationResult:
    success: bool
    key: Optional[str] = None
    url: Optional[str] = None
    project: Optional[str] = None
    summary: Optional[str] = None
    issue_type: Optional[str] = None
    priority: Optional[str] = None
    status: Optional[str] = None
    error: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class IssueSummary:
    key: Optional[str]
    summary: Optional[str]
    status: Optional[str] = None

    def to_dict(self) -> dict[str, Optional[str]]:
        return asdict(self)


@dataclass(frozen=True)
class JiraProject:
    key: str
    name: str


class JiraClient:
    """Thin wrapper over the Jira Cloud REST API. No request is retried."""

    def __init__(
        self,
        domain: str,
        email: str,
        api_token: str,
        *,
        project_keys: Optional[Mapping[str, str]] = None,
        timeout: int = 10,
    ) -> None:
        self.domain = domain
        self.base_url = f"https://{domain}/rest/api/3"
        self.auth = (email, api_token)
        self.timeout = timeout
        self.project_keys = {project_slug(name): key for name, key in (project_keys or {}).items()}
        self.headers: dict[str, str] = {
            "Accept": "application/json",
            "Content-Type": "application/json",
        }

    def find_project(self, name: str) -> Optional[JiraProject]:
        """Look a project up by name. Called per request; results are not cached."""
        try:
            response = requests.get(
                f"{self.base_url}/project/search",
                params={"query": name},
                headers=self.headers,
                auth=self.auth,
                timeout=self.timeout,
            )
        except requests.RequestException as exc:
            logger.error("jira_project_lookup_failed", extra={"error": str(exc), "project": name})
            raise JiraError(f"Project lookup failed: {exc}") from exc

        if response.status_code != 200:
            logger.error(
                "jira_project_lookup_error",
                extra={"status": response.status_code, "body": response.text},
            )
            raise JiraError(f"Project lookup failed with status {response.status_code}")

        payload_obj = _json_or_none(response)
        values = payload_obj.get("values", []) if isinstance(payload_obj, dict) else []
        projects = [
            JiraProject(key=str(item["key"]), name=str(item.get("name") or item["key"]))
            for item in values
            if isinstance(item, dict) and item.get("key")
        ]
        if not projects:
            logger.info("jira_project_not_found", extra={"project": name})
            return None
        for project in projects:
            if project.name.lower() == name.lower():
                return project
        return projects[0]

    def resolve_project_key(self, name: str) -> Optional[str]:
        configured = self.project_keys.get(project_slug(name))
        if configured:
            return configured
        project = self.find_project(name)
        return project.key if project else None

    def build_fields(self, descriptor: IssueDescriptor, project_key: str) -> dict[str, Any]:
        summary = re.sub(r"\s+", " ", descriptor.title).strip()
        fields: dict[str, Any] = {
            "project": {"key": project_key},
            "summary": summary,
            "issuetype": {"name": descriptor.issue_type},
            "priority": {"name": descriptor.priority},
        }
        if descriptor.description is not None:
            fields["description"] = _format_description(descriptor.description)
        return fields

    def create_issue(self, request: IssueRequest) -> CreationResult:
        """Create the issue once.

        Jira rejections come back as a failed ``CreationResult``; transport
        failures raise ``JiraError``.
        """
        descriptor = request.descriptor
        project_key = self.resolve_project_key(descriptor.project)
        if not project_key:
            return CreationResult(
                success=False, error=f"Project '{descriptor.project}' was not found in Jira."
            )

        payload = {"fields": self.build_fields(descriptor, project_key)}
        try:
            response = requests.post(
                f"{self.base_url}/issue",
                json=payload,
                headers=self.headers,
                auth=self.auth,
                timeout=self.timeout,
            )
        except requests.RequestException as exc:
            logger.error("jira_request_failed", extra={"error": str(exc)})
            raise JiraError(f"Jira request failed: {exc}") from exc

        if response.status_code != 201:
            return CreationResult(success=False, error=self._handle_error(response))

        payload_obj = _json_or_none(response)
        created = payload_obj if isinstance(payload_obj, dict) else {}
        key = cast(Optional[str], created.get("key"))
        logger.info("jira_issue_created", extra={"status": response.status_code, "key": key})
        return CreationResult(
            success=True,
            key=key,
            url=f"https://{self.domain}/browse/{key}" if key else None,
            project=descriptor.project,
            summary=descriptor.title,
            issue_type=descriptor.issue_type,
            priority=descriptor.priority,
            status=_status_name(created),
        )

    def _handle_error(self, response: requests.Response) -> str:
        payload_obj = _json_or_none(response)
        if payload_obj is None:
            logger.error(
                "jira_error_response",
                extra={"status": response.status_code, "body": response.text},
            )
            return f"Jira error {response.status_code}: {response.text}"

        if not isinstance(payload_obj, dict):
            logger.error(
                "jira_error_non_dict_response",
                extra={"status": response.status_code, "body_type": type(payload_obj).__name__},
            )
            return f"Unexpected response format from Jira ({type(payload_obj).__name__})."

        messages: list[str] = []
        error_messages_val = payload_obj.get("errorMessages", [])
        if isinstance(error_messages_val, list):
            messages.extend(str(msg) for msg in error_messages_val)

        field_errors_val = payload_obj.get("errors", {})
        if isinstance(field_errors_val, dict):
            for field, msg in field_errors_val.items():
                messages.append(f"{field}: {msg}")

        logger.error(
            "jira_validation_failed",
            extra={"status": response.status_code, "errors": messages},
        )
        if messages:
            return f"Jira rejected the request: {'; '.join(messages)}"
        return f"Jira error {response.status_code}: {response.text}"

    def search_issues(self, query: str, limit: int = 5) -> list[IssueSummary]:
        jql = f'text ~ "{_escape_jql_term(query)}" ORDER BY updated DESC'
        params = {
            "jql": jql,
            "maxResults": limit,
            "fields": "summary,status",
        }
        try:
            response = requests.get(
                f"{self.base_url}/search",
                params=params,
                headers=self.headers,
                auth=self.auth,
                timeout=self.timeout,
            )
        except requests.RequestException as exc:
            logger.error("jira_search_failed", extra={"error": str(exc), "jql": jql})
            raise JiraError(f"Search failed: {exc}") from exc

        if response.status_code != 200:
            logger.error(
                "jira_search_error",
                extra={"status": response.status_code, "body": response.text, "jql": jql},
            )
            raise JiraError(f"Search failed with status {response.status_code}")

        payload_obj = _json_or_none(response)
        if not isinstance(payload_obj, dict):
            logger.error("jira_search_unexpected_format", extra={"jql": jql})
            raise JiraError("Unexpected response format from Jira search.")

        issues_raw = payload_obj.get("issues", [])
        if not isinstance(issues_raw, list):
            issues_raw = []
        return [_map_issue_summary(issue) for issue in issues_raw if isinstance(issue, dict)]


def project_slug(name: str) -> str:
    return re.sub(r"[^a-z0-9]", "", name.lower())


def _json_or_none(response: requests.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return None


def _format_description(text: str) -> dict[str, Any]:
    content = [{"type": "text", "text": text}] if text else []
    return {
        "type": "doc",
        "version": 1,
        "content": [{"type": "paragraph", "content": content}],
    }


def _status_name(issue: dict[str, Any]) -> Optional[str]:
    fields = issue.get("fields")
    if not isinstance(fields, dict):
        return None
    status = fields.get("status")
    if not isinstance(status, dict):
        return None
    return cast(Optional[str], status.get("name"))


def _map_issue_summary(issue: dict[str, Any]) -> IssueSummary:
    fields = cast(dict[str, Any], issue.get("fields") or {})
    status = cast(dict[str, Any], fields.get("status") or {})
    return IssueSummary(
        key=cast(Optional[str], issue.get("key")),
        summary=cast(Optional[str], fields.get("summary")),
        status=cast(Optional[str], status.get("name")),
    )


def _escape_jql_term(term: str) -> str:
    return term.replace("\\", "\\\\").replace('"', '\\"')
