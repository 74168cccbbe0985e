# issue_builder.py
"""Turns collected issue data into the payload for the ticket capability."""

from __future__ import annotations

from dataclasses import dataclass

from conversation import IssueData
from parameters import IssueDescriptor
from vocabulary import DEFAULT_ISSUE_TYPE, DEFAULT_PRIORITY


@dataclass(frozen=True)
class IssueRequest:
    descriptor: IssueDescriptor
    instructions: str


def build_issue_descriptor(issue_data: IssueData) -> IssueDescriptor:
    if not issue_data.project:
        raise ValueError("Project is required to create a Jira issue.")
    if not issue_data.title:
        raise ValueError("Title is required to create a Jira issue.")
    return IssueDescriptor(
        title=issue_data.title,
        project=issue_data.project,
        issue_type=issue_data.issue_type or DEFAULT_ISSUE_TYPE,
        priority=issue_data.priority or DEFAULT_PRIORITY,
        description=issue_data.description,
    )


def build_instructions(descriptor: IssueDescriptor) -> str:
    description = descriptor.description or "No description provided"
    return (
        "Create a new Jira issue with exactly these details, without changing or guessing values:\n"
        f"- Project: {descriptor.project}\n"
        f"- Summary: {descriptor.title}\n"
        f"- Description: {description}\n"
        f"- Issue Type: {descriptor.issue_type}\n"
        f"- Priority: {descriptor.priority}"
    )


def build_issue_request(issue_data: IssueData) -> IssueRequest:
    descriptor = build_issue_descriptor(issue_data)
    return IssueRequest(descriptor=descriptor, instructions=build_instructions(descriptor))
