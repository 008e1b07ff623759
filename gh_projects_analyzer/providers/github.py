"""
GitHub Projects provider implementation for GitHub Projects Analyzer.

This module implements the GitHub-specific provider using the GitHub GraphQL
API to fetch project item snapshots and write relationships and priorities.
"""

import os
from datetime import date, datetime, timezone
from typing import Any

import httpx
from dotenv import load_dotenv

from gh_projects_analyzer.config import load_settings
from gh_projects_analyzer.http_client import _get_async_http_client
from gh_projects_analyzer.models import (
    ContentType,
    FieldValue,
    Item,
    ItemState,
    ProjectSnapshot,
    normalize_name,
    parse_timestamp,
)
from gh_projects_analyzer.providers.base import BaseProjectProvider

# Load environment variables
load_dotenv()

# GitHub API endpoint
GITHUB_GRAPHQL_API = "https://api.github.com/graphql"

# Field values requested per item
FIELD_VALUES_LIMIT = 50

_CONTENT_TYPES = {
    "ISSUE": ContentType.ISSUE,
    "PULL_REQUEST": ContentType.PULL_REQUEST,
    "DRAFT_ISSUE": ContentType.DRAFT,
}

PROJECT_ITEMS_QUERY = """
query GetProjectItems($projectId: ID!, $first: Int!, $fieldValues: Int!) {
  node(id: $projectId) {
    ... on ProjectV2 {
      items(first: $first) {
        nodes {
          id
          type
          createdAt
          dependencies {
            blocks { id }
            blockedBy { id }
            relatedTo { id }
          }
          fieldValues(first: $fieldValues) {
            nodes {
              ... on ProjectV2ItemFieldTextValue {
                text
                field { ... on ProjectV2FieldCommon { name } }
              }
              ... on ProjectV2ItemFieldNumberValue {
                number
                field { ... on ProjectV2FieldCommon { name } }
              }
              ... on ProjectV2ItemFieldDateValue {
                date
                field { ... on ProjectV2FieldCommon { name } }
              }
              ... on ProjectV2ItemFieldSingleSelectValue {
                name
                field { ... on ProjectV2FieldCommon { name } }
              }
            }
          }
          content {
            ... on Issue {
              state
              createdAt
              closedAt
            }
            ... on PullRequest {
              state
              createdAt
              closedAt
            }
            ... on DraftIssue {
              createdAt
            }
          }
        }
      }
    }
  }
}
"""

UPDATE_DEPENDENCIES_MUTATION = """
mutation UpdateProjectItemDependencies($projectId: ID!, $itemId: ID!, $dependencies: ProjectV2ItemDependencyInput!) {
  updateProjectV2ItemDependencies(
    input: {
      projectId: $projectId
      itemId: $itemId
      dependencies: $dependencies
    }
  ) {
    projectV2Item {
      id
    }
  }
}
"""

PROJECT_FIELDS_QUERY = """
query GetProjectFields($projectId: ID!) {
  node(id: $projectId) {
    ... on ProjectV2 {
      fields(first: 50) {
        nodes {
          ... on ProjectV2FieldCommon {
            id
            name
            dataType
          }
          ... on ProjectV2SingleSelectField {
            options {
              id
              name
            }
          }
        }
      }
    }
  }
}
"""

UPDATE_FIELD_VALUE_MUTATION = """
mutation UpdateProjectItemField($projectId: ID!, $itemId: ID!, $fieldId: ID!, $value: ProjectV2FieldValue!) {
  updateProjectV2ItemFieldValue(
    input: {
      projectId: $projectId
      itemId: $itemId
      fieldId: $fieldId
      value: $value
    }
  ) {
    projectV2Item {
      id
    }
  }
}
"""


class GitHubProjectsProvider(BaseProjectProvider):
    """GitHub Projects (v2) provider using GraphQL API."""

    def __init__(
        self,
        token: str | None = None,
        page_size: int | None = None,
        priority_field: str | None = None,
    ):
        """
        Initialize GitHub provider.

        Args:
            token: GitHub Personal Access Token. If not provided, reads from
                   GITHUB_TOKEN environment variable.
            page_size: Items fetched per snapshot. Defaults to the configured
                       page size.
            priority_field: Name of the project field holding priority.

        Raises:
            ValueError: If token is not provided and GITHUB_TOKEN env var is not set
        """
        self.token = token or os.getenv("GITHUB_TOKEN")
        if not self.token or len(self.token) == 0:
            raise ValueError(
                "GITHUB_TOKEN is required for GitHub provider.\n"
                "\n"
                "To get started:\n"
                "1. Create a GitHub Personal Access Token (classic):\n"
                "   -> https://github.com/settings/tokens/new\n"
                "2. Select scopes: 'project' and 'repo'\n"
                "3. Set the token:\n"
                "   export GITHUB_TOKEN='your_token_here'  # Linux/macOS\n"
                "   or add to your .env file: GITHUB_TOKEN=your_token_here\n"
            )
        settings = load_settings()
        self.page_size = page_size or settings.page_size
        self.priority_field = priority_field or settings.priority_field
        self.status_field = settings.status_field

    def get_platform_name(self) -> str:
        """Return 'github' as the platform identifier."""
        return "github"

    async def fetch_item_snapshot(self, project_id: str) -> ProjectSnapshot:
        """
        Fetch project items from GitHub GraphQL API.

        Args:
            project_id: ProjectV2 node id

        Returns:
            ProjectSnapshot with normalized items

        Raises:
            ValueError: If the project is not found or the response is malformed
            httpx.HTTPStatusError: If GitHub API returns an error
        """
        variables = {
            "projectId": project_id,
            "first": self.page_size,
            "fieldValues": FIELD_VALUES_LIMIT,
        }
        raw_data = await self._query_graphql(PROJECT_ITEMS_QUERY, variables)

        project = raw_data.get("node")
        if not isinstance(project, dict) or "items" not in project:
            raise ValueError(f"Project {project_id} not found or is inaccessible.")

        nodes = (project.get("items") or {}).get("nodes")
        if not isinstance(nodes, list):
            raise ValueError(f"Malformed item list for project {project_id}.")

        items = [self._normalize_item(node) for node in nodes if node]
        return ProjectSnapshot(
            project_id=project_id,
            items=items,
            fetched_at=datetime.now(timezone.utc),
        )

    async def update_item_dependencies(
        self,
        project_id: str,
        item_id: str,
        blocks: list[str] | None = None,
        blocked_by: list[str] | None = None,
        related_to: list[str] | None = None,
    ) -> None:
        await self._query_graphql(
            UPDATE_DEPENDENCIES_MUTATION,
            {
                "projectId": project_id,
                "itemId": item_id,
                "dependencies": {
                    "blocks": blocks,
                    "blockedBy": blocked_by,
                    "relatedTo": related_to,
                },
            },
        )

    async def update_item_priority(
        self, project_id: str, item_id: str, priority: str
    ) -> None:
        """
        Write `priority` into the project's priority field.

        Single-select fields get the matching option id; other fields get
        the level as text.

        Raises:
            ValueError: If the project has no such field or option
        """
        field_id, value = await self._resolve_priority_value(project_id, priority)
        await self._query_graphql(
            UPDATE_FIELD_VALUE_MUTATION,
            {
                "projectId": project_id,
                "itemId": item_id,
                "fieldId": field_id,
                "value": value,
            },
        )

    async def _resolve_priority_value(
        self, project_id: str, priority: str
    ) -> tuple[str, dict[str, str]]:
        raw_data = await self._query_graphql(
            PROJECT_FIELDS_QUERY, {"projectId": project_id}
        )
        project = raw_data.get("node") or {}
        fields = (project.get("fields") or {}).get("nodes") or []

        wanted = self.priority_field.lower()
        for field in fields:
            if not field or (field.get("name") or "").lower() != wanted:
                continue
            options = field.get("options")
            if options is None:
                return field["id"], {"text": priority}
            for option in options:
                if normalize_name(option.get("name", "")) == priority:
                    return field["id"], {"singleSelectOptionId": option["id"]}
            raise ValueError(
                f"Field '{self.priority_field}' has no option matching '{priority}'."
            )
        raise ValueError(
            f"Project {project_id} has no '{self.priority_field}' field."
        )

    async def _query_graphql(
        self, query: str, variables: dict[str, Any]
    ) -> dict[str, Any]:
        """
        Execute GraphQL query against GitHub API.

        Args:
            query: GraphQL query string
            variables: Query variables

        Returns:
            Response data dictionary

        Raises:
            httpx.HTTPStatusError: If API returns an error
        """
        headers = {
            "Authorization": f"bearer {self.token}",
            "Content-Type": "application/json",
        }
        client = await _get_async_http_client()
        response = await client.post(
            GITHUB_GRAPHQL_API,
            json={"query": query, "variables": variables},
            headers=headers,
        )
        response.raise_for_status()
        data = response.json()

        if "errors" in data:
            raise httpx.HTTPStatusError(
                f"GitHub API Errors: {data['errors']}",
                request=response.request,
                response=response,
            )

        return data.get("data") or {}

    def _normalize_item(self, node: dict[str, Any]) -> Item:
        """
        Normalize one GraphQL item node to an Item.

        Args:
            node: ProjectV2Item node from the GraphQL response

        Returns:
            Item with parsed timestamps, field values and relationships
        """
        item_id = node.get("id")
        if not item_id:
            raise ValueError("Project item without an id in response.")

        content = node.get("content") or {}
        content_type = _CONTENT_TYPES.get(node.get("type", ""), ContentType.ISSUE)

        # MERGED pull requests count as closed
        raw_state = (content.get("state") or "OPEN").upper()
        state = ItemState.OPEN if raw_state == "OPEN" else ItemState.CLOSED

        created_at = parse_timestamp(content.get("createdAt") or node.get("createdAt"))
        closed_at = parse_timestamp(content.get("closedAt"))

        field_values: dict[str, FieldValue] = {}
        for value_node in (node.get("fieldValues") or {}).get("nodes") or []:
            if not value_node:
                continue
            field_name = (value_node.get("field") or {}).get("name")
            if not field_name:
                continue
            value = self._field_value(value_node)
            if value is not None:
                field_values[field_name] = value

        dependencies = node.get("dependencies") or {}

        return Item(
            id=item_id,
            content_type=content_type,
            state=state,
            created_at=created_at,
            closed_at=closed_at,
            field_values=field_values,
            blocks=self._reference_ids(dependencies.get("blocks")),
            blocked_by=self._reference_ids(dependencies.get("blockedBy")),
            related_to=self._reference_ids(dependencies.get("relatedTo")),
            status_field=self.status_field,
        )

    @staticmethod
    def _field_value(value_node: dict[str, Any]) -> FieldValue | None:
        if value_node.get("text") is not None:
            return value_node["text"]
        if value_node.get("number") is not None:
            return float(value_node["number"])
        if value_node.get("date"):
            try:
                return date.fromisoformat(value_node["date"][:10])
            except ValueError:
                return None
        if value_node.get("name") is not None:
            return value_node["name"]
        return None

    @staticmethod
    def _reference_ids(references: Any) -> tuple[str, ...]:
        if not references:
            return ()
        return tuple(ref["id"] for ref in references if ref and ref.get("id"))

