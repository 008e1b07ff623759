"""
Provider interface for project-tracking backends.

The analysis engine never talks HTTP itself; it receives a provider and asks
it for one snapshot per request.
"""

from abc import ABC, abstractmethod

from gh_projects_analyzer.models import ProjectSnapshot


class BaseProjectProvider(ABC):
    """Fetch and write capability for one project-tracking platform."""

    @abstractmethod
    def get_platform_name(self) -> str:
        """Return the platform identifier (e.g. 'github')."""

    @abstractmethod
    async def fetch_item_snapshot(self, project_id: str) -> ProjectSnapshot:
        """
        Fetch every item of a project with fields, timestamps and relationships.

        Raises:
            Any exception on transport failure or malformed data; the engine
            turns it into a single UpstreamError.
        """

    @abstractmethod
    async def update_item_dependencies(
        self,
        project_id: str,
        item_id: str,
        blocks: list[str] | None = None,
        blocked_by: list[str] | None = None,
        related_to: list[str] | None = None,
    ) -> None:
        """Replace the declared relationships of one item."""

    @abstractmethod
    async def update_item_priority(
        self, project_id: str, item_id: str, priority: str
    ) -> None:
        """Write a priority level into the project's priority field."""
