"""
Project item model shared by the graph builder, analyzer and metrics.

Items are built fresh from each snapshot fetch and never mutated afterwards.
"""

from datetime import date, datetime, timezone
from enum import Enum
from types import MappingProxyType
from typing import Mapping, NamedTuple

from gh_projects_analyzer.config import DEFAULT_STATUS_FIELD

FieldValue = str | float | date


class ContentType(str, Enum):
    """Kind of content an item wraps."""

    ISSUE = "issue"
    PULL_REQUEST = "pull_request"
    DRAFT = "draft"


class ItemState(str, Enum):
    """Lifecycle state of the underlying issue or pull request."""

    OPEN = "open"
    CLOSED = "closed"


class RelationshipKind(str, Enum):
    """Relationship vocabulary between items."""

    BLOCKS = "blocks"
    BLOCKED_BY = "blocked_by"
    RELATED_TO = "related_to"


class ItemStatus(str, Enum):
    """Workflow status buckets, in lifecycle order."""

    TODO = "todo"
    IN_PROGRESS = "in_progress"
    REVIEW = "review"
    DONE = "done"

    @property
    def rank(self) -> int:
        return _STATUS_ORDER.index(self)


_STATUS_ORDER = [
    ItemStatus.TODO,
    ItemStatus.IN_PROGRESS,
    ItemStatus.REVIEW,
    ItemStatus.DONE,
]

_STATUS_ALIASES = {
    "todo": ItemStatus.TODO,
    "to_do": ItemStatus.TODO,
    "backlog": ItemStatus.TODO,
    "ready": ItemStatus.TODO,
    "new": ItemStatus.TODO,
    "in_progress": ItemStatus.IN_PROGRESS,
    "doing": ItemStatus.IN_PROGRESS,
    "started": ItemStatus.IN_PROGRESS,
    "wip": ItemStatus.IN_PROGRESS,
    "review": ItemStatus.REVIEW,
    "in_review": ItemStatus.REVIEW,
    "code_review": ItemStatus.REVIEW,
    "done": ItemStatus.DONE,
    "closed": ItemStatus.DONE,
    "complete": ItemStatus.DONE,
    "completed": ItemStatus.DONE,
}


def normalize_name(value: str) -> str:
    """Lowercase a label and fold spaces/hyphens to underscores."""
    return "_".join(value.strip().lower().replace("-", " ").split())


def classify_status(value: FieldValue | None) -> ItemStatus | None:
    """Map a Status field value to a bucket, or None if unrecognized."""
    if not isinstance(value, str) or not value.strip():
        return None
    return _STATUS_ALIASES.get(normalize_name(value))


def parse_timestamp(value: str | None) -> datetime | None:
    """Parse a GitHub ISO-8601 timestamp into an aware datetime."""
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except (ValueError, AttributeError):
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def as_datetime(value: FieldValue | datetime | None) -> datetime | None:
    """Coerce a date field value (date or ISO string) to an aware datetime."""
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day, tzinfo=timezone.utc)
    if isinstance(value, str):
        return parse_timestamp(value)
    return None


class Item(NamedTuple):
    """A single project item as seen in one snapshot."""

    id: str
    content_type: ContentType = ContentType.ISSUE
    state: ItemState = ItemState.OPEN
    created_at: datetime | None = None
    closed_at: datetime | None = None
    field_values: Mapping[str, FieldValue] = MappingProxyType({})
    blocks: tuple[str, ...] = ()
    blocked_by: tuple[str, ...] = ()
    related_to: tuple[str, ...] = ()
    status_field: str = DEFAULT_STATUS_FIELD

    def field(self, name: str) -> FieldValue | None:
        """Look up a field value by name, ignoring case."""
        if name in self.field_values:
            return self.field_values[name]
        lowered = name.lower()
        for key, value in self.field_values.items():
            if key.lower() == lowered:
                return value
        return None

    def has_field(self, name: str) -> bool:
        value = self.field(name)
        if value is None:
            return False
        if isinstance(value, str):
            return bool(value.strip())
        return True

    @property
    def status_name(self) -> str | None:
        value = self.field(self.status_field)
        if isinstance(value, str) and value.strip():
            return value.strip()
        return None

    @property
    def status(self) -> ItemStatus | None:
        return classify_status(self.status_name)

    @property
    def is_closed(self) -> bool:
        return self.state == ItemState.CLOSED

    @property
    def is_done(self) -> bool:
        """Done by workflow status or by a closed issue/PR."""
        return self.status == ItemStatus.DONE or self.is_closed

    def references(self, kind: RelationshipKind) -> tuple[str, ...]:
        if kind == RelationshipKind.BLOCKS:
            return self.blocks
        if kind == RelationshipKind.BLOCKED_BY:
            return self.blocked_by
        return self.related_to


class ProjectSnapshot(NamedTuple):
    """All items fetched for one analysis request."""

    project_id: str
    items: list[Item]
    fetched_at: datetime | None = None
