"""Event schema consumed by notification providers."""

from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel

# Reserved metadata keys
META_COMMIT_STATUS_KEY = "commit_status"
META_COMMIT_STATUS_UPDATE_VALUE = "update"
META_REVISION_KEY = "revision"
META_SUMMARY_KEY = "summary"


class Severity(str, Enum):
    INFO = "info"
    ERROR = "error"


class ObjectReference(BaseModel):
    """Identity of the object the event is about."""
    kind: str = ""
    name: str = ""
    namespace: str = ""

    model_config = {"frozen": True}


class Event(BaseModel):
    """
    A lifecycle event emitted by a controller.

    Field names follow Python conventions; the JSON form uses the
    controller's camelCase names (``involvedObject``, ``reportingController``).
    """
    involved_object: ObjectReference = Field(default_factory=ObjectReference)
    severity: Severity = Severity.INFO
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    message: str = ""
    reason: str = ""
    metadata: Optional[dict[str, str]] = None
    reporting_controller: str = ""
    reporting_instance: str = ""

    model_config = {
        "frozen": True,
        "populate_by_name": True,
        "alias_generator": to_camel,
    }

    def has_metadata(self, key: str, value: str) -> bool:
        """Return True if the metadata holds *key* with exactly *value*."""
        if not self.metadata:
            return False
        return self.metadata.get(key) == value

    def object_ref(self) -> str:
        """Render the involved object as ``kind/name.namespace`` (kind lowercased)."""
        obj = self.involved_object
        return f"{obj.kind.lower()}/{obj.name}.{obj.namespace}"
