# modeforge/entities.py
from datetime import datetime, timezone
from typing import List, Literal, Optional, TypeAlias

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

Timestamp: TypeAlias = str

ModeCategory = Literal["fitness", "music", "home", "security", "hobby"]
MODE_CATEGORIES: List[str] = ["fitness", "music", "home", "security", "hobby"]

SavedModeStatus = Literal["draft", "active", "favorite", "trash"]
SAVED_MODE_STATUSES = ("draft", "active", "favorite", "trash")

JobStatus = Literal["generating", "compiling", "completed", "failed"]
JobKind = Literal["generate", "rebuild"]


def utc_now_iso() -> Timestamp:
    return datetime.now(timezone.utc).isoformat()


class CamelModel(BaseModel):
    """
    Persisted/serialized with camelCase keys (the dashboard's format),
    addressed with snake_case attributes in Python.
    """
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_json_dict(self) -> dict:
        return self.model_dump(by_alias=True, exclude_none=True)


class Mode(CamelModel):
    """Catalog entry. Only `downloads` changes at runtime."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="allow")

    id: str
    name: str
    description: str = ""
    category: ModeCategory
    smart_name: str
    featured: bool = False
    downloads: int = 0
    rating: float = 0.0


class SavedMode(CamelModel):
    """User library entry; upserted by smart_name on every successful generation."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="allow")

    id: str
    name: str
    smart_name: str
    original_prompt: str = ""
    version: int = 1
    status: SavedModeStatus = "draft"
    activation_count: int = 0
    created_at: Timestamp = Field(default_factory=utc_now_iso)
    last_modified: Timestamp = Field(default_factory=utc_now_iso)
    last_activated: Optional[Timestamp] = None
    trashed_at: Optional[Timestamp] = None
    cpp_file: str = ""
    widget_file: str = ""
    tags: List[str] = Field(default_factory=list)


class JobState(CamelModel):
    job_id: str
    kind: JobKind = "generate"
    status: JobStatus = "generating"
    device_type: str = ""
    smart_name: Optional[str] = None
    artifact_path: Optional[str] = None
    widget_path: Optional[str] = None
    error: Optional[str] = None
    created_at: Timestamp = Field(default_factory=utc_now_iso)
    updated_at: Timestamp = Field(default_factory=utc_now_iso)


class JobMessage(CamelModel):
    """What the submission path hands to the worker pool."""
    job_id: str
    kind: JobKind
    payload: dict = Field(default_factory=dict)
