"""Typed responses for the remote research API.

Every remote operation returns a pydantic model validated at the boundary,
so the core never reaches into untyped payloads. The backend wraps all
answers in a ``{"success": bool, "error": str, ...}`` envelope.
"""

from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


RecordId = Union[int, str]


class KeywordItem(BaseModel):
    """One research result row (a discovered keyword and its metrics)."""

    model_config = ConfigDict(extra="ignore")

    keyword: str
    source: Optional[str] = None
    search_volume: Optional[int] = None
    competition: Optional[str] = None
    competition_index: Optional[float] = None
    cpc: Optional[float] = None
    trend: Optional[str] = None
    intent: Optional[str] = None
    cluster: Optional[str] = None

    @field_validator("source", "competition", "trend", "intent", "cluster", mode="before")
    @classmethod
    def _number_as_text(cls, value: Any) -> Any:
        # Some providers send competition as a 0-1 ratio instead of a label
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return str(value)
        return value


class RemoteResponse(BaseModel):
    """Common success/failure envelope."""

    model_config = ConfigDict(extra="ignore")

    success: bool = False
    error: Optional[str] = None
    message: Optional[str] = None

    @property
    def ok(self) -> bool:
        """Whether the remote side reported success."""
        return self.success

    def error_text(self, fallback: str) -> str:
        """Best available error message, or ``fallback``."""
        return self.error or fallback

    @classmethod
    def failure(cls, error: str) -> "RemoteResponse":
        """Build a failed response of this type."""
        return cls(success=False, error=error)


class RecordRef(BaseModel):
    """Reference to a tracking record (a keyword project on the backend)."""

    model_config = ConfigDict(extra="ignore")

    id: Optional[RecordId] = None
    uuid: Optional[str] = None


class CreateRecordResponse(RemoteResponse):
    """Response of CreateTrackingRecord."""

    project: Optional[RecordRef] = None

    @property
    def record_id(self) -> Optional[RecordId]:
        """Created record id, if any."""
        if self.project is None:
            return None
        return self.project.id


class ResearchResponse(RemoteResponse):
    """Response of RunResearchAction."""

    keywords: List[KeywordItem] = Field(default_factory=list)
    project_id: Optional[RecordId] = None
    stats: Optional[Dict[str, Any]] = None

    @model_validator(mode="before")
    @classmethod
    def _normalize_payload(cls, data: Any) -> Any:
        # The workflow engine may answer with a one-element list, and older
        # workflows nest the keyword list under "data" or "json".
        if isinstance(data, list):
            if not data:
                return {"success": False, "error": "Empty array response"}
            data = data[0]
        if not isinstance(data, dict):
            return data

        if not isinstance(data.get("keywords"), list):
            for key in ("data", "json"):
                nested = data.get(key)
                if isinstance(nested, dict) and isinstance(nested.get("keywords"), list):
                    data = {**data, "keywords": nested["keywords"]}
                    break
            else:
                data = {**data, "keywords": []}
        return data


class PatchResponse(RemoteResponse):
    """Response of PatchTrackingRecord."""


class ReadResponse(RemoteResponse):
    """Response of ReadResult."""

    data: List[KeywordItem] = Field(default_factory=list)
    stats: Optional[Dict[str, Any]] = None

    @property
    def items(self) -> List[KeywordItem]:
        """Items read so far (may be empty while the pipeline is still writing)."""
        return self.data

    @field_validator("data", mode="before")
    @classmethod
    def _none_as_empty(cls, value: Any) -> Any:
        return [] if value is None else value
