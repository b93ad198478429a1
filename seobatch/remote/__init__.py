"""Remote collaborators of the batch core."""

from .client import EventualReadClient, RemoteResourceClient, ResultKind
from .http_client import HttpResearchClient
from .responses import (
    CreateRecordResponse,
    KeywordItem,
    PatchResponse,
    ReadResponse,
    RecordRef,
    RemoteResponse,
    ResearchResponse,
)

__all__ = [
    "EventualReadClient",
    "RemoteResourceClient",
    "ResultKind",
    "HttpResearchClient",
    "CreateRecordResponse",
    "KeywordItem",
    "PatchResponse",
    "ReadResponse",
    "RecordRef",
    "RemoteResponse",
    "ResearchResponse",
]
