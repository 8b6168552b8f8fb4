"""Data models for the multipart upload debugger."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional

DEFAULT_REGION = "us-east-1"


def _isoformat(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value is not None else None


@dataclass
class ConnectionConfig:
    """Connection settings for an S3-compatible endpoint."""

    endpoint: str
    access_key: str
    secret_key: str
    secure: bool = False
    trace: bool = False
    region: str = DEFAULT_REGION
    timeout: Optional[float] = None

    @property
    def endpoint_url(self) -> str:
        """Full endpoint URL with the scheme selected by ``secure``."""
        scheme = "https" if self.secure else "http"
        return f"{scheme}://{self.endpoint}"


@dataclass(frozen=True)
class UploadSession:
    """Reference to one in-progress multipart upload.

    The upload ID is assigned by the service and treated as an opaque token.
    """

    bucket: str
    key: str
    upload_id: str

    def to_dict(self) -> dict[str, Any]:
        return {"bucket": self.bucket, "key": self.key, "upload_id": self.upload_id}


@dataclass(frozen=True)
class PartDescriptor:
    """A part number and the entity tag the service returned for it.

    ``size`` and ``last_modified`` are only known when the part came
    from a parts listing.
    """

    part_number: int
    etag: str
    size: Optional[int] = None
    last_modified: Optional[datetime] = None

    def to_api(self) -> dict[str, Any]:
        """Shape expected by ``complete_multipart_upload``."""
        return {"PartNumber": self.part_number, "ETag": self.etag}

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"part_number": self.part_number, "etag": self.etag}
        if self.size is not None:
            data["size"] = self.size
        if self.last_modified is not None:
            data["last_modified"] = _isoformat(self.last_modified)
        return data


@dataclass(frozen=True)
class UploadsCursor:
    """Continuation markers for listing multipart uploads."""

    key_marker: str = ""
    upload_id_marker: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {"key_marker": self.key_marker, "upload_id_marker": self.upload_id_marker}


@dataclass(frozen=True)
class PartsCursor:
    """Continuation marker for listing the parts of one upload."""

    part_marker: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {"part_marker": self.part_marker}


@dataclass(frozen=True)
class UploadSummary:
    """An in-progress upload as reported by a listing."""

    bucket: str
    key: str
    upload_id: str
    initiated: Optional[datetime] = None
    storage_class: Optional[str] = None

    @property
    def session(self) -> UploadSession:
        return UploadSession(self.bucket, self.key, self.upload_id)

    def to_dict(self) -> dict[str, Any]:
        return {
            "bucket": self.bucket,
            "key": self.key,
            "upload_id": self.upload_id,
            "initiated": _isoformat(self.initiated),
            "storage_class": self.storage_class,
        }


@dataclass
class ListUploadsPage:
    """One page of in-progress uploads.

    ``next_cursor`` is None once the listing is exhausted.
    """

    bucket: str
    uploads: list[UploadSummary] = field(default_factory=list)
    common_prefixes: list[str] = field(default_factory=list)
    next_cursor: Optional[UploadsCursor] = None

    @property
    def is_truncated(self) -> bool:
        return self.next_cursor is not None

    def to_dict(self) -> dict[str, Any]:
        return {
            "bucket": self.bucket,
            "uploads": [upload.to_dict() for upload in self.uploads],
            "common_prefixes": list(self.common_prefixes),
            "is_truncated": self.is_truncated,
            "next_cursor": self.next_cursor.to_dict() if self.next_cursor else None,
        }


@dataclass
class ListPartsPage:
    """One page of the parts uploaded so far for a session."""

    session: UploadSession
    parts: list[PartDescriptor] = field(default_factory=list)
    next_cursor: Optional[PartsCursor] = None

    @property
    def is_truncated(self) -> bool:
        return self.next_cursor is not None

    def to_dict(self) -> dict[str, Any]:
        data = self.session.to_dict()
        data.update({
            "parts": [part.to_dict() for part in self.parts],
            "is_truncated": self.is_truncated,
            "next_cursor": self.next_cursor.to_dict() if self.next_cursor else None,
        })
        return data


@dataclass
class UploadResult:
    """Outcome of a completed multipart upload."""

    bucket: str
    key: str
    etag: str
    location: Optional[str] = None
    version_id: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "bucket": self.bucket,
            "key": self.key,
            "etag": self.etag,
            "location": self.location,
            "version_id": self.version_id,
        }


@dataclass
class AbortResult:
    """Structured outcome of an abort request."""

    status: bool
    message: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        if self.status:
            return {"status": True}
        return {"status": False, "message": self.message}
