"""Multipart upload driver.

Maps each step of the multipart upload lifecycle onto a single S3 call:

- Initiate an upload
- Upload a part
- Complete an upload with caller-ordered parts
- List in-progress uploads or the parts of one upload, one page per call
- Abort an upload

The driver keeps no state of its own. The upload ID returned on
initiation is threaded through every later call by the caller, and the
remote service remains the authority on part validity, ordering and
size limits. Nothing here retries.
"""

import logging
import threading
from typing import Any, BinaryIO, Iterable, Optional

from botocore.exceptions import BotoCoreError, ClientError

from mpdebug.models import (
    AbortResult,
    ListPartsPage,
    ListUploadsPage,
    PartDescriptor,
    PartsCursor,
    UploadResult,
    UploadSession,
    UploadsCursor,
    UploadSummary,
)

logger = logging.getLogger(__name__)

# Server-side encryption with service-managed keys (SSE-S3)
SSE_ALGORITHM = "AES256"

# Separator between part number and entity tag in completion arguments
PART_SEPARATOR = "."


class InputError(ValueError):
    """Raised when a caller-supplied argument is malformed."""

    pass


class OperationCancelled(Exception):
    """Raised when a cancel signal stops an operation."""

    pass


class RemoteError(Exception):
    """Raised when the service or the transport rejects a request.

    Attributes:
        operation: Name of the driver operation that failed.
        code: Service error code (e.g. "NoSuchUpload"), if any.
        status_code: HTTP status of the failed response, if any.
    """

    def __init__(
        self,
        message: str,
        operation: str,
        code: Optional[str] = None,
        status_code: Optional[int] = None,
    ):
        super().__init__(message)
        self.operation = operation
        self.code = code
        self.status_code = status_code

    @classmethod
    def from_boto(cls, operation: str, error: Exception) -> "RemoteError":
        """Translate a botocore exception."""
        if isinstance(error, ClientError):
            details = error.response.get("Error", {})
            metadata = error.response.get("ResponseMetadata", {})
            return cls(
                str(error),
                operation=operation,
                code=details.get("Code"),
                status_code=metadata.get("HTTPStatusCode"),
            )
        return cls(str(error), operation=operation)


class CancellableReader:
    """Wraps a part body so that setting ``cancel`` aborts the transfer.

    Every attribute other than ``read`` is delegated to the wrapped
    stream, so seekable bodies stay seekable for request signing.
    """

    def __init__(self, stream: BinaryIO, cancel: threading.Event):
        self._stream = stream
        self._cancel = cancel

    def read(self, size: int = -1) -> bytes:
        if self._cancel.is_set():
            raise OperationCancelled("Part upload cancelled")
        return self._stream.read(size)

    def __getattr__(self, name: str) -> Any:
        return getattr(self._stream, name)


def parse_part_argument(argument: str) -> PartDescriptor:
    """Parse a ``partNumber.etag`` completion argument.

    Only the first separator splits the argument; the remainder is kept
    as the entity tag even if it contains further dots.

    Args:
        argument: Text such as "3.9b2cf535f27731c974343645a3985328".

    Returns:
        The PartDescriptor named by the argument.

    Raises:
        InputError: If the separator is missing, the part number is not
                   a positive integer, or the tag is empty.
    """
    number_text, separator, etag = argument.partition(PART_SEPARATOR)
    if not separator:
        raise InputError(
            f"Invalid part '{argument}': expected <partNumber>.<etag>"
        )
    try:
        part_number = int(number_text)
    except ValueError as e:
        raise InputError(
            f"Invalid part '{argument}': part number '{number_text}' is not an integer"
        ) from e
    if part_number < 1:
        raise InputError(
            f"Invalid part '{argument}': part number must be positive"
        )
    if not etag:
        raise InputError(f"Invalid part '{argument}': missing entity tag")
    return PartDescriptor(part_number=part_number, etag=etag)


def parse_part_arguments(arguments: Iterable[str]) -> list[PartDescriptor]:
    """Parse completion arguments, keeping their order."""
    return [parse_part_argument(argument) for argument in arguments]


def _require(value: str, name: str) -> None:
    if not value:
        raise InputError(f"{name} must not be empty")


def _check_cancelled(cancel: Optional[threading.Event], operation: str) -> None:
    if cancel is not None and cancel.is_set():
        raise OperationCancelled(f"{operation} cancelled")


class MultipartUploadDriver:
    """Drives multipart uploads through an S3 client.

    Each method issues exactly one request. Methods accept an optional
    ``cancel`` event; if it is set before the request is sent, or while
    a part body is being transferred, OperationCancelled is raised and
    the remote upload is left as it is.
    """

    def __init__(self, s3_client: Any):
        """Initialize the driver.

        Args:
            s3_client: boto3 S3 client (safe to share between threads)
        """
        self.s3_client = s3_client

    def _call(
        self,
        operation: str,
        cancel: Optional[threading.Event],
        **params: Any,
    ) -> dict:
        """Send one request, translating botocore failures to RemoteError."""
        _check_cancelled(cancel, operation)
        logger.debug("%s %s", operation, {k: v for k, v in params.items() if k != "Body"})
        try:
            response = getattr(self.s3_client, operation)(**params)
        except (ClientError, BotoCoreError) as e:
            if cancel is not None and cancel.is_set():
                raise OperationCancelled(f"{operation} cancelled") from e
            raise RemoteError.from_boto(operation, e) from e
        logger.debug("%s -> %s", operation, response)
        return response

    def initiate(
        self,
        bucket: str,
        key: str,
        encrypt: bool = False,
        cancel: Optional[threading.Event] = None,
    ) -> UploadSession:
        """Start a new multipart upload.

        Args:
            bucket: Bucket name.
            key: Object key.
            encrypt: Request server-side encryption with managed keys.
            cancel: Optional cancel signal.

        Returns:
            The session identifying the new upload.

        Raises:
            InputError: If bucket or key is empty.
            RemoteError: If the service rejects the request.
        """
        _require(bucket, "Bucket name")
        _require(key, "Object name")

        params: dict[str, Any] = {"Bucket": bucket, "Key": key}
        if encrypt:
            params["ServerSideEncryption"] = SSE_ALGORITHM

        response = self._call("create_multipart_upload", cancel, **params)
        return UploadSession(bucket=bucket, key=key, upload_id=response["UploadId"])

    def upload_part(
        self,
        session: UploadSession,
        part_number: int,
        data: BinaryIO,
        data_length: int,
        cancel: Optional[threading.Event] = None,
    ) -> PartDescriptor:
        """Upload one part of a session.

        Parts may be uploaded in any order and concurrently for
        different part numbers. The data stream stays owned by the
        caller and is not referenced after this call returns.

        Args:
            session: The upload session.
            part_number: 1-indexed part number.
            data: Readable binary stream holding the part body.
            data_length: Exact byte length of ``data``.
            cancel: Optional cancel signal, also checked during transfer.

        Returns:
            The part number with the entity tag assigned by the service.

        Raises:
            InputError: If part_number is not positive or data_length
                       is negative.
            RemoteError: If the service or transport rejects the part.
        """
        if part_number < 1:
            raise InputError(f"Part number must be positive, got {part_number}")
        if data_length < 0:
            raise InputError(f"Data length must not be negative, got {data_length}")

        body = CancellableReader(data, cancel) if cancel is not None else data
        response = self._call(
            "upload_part",
            cancel,
            Bucket=session.bucket,
            Key=session.key,
            UploadId=session.upload_id,
            PartNumber=part_number,
            Body=body,
            ContentLength=data_length,
        )
        return PartDescriptor(part_number=part_number, etag=response["ETag"])

    def complete(
        self,
        session: UploadSession,
        ordered_parts: list[PartDescriptor],
        cancel: Optional[threading.Event] = None,
    ) -> UploadResult:
        """Assemble the uploaded parts into the final object.

        Parts are submitted exactly in the order given; ordering them is
        the caller's job. After success the upload ID is no longer valid.

        Raises:
            InputError: If no parts are given.
            RemoteError: If a part is missing or mismatched, or the
                        session does not exist.
        """
        if not ordered_parts:
            raise InputError("At least one part is required to complete an upload")

        response = self._call(
            "complete_multipart_upload",
            cancel,
            Bucket=session.bucket,
            Key=session.key,
            UploadId=session.upload_id,
            MultipartUpload={"Parts": [part.to_api() for part in ordered_parts]},
        )
        return UploadResult(
            bucket=response.get("Bucket", session.bucket),
            key=response.get("Key", session.key),
            etag=response.get("ETag", ""),
            location=response.get("Location"),
            version_id=response.get("VersionId"),
        )

    def list_uploads(
        self,
        bucket: str,
        prefix: str = "",
        cursor: Optional[UploadsCursor] = None,
        delimiter: str = "",
        max_uploads: Optional[int] = None,
        cancel: Optional[threading.Event] = None,
    ) -> ListUploadsPage:
        """Fetch one page of in-progress uploads in a bucket.

        Args:
            bucket: Bucket name.
            prefix: Only list uploads whose key starts with this prefix.
            cursor: Markers returned by the previous page, if any.
            delimiter: Group keys by this delimiter into common prefixes.
            max_uploads: Upper bound on uploads in the page.
            cancel: Optional cancel signal.

        Returns:
            The page, with ``next_cursor`` set when more uploads remain.
        """
        _require(bucket, "Bucket name")

        params: dict[str, Any] = {"Bucket": bucket}
        if prefix:
            params["Prefix"] = prefix
        if delimiter:
            params["Delimiter"] = delimiter
        if max_uploads:
            params["MaxUploads"] = max_uploads
        if cursor is not None:
            if cursor.key_marker:
                params["KeyMarker"] = cursor.key_marker
            if cursor.upload_id_marker:
                params["UploadIdMarker"] = cursor.upload_id_marker

        response = self._call("list_multipart_uploads", cancel, **params)

        uploads = [
            UploadSummary(
                bucket=bucket,
                key=upload["Key"],
                upload_id=upload["UploadId"],
                initiated=upload.get("Initiated"),
                storage_class=upload.get("StorageClass"),
            )
            for upload in response.get("Uploads", [])
        ]
        prefixes = [entry["Prefix"] for entry in response.get("CommonPrefixes", [])]

        next_cursor = None
        if response.get("IsTruncated"):
            next_cursor = UploadsCursor(
                key_marker=response.get("NextKeyMarker", ""),
                upload_id_marker=response.get("NextUploadIdMarker", ""),
            )

        return ListUploadsPage(
            bucket=bucket,
            uploads=uploads,
            common_prefixes=prefixes,
            next_cursor=next_cursor,
        )

    def list_parts(
        self,
        session: UploadSession,
        cursor: Optional[PartsCursor] = None,
        max_parts: Optional[int] = None,
        cancel: Optional[threading.Event] = None,
    ) -> ListPartsPage:
        """Fetch one page of the parts uploaded for a session.

        Returns:
            The page, with ``next_cursor`` set when more parts remain.

        Raises:
            RemoteError: If the session does not exist (including after
                        it was completed or aborted).
        """
        params: dict[str, Any] = {
            "Bucket": session.bucket,
            "Key": session.key,
            "UploadId": session.upload_id,
        }
        if cursor is not None and cursor.part_marker:
            params["PartNumberMarker"] = cursor.part_marker
        if max_parts:
            params["MaxParts"] = max_parts

        response = self._call("list_parts", cancel, **params)

        parts = [
            PartDescriptor(
                part_number=part["PartNumber"],
                etag=part["ETag"],
                size=part.get("Size"),
                last_modified=part.get("LastModified"),
            )
            for part in response.get("Parts", [])
        ]

        next_cursor = None
        if response.get("IsTruncated"):
            next_cursor = PartsCursor(part_marker=int(response.get("NextPartNumberMarker", 0)))

        return ListPartsPage(session=session, parts=parts, next_cursor=next_cursor)

    def abort(
        self,
        session: UploadSession,
        cancel: Optional[threading.Event] = None,
    ) -> AbortResult:
        """Abort an upload and discard its parts.

        Remote failures, such as aborting an upload that was already
        aborted or completed, are reported in the result instead of
        being raised.
        """
        try:
            self._call(
                "abort_multipart_upload",
                cancel,
                Bucket=session.bucket,
                Key=session.key,
                UploadId=session.upload_id,
            )
        except RemoteError as e:
            logger.debug("abort failed: %s", e)
            return AbortResult(status=False, message=str(e))
        return AbortResult(status=True)
