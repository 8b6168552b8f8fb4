"""Shared fixtures, including an in-memory stand-in for the S3 client.

FakeS3Client implements the six multipart calls the driver uses with the
same keyword arguments as boto3 and raises real botocore ClientErrors,
so protocol-level behaviour can be checked without a live service.
"""

import hashlib
import itertools
import threading
from datetime import datetime, timezone
from typing import Any, Optional

import pytest
from botocore.exceptions import ClientError

from mpdebug.models import UploadSession
from mpdebug.multipart import MultipartUploadDriver


def client_error(code: str, message: str, status: int, operation: str) -> ClientError:
    """Build a ClientError shaped like a real S3 error response."""
    return ClientError(
        {
            "Error": {"Code": code, "Message": message},
            "ResponseMetadata": {"HTTPStatusCode": status},
        },
        operation,
    )


class FakeS3Client:
    """In-memory multipart upload service.

    Thread-safe, so concurrent part uploads can be exercised.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._ids = itertools.count(1)
        self.uploads: dict[str, dict[str, Any]] = {}
        self.objects: dict[tuple[str, str], dict[str, Any]] = {}
        self.calls: list[tuple[str, dict]] = []

    def _record(self, operation: str, params: dict) -> None:
        with self._lock:
            self.calls.append((operation, params))

    def _get_upload(self, bucket: str, key: str, upload_id: str, operation: str) -> dict:
        upload = self.uploads.get(upload_id)
        if upload is None or upload["bucket"] != bucket or upload["key"] != key:
            raise client_error(
                "NoSuchUpload",
                "The specified multipart upload does not exist.",
                404,
                operation,
            )
        return upload

    def create_multipart_upload(self, Bucket: str, Key: str, **kwargs) -> dict:
        self._record("create_multipart_upload", dict(Bucket=Bucket, Key=Key, **kwargs))
        with self._lock:
            upload_id = f"upload-{next(self._ids)}"
            self.uploads[upload_id] = {
                "bucket": Bucket,
                "key": Key,
                "initiated": datetime(2024, 1, 1, tzinfo=timezone.utc),
                "parts": {},
                "encryption": kwargs.get("ServerSideEncryption"),
            }
        return {"Bucket": Bucket, "Key": Key, "UploadId": upload_id}

    def upload_part(
        self,
        Bucket: str,
        Key: str,
        UploadId: str,
        PartNumber: int,
        Body: Any,
        ContentLength: int,
    ) -> dict:
        self._record("upload_part", dict(Bucket=Bucket, Key=Key, UploadId=UploadId, PartNumber=PartNumber))
        data = Body.read()
        if len(data) != ContentLength:
            raise client_error(
                "IncompleteBody",
                "You did not provide the number of bytes specified by the Content-Length HTTP header.",
                400,
                "UploadPart",
            )
        etag = f'"{hashlib.md5(data).hexdigest()}"'
        with self._lock:
            upload = self._get_upload(Bucket, Key, UploadId, "UploadPart")
            upload["parts"][PartNumber] = {
                "etag": etag,
                "size": len(data),
                "last_modified": datetime(2024, 1, 1, 0, 0, PartNumber, tzinfo=timezone.utc),
            }
        return {"ETag": etag}

    def complete_multipart_upload(
        self,
        Bucket: str,
        Key: str,
        UploadId: str,
        MultipartUpload: dict,
    ) -> dict:
        self._record(
            "complete_multipart_upload",
            dict(Bucket=Bucket, Key=Key, UploadId=UploadId, MultipartUpload=MultipartUpload),
        )
        with self._lock:
            upload = self._get_upload(Bucket, Key, UploadId, "CompleteMultipartUpload")
            parts = MultipartUpload["Parts"]
            numbers = [part["PartNumber"] for part in parts]
            if numbers != sorted(set(numbers)):
                raise client_error(
                    "InvalidPartOrder",
                    "The list of parts was not in ascending order.",
                    400,
                    "CompleteMultipartUpload",
                )
            for part in parts:
                stored = upload["parts"].get(part["PartNumber"])
                if stored is None or stored["etag"] != part["ETag"]:
                    raise client_error(
                        "InvalidPart",
                        "One or more of the specified parts could not be found.",
                        400,
                        "CompleteMultipartUpload",
                    )
            etag = f'"{hashlib.md5("".join(p["ETag"] for p in parts).encode()).hexdigest()}-{len(parts)}"'
            self.objects[(Bucket, Key)] = {"etag": etag}
            del self.uploads[UploadId]
        return {
            "Location": f"http://fake/{Bucket}/{Key}",
            "Bucket": Bucket,
            "Key": Key,
            "ETag": etag,
        }

    def list_multipart_uploads(
        self,
        Bucket: str,
        Prefix: str = "",
        KeyMarker: str = "",
        UploadIdMarker: str = "",
        Delimiter: Optional[str] = None,
        MaxUploads: int = 1000,
    ) -> dict:
        self._record("list_multipart_uploads", dict(
            Bucket=Bucket, Prefix=Prefix, KeyMarker=KeyMarker,
            UploadIdMarker=UploadIdMarker, Delimiter=Delimiter, MaxUploads=MaxUploads,
        ))
        with self._lock:
            entries = sorted(
                (upload["key"], upload_id, upload)
                for upload_id, upload in self.uploads.items()
                if upload["bucket"] == Bucket and upload["key"].startswith(Prefix)
            )

        if KeyMarker:
            if UploadIdMarker:
                entries = [e for e in entries if (e[0], e[1]) > (KeyMarker, UploadIdMarker)]
            else:
                entries = [e for e in entries if e[0] > KeyMarker]

        uploads = []
        prefixes: list[str] = []
        for key, upload_id, upload in entries:
            if Delimiter and Delimiter in key[len(Prefix):]:
                common = key[: len(Prefix) + key[len(Prefix):].index(Delimiter) + 1]
                if common not in prefixes:
                    prefixes.append(common)
                continue
            uploads.append((key, upload_id, upload))

        page = uploads[:MaxUploads]
        response: dict[str, Any] = {
            "Bucket": Bucket,
            "IsTruncated": len(uploads) > MaxUploads,
            "Uploads": [
                {
                    "Key": key,
                    "UploadId": upload_id,
                    "Initiated": upload["initiated"],
                    "StorageClass": "STANDARD",
                }
                for key, upload_id, upload in page
            ],
        }
        if prefixes:
            response["CommonPrefixes"] = [{"Prefix": p} for p in prefixes]
        if response["IsTruncated"]:
            response["NextKeyMarker"] = page[-1][0]
            response["NextUploadIdMarker"] = page[-1][1]
        return response

    def list_parts(
        self,
        Bucket: str,
        Key: str,
        UploadId: str,
        PartNumberMarker: int = 0,
        MaxParts: int = 1000,
    ) -> dict:
        self._record("list_parts", dict(
            Bucket=Bucket, Key=Key, UploadId=UploadId,
            PartNumberMarker=PartNumberMarker, MaxParts=MaxParts,
        ))
        with self._lock:
            upload = self._get_upload(Bucket, Key, UploadId, "ListParts")
            numbers = sorted(n for n in upload["parts"] if n > PartNumberMarker)
            parts = {n: dict(upload["parts"][n]) for n in numbers}

        page = numbers[:MaxParts]
        truncated = len(numbers) > MaxParts
        response: dict[str, Any] = {
            "Bucket": Bucket,
            "Key": Key,
            "UploadId": UploadId,
            "IsTruncated": truncated,
            "Parts": [
                {
                    "PartNumber": n,
                    "ETag": parts[n]["etag"],
                    "Size": parts[n]["size"],
                    "LastModified": parts[n]["last_modified"],
                }
                for n in page
            ],
        }
        if truncated:
            response["NextPartNumberMarker"] = page[-1]
        return response

    def abort_multipart_upload(self, Bucket: str, Key: str, UploadId: str) -> dict:
        self._record("abort_multipart_upload", dict(Bucket=Bucket, Key=Key, UploadId=UploadId))
        with self._lock:
            self._get_upload(Bucket, Key, UploadId, "AbortMultipartUpload")
            del self.uploads[UploadId]
        return {}


@pytest.fixture
def fake_s3() -> FakeS3Client:
    """Create an empty in-memory S3 service."""
    return FakeS3Client()


@pytest.fixture
def driver(fake_s3: FakeS3Client) -> MultipartUploadDriver:
    """Create a driver bound to the in-memory service."""
    return MultipartUploadDriver(fake_s3)


@pytest.fixture
def session(driver: MultipartUploadDriver) -> UploadSession:
    """Initiate an upload on the in-memory service."""
    return driver.initiate("test-bucket", "big.bin")
