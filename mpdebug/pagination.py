"""Walk listings across pages.

The driver returns a single page per call. These generators re-invoke it
with each returned cursor until the service reports the listing is
exhausted. A truncated page whose cursor is empty or repeats the one just
sent raises ``RemoteError`` rather than refetching the same page forever.
"""

from typing import Generator, Optional

from mpdebug.models import ListPartsPage, ListUploadsPage, PartsCursor, UploadSession, UploadsCursor
from mpdebug.multipart import MultipartUploadDriver, RemoteError


def iter_upload_pages(
    driver: MultipartUploadDriver,
    bucket: str,
    prefix: str = "",
    cursor: Optional[UploadsCursor] = None,
    delimiter: str = "",
    max_uploads: Optional[int] = None,
) -> Generator[ListUploadsPage, None, None]:
    """Yield upload pages starting at ``cursor``."""
    while True:
        page = driver.list_uploads(
            bucket,
            prefix=prefix,
            cursor=cursor,
            delimiter=delimiter,
            max_uploads=max_uploads,
        )
        yield page
        if page.next_cursor is None:
            return
        if page.next_cursor in (cursor, UploadsCursor()):
            raise RemoteError(
                f"Listing is truncated but the next markers do not advance ({page.next_cursor})",
                operation="list_multipart_uploads",
            )
        cursor = page.next_cursor


def iter_part_pages(
    driver: MultipartUploadDriver,
    session: UploadSession,
    cursor: Optional[PartsCursor] = None,
    max_parts: Optional[int] = None,
) -> Generator[ListPartsPage, None, None]:
    """Yield part pages for one session starting at ``cursor``."""
    while True:
        page = driver.list_parts(session, cursor=cursor, max_parts=max_parts)
        yield page
        if page.next_cursor is None:
            return
        if page.next_cursor.part_marker <= (cursor.part_marker if cursor else 0):
            raise RemoteError(
                f"Listing is truncated but the next part marker does not advance ({page.next_cursor.part_marker})",
                operation="list_parts",
            )
        cursor = page.next_cursor


def merge_upload_pages(pages: list[ListUploadsPage]) -> ListUploadsPage:
    """Combine walked pages into one terminal page."""
    merged = ListUploadsPage(bucket=pages[0].bucket)
    for page in pages:
        merged.uploads.extend(page.uploads)
        merged.common_prefixes.extend(page.common_prefixes)
    return merged


def merge_part_pages(pages: list[ListPartsPage]) -> ListPartsPage:
    """Combine walked pages into one terminal page."""
    merged = ListPartsPage(session=pages[0].session)
    for page in pages:
        merged.parts.extend(page.parts)
    return merged
