"""Command-line interface for the multipart upload debugger.

Each ``multipart`` subcommand maps its arguments onto one driver call and
prints the result.

Exit codes: 0 on success (including an abort the service refused),
1 when the service rejects a request, 2 for configuration or input
errors, 130 when interrupted.
"""

import argparse
import os
import sys
from typing import Any, Optional

from mpdebug.config import ConfigError, load_connection
from mpdebug.log import configure_logging
from mpdebug.models import PartsCursor, UploadSession, UploadsCursor
from mpdebug.multipart import (
    InputError,
    MultipartUploadDriver,
    OperationCancelled,
    RemoteError,
    parse_part_arguments,
)
from mpdebug.pagination import (
    iter_part_pages,
    iter_upload_pages,
    merge_part_pages,
    merge_upload_pages,
)
from mpdebug.reporters import ConsoleReporter, JsonReporter, Reporter
from mpdebug.s3_client import build_s3_client

# Delimiter used when --delimiter is given to listuploads
HIERARCHY_DELIMITER = "/"


def _session(args: argparse.Namespace) -> UploadSession:
    return UploadSession(bucket=args.bucket, key=args.key, upload_id=args.upload_id)


def cmd_new(driver: MultipartUploadDriver, args: argparse.Namespace) -> Any:
    return driver.initiate(args.bucket, args.key, encrypt=args.encrypt).upload_id


def cmd_upload(driver: MultipartUploadDriver, args: argparse.Namespace) -> Any:
    try:
        with open(args.file, "rb") as f:
            size = os.fstat(f.fileno()).st_size
            return driver.upload_part(_session(args), args.part_number, f, size)
    except OSError as e:
        raise InputError(f"Cannot read part file '{args.file}': {e}") from e


def cmd_complete(driver: MultipartUploadDriver, args: argparse.Namespace) -> Any:
    parts = parse_part_arguments(args.parts)
    return driver.complete(_session(args), parts)


def cmd_list_uploads(driver: MultipartUploadDriver, args: argparse.Namespace) -> Any:
    cursor = UploadsCursor(key_marker=args.keymarker, upload_id_marker=args.uploadidmarker)
    delimiter = HIERARCHY_DELIMITER if args.delimiter else ""
    if args.all:
        pages = list(iter_upload_pages(
            driver,
            args.bucket,
            prefix=args.prefix,
            cursor=cursor,
            delimiter=delimiter,
            max_uploads=args.maxuploads,
        ))
        return merge_upload_pages(pages)
    return driver.list_uploads(
        args.bucket,
        prefix=args.prefix,
        cursor=cursor,
        delimiter=delimiter,
        max_uploads=args.maxuploads,
    )


def cmd_list_parts(driver: MultipartUploadDriver, args: argparse.Namespace) -> Any:
    cursor = PartsCursor(part_marker=args.partmarker)
    if args.all:
        pages = list(iter_part_pages(driver, _session(args), cursor=cursor, max_parts=args.maxparts))
        return merge_part_pages(pages)
    return driver.list_parts(_session(args), cursor=cursor, max_parts=args.maxparts)


def cmd_abort(driver: MultipartUploadDriver, args: argparse.Namespace) -> Any:
    return driver.abort(_session(args))


def _add_session_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("bucket", help="Bucket name")
    parser.add_argument("key", metavar="object", help="Object name")
    parser.add_argument("upload_id", metavar="uploadID", help="Upload ID returned by 'new'")


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser with all subcommands."""
    parser = argparse.ArgumentParser(
        prog="mpdebug",
        description="Debug multipart uploads against an S3-compatible service",
    )

    parser.add_argument("--endpoint", help="Service host[:port] (env: ENDPOINT)")
    parser.add_argument(
        "--accesskey", "--access-key",
        dest="access_key",
        help="Access key (env: ACCESS_KEY)",
    )
    parser.add_argument(
        "--secretkey", "--secret-key",
        dest="secret_key",
        help="Secret key (env: SECRET_KEY)",
    )
    parser.add_argument(
        "--secure",
        action="store_true",
        help="Use HTTPS (env: SECURE=1)",
    )
    parser.add_argument(
        "--trace",
        action="store_true",
        help="Log requests and responses to stderr (env: TRACE=1)",
    )
    parser.add_argument("--region", help="Signing region (env: REGION, default: us-east-1)")
    parser.add_argument(
        "--timeout",
        metavar="SECONDS",
        help="Connect and read timeout (env: TIMEOUT)",
    )
    parser.add_argument(
        "--format",
        choices=["json", "console"],
        default="json",
        help="Output format (default: json)",
    )

    groups = parser.add_subparsers(dest="group", metavar="{multipart}")
    multipart = groups.add_parser("multipart", help="Multipart related operations")
    multipart.set_defaults(handler=None, help_parser=multipart)
    commands = multipart.add_subparsers(dest="command")

    new = commands.add_parser("new", help="New multipart upload")
    new.add_argument("bucket", help="Bucket name")
    new.add_argument("key", metavar="object", help="Object name")
    new.add_argument("--encrypt", action="store_true", help="Encrypt the object")
    new.set_defaults(handler=cmd_new)

    upload = commands.add_parser("upload", help="Upload part")
    _add_session_args(upload)
    upload.add_argument("part_number", metavar="partNumber", type=int, help="Part number (1-based)")
    upload.add_argument("file", metavar="filePath", help="File holding the part data")
    upload.set_defaults(handler=cmd_upload)

    complete = commands.add_parser("complete", help="Complete multipart")
    _add_session_args(complete)
    complete.add_argument(
        "parts",
        metavar="partNumber.etag",
        nargs="+",
        help="Uploaded parts in the order to assemble them",
    )
    complete.set_defaults(handler=cmd_complete)

    listuploads = commands.add_parser("listuploads", help="List incomplete uploads")
    listuploads.add_argument("bucket", help="Bucket name")
    listuploads.add_argument("--prefix", default="", help="Key prefix")
    listuploads.add_argument("--keymarker", default="", help="Key marker from a previous page")
    listuploads.add_argument("--uploadidmarker", default="", help="Upload ID marker from a previous page")
    listuploads.add_argument(
        "--delimiter",
        action="store_true",
        help=f"Group keys by '{HIERARCHY_DELIMITER}'",
    )
    listuploads.add_argument("--maxuploads", type=int, default=0, help="Maximum uploads per page")
    listuploads.add_argument("--all", action="store_true", help="Follow markers through every page")
    listuploads.set_defaults(handler=cmd_list_uploads)

    listparts = commands.add_parser("listparts", help="List parts")
    _add_session_args(listparts)
    listparts.add_argument("--partmarker", type=int, default=0, help="Part number marker from a previous page")
    listparts.add_argument("--maxparts", type=int, default=0, help="Maximum parts per page")
    listparts.add_argument("--all", action="store_true", help="Follow markers through every page")
    listparts.set_defaults(handler=cmd_list_parts)

    abort = commands.add_parser("abort", help="Abort multipart upload")
    _add_session_args(abort)
    abort.set_defaults(handler=cmd_abort)

    return parser


def parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    """Parse command-line arguments.

    Args:
        argv: Command-line arguments (defaults to sys.argv[1:])

    Returns:
        Parsed arguments namespace
    """
    return build_parser().parse_args(argv)


def create_reporter(args: argparse.Namespace) -> Reporter:
    """Create the reporter selected by --format."""
    if args.format == "console":
        return ConsoleReporter()
    return JsonReporter()


def main(argv: Optional[list[str]] = None) -> int:
    """Main entry point.

    Args:
        argv: Command-line arguments (defaults to sys.argv[1:])

    Returns:
        Exit code: 0 for success, 1 for service errors, 2 for
        configuration or input errors, 130 if interrupted
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    handler = getattr(args, "handler", None)
    if handler is None:
        getattr(args, "help_parser", parser).print_help()
        return 0

    try:
        config = load_connection(
            endpoint=args.endpoint,
            access_key=args.access_key,
            secret_key=args.secret_key,
            secure=args.secure,
            trace=args.trace,
            region=args.region,
            timeout=args.timeout,
        )
    except ConfigError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        parser.print_help(sys.stderr)
        return 2

    configure_logging(trace=config.trace)

    driver = MultipartUploadDriver(build_s3_client(config))
    reporter = create_reporter(args)

    try:
        result = handler(driver, args)
    except InputError as e:
        reporter.report_error(args.command, e)
        return 2
    except RemoteError as e:
        reporter.report_error(args.command, e)
        return 1
    except (OperationCancelled, KeyboardInterrupt):
        print("Interrupted", file=sys.stderr)
        return 130

    reporter.report_result(args.command, result)
    return 0


if __name__ == "__main__":
    sys.exit(main())
