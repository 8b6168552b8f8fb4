"""Console reporter using Rich library for formatted output.

Listings are shown as tables with a hint for fetching the next page;
other results are shown as highlighted JSON.
"""

from typing import Any, Optional

from rich import box
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from mpdebug.models import AbortResult, ListPartsPage, ListUploadsPage
from mpdebug.reporters.base import Reporter, to_jsonable


def _format_time(value) -> str:
    return value.isoformat() if value is not None else "-"


class ConsoleReporter(Reporter):
    """Rich-based reporter for interactive use.

    Args:
        console: Console for results (defaults to stdout)
        error_console: Console for errors (defaults to stderr)
    """

    def __init__(
        self,
        console: Optional[Console] = None,
        error_console: Optional[Console] = None,
    ):
        # Use legacy_windows=True for ASCII-safe output on Windows consoles
        self.console = console or Console(legacy_windows=True)
        self.error_console = error_console or Console(stderr=True, legacy_windows=True)

    def report_result(self, command: str, value: Any) -> None:
        if isinstance(value, ListUploadsPage):
            self._print_uploads(value)
        elif isinstance(value, ListPartsPage):
            self._print_parts(value)
        elif isinstance(value, AbortResult):
            self._print_abort(value)
        elif isinstance(value, str):
            self.console.print(value, markup=False)
        else:
            self.console.print_json(data=to_jsonable(value), indent=2)

    def report_error(self, command: str, error: Exception) -> None:
        self.error_console.print(f"[bold red]{command} failed:[/bold red] {escape(str(error))}", highlight=False)

    def _table(self, title: str) -> Table:
        return Table(
            title=title,
            show_header=True,
            header_style="bold magenta",
            border_style="dim",
            box=box.ASCII,
        )

    def _print_uploads(self, page: ListUploadsPage) -> None:
        table = self._table(f"Incomplete uploads in {page.bucket}")
        table.add_column("Key", style="cyan", no_wrap=True)
        table.add_column("Upload ID", no_wrap=True)
        table.add_column("Initiated")
        table.add_column("Storage class")
        for upload in page.uploads:
            table.add_row(
                escape(upload.key),
                escape(upload.upload_id),
                _format_time(upload.initiated),
                upload.storage_class or "-",
            )
        self.console.print(table)

        for prefix in page.common_prefixes:
            self.console.print(f"[dim]PRE[/dim] {escape(prefix)}", highlight=False)

        if page.next_cursor is not None:
            self.console.print(
                "[yellow]More uploads:[/yellow] "
                f"--keymarker {escape(page.next_cursor.key_marker)} "
                f"--uploadidmarker {escape(page.next_cursor.upload_id_marker)}",
                highlight=False,
            )

    def _print_parts(self, page: ListPartsPage) -> None:
        table = self._table(f"Parts of {page.session.bucket}/{page.session.key}")
        table.add_column("Part", justify="right")
        table.add_column("ETag", style="cyan", no_wrap=True)
        table.add_column("Size", justify="right")
        table.add_column("Last modified")
        for part in page.parts:
            table.add_row(
                str(part.part_number),
                escape(part.etag),
                str(part.size) if part.size is not None else "-",
                _format_time(part.last_modified),
            )
        self.console.print(table)

        if page.next_cursor is not None:
            self.console.print(
                f"[yellow]More parts:[/yellow] --partmarker {page.next_cursor.part_marker}",
                highlight=False,
            )

    def _print_abort(self, result: AbortResult) -> None:
        if result.status:
            self.console.print("[green]Upload aborted[/green]")
        else:
            self.console.print(f"[red]Abort failed:[/red] {escape(result.message or '')}", highlight=False)
