from __future__ import annotations

import csv
import json
import sys
from typing import Dict, Optional, Sequence, TextIO, Type

from .color import PLAIN, Palette
from .errors import UnknownExportFormat
from .model import Bookmark
from .pager import DEFAULT_PAGE_SIZE, Pager

CSV_FIELDS = ["id", "title", "url", "folder", "path", "date_added"]


class Exporter:
    """Writes a bookmark collection to ``output`` in one format."""

    def __init__(self, bookmarks: Sequence[Bookmark], output: Optional[TextIO] = None, **_options):
        self.bookmarks = bookmarks
        self.output = output or sys.stdout

    def export(self):
        raise NotImplementedError(f"{type(self).__name__} must implement export()")


class StdoutExporter(Exporter):
    """The default: interactive paged display."""

    def __init__(
        self,
        bookmarks: Sequence[Bookmark],
        output: Optional[TextIO] = None,
        source=None,
        page_size: Optional[int] = None,
        palette: Palette = PLAIN,
        **options,
    ):
        super().__init__(bookmarks, output, **options)
        self.source = source
        self.page_size = DEFAULT_PAGE_SIZE if page_size is None else page_size
        self.palette = palette

    def export(self):
        pager = Pager(self.bookmarks, page_size=self.page_size)
        return pager.interactive(source=self.source, output=self.output, palette=self.palette)


class JsonExporter(Exporter):
    def export(self) -> None:
        rows = [_serialize(b) for b in self.bookmarks]
        self.output.write(json.dumps(rows, indent=2, ensure_ascii=False) + "\n")


class CsvExporter(Exporter):
    def export(self) -> None:
        w = csv.DictWriter(self.output, fieldnames=CSV_FIELDS, lineterminator="\n")
        w.writeheader()
        for b in self.bookmarks:
            row = _serialize(b)
            row["path"] = b.full_path
            w.writerow({k: "" if v is None else v for k, v in row.items()})


FORMATS: Dict[str, Type[Exporter]] = {
    "stdout": StdoutExporter,
    "json": JsonExporter,
    "csv": CsvExporter,
}


def exporter_for(fmt: str, bookmarks: Sequence[Bookmark], **options) -> Exporter:
    cls = FORMATS.get(str(fmt).strip().lower())
    if cls is None:
        raise UnknownExportFormat(str(fmt))
    return cls(bookmarks, **options)


def _serialize(b: Bookmark) -> dict:
    return {
        "id": b.id,
        "title": b.title,
        "url": b.url,
        "folder": b.folder,
        "path": list(b.path) or None,
        "date_added": b.date_added.isoformat() if b.date_added else None,
    }
