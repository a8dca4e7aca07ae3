"""Event export to interchange formats."""

from .exporter import CSV_HEADERS, EXPORT_FORMATS, CsvRow, Exporter

__all__ = ["CSV_HEADERS", "EXPORT_FORMATS", "CsvRow", "Exporter"]
