"""
Export layer: deterministic CSV serialization of the ledger.
"""

from .errors import ExportError, EmptyExportError
from .csv_export import CsvExport, CsvExporter, escape_cell

__all__ = [
    "ExportError",
    "EmptyExportError",
    "CsvExport",
    "CsvExporter",
    "escape_cell",
]
