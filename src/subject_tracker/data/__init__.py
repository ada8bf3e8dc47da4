"""Result export."""

from .csv_writer import CSVWriterThread, csv_header, export_results_csv, result_rows

__all__ = ["CSVWriterThread", "csv_header", "export_results_csv", "result_rows"]
