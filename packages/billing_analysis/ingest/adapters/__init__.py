"""Reader adapters: spreadsheet files -> header-keyed raw rows."""

from .csv_rows import iter_csv_rows
from .excel_rows import iter_excel_rows

__all__ = ["iter_csv_rows", "iter_excel_rows"]
