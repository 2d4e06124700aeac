"""
In-memory spreadsheet source.

Purpose:
- Lets the proxy run and be tested without a Google Sheets document.
- Does NOT make network calls.

Each sheet is given as a title plus a grid (header row first). Load counters
let tests assert how much sheet I/O a call performed.
"""

from typing import Dict, List, Sequence

from src.integrations.contracts.interfaces import Sheet, SpreadsheetSource


class InMemorySheet(Sheet):
    def __init__(self, title: str, grid: Sequence[Sequence[str]]):
        self._title = title
        self._grid = [list(row) for row in grid]
        self.loads = 0

    @property
    def title(self) -> str:
        return self._title

    async def load_header(self) -> List[str]:
        self.loads += 1
        return list(self._grid[0]) if self._grid else []

    async def load_rows(self) -> List[List[str]]:
        self.loads += 1
        return [list(row) for row in self._grid[1:]]


class InMemorySpreadsheet(SpreadsheetSource):
    def __init__(self, sheets: Dict[str, Sequence[Sequence[str]]]):
        self.sheets = [InMemorySheet(title, grid) for title, grid in sheets.items()]
        self.list_calls = 0

    async def list_sheets(self) -> List[Sheet]:
        self.list_calls += 1
        return list(self.sheets)

    @property
    def sheet_loads(self) -> int:
        return sum(sheet.loads for sheet in self.sheets)
