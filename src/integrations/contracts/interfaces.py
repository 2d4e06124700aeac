from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


# ---------------------------------------------------------------------------
# Request seen by the augmentation layer
# ---------------------------------------------------------------------------

@dataclass
class AugmentationRequest:
    method: str
    path: str                            # normalized, without query string
    body: Optional[Any] = None           # parsed JSON body (POST only)
    headers: Dict[str, str] = field(default_factory=dict)


# ---------------------------------------------------------------------------
# Abstract spreadsheet interface
# ---------------------------------------------------------------------------

class Sheet(ABC):
    """One bank's rate table: insurers as columns, row types as rows."""

    @property
    @abstractmethod
    def title(self) -> str:
        """Sheet title as written in the document (a bank name)."""

    @abstractmethod
    async def load_header(self) -> List[str]:
        """Header row. The first cell is reserved; the rest are insurer names."""

    @abstractmethod
    async def load_rows(self) -> List[List[str]]:
        """Data rows below the header, each a list of raw cell strings."""


class SpreadsheetSource(ABC):
    """Every spreadsheet client must implement this interface."""

    @abstractmethod
    async def list_sheets(self) -> List[Sheet]:
        """Return the document's sheets in document order."""
