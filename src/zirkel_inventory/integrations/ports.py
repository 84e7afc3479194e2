"""
Ports for the remote stores the pipeline talks to.

The inventory spreadsheet and the proposal slide deck are opaque remote
services. The pipeline depends only on these interfaces; the Google clients
implement them for production and the test suite substitutes in-memory
doubles. Implementations must raise ``RemoteServiceError`` with an
``ErrorKind`` already decided, so callers never inspect error messages.
"""

from typing import Any, Dict, List, Protocol

Rows = List[List[Any]]


class TabularStore(Protocol):
    """Range-addressed access to a spreadsheet (A1 notation, e.g. "INVENTARIO!A2:S2")."""

    def read(self, range_: str) -> Rows:
        """Return the rows in the range; trailing empty rows/cells may be omitted."""
        ...

    def write(self, range_: str, rows: Rows) -> Dict[str, Any]:
        """Overwrite the cells in the range with ``rows``."""
        ...

    def append(self, range_: str, rows: Rows) -> Dict[str, Any]:
        """Insert ``rows`` after the last row of the table found in the range."""
        ...


class DeckStore(Protocol):
    """Slide-deck operations needed to assemble a proposal."""

    def copy_template(self, template_id: str, name: str, folder_id: str) -> str:
        """Copy the template deck into a folder and return the new presentation ID."""
        ...

    def get_presentation(self, presentation_id: str) -> Dict[str, Any]:
        """Return the presentation resource (slides and page elements)."""
        ...

    def batch_update(self, presentation_id: str, requests: List[Dict[str, Any]]) -> Dict[str, Any]:
        """Apply a batch of element mutation requests."""
        ...
