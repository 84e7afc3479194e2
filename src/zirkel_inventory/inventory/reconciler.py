#!/usr/bin/env python3
"""
Inventory Reconciler - upsert media records into the INVENTARIO sheet.

Each ``reconcile()`` call:
1. Reads the whole sheet (header + data rows)
2. Builds the ColumnMap and the protected price boundary from the header
3. Deduplicates the batch by ZirkelKey (last occurrence wins)
4. For each record, in order: synthesizes a key if needed, then updates the
   row holding that key, recycles a blank row, or appends a new row

Cells at or after the first price column are never written. Rows written
before a failure stay written; the rest of the batch is abandoned.

Only one reconcile call may write to a given sheet at a time: there is no
locking, so concurrent calls can claim the same blank row.

Usage:
    reconciler = InventoryReconciler(context.inventory)
    summary = reconciler.reconcile(records)
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Set, Tuple

from zirkel_inventory.core import config
from zirkel_inventory.core.config import RetryPolicy
from zirkel_inventory.core.errors import ErrorCode, ReconciliationError, RemoteServiceError
from zirkel_inventory.core.retry import call_with_backoff
from zirkel_inventory.core.schema import MediaData, Provider
from zirkel_inventory.integrations.ports import Rows, TabularStore
from zirkel_inventory.inventory.columns import (
    RECORD_FIELDS,
    ColumnMap,
    cell_text,
    cell_value,
    column_letter,
    format_coordinates,
)
from zirkel_inventory.inventory.keys import next_sequential_key
from zirkel_inventory.inventory.providers import find_provider_code, get_providers

logger = logging.getLogger(__name__)


@dataclass
class ReconciliationSummary:
    """Acknowledgement of a reconcile call: keys per kind of write."""
    updated: List[str] = field(default_factory=list)
    recycled: List[str] = field(default_factory=list)
    appended: List[str] = field(default_factory=list)
    duplicates: List[str] = field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.updated) + len(self.recycled) + len(self.appended)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "updated": self.updated,
            "recycled": self.recycled,
            "appended": self.appended,
            "duplicates": self.duplicates,
            "total": self.total,
        }


@dataclass
class _ReconcileRun:
    """Working state owned by a single reconcile call."""
    rows: Rows
    columns: ColumnMap
    consumed: Set[int] = field(default_factory=set)
    reserved_keys: Set[str] = field(default_factory=set)
    providers: Optional[List[Provider]] = None

    @property
    def boundary(self) -> int:
        return self.columns.boundary


def deduplicate(records: List[MediaData]) -> Tuple[List[MediaData], List[str]]:
    """
    Keep the last occurrence of every ZirkelKey, in the position it occurred.

    Records without a key are all kept. One warning is logged per key that
    appears more than once.

    Returns:
        (deduplicated records, keys that had duplicates)
    """
    last_index: Dict[str, int] = {}
    counts: Dict[str, int] = {}
    for i, record in enumerate(records):
        if record.clave_zirkel:
            last_index[record.clave_zirkel] = i
            counts[record.clave_zirkel] = counts.get(record.clave_zirkel, 0) + 1

    duplicates = [key for key, count in counts.items() if count > 1]
    for key in duplicates:
        logger.warning(f"Key {key} appears {counts[key]} times in the batch; keeping the last occurrence")

    batch = [
        record for i, record in enumerate(records)
        if not record.clave_zirkel or last_index[record.clave_zirkel] == i
    ]
    return batch, duplicates


class InventoryReconciler:
    """
    Merges MediaData records into the inventory sheet.

    Args:
        store: Tabular store holding the inventory (and provider) sheets
        policy: Backoff policy for rate-limited store calls
        providers: Provider directory for key synthesis; read from the
            PROVEEDORES sheet on first need when omitted
        sheet_name: Inventory sheet name
        read_range: Columns fetched on every read
        price_marker: Header text marking the first protected column
    """

    def __init__(
        self,
        store: TabularStore,
        policy: Optional[RetryPolicy] = None,
        providers: Optional[List[Provider]] = None,
        sheet_name: str = config.INVENTORY_SHEET_NAME,
        read_range: str = config.INVENTORY_READ_RANGE,
        price_marker: str = config.PRICE_COLUMN_MARKER,
    ):
        self.store = store
        self.policy = policy
        self.providers = providers
        self.sheet_name = sheet_name
        self.read_range = read_range
        self.price_marker = price_marker

    # -------------------------------------------------------------------------
    # Store access
    # -------------------------------------------------------------------------

    def _call(self, action: str, func: Callable[..., Any], *args: Any) -> Any:
        try:
            return call_with_backoff(func, *args, policy=self.policy)
        except RemoteServiceError as e:
            logger.error(f"Inventory {action} failed: {e.message}")
            raise ReconciliationError(f"Inventory {action} failed: {e.message}") from e

    def _read_inventory(self) -> _ReconcileRun:
        rows = self._call("read", self.store.read, f"{self.sheet_name}!{self.read_range}")
        if not rows or not rows[0]:
            raise ReconciliationError(f"Sheet {self.sheet_name} has no header row")

        rows = [list(row) for row in rows]
        columns = ColumnMap(rows[0], self.price_marker)
        if columns.writable_index("clave_zirkel") is None:
            raise ReconciliationError(
                f"Sheet {self.sheet_name} has no writable CLAVE column before the price columns"
            )

        logger.debug(
            f"Inventory has {len(rows) - 1} data row(s); "
            f"{len(columns.indices)} mapped column(s); protected from column "
            f"{column_letter(columns.boundary) if columns.boundary < len(columns.header) else '(none)'}"
        )
        return _ReconcileRun(rows=rows, columns=columns, providers=self.providers)

    def _write_row(self, run: _ReconcileRun, index: int, row: List[Any]) -> None:
        sheet_row = index + 1
        last = column_letter(run.boundary - 1)
        range_ = f"{self.sheet_name}!A{sheet_row}:{last}{sheet_row}"
        self._call("write", self.store.write, range_, [row])

        # keep protected cells in the local copy so later lookups see the full row
        previous = run.rows[index] if index < len(run.rows) else []
        run.rows[index] = row + list(previous[run.boundary:])

    def _append_row(self, run: _ReconcileRun, row: List[Any]) -> int:
        range_ = f"{self.sheet_name}!A:{column_letter(run.boundary - 1)}"
        self._call("append", self.store.append, range_, [row])
        run.rows.append(list(row))
        return len(run.rows) - 1

    # -------------------------------------------------------------------------
    # Row logic
    # -------------------------------------------------------------------------

    def _existing_keys(self, run: _ReconcileRun) -> List[str]:
        return [cell_text(run.columns.cell(row, "clave_zirkel")) for row in run.rows[1:]]

    def _synthesize_key(self, run: _ReconcileRun, record: MediaData) -> str:
        if not record.proveedor:
            raise ReconciliationError("Record has neither a ZirkelKey nor a provider")
        if run.providers is None:
            try:
                run.providers = get_providers(self.store, self.policy)
            except RemoteServiceError as e:
                raise ReconciliationError(f"Provider directory read failed: {e.message}") from e

        code = find_provider_code(run.providers, record.proveedor)
        key = next_sequential_key(self._existing_keys(run) + sorted(run.reserved_keys), code)
        logger.info(f"Assigned new key {key} (provider {code})")
        return key

    def _find_row(self, run: _ReconcileRun, key: str) -> Optional[int]:
        for index in range(1, len(run.rows)):
            if cell_text(run.columns.cell(run.rows[index], "clave_zirkel")) == key:
                return index
        return None

    def _find_blank_row(self, run: _ReconcileRun) -> Optional[int]:
        for index in range(1, len(run.rows)):
            if index in run.consumed:
                continue
            row = run.rows[index]
            if cell_text(run.columns.cell(row, "clave_zirkel")):
                continue
            if cell_text(run.columns.cell(row, "proveedor")):
                continue
            return index
        return None

    def build_row(self, run: _ReconcileRun, base_row: List[Any], record: MediaData, key: str) -> List[Any]:
        """
        Lay a record over ``base_row``, truncated or padded to the boundary.

        None fields leave the cell as it was; latitude and longitude go into
        the single coordinates cell, and only when both are present.
        """
        row = list(base_row[:run.boundary])
        row.extend([""] * (run.boundary - len(row)))

        for field_name in RECORD_FIELDS:
            index = run.columns.writable_index(field_name)
            if index is None:
                continue
            value = key if field_name == "clave_zirkel" else getattr(record, field_name, None)
            if value is not None:
                row[index] = cell_value(value)

        coordinates = format_coordinates(record.latitud, record.longitud)
        index = run.columns.writable_index("coordenadas")
        if coordinates and index is not None:
            row[index] = coordinates

        return row

    def _reconcile_record(self, run: _ReconcileRun, record: MediaData, summary: ReconciliationSummary) -> None:
        key = record.clave_zirkel or self._synthesize_key(run, record)

        index = self._find_row(run, key)
        if index is not None:
            row = self.build_row(run, run.rows[index], record, key)
            self._write_row(run, index, row)
            run.consumed.add(index)
            summary.updated.append(key)
            logger.debug(f"Updated {key} at row {index + 1}")
            return

        row = self.build_row(run, [], record, key)
        index = self._find_blank_row(run)
        if index is not None:
            self._write_row(run, index, row)
            run.consumed.add(index)
            summary.recycled.append(key)
            logger.debug(f"Placed {key} in blank row {index + 1}")
            return

        index = self._append_row(run, row)
        run.consumed.add(index)
        summary.appended.append(key)
        logger.debug(f"Appended {key}")

    # -------------------------------------------------------------------------
    # Entry point
    # -------------------------------------------------------------------------

    def reconcile(self, records: List[MediaData]) -> ReconciliationSummary:
        """
        Upsert a batch of records.

        Args:
            records: Upsert-ready records, in batch order

        Returns:
            Summary of updated, recycled and appended keys

        Raises:
            ReconciliationError: On any store failure (after rate-limit
                retries), a missing key column, or an unknown provider
        """
        summary = ReconciliationSummary()
        batch, summary.duplicates = deduplicate(records)

        run = self._read_inventory()
        # explicit keys later in the batch must not be handed out again
        run.reserved_keys = {r.clave_zirkel for r in batch if r.clave_zirkel}
        logger.info(f"Reconciling {len(batch)} record(s) into {self.sheet_name}")

        for position, record in enumerate(batch, 1):
            try:
                self._reconcile_record(run, record, summary)
            except ReconciliationError as e:
                logger.error(
                    f"[{ErrorCode.RECONCILIATION_FAILURE.value}] Stopped at record {position}/{len(batch)}; "
                    f"{summary.total} row(s) already written: {e.message}"
                )
                raise

        logger.info(
            f"Reconciled {summary.total} record(s): {len(summary.updated)} updated, "
            f"{len(summary.recycled)} recycled, {len(summary.appended)} appended"
        )
        return summary
