"""
Centralized data-table storage for saved estimates.

Provides a lightweight SQLite-backed repository with the normalized tables an
estimate is persisted to:
    - estimates
    - estimate_line_items
    - diagnostics

Line items are stored one row per leaf cost code; the deleted cost-code ids
are kept on the estimate row as a parallel JSON list.
"""

from __future__ import annotations

import enum
import json
import os
import re
import sqlite3
import uuid
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional

import pandas as pd

from .models import LineItem


DEFAULT_DB_PATH_ENV = "ESTIMATE_DB_PATH"

_NUMBER_PATTERN = re.compile(r"^(?:EST-)?(\d+)$", re.IGNORECASE)
_TRAILING_DIGITS = re.compile(r"^(.*?)(\d+)$")


def _utcnow_iso() -> str:
    return datetime.utcnow().replace(microsecond=0).isoformat() + "Z"


def _to_json(value: Any) -> str:
    if value is None:
        return "{}"
    if isinstance(value, str):
        return value
    def _default(o: Any):
        if isinstance(o, enum.Enum):
            return o.value
        if hasattr(o, "to_dict") and callable(getattr(o, "to_dict")):
            return o.to_dict()
        return str(o)
    return json.dumps(value, default=_default, separators=(",", ":"), sort_keys=True)


def next_estimate_number(existing: Iterable[Optional[str]]) -> str:
    """``EST-0001`` style number one past the highest numeric suffix seen."""
    highest = 0
    for number in existing:
        text = str(number or "")
        match = _NUMBER_PATTERN.match(text) or _TRAILING_DIGITS.match(text)
        if match:
            highest = max(highest, int(match.groups()[-1]))
    return f"EST-{highest + 1:04d}"


@dataclass
class EstimateRecord:
    estimate_id: str
    project_id: str
    corporation_id: str
    estimate_number: str
    created_at: str
    removed_cost_code_ids: List[str]


class EstimateTables:
    """
    Thin wrapper around SQLite for estimate tables.

    Uses an in-memory database by default. Pass `db_path`, or set the
    ESTIMATE_DB_PATH environment variable, to persist tables to a file.
    """

    def __init__(self, db_path: Optional[str] = None):
        path = db_path or os.environ.get(DEFAULT_DB_PATH_ENV) or ":memory:"
        self.conn = sqlite3.connect(path)
        self.conn.row_factory = sqlite3.Row
        self._initialize_schema()

    # --------------------------------------------------------------------- schema
    def _initialize_schema(self) -> None:
        cur = self.conn.cursor()
        cur.executescript(
            """
            PRAGMA foreign_keys = ON;

            CREATE TABLE IF NOT EXISTS estimates (
                estimate_id TEXT PRIMARY KEY,
                project_id TEXT NOT NULL,
                corporation_id TEXT NOT NULL,
                estimate_number TEXT NOT NULL,
                estimate_date TEXT,
                status TEXT NOT NULL DEFAULT 'Draft',
                total_amount REAL NOT NULL DEFAULT 0,
                tax_amount REAL NOT NULL DEFAULT 0,
                discount_amount REAL NOT NULL DEFAULT 0,
                final_amount REAL NOT NULL DEFAULT 0,
                removed_cost_code_ids_json TEXT NOT NULL,
                created_at TEXT NOT NULL
            );

            CREATE TABLE IF NOT EXISTS estimate_line_items (
                line_item_id INTEGER PRIMARY KEY AUTOINCREMENT,
                estimate_id TEXT NOT NULL REFERENCES estimates(estimate_id) ON DELETE CASCADE,
                cost_code_id TEXT NOT NULL,
                cost_code_number TEXT,
                cost_code_name TEXT,
                division_id TEXT,
                division_name TEXT,
                parent_cost_code_id TEXT,
                description TEXT,
                is_sub_cost_code INTEGER NOT NULL,
                labor_estimation_type TEXT NOT NULL,
                labor_amount REAL NOT NULL,
                labor_amount_per_room REAL,
                labor_rooms_count REAL,
                labor_amount_per_area REAL,
                labor_area_count REAL,
                material_estimation_type TEXT NOT NULL,
                material_amount REAL NOT NULL,
                material_items_json TEXT NOT NULL,
                contingency_amount REAL NOT NULL,
                total_amount REAL NOT NULL,
                metadata_json TEXT NOT NULL
            );

            CREATE TABLE IF NOT EXISTS diagnostics (
                diagnostic_id TEXT PRIMARY KEY,
                estimate_id TEXT NOT NULL REFERENCES estimates(estimate_id) ON DELETE CASCADE,
                level TEXT NOT NULL,
                message TEXT NOT NULL,
                detail_json TEXT NOT NULL
            );
            """
        )
        self.conn.commit()

    # ------------------------------------------------------------------ estimates
    def estimate_numbers(self, corporation_id: str) -> List[str]:
        cur = self.conn.cursor()
        cur.execute(
            "SELECT estimate_number FROM estimates WHERE corporation_id = ?",
            (corporation_id,),
        )
        return [row["estimate_number"] for row in cur.fetchall()]

    def create_estimate(
        self,
        *,
        project_id: str,
        corporation_id: str,
        estimate_number: Optional[str] = None,
        estimate_date: Optional[str] = None,
        status: str = "Draft",
        removed_cost_code_ids: Iterable[str] = (),
        amounts: Optional[Dict[str, float]] = None,
    ) -> EstimateRecord:
        """
        Insert an estimate header.

        A missing number, or one already used by the corporation, is replaced
        by the next free ``EST-####`` number.
        """
        existing = self.estimate_numbers(corporation_id)
        if not estimate_number or estimate_number in existing:
            estimate_number = next_estimate_number(existing)
        amounts = amounts or {}
        removed = sorted(set(removed_cost_code_ids))
        record = EstimateRecord(
            estimate_id=str(uuid.uuid4()),
            project_id=project_id,
            corporation_id=corporation_id,
            estimate_number=estimate_number,
            created_at=_utcnow_iso(),
            removed_cost_code_ids=removed,
        )
        cur = self.conn.cursor()
        cur.execute(
            """
            INSERT INTO estimates (
                estimate_id, project_id, corporation_id, estimate_number,
                estimate_date, status, total_amount, tax_amount,
                discount_amount, final_amount, removed_cost_code_ids_json, created_at
            )
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                record.estimate_id,
                project_id,
                corporation_id,
                estimate_number,
                estimate_date,
                status,
                float(amounts.get("total_amount", 0.0)),
                float(amounts.get("tax_amount", 0.0)),
                float(amounts.get("discount_amount", 0.0)),
                float(amounts.get("final_amount", 0.0)),
                json.dumps(removed),
                record.created_at,
            ),
        )
        self.conn.commit()
        return record

    def update_removed_ids(self, estimate_id: str, removed_cost_code_ids: Iterable[str]) -> None:
        cur = self.conn.cursor()
        cur.execute(
            "UPDATE estimates SET removed_cost_code_ids_json = ? WHERE estimate_id = ?",
            (json.dumps(sorted(set(removed_cost_code_ids))), estimate_id),
        )
        self.conn.commit()

    def fetch_removed_ids(self, estimate_id: str) -> List[str]:
        cur = self.conn.cursor()
        cur.execute(
            "SELECT removed_cost_code_ids_json FROM estimates WHERE estimate_id = ?",
            (estimate_id,),
        )
        row = cur.fetchone()
        if row is None:
            raise KeyError(f"Estimate {estimate_id} not found")
        return list(json.loads(row["removed_cost_code_ids_json"]))

    # ----------------------------------------------------------------- line items
    def replace_line_items(self, estimate_id: str, items: Iterable[LineItem]) -> int:
        """Swap the estimate's stored line items for ``items``."""
        cur = self.conn.cursor()
        cur.execute("DELETE FROM estimate_line_items WHERE estimate_id = ?", (estimate_id,))
        count = 0
        for item in items:
            cur.execute(
                """
                INSERT INTO estimate_line_items (
                    estimate_id, cost_code_id, cost_code_number, cost_code_name,
                    division_id, division_name, parent_cost_code_id, description,
                    is_sub_cost_code, labor_estimation_type, labor_amount,
                    labor_amount_per_room, labor_rooms_count, labor_amount_per_area,
                    labor_area_count, material_estimation_type, material_amount,
                    material_items_json, contingency_amount, total_amount, metadata_json
                )
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    estimate_id,
                    item.cost_code_id,
                    item.cost_code_number,
                    item.cost_code_name,
                    item.division_id,
                    item.division_name,
                    item.parent_cost_code_id,
                    item.description,
                    int(item.is_sub_cost_code),
                    item.estimation_type.value,
                    item.labor_amount,
                    item.labor_amount_per_room,
                    item.rooms_count,
                    item.labor_amount_per_area,
                    item.area_count,
                    item.material_estimation_type.value,
                    item.material_amount,
                    json.dumps([mi.to_dict() for mi in item.material_items], sort_keys=True),
                    item.contingency_amount,
                    item.total_amount,
                    _to_json(
                        {
                            "contingency_enabled": item.contingency_enabled,
                            "contingency_percentage": item.contingency_percentage,
                        }
                    ),
                ),
            )
            count += 1
        self.conn.commit()
        return count

    def fetch_line_items(self, estimate_id: str) -> List[LineItem]:
        cur = self.conn.cursor()
        cur.execute(
            "SELECT * FROM estimate_line_items WHERE estimate_id = ? ORDER BY line_item_id",
            (estimate_id,),
        )
        items = []
        for row in cur.fetchall():
            record = dict(row)
            record["estimation_type"] = record.pop("labor_estimation_type")
            record["rooms_count"] = record.pop("labor_rooms_count")
            record["area_count"] = record.pop("labor_area_count")
            record["is_sub_cost_code"] = bool(record["is_sub_cost_code"])
            record["material_items"] = json.loads(record.pop("material_items_json"))
            record["metadata"] = json.loads(record.pop("metadata_json"))
            items.append(LineItem.from_dict(record))
        return items

    # ---------------------------------------------------------------- diagnostics
    def add_diagnostic(
        self,
        estimate_id: str,
        *,
        level: str,
        message: str,
        detail: Optional[Dict[str, Any]] = None,
    ) -> str:
        diagnostic_id = str(uuid.uuid4())
        cur = self.conn.cursor()
        cur.execute(
            """
            INSERT INTO diagnostics (diagnostic_id, estimate_id, level, message, detail_json)
            VALUES (?, ?, ?, ?, ?)
            """,
            (diagnostic_id, estimate_id, level, message, _to_json(detail or {})),
        )
        self.conn.commit()
        return diagnostic_id

    # --------------------------------------------------------------------- fetch
    def fetch_dataframe(self, table: str) -> pd.DataFrame:
        df = pd.read_sql_query(f"SELECT * FROM {table}", self.conn)
        return df

    def close(self) -> None:
        self.conn.close()
