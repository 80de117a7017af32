"""Load transaction exports (CSV or JSON) into :class:`Transaction` records.

Rows are validated with pydantic before they reach the engine, so the
analytics functions can assume well-formed input.

CSV header (case-sensitive): ``id, amount, date, category, name`` plus
``merchant_name`` or ``merchantName``. JSON: an array of objects with the same
keys, or an object with a ``transactions`` array.

Amounts keep their sign: negative is an expense. ``$``, thousands separators
and accounting parentheses (``(12.50)``) are accepted.
"""

from __future__ import annotations

import csv
import datetime as dt
import json
from collections.abc import Iterable, Mapping
from decimal import Decimal, InvalidOperation
from os import PathLike
from pathlib import Path
from typing import Any, Literal

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationError, field_validator

from .dates import parse_local_date
from .logging_setup import get_logger
from .models import KnownCharge, Transaction

_logger = get_logger("finance_signals.ingest")


class IngestError(ValueError):
    """A transaction export could not be read or validated."""


def _to_decimal(raw: str) -> Decimal:
    s = raw.strip()
    if not s:
        raise ValueError("amount is empty")
    negative = False
    # Strip sign, currency symbol and accounting parentheses in any order.
    while True:
        changed = False
        if s.startswith("+"):
            s = s[1:].lstrip()
            changed = True
        elif s.startswith("-"):
            negative = True
            s = s[1:].lstrip()
            changed = True
        if s.startswith("$"):
            s = s[1:].lstrip()
            changed = True
        if s.startswith("(") and s.endswith(")") and len(s) >= 2:
            negative = True
            s = s[1:-1].strip()
            changed = True
        if not changed:
            break
    s = s.replace(",", "").strip()
    try:
        d = Decimal(s)
    except InvalidOperation as exc:
        raise ValueError(f"invalid amount: {raw!r}") from exc
    return -abs(d) if negative else d


def _blank_to_none(v: Any) -> Any:
    if isinstance(v, str) and not v.strip():
        return None
    return v


class TransactionIn(BaseModel):
    """One validated export row."""

    model_config = ConfigDict(extra="ignore", str_strip_whitespace=True)

    id: str
    amount: float
    date: dt.date
    category: str | None = None
    name: str = ""
    merchant_name: str | None = Field(
        default=None, validation_alias=AliasChoices("merchant_name", "merchantName")
    )

    @field_validator("id", mode="before")
    @classmethod
    def _id_non_empty(cls, v: Any) -> str:
        s = "" if v is None else str(v).strip()
        if not s:
            raise ValueError("id must be non-empty")
        return s

    @field_validator("amount", mode="before")
    @classmethod
    def _parse_amount(cls, v: Any) -> Any:
        if isinstance(v, str):
            return float(_to_decimal(v))
        return v

    @field_validator("date", mode="before")
    @classmethod
    def _parse_date(cls, v: Any) -> dt.date:
        try:
            return parse_local_date(v)
        except TypeError as exc:
            raise ValueError(str(exc)) from exc

    @field_validator("category", "merchant_name", mode="before")
    @classmethod
    def _blank_optional(cls, v: Any) -> Any:
        return _blank_to_none(v)

    @field_validator("name", mode="before")
    @classmethod
    def _name_default(cls, v: Any) -> Any:
        return "" if v is None else v

    def to_transaction(self) -> Transaction:
        return Transaction(
            id=self.id,
            amount=self.amount,
            date=self.date,
            category=self.category,
            name=self.name,
            merchant_name=self.merchant_name,
        )


class KnownChargeIn(BaseModel):
    model_config = ConfigDict(extra="ignore", str_strip_whitespace=True)

    name: str
    status: Literal["active", "cancelled", "unsure"] = "active"
    id: str | None = None

    def to_known_charge(self) -> KnownCharge:
        return KnownCharge(name=self.name, status=self.status, id=self.id)


def parse_transactions(
    rows: Iterable[Mapping[str, Any]], *, source: str = "<rows>"
) -> list[Transaction]:
    """Validate mapping rows and convert them to transactions.

    Raises :class:`IngestError` naming ``source`` and the 0-based row index of
    the first invalid row.
    """

    out: list[Transaction] = []
    for idx, row in enumerate(rows):
        if not isinstance(row, Mapping):
            raise IngestError(f"{source}: row {idx} is not an object")
        try:
            out.append(TransactionIn.model_validate(dict(row)).to_transaction())
        except ValidationError as exc:
            raise IngestError(f"{source}: invalid transaction at row {idx}: {exc}") from exc
    return out


def _read_json_rows(path: Path) -> list[Mapping[str, Any]]:
    data = json.loads(path.read_text(encoding="utf-8"))
    if isinstance(data, Mapping):
        data = data.get("transactions")
    if not isinstance(data, list):
        raise IngestError(f"{path}: expected a JSON array or an object with 'transactions'")
    return data


def _read_csv_rows(path: Path) -> list[dict[str, str]]:
    with path.open(encoding="utf-8", newline="") as f:
        reader = csv.DictReader(f)
        headers = set(reader.fieldnames or [])
        if not headers:
            raise IngestError(f"{path}: CSV appears to have no header row")
        missing = sorted(h for h in ("id", "amount", "date") if h not in headers)
        if missing:
            raise IngestError(f"{path}: CSV missing required columns: " + ", ".join(missing))
        rows: list[dict[str, str]] = []
        for row in reader:
            # Skip blank lines (all values empty)
            if all((v or "").strip() == "" for k, v in row.items() if k is not None):
                continue
            rows.append({k: (v if v is not None else "") for k, v in row.items() if k is not None})
        return rows


def load_transactions(path: str | PathLike[str]) -> list[Transaction]:
    """Read a ``.json`` or ``.csv`` export into transactions."""

    p = Path(path)
    try:
        if p.suffix.lower() == ".json":
            rows = _read_json_rows(p)
        else:
            rows = _read_csv_rows(p)
    except json.JSONDecodeError as exc:
        raise IngestError(f"{p}: invalid JSON: {exc}") from exc
    except csv.Error as exc:
        raise IngestError(f"{p}: failed to parse CSV: {exc}") from exc

    txns = parse_transactions(rows, source=str(p))
    _logger.debug("loaded %d transactions from %s", len(txns), p)
    return txns


def load_known_charges(path: str | PathLike[str]) -> list[KnownCharge]:
    """Read persisted recurring-charge labels from a JSON array."""

    p = Path(path)
    try:
        data = json.loads(p.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise IngestError(f"{p}: invalid JSON: {exc}") from exc
    if not isinstance(data, list):
        raise IngestError(f"{p}: expected a JSON array of known charges")
    out: list[KnownCharge] = []
    for idx, item in enumerate(data):
        try:
            out.append(KnownChargeIn.model_validate(item).to_known_charge())
        except ValidationError as exc:
            raise IngestError(f"{p}: invalid known charge at index {idx}: {exc}") from exc
    return out


__all__ = [
    "IngestError",
    "KnownChargeIn",
    "TransactionIn",
    "load_known_charges",
    "load_transactions",
    "parse_transactions",
]
