"""Versioned fiscal tables (MEI ceiling, DAS amounts) loaded at startup."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field, replace
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Dict, List

from flask import current_app

logger = logging.getLogger(__name__)


class FiscalConfigError(Exception):
    """Raised when fiscal configuration is missing or malformed."""

    pass


@dataclass(frozen=True)
class FiscalTable:
    """MEI parameters for one fiscal year."""

    year: int
    annual_ceiling: Decimal
    near_limit_pct: Decimal
    das_monthly: Dict[str, Decimal] = field(default_factory=dict)
    is_fallback: bool = False

    def das_for(self, category: str) -> Decimal:
        try:
            return self.das_monthly[category]
        except KeyError:
            raise FiscalConfigError(
                f"no DAS amount configured for category {category!r} in fiscal year {self.year}"
            ) from None


class FiscalTables:
    """Registry of fiscal tables keyed by year."""

    def __init__(self, tables: Dict[int, FiscalTable]) -> None:
        if not tables:
            raise FiscalConfigError("no fiscal tables configured")
        self._tables = dict(sorted(tables.items()))

    @property
    def years(self) -> List[int]:
        return list(self._tables)

    def for_year(self, year: int) -> FiscalTable:
        """Return the table for ``year``, or the latest earlier one flagged as a fallback."""
        table = self._tables.get(year)
        if table is not None:
            return table
        earlier = [y for y in self._tables if y < year]
        if not earlier:
            raise FiscalConfigError(f"no fiscal table at or before {year}")
        source = self._tables[max(earlier)]
        logger.warning("No fiscal table for %s; using %s values", year, source.year)
        return replace(source, is_fallback=True)


def _decimal(value, label: str) -> Decimal:
    try:
        return Decimal(str(value))
    except (InvalidOperation, TypeError):
        raise FiscalConfigError(f"invalid decimal for {label}: {value!r}") from None


def parse_fiscal_tables(raw: dict) -> FiscalTables:
    tables: Dict[int, FiscalTable] = {}
    for year_key, entry in raw.items():
        try:
            year = int(year_key)
            das = entry["das_monthly"]
            ceiling = entry["annual_ceiling"]
        except (KeyError, TypeError, ValueError):
            raise FiscalConfigError(f"malformed fiscal table entry {year_key!r}") from None
        tables[year] = FiscalTable(
            year=year,
            annual_ceiling=_decimal(ceiling, f"{year}.annual_ceiling"),
            near_limit_pct=_decimal(entry.get("near_limit_pct", "80"), f"{year}.near_limit_pct"),
            das_monthly={k: _decimal(v, f"{year}.das_monthly.{k}") for k, v in das.items()},
        )
    return FiscalTables(tables)


def load_fiscal_tables(path: str | Path) -> FiscalTables:
    path = Path(path)
    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError:
        raise FiscalConfigError(f"fiscal tables file not found: {path}") from None
    except json.JSONDecodeError as exc:
        raise FiscalConfigError(f"fiscal tables file is not valid JSON: {exc}") from None
    tables = parse_fiscal_tables(raw)
    logger.info("Loaded fiscal tables for years %s from %s", tables.years, path)
    return tables


def get_fiscal_table(year: int) -> FiscalTable:
    return current_app.extensions["fiscal_tables"].for_year(year)
