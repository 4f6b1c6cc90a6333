from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from .aws import ddb
from .settings import S

@dataclass(frozen=True)
class Tables:
    quotes: Any
    products: Any

T = Tables(
    quotes=ddb.Table(S.quotes_table_name),
    products=ddb.Table(S.products_table_name),
)
