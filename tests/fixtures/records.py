"""Record types shared across the test suite."""

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Optional

from etl_toolbox.mapping import ColumnBinding, FieldSpec, RecordType, ValueType


@dataclass
class Sale:
    region: str = ""
    amount: int = 0
    price: Optional[Decimal] = None
    sold_on: Optional[date] = None


SALE = RecordType(
    name="Sale",
    factory=Sale,
    fields=(
        FieldSpec.attribute(
            "region", ValueType.STRING, binding=ColumnBinding.by_name("Region")
        ),
        FieldSpec.attribute(
            "amount", ValueType.INTEGER, binding=ColumnBinding.by_name("Amount")
        ),
        FieldSpec.attribute(
            "price",
            ValueType.DECIMAL,
            nullable=True,
            binding=ColumnBinding.by_label("C"),
        ),
        FieldSpec.attribute(
            "sold_on",
            ValueType.DATE,
            nullable=True,
            binding=ColumnBinding.by_name("Sold On"),
        ),
    ),
)
