"""
Barndo Estimator - Line Item Domain Model

Priced estimate rows owned by the feature that produced them.
"""
from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class FormulaResult:
    """
    Snapshot of a formula evaluation.

    Prices here are base (pre-margin) values.
    """

    calculated_price: float
    quantity: float
    total_price: float
    formula: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "calculated_price": self.calculated_price,
            "quantity": self.quantity,
            "total_price": self.total_price,
            "formula": self.formula,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "FormulaResult":
        return cls(
            calculated_price=float(data["calculated_price"]),
            quantity=float(data["quantity"]),
            total_price=float(data["total_price"]),
            formula=data.get("formula", ""),
        )


@dataclass(frozen=True, order=True)
class LineItemKey:
    """
    Two-part line item identity.

    `prefix` names the owning feature (e.g. 'base_building', 'concrete');
    `discriminator` separates items within that feature (e.g. 'primary',
    'house_4'). Replacing a feature removes every key with its prefix.
    """

    prefix: str
    discriminator: str = ""

    def __post_init__(self):
        if not self.prefix or not self.prefix.strip():
            raise ValueError("LineItemKey prefix cannot be empty")

    def __str__(self) -> str:
        if self.discriminator:
            return f"{self.prefix}:{self.discriminator}"
        return self.prefix

    def owned_by(self, prefix: str) -> bool:
        return self.prefix == prefix

    @classmethod
    def parse(cls, value: str) -> "LineItemKey":
        prefix, _, discriminator = value.partition(":")
        return cls(prefix=prefix, discriminator=discriminator)


@dataclass(frozen=True)
class LineItem:
    """
    One priced row of an estimate.

    `unit_price` is customer-facing (margin already applied). `total` is
    derived from quantity and unit price, so it can never drift.
    """

    key: LineItemKey
    category: str
    name: str
    quantity: float
    unit_price: float
    unit_type: str
    catalog_item_id: str | None = None
    formula_result: FormulaResult | None = None

    def __post_init__(self):
        if not self.name or not self.name.strip():
            raise ValueError("LineItem name cannot be empty")
        if self.quantity < 0:
            raise ValueError(f"LineItem quantity cannot be negative: {self.quantity}")
        if self.unit_price < 0:
            raise ValueError(f"LineItem unit price cannot be negative: {self.unit_price}")

    @property
    def id(self) -> str:
        return str(self.key)

    @property
    def total(self) -> float:
        """quantity * unit_price."""
        return self.quantity * self.unit_price

    def signature(self) -> tuple[str, str, float, float, float]:
        """Identity-free comparison tuple (category, name, quantity, unit price, total)."""
        return (self.category, self.name, self.quantity, self.unit_price, self.total)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dict (for JSON serialization)."""
        return {
            "id": self.id,
            "prefix": self.key.prefix,
            "discriminator": self.key.discriminator,
            "category": self.category,
            "name": self.name,
            "quantity": self.quantity,
            "unit_price": self.unit_price,
            "total": self.total,
            "unit_type": self.unit_type,
            "catalog_item_id": self.catalog_item_id,
            "formula_result": self.formula_result.to_dict() if self.formula_result else None,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "LineItem":
        """
        Create LineItem from dict (from a saved breakdown).

        Args:
            data: Dict with line item data

        Returns:
            LineItem instance

        Raises:
            KeyError: If required keys are missing
        """
        if "prefix" in data:
            key = LineItemKey(data["prefix"], data.get("discriminator", ""))
        else:
            key = LineItemKey.parse(data["id"])

        formula_data = data.get("formula_result")
        return cls(
            key=key,
            category=data.get("category") or "Uncategorized",
            name=data["name"],
            quantity=float(data["quantity"]),
            unit_price=float(data["unit_price"]),
            unit_type=data.get("unit_type") or "each",
            catalog_item_id=data.get("catalog_item_id"),
            formula_result=FormulaResult.from_dict(formula_data) if formula_data else None,
        )


def replace_owned(
    items: list[LineItem],
    prefix: str,
    replacements: list[LineItem]
) -> list[LineItem]:
    """
    Remove every item owned by `prefix`, then append `replacements`.

    Items owned by other features keep their relative order.

    Raises:
        ValueError: If a replacement is owned by another feature
    """
    for item in replacements:
        if not item.key.owned_by(prefix):
            raise ValueError(f"Item {item.id} is not owned by '{prefix}'")
    kept = [item for item in items if not item.key.owned_by(prefix)]
    return kept + list(replacements)
