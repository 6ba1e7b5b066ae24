"""Mapping entry model for upstream category to purpose translation."""

from dataclasses import dataclass
from typing import Optional

from .regulation import ConsentRegulation, VendorListMode


@dataclass(frozen=True)
class MappingEntry:
    """
    One configured translation rule.

    Attributes:
        category_id: Upstream consent category identifier (table key)
        purpose: Target purpose name on the host consent record
        regulation: Regulation the purpose is recorded under
        vendor_type: Vendor list to query, None for plain category groups
    """
    category_id: str
    purpose: str
    regulation: ConsentRegulation
    vendor_type: Optional[VendorListMode] = None

    def __post_init__(self):
        if not self.category_id:
            raise ValueError("MappingEntry requires a category_id")
        if not self.purpose:
            raise ValueError("MappingEntry requires a purpose")

    @classmethod
    def create(
        cls,
        category_id: str,
        purpose: str,
        vendor_type: Optional[VendorListMode] = None,
    ) -> "MappingEntry":
        """Create an entry, deriving the regulation from the purpose."""
        return cls(
            category_id=category_id,
            purpose=purpose,
            regulation=ConsentRegulation.for_purpose(purpose),
            vendor_type=vendor_type,
        )

    @property
    def is_vendor_scoped(self) -> bool:
        """Whether status must be queried per vendor list."""
        return self.vendor_type is not None

    def to_dict(self) -> dict:
        """Convert to dictionary for logging."""
        return {
            "category_id": self.category_id,
            "purpose": self.purpose,
            "regulation": self.regulation.name,
            "vendor_type": self.vendor_type.value if self.vendor_type else None,
        }
