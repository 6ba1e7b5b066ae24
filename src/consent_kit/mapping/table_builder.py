"""
Mapping table builder.

Turns the consent group settings into a lookup table keyed by upstream
category id. Groups are processed in a fixed order:
mobile -> IAB -> Google -> general, and a later group overwrites an
earlier one when both map the same category.

A misconfigured group never fails the kit; it only reduces coverage.
"""

import json
from collections.abc import Iterator, Mapping
from typing import Any, Optional

from ..config.kit_settings import KitSettings
from ..logging import mapping_logger
from ..models.mapping_entry import MappingEntry
from ..models.regulation import VendorListMode
from ..state.consent_state import canonicalize_purpose
from ..utils.constants import (
    GENERAL_CONSENT_GROUPS,
    GOOGLE_CONSENT_GROUPS,
    IAB_CONSENT_GROUPS,
    MAPPING_MAP_FIELD,
    MAPPING_VALUE_FIELD,
    MOBILE_CONSENT_GROUPS,
)

logger = mapping_logger()

# Setting key -> vendor list, in processing order
CONSENT_GROUP_VENDORS: tuple[tuple[str, Optional[VendorListMode]], ...] = (
    (MOBILE_CONSENT_GROUPS, None),
    (IAB_CONSENT_GROUPS, VendorListMode.IAB),
    (GOOGLE_CONSENT_GROUPS, VendorListMode.GOOGLE),
    (GENERAL_CONSENT_GROUPS, VendorListMode.GENERAL),
)


class MappingParseError(ValueError):
    """Raised when a consent group cannot be read as an array of objects."""


class MappingTable(Mapping):
    """
    Ordered category id -> MappingEntry table.

    Writable while it is being built, read-only once frozen.
    """

    def __init__(self):
        self._entries: dict[str, MappingEntry] = {}
        self._frozen = False

    def put(self, entry: MappingEntry) -> None:
        """Insert or overwrite the entry for its category."""
        if self._frozen:
            raise RuntimeError("Mapping table is frozen")
        self._entries[entry.category_id] = entry

    def freeze(self) -> "MappingTable":
        self._frozen = True
        return self

    @property
    def frozen(self) -> bool:
        return self._frozen

    def copy(self) -> "MappingTable":
        """Writable copy with the same entries in the same order."""
        table = MappingTable()
        table._entries = dict(self._entries)
        return table

    def __getitem__(self, category_id: str) -> MappingEntry:
        return self._entries[category_id]

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def to_dict(self) -> dict[str, dict]:
        """Convert to dictionary for logging."""
        return {key: entry.to_dict() for key, entry in self._entries.items()}


class MappingTableBuilder:
    """Builds a MappingTable from consent group settings."""

    def __init__(self):
        self.table = MappingTable()

    def build(self, settings: KitSettings | Mapping[str, Any]) -> MappingTable:
        """
        Process every consent group into a new table and return it frozen.

        Each call starts from an empty table, so one builder can be reused
        and earlier results are left untouched.

        Args:
            settings: KitSettings or the raw settings mapping from the host

        Returns:
            The populated, read-only mapping table
        """
        if not isinstance(settings, KitSettings):
            settings = KitSettings.from_dict(settings)

        self.table = MappingTable()
        for group_key, vendor_type in CONSENT_GROUP_VENDORS:
            added = self.process_mappings(settings.get_group(group_key), vendor_type)
            if added:
                logger.debug(
                    "Consent group loaded",
                    group=group_key,
                    entries=added,
                )

        logger.info("Consent mapping built", entries=len(self.table))
        return self.table.freeze()

    def process_mappings(
        self,
        setting: Optional[str],
        vendor_type: Optional[VendorListMode] = None,
    ) -> int:
        """
        Add the entries of one consent group to the table.

        Args:
            setting: JSON array of {"value": ..., "map": ...} objects
            vendor_type: Vendor list for the group, None for mobile groups

        Returns:
            Number of entries written to the table
        """
        if not setting:
            return 0

        try:
            rows = parse_consent_group(setting)
        except MappingParseError as e:
            logger.error(
                "Could not parse consent mapping",
                vendor_type=vendor_type.value if vendor_type else None,
                error=str(e),
                exc_info=True,
            )
            return 0

        if self.table.frozen:
            self.table = self.table.copy()

        added = 0
        for index, row in enumerate(rows):
            entry = self._entry_from_row(index, row, vendor_type)
            if entry is not None:
                self.table.put(entry)
                added += 1
        return added

    def _entry_from_row(
        self,
        index: int,
        row: dict[str, Any],
        vendor_type: Optional[VendorListMode],
    ) -> Optional[MappingEntry]:
        category_id = _opt_string(row, MAPPING_VALUE_FIELD)
        purpose = _opt_string(row, MAPPING_MAP_FIELD)

        if not category_id:
            logger.warning(
                "Consent mapping is missing the consent platform side",
                index=index,
                row=row,
            )
            return None
        if not purpose:
            logger.warning(
                "Consent mapping is missing the purpose side",
                index=index,
                row=row,
            )
            return None
        if canonicalize_purpose(purpose) is None:
            logger.warning(
                "Consent mapping purpose is blank",
                index=index,
                row=row,
            )
            return None

        return MappingEntry.create(category_id, purpose, vendor_type)


def parse_consent_group(setting: str) -> list[dict[str, Any]]:
    """
    Parse one consent group setting.

    Raises:
        MappingParseError: the text is not a JSON array of objects
    """
    try:
        rows = json.loads(setting)
    except (ValueError, TypeError) as e:
        raise MappingParseError(f"Invalid JSON: {e}") from e
    except RecursionError as e:
        raise MappingParseError("JSON is nested too deeply") from e

    if not isinstance(rows, list):
        raise MappingParseError(
            f"Expected a JSON array, got {type(rows).__name__}"
        )
    for index, row in enumerate(rows):
        if not isinstance(row, dict):
            raise MappingParseError(
                f"Element {index} is {type(row).__name__}, expected an object"
            )
    return rows


def build_mapping_table(settings: KitSettings | Mapping[str, Any]) -> MappingTable:
    """Build a fresh mapping table from settings."""
    return MappingTableBuilder().build(settings)


def _opt_string(row: dict[str, Any], field: str) -> str:
    # Missing and null both read as empty
    value = row.get(field)
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)
