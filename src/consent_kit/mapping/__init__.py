"""Consent mapping table."""

from .table_builder import (
    CONSENT_GROUP_VENDORS,
    MappingParseError,
    MappingTable,
    MappingTableBuilder,
    build_mapping_table,
    parse_consent_group,
)

__all__ = [
    'CONSENT_GROUP_VENDORS',
    'MappingParseError',
    'MappingTable',
    'MappingTableBuilder',
    'build_mapping_table',
    'parse_consent_group',
]
