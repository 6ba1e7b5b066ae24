"""
Consent kit for the analytics platform.

Translates consent categories reported by a consent management platform
into the platform's GDPR and CCPA consent state, and keeps it in step
whenever the consent platform announces a change.
"""

from .applicator import ConsentApplicator
from .config import KitSettings, load_kit_settings
from .events import ConsentUpdateBroadcaster
from .kit import ConsentKit, InitializationState, get_initialization_state
from .mapping import MappingTable, MappingTableBuilder, build_mapping_table
from .models import (
    ConsentDecision,
    ConsentRegulation,
    ConsentStatus,
    MappingEntry,
    VendorListMode,
)
from .resolver import ConsentResolver, ResolutionResult
from .state import CCPAConsent, ConsentState, GDPRConsent

__version__ = '1.0.0'

__all__ = [
    'ConsentKit',
    'InitializationState',
    'get_initialization_state',
    'KitSettings',
    'load_kit_settings',
    'MappingTable',
    'MappingTableBuilder',
    'build_mapping_table',
    'ConsentResolver',
    'ResolutionResult',
    'ConsentApplicator',
    'ConsentUpdateBroadcaster',
    'ConsentDecision',
    'ConsentRegulation',
    'ConsentStatus',
    'MappingEntry',
    'VendorListMode',
    'ConsentState',
    'GDPRConsent',
    'CCPAConsent',
]
