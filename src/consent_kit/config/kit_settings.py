"""
Kit settings.

The host delivers settings as a flat string mapping. Each consent group is
a JSON array encoded as a string:

    mobileConsentGroups:        '[{"value": "C0001", "map": "analytics"}]'
    vendorIABConsentGroups:     ...
    vendorGoogleConsentGroups:  ...
    vendorGeneralConsentGroups: ...

Settings files may also hold the arrays directly as YAML lists.
"""

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional

import yaml

from ..utils.constants import (
    GENERAL_CONSENT_GROUPS,
    GOOGLE_CONSENT_GROUPS,
    IAB_CONSENT_GROUPS,
    MOBILE_CONSENT_GROUPS,
)

# Optional top-level section in a settings file
SETTINGS_SECTION = "consent_kit"


@dataclass
class KitSettings:
    """
    Consent group settings for the kit.

    None means the group is not configured.
    """
    mobile_consent_groups: Optional[str] = None
    iab_consent_groups: Optional[str] = None
    google_consent_groups: Optional[str] = None
    general_consent_groups: Optional[str] = None

    _FIELDS = {
        MOBILE_CONSENT_GROUPS: "mobile_consent_groups",
        IAB_CONSENT_GROUPS: "iab_consent_groups",
        GOOGLE_CONSENT_GROUPS: "google_consent_groups",
        GENERAL_CONSENT_GROUPS: "general_consent_groups",
    }

    def get_group(self, key: str) -> Optional[str]:
        """Get a consent group by its external settings key."""
        if key not in self._FIELDS:
            raise KeyError(f"Unknown consent group: {key}")
        return getattr(self, self._FIELDS[key])

    def to_dict(self) -> dict[str, str]:
        """Convert to the host settings mapping, excluding unset groups."""
        result = {}
        for key, attr in self._FIELDS.items():
            value = getattr(self, attr)
            if value is not None:
                result[key] = value
        return result

    @classmethod
    def from_dict(cls, data: Optional[dict[str, Any]]) -> "KitSettings":
        """Create from a host settings mapping; unknown keys are ignored."""
        data = data or {}
        return cls(**{
            attr: _encode_group(data.get(key))
            for key, attr in cls._FIELDS.items()
        })


def load_kit_settings(path: Path | str) -> KitSettings:
    """
    Load kit settings from a YAML file.

    The groups may sit at the top level or under a 'consent_kit' section.
    """
    with open(path) as f:
        data = yaml.safe_load(f) or {}

    if not isinstance(data, dict):
        raise ValueError(f"Settings file {path} must contain a mapping")
    if SETTINGS_SECTION in data:
        data = data[SETTINGS_SECTION] or {}
    return KitSettings.from_dict(data)


def _encode_group(value: Any) -> Optional[str]:
    # Already-decoded arrays are re-encoded; strings pass through untouched
    if value is None:
        return None
    if isinstance(value, str):
        return value
    if isinstance(value, (list, dict)):
        return json.dumps(value)
    return str(value)
