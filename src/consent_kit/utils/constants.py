"""Consent kit constants and configuration keys."""

# Kit name reported to the host platform
KIT_NAME = "OneTrust"

# Configuration keys, one JSON-array string per consent group
MOBILE_CONSENT_GROUPS = "mobileConsentGroups"
IAB_CONSENT_GROUPS = "vendorIABConsentGroups"
GOOGLE_CONSENT_GROUPS = "vendorGoogleConsentGroups"
GENERAL_CONSENT_GROUPS = "vendorGeneralConsentGroups"

# Processing order; later groups win when two define the same category
CONSENT_GROUP_KEYS: tuple[str, ...] = (
    MOBILE_CONSENT_GROUPS,
    IAB_CONSENT_GROUPS,
    GOOGLE_CONSENT_GROUPS,
    GENERAL_CONSENT_GROUPS,
)

# Fields of a single mapping row
MAPPING_VALUE_FIELD = "value"
MAPPING_MAP_FIELD = "map"

# Target purpose that routes a mapping to the CCPA opt-out flag
CCPA_PURPOSE_VALUE = "data_sale_opt_out"

# Field carrying the status in a vendor details object
VENDOR_CONSENT_FIELD = "consent"

# Upstream status codes
STATUS_NOT_COLLECTED = -1
STATUS_NOT_GIVEN = 0
