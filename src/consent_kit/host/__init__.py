"""Host platform and consent SDK collaborators."""

from .collaborators import (
    ConsentSource,
    ConsentUser,
    IdentityProvider,
    InMemoryIdentity,
    InMemoryUser,
    StaticConsentSource,
)

__all__ = [
    'ConsentSource',
    'ConsentUser',
    'IdentityProvider',
    'InMemoryIdentity',
    'InMemoryUser',
    'StaticConsentSource',
]
