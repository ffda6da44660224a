"""Version and naming policies."""

from .naming import (
    NAMING_POLICIES,
    DefaultNamingPolicy,
    NamingPolicy,
    NamingPolicyRequest,
    get_naming_policy,
)
from .version import (
    VERSION_POLICIES,
    DefaultVersionPolicy,
    OddEvenVersionPolicy,
    SemVerDevelopmentVersionPolicy,
    VersionPolicy,
    VersionPolicyRequest,
    get_version_policy,
)

__all__ = [
    "NAMING_POLICIES",
    "VERSION_POLICIES",
    "DefaultNamingPolicy",
    "DefaultVersionPolicy",
    "NamingPolicy",
    "NamingPolicyRequest",
    "OddEvenVersionPolicy",
    "SemVerDevelopmentVersionPolicy",
    "VersionPolicy",
    "VersionPolicyRequest",
    "get_naming_policy",
    "get_version_policy",
]
