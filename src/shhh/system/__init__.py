"""
Operating-system capabilities used by setup steps.

Each capability has an interface plus a factory returning the backend for
the running platform; unsupported platforms get a backend that raises
NotSupportedError.
"""

from shhh.system.base import (
    MANAGED_BLOCK_END,
    MANAGED_BLOCK_START,
    Certificate,
    CertStore,
    EnvSource,
    NotSupportedError,
    PathEntry,
    ProfileManager,
    UserEnv,
)
from shhh.system.certstore import new_cert_store
from shhh.system.env import new_user_env
from shhh.system.profile import new_profile_manager

__all__ = [
    "MANAGED_BLOCK_END",
    "MANAGED_BLOCK_START",
    "CertStore",
    "Certificate",
    "EnvSource",
    "NotSupportedError",
    "PathEntry",
    "ProfileManager",
    "UserEnv",
    "new_cert_store",
    "new_profile_manager",
    "new_user_env",
]
