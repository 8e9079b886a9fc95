# Core package initialization
# Configuration, logging, security and the cross-cutting helpers used by
# every layer

from . import auth_decorators, exceptions, security

__all__ = [
    "auth_decorators",
    "exceptions",
    "security",
]
