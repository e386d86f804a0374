"""
Identity lookup package.

Resolves which user and org an OAuth2 access token belongs to by calling the
identity provider's userinfo endpoint, and derives the versioned partner API
URL and instance name from the answer.

- app.constants: Endpoint table, API version and provider error codes.
- app.models: The UserInfo record handed back to callers.
- app.client: IdentityLookupClient with retry and response classification.

Design notes:
- Module import must not perform network calls.
- The client holds no per-call state and is safe to share between threads.
- Use the shared/ utilities for logging, config, retry and errors.
"""

from service_identity.app.client import IdentityLookupClient
from service_identity.app.models import UserInfo

__all__ = ["IdentityLookupClient", "UserInfo"]
