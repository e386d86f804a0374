"""
Shared utilities for the identity lookup client.

- config: Client settings via pydantic-settings
- logging: Structured logging with request correlation
- errors: Error taxonomy and error responses
- retry: Exponential backoff and retry helper

Do not import from service_* packages into shared/.
"""
