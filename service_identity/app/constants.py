"""
Fixed values of the identity provider contract.
"""

from typing import Dict, Tuple

import httpx

PRODUCTION = "production"
SANDBOX = "sandbox"

USERINFO_ENDPOINTS: Dict[str, str] = {
    PRODUCTION: "https://login.salesforce.com/services/oauth2/userinfo",
    SANDBOX: "https://test.salesforce.com/services/oauth2/userinfo",
}

API_VERSION = "43"
VERSION_PLACEHOLDER = "{version}"
PARTNER_URL_KEY = "partner"
HTTPS_PREFIX = "https://"

BAD_TOKEN_ERROR_CODE = "Bad_OAuth_Token"
MISSING_TOKEN_ERROR_CODE = "Missing_OAuth_Token"
WRONG_ORG_ERROR_CODE = "Wrong_Org"
BAD_ID_ERROR_CODE = "Bad_Id"

# Response bodies meaning the token is unusable, keyed by the status they come with
BAD_TOKEN_ERROR_CODES: Dict[int, Tuple[str, ...]] = {
    httpx.codes.FORBIDDEN: (BAD_TOKEN_ERROR_CODE, MISSING_TOKEN_ERROR_CODE, WRONG_ORG_ERROR_CODE),
    httpx.codes.NOT_FOUND: (BAD_ID_ERROR_CODE,),
}

# The provider sometimes reports internal failures as 404 with this in the body
INTERNAL_ERROR_MARKER = "Internal Error"

# Backoff, in seconds
MAX_ATTEMPTS = 10
BACKOFF_INITIAL_INTERVAL = 0.5
BACKOFF_MULTIPLIER = 1.5
BACKOFF_RANDOMIZATION_FACTOR = 0.5
BACKOFF_MAX_INTERVAL = 10.0
BACKOFF_MAX_ELAPSED_TIME = 30.0
