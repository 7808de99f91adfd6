"""
Error taxonomy for tokens, OAuth linking and storage.

HTTP status mapping lives in the API layer; these exceptions carry no
transport concerns.
"""


class AccountLinkError(Exception):
    """Base class for all service errors"""


class DuplicateRecordError(AccountLinkError):
    """A record with the same primary key already exists"""

    def __init__(self, table: str, record_id: str):
        super().__init__(f"duplicate record in {table}: {record_id}")
        self.table = table
        self.record_id = record_id


class SigningError(AccountLinkError):
    """Token could not be signed (missing secret or signing failure)"""


class InvalidTokenError(AccountLinkError):
    """Token is malformed, expired, uses the wrong algorithm or has a bad signature"""


class OAuthError(AccountLinkError):
    """Base class for failures of the OAuth linking flow"""


class StateMismatchError(OAuthError):
    """Callback state does not match the state issued at login"""


class ExchangeError(OAuthError):
    """Authorization code could not be exchanged for an access token"""


class ProfileFetchError(OAuthError):
    """External profile could not be fetched"""


class DecodeError(OAuthError):
    """External profile payload is malformed"""


class DuplicateIdentityError(AccountLinkError):
    """External identity was inserted concurrently by another request"""

    def __init__(self, identity_id: str):
        super().__init__(f"external identity already exists: {identity_id}")
        self.identity_id = identity_id
