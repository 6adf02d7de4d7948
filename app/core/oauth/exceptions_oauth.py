class OAuthError(Exception):
    """
    Base class of the errors raised by the token lifecycle functions.

    `error` is the OAuth error code returned to the client, see https://datatracker.ietf.org/doc/html/rfc6749#section-5.2
    """

    error = "invalid_grant"
    description = "Invalid grant"

    def __init__(self, description: str | None = None):
        if description is not None:
            self.description = description
        super().__init__(self.description)


class InvalidAuthorizationCodeError(OAuthError):
    description = "Invalid authorization code"


class AuthorizationCodeExpiredError(OAuthError):
    description = "Authorization code expired"


class AuthorizationCodeAlreadyUsedError(OAuthError):
    description = "Authorization code already used"


class ClientMismatchError(OAuthError):
    description = "Client mismatch"


class InvalidClientSecretError(OAuthError):
    error = "invalid_client"
    description = "Invalid client secret"


class RedirectUriMismatchError(OAuthError):
    description = "Redirect URI mismatch"


class InvalidTokenError(OAuthError):
    description = "Invalid refresh token"


class TokenExpiredError(OAuthError):
    description = "Refresh token expired"


class TokenRevokedError(OAuthError):
    description = "Refresh token revoked"
