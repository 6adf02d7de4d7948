from enum import Enum


class GrantType(str, Enum):
    authorization_code = "authorization_code"
    refresh_token = "refresh_token"


class TokenTypeHint(str, Enum):
    access_token = "access_token"
    refresh_token = "refresh_token"


class ResponseType(str, Enum):
    code = "code"
