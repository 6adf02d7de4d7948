from enum import Enum


class ScopeType(str, Enum):
    """
    Scopes that can be included in an admin session JWT
    """

    # API allows the admin to call every panel endpoint
    API = "API"
