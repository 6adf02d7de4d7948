from typing import Any

from fastapi import HTTPException


class ContentHTTPException(HTTPException):
    """
    A custom HTTPException allowing to return custom content.

    Instead of returning `{detail: <content>}`, this exception returns the json serialized `<content>`.
    The exception handler registered in `app.app.get_application` renders it.
    """

    def __init__(
        self,
        status_code: int,
        content: dict[str, Any],
        headers: dict[str, str] | None = None,
    ) -> None:
        super().__init__(status_code=status_code, detail=content, headers=headers)
        self.content = content


class AuthHTTPException(ContentHTTPException):
    """
    A custom HTTPException used for OAuth error responses
    """

    def __init__(
        self,
        status_code: int,
        error: str,
        error_description: str,
        headers: dict[str, str] | None = None,
    ) -> None:
        content = {
            "error": error,
            "error_description": error_description,
        }

        super().__init__(status_code=status_code, content=content, headers=headers)


class MissingTZInfoInDatetimeError(TypeError):
    def __init__(self):
        super().__init__("tzinfo info is required for datetime objects")


class DotenvMissingVariableError(Exception):
    def __init__(self, variable_name: str):
        super().__init__(f"{variable_name} should be configured in the dotenv")


class DotenvInvalidVariableError(Exception):
    pass


class MenuConfigurationError(Exception):
    def __init__(self, path: str, reason: str):
        super().__init__(f"Invalid menu configuration in {path}: {reason}")


class InvalidAppStateTypeError(Exception):
    def __init__(self):
        super().__init__(
            "The type of the app state is not a TypedDict or a starlette State object.",
        )
