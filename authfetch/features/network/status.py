"""HTTP status code classification."""

from dataclasses import dataclass
from enum import Enum

from authfetch.features.network.constants import (
    HTTP_STATUS_CLIENT_ERROR_MIN,
    HTTP_STATUS_MAX,
    HTTP_STATUS_MIN,
    HTTP_STATUS_OK_MIN,
    HTTP_STATUS_REDIRECTION_MIN,
    HTTP_STATUS_SERVER_ERROR_MIN,
)


class StatusClass(str, Enum):
    """Classification of HTTP status codes used for response branching.

    - INFORMATIONAL: 1xx
    - SUCCESS: 2xx
    - REDIRECTION: 3xx
    - CLIENT_ERROR: 4xx
    - SERVER_ERROR: 5xx
    """

    INFORMATIONAL = "INFORMATIONAL"
    SUCCESS = "SUCCESS"
    REDIRECTION = "REDIRECTION"
    CLIENT_ERROR = "CLIENT_ERROR"
    SERVER_ERROR = "SERVER_ERROR"


@dataclass(frozen=True)
class HttpStatusCode:
    """A numeric HTTP status code classified into exactly one StatusClass.

    Supports matching against a class alone or a class plus exact code,
    either through ``matches`` or structural pattern matching::

        match status:
            case HttpStatusCode(StatusClass.SUCCESS, 204):
                ...
            case HttpStatusCode(StatusClass.SUCCESS):
                ...

    Attributes:
        code: The raw status code.
    """

    __match_args__ = ("status_class", "code")

    code: int

    def __post_init__(self) -> None:
        """Reject codes outside the HTTP status range."""
        if isinstance(self.code, bool) or not isinstance(self.code, int):
            msg = f"HTTP status code must be an int, got {type(self.code).__name__}"
            raise TypeError(msg)
        if not HTTP_STATUS_MIN <= self.code <= HTTP_STATUS_MAX:
            msg = f"Invalid HTTP status code: {self.code}"
            raise ValueError(msg)

    @property
    def status_class(self) -> StatusClass:
        """Get the class this status code belongs to."""
        if self.code >= HTTP_STATUS_SERVER_ERROR_MIN:
            return StatusClass.SERVER_ERROR
        if self.code >= HTTP_STATUS_CLIENT_ERROR_MIN:
            return StatusClass.CLIENT_ERROR
        if self.code >= HTTP_STATUS_REDIRECTION_MIN:
            return StatusClass.REDIRECTION
        if self.code >= HTTP_STATUS_OK_MIN:
            return StatusClass.SUCCESS
        return StatusClass.INFORMATIONAL

    @property
    def is_success(self) -> bool:
        """Check if the status code is in the 2xx class."""
        return self.status_class is StatusClass.SUCCESS

    def is_class(self, status_class: StatusClass) -> bool:
        """Check if the status code belongs to a class.

        Args:
            status_class: The class to compare against.

        Returns:
            True if the code falls within the class.
        """
        return self.status_class is status_class

    def matches(self, status_class: StatusClass, code: int | None = None) -> bool:
        """Check the status code against a class and optionally an exact code.

        Args:
            status_class: The expected class.
            code: The expected exact code, or None to match the class only.

        Returns:
            True if both the class and (when given) the code match.
        """
        if not self.is_class(status_class):
            return False
        return code is None or self.code == code

    def __int__(self) -> int:
        return self.code

    def __str__(self) -> str:
        return f"{self.code} ({self.status_class.value})"
