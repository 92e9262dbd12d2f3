from __future__ import annotations

from dataclasses import dataclass
from typing import Union


@dataclass(frozen=True)
class NetworkError:
    """No connectivity, and nothing cached to fall back on."""

    message: str


@dataclass(frozen=True)
class HttpError:
    """Any failure that is not connectivity shaped."""

    message: str


ApiError = Union[NetworkError, HttpError]
