# Copyright (c) 2023 Nordic Semiconductor ASA
# SPDX-License-Identifier: Apache-2.0

from typing import Optional, Union
from pathlib import Path


class H2sError(Exception):
    """Base class for errors raised by the library."""

    ...


class HeaderParseError(H2sError):
    """Raised when a header file cannot be read or contains an unusable address literal."""

    def __init__(
        self,
        source: Union[str, Path],
        explanation: str,
        line_number: Optional[int] = None,
    ) -> None:
        location = f"{source}:{line_number}" if line_number is not None else f"{source}"
        super().__init__(f"Error parsing header {location}: {explanation}")


class DocumentationError(H2sError, ValueError):
    """Raised when a documentation-derived peripheral record is invalid."""

    def __init__(self, source: Union[str, Path], explanation: str) -> None:
        super().__init__(f"Invalid peripheral record in {source}: {explanation}")
