from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from typing import List, Optional

    from spdxgraph.validator import ValidationError


class SPDXError(Exception):
    """Exception raised by functions defined in spdxgraph."""

    def __init__(self, message: str | List[str], origin: Optional[str] = None):
        """Initialize an SPDXError.

        SPDXError can store several messages and thus be used to propagate them.

        :param message: the exception message
        :param origin: the name of the function, class, or module having raised
            the exception
        """
        super().__init__(message, origin)
        self.origin = origin
        self.messages = []
        if message is not None:
            if isinstance(message, str):
                self.messages.append(message)
            else:
                self.messages.extend(message)

    def __iadd__(self, other: str | List[str] | SPDXError) -> SPDXError:
        """Add messages to the current instance.

        :param other: a message or an SPDXError instance
        """
        if isinstance(other, SPDXError):
            self.messages.extend(other.messages)
        elif isinstance(other, str):
            self.messages.append(other)
        else:
            self.messages.extend(other)
        return self

    def __str__(self) -> str:
        if self.messages:
            error_msg = self.messages[-1]
        else:
            error_msg = self.__class__.__name__
        if self.origin:
            return f"{self.origin}: {error_msg}\n"
        else:
            return error_msg


class FormatError(SPDXError):
    """Input does not conform to the grammar of a concrete format."""

    def __init__(
        self,
        message: str | List[str],
        origin: Optional[str] = None,
        line: Optional[int] = None,
    ):
        """Initialize a FormatError.

        :param message: the exception message
        :param origin: the name of the codec that rejected the input
        :param line: the input line (or row) where the error was found
        """
        if line is not None and isinstance(message, str):
            message = f"line {line}: {message}"
        super().__init__(message, origin)
        self.format = origin
        self.line = line


class MalformedReference(SPDXError):
    """A scoped reference token could not be parsed."""

    def __init__(self, text: str, reason: str, origin: Optional[str] = None):
        super().__init__(f"malformed reference {text!r}: {reason}", origin)
        self.text = text
        self.reason = reason


class UnsupportedVersion(SPDXError):
    """A codec was asked for a schema version it cannot represent."""

    pass


class EncodeError(SPDXError):
    """A document could not be rendered by a codec."""

    pass


class InvalidDocument(SPDXError):
    """A document violates one or more structural invariants.

    All the violations found are stored in :attr:`errors`; :attr:`messages`
    holds their textual form.
    """

    def __init__(
        self, errors: List[ValidationError], origin: Optional[str] = None
    ) -> None:
        super().__init__([str(err) for err in errors], origin)
        self.errors = list(errors)

    def __str__(self) -> str:
        summary = "\n".join(self.messages) or self.__class__.__name__
        if self.origin:
            return f"{self.origin}: {summary}\n"
        return summary
