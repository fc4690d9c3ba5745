from abc import ABC


class BaseCustomException(Exception, ABC):
    """
    Base class for all custom exceptions.
    """

    def __init__(self, message: str | None = None):
        self.message = message or self.get_default_message()
        super().__init__(self.message)

    def get_default_message(self) -> str:
        """
        Return default error message.

        Returns
        -------
        str
            Default error message
        """
        return "error.unknown"

    def get_status_code(self) -> int:
        """
        Return HTTP status code for exception.

        Returns
        -------
        int
            HTTP status code
        """
        return 500


class InvalidInputException(BaseCustomException):
    """Malformed request input (400)."""

    def get_default_message(self) -> str:
        return "error.input.invalid"

    def get_status_code(self) -> int:
        return 400


class InvalidAddressException(InvalidInputException):
    """Invalid address exception."""

    def get_default_message(self) -> str:
        return "error.address.invalid"


class InvalidDateException(InvalidInputException):
    """Invalid date exception."""

    def get_default_message(self) -> str:
        return "error.date.invalid"


class InvalidBlockNumberException(InvalidInputException):
    """Invalid block number exception."""

    def get_default_message(self) -> str:
        return "error.block_number.invalid"


class NotFoundException(BaseCustomException):
    """Not found exception (404)."""

    def get_status_code(self) -> int:
        return 404


class BlockNotFoundException(NotFoundException):
    """No block exists before the requested date."""

    def get_default_message(self) -> str:
        return "error.block.not_found"


class RPCException(BaseCustomException):
    """Ledger node call failed (502)."""

    def get_default_message(self) -> str:
        return "error.rpc.failed"

    def get_status_code(self) -> int:
        return 502


class DecodeException(BaseCustomException):
    """Log payload does not conform to the event schema."""

    def get_default_message(self) -> str:
        return "error.event.decode_failed"


class DeadlineExceededException(BaseCustomException):
    """Request deadline exceeded (504)."""

    def get_default_message(self) -> str:
        return "error.request.deadline_exceeded"

    def get_status_code(self) -> int:
        return 504
