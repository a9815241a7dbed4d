"""
Exceptions raised by the hydration diff engine.

The analysis functions prefer degrading to empty results over raising; these
exceptions are reserved for inputs of the wrong type altogether.
"""


class HydradiffError(Exception):
    """Base exception for hydradiff operations."""


class InvalidInputError(HydradiffError, TypeError):
    """
    Raised when an argument is not of the expected structural type.

    Attributes:
        argument: Name of the offending argument
    """

    def __init__(self, argument: str, message: str | None = None):
        self.argument = argument
        super().__init__(message or f"Invalid value for argument '{argument}'")
