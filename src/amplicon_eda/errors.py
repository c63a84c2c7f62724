# ==================================================================================== #
# EXCEPTIONS
# ==================================================================================== #

class AmpliconEDAError(Exception):
    """Base class for errors raised by the amplicon EDA pipeline."""
    pass


class MissingFileError(AmpliconEDAError, FileNotFoundError):
    """Raised when an input path does not resolve to a file."""
    pass


class ParseError(AmpliconEDAError, ValueError):
    """Raised when a delimited input table is malformed."""
    pass


class AlignmentError(AmpliconEDAError, ValueError):
    """Raised when the input tables cannot be combined: samples without a
    metadata row, or column names shared between tables."""
    pass


class EmptyResultError(AmpliconEDAError, ValueError):
    """Raised on request when filtering leaves no observations."""
    pass


class DegenerateDistanceError(AmpliconEDAError, ValueError):
    """Raised when every pairwise distance between samples is identical."""
    pass


class WorkflowError(AmpliconEDAError):
    """Custom exception for workflow-related errors."""
    pass
