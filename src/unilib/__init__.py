"""University library circulation core.

Borrowing and returning of physical copies with late fines, the PDF copy
request workflow, and the activity log and user notifications both write.
"""

__version__ = "0.1.0"

from .errors import LibraryError

__all__ = ["__version__", "LibraryError"]
