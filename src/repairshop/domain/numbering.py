"""Sequential document numbering.

Numbers look like ``JOB-00001`` and ``INV-00001``. The next number is found
from the highest existing number, then probed upward until free. Probing alone
cannot stop two concurrent writers from choosing the same value, so the number
columns are unique in the database and ``allocate`` retries the insert when it
collides.
"""

import logging
import re
from typing import Callable, Optional, TypeVar

from repairshop.database.base import Database
from repairshop.domain.errors import ConflictError, DuplicateNumberError

logger = logging.getLogger(__name__)

JOB_PREFIX = "JOB-"
INVOICE_PREFIX = "INV-"
QUOTE_SUFFIX = "-Q"
NUMBER_WIDTH = 5
MAX_NUMBER_ATTEMPTS = 5

T = TypeVar("T")


def format_number(prefix: str, value: int) -> str:
    """Format a sequence value, e.g. ``format_number("JOB-", 7) == "JOB-00007"``."""
    return f"{prefix}{value:0{NUMBER_WIDTH}d}"


def parse_number(prefix: str, number: Optional[str]) -> Optional[int]:
    """Return the numeric suffix of a document number, or None if it has none."""
    if not number:
        return None
    match = re.fullmatch(re.escape(prefix) + r"(\d+)", number)
    if match is None:
        return None
    return int(match.group(1))


def quote_number_for(job_number: str, sequence: int = 1) -> str:
    """Derive a quote number from its job number.

    The first quote of a job is ``{job}-Q``; re-quotes get ``-Q2``, ``-Q3``.
    """
    if sequence <= 1:
        return f"{job_number}{QUOTE_SUFFIX}"
    return f"{job_number}{QUOTE_SUFFIX}{sequence}"


class NumberingService:
    """Service producing collision-free sequential identifiers."""

    def __init__(self, db: Database):
        """Initialize numbering service.

        Args:
            db: Database instance
        """
        self.db = db

    def _next(self, prefix: str, latest: Optional[str], exists: Callable[[str], bool]) -> str:
        value = (parse_number(prefix, latest) or 0) + 1
        candidate = format_number(prefix, value)
        while exists(candidate):
            logger.debug("%s already taken, probing next", candidate)
            value += 1
            candidate = format_number(prefix, value)
        return candidate

    def next_job_number(self) -> str:
        """Return the next free job number."""
        return self._next(JOB_PREFIX, self.db.get_max_job_number(), self.db.job_number_exists)

    def next_invoice_number(self) -> str:
        """Return the next free invoice number."""
        return self._next(
            INVOICE_PREFIX, self.db.get_max_invoice_number(), self.db.invoice_number_exists
        )

    def allocate(self, next_number: Callable[[], str], create: Callable[[str], T]) -> T:
        """Pick a number and run ``create`` with it, retrying on collisions.

        Args:
            next_number: Callable returning a candidate number
            create: Callable inserting the row; must raise DuplicateNumberError
                when the number is already taken

        Returns:
            Whatever ``create`` returns

        Raises:
            ConflictError: If every attempt collided
        """
        for attempt in range(1, MAX_NUMBER_ATTEMPTS + 1):
            number = next_number()
            try:
                return create(number)
            except DuplicateNumberError:
                logger.warning(
                    "Number %s was taken concurrently (attempt %d of %d)",
                    number,
                    attempt,
                    MAX_NUMBER_ATTEMPTS,
                )
        raise ConflictError(f"Could not allocate a unique number after {MAX_NUMBER_ATTEMPTS} attempts")
