"""Shared-secret gate for the admin gallery."""

import logging
from dataclasses import dataclass

logger = logging.getLogger(__name__)

INCORRECT_PASSWORD_MESSAGE = "Incorrect password"


@dataclass
class AdminGate:
    """Plain comparison against a configured password; not a security boundary."""

    password: str

    def verify(self, candidate: str | None) -> bool:
        """Return true when the candidate matches the configured password."""
        accepted = bool(candidate) and candidate == self.password
        if not accepted:
            logger.info("Rejected admin password")
        return accepted
