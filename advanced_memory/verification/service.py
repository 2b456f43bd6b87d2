"""Verification service contract."""

from abc import ABC, abstractmethod
from collections.abc import Iterable

from advanced_memory.core.types import VerificationResult


class VerificationService(ABC):
    """Service for fact verification against trusted sources."""

    @abstractmethod
    async def verify(
        self,
        statement: str,
        sources: Iterable[str] | None = None,
    ) -> VerificationResult:
        """
        Verify a factual statement against trusted sources.

        Args:
            statement: The statement to verify
            sources: Optional list of sources to check against

        Returns:
            The verification result
        """

    @abstractmethod
    async def get_confidence_score(self, claim: str) -> float:
        """
        Get a confidence score for a factual claim.

        Args:
            claim: The claim to evaluate

        Returns:
            A confidence score between 0 and 1
        """
