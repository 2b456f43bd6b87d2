"""
Fact verification against trusted sources.

Components:
- VerificationService contract
- GroundingVerifier with a trusted-source registry
"""

from advanced_memory.verification.engine import GroundingVerifier
from advanced_memory.verification.service import VerificationService

__all__ = ["GroundingVerifier", "VerificationService"]
