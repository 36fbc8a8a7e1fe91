"""Consistency checks over persisted ledger state."""

from .verifier import StateVerifier, VerificationResult

__all__ = ["StateVerifier", "VerificationResult"]
