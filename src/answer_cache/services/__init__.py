"""Service layer for business logic.

This layer contains the admission decision and orchestration.
Services depend on protocols (interfaces), not concrete implementations,
making them testable and flexible.

Architecture:
    Handler -> Service -> Repository
    (HTTP)  -> (Business) -> (Data Access)
"""

from .answer_service import AnswerService, admits

__all__ = [
    "AnswerService",
    "admits",
]
