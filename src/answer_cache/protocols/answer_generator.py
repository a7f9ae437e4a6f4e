"""Answer generator protocol.

Defines the interface for the generative model that produces an answer
when the cache has nothing reusable.
"""

from typing import Protocol, runtime_checkable


@runtime_checkable
class AnswerGenerator(Protocol):
    """Protocol for answer generation services."""

    @property
    def model_name(self) -> str:
        """Return the name/identifier of the model."""
        ...

    async def generate(self, query: str) -> str:
        """Generate an answer for ``query``.

        Raises:
            GenerationError: If the model call fails
        """
        ...

    async def close(self) -> None:
        """Release client resources."""
        ...
