"""VisionClient - abstract base for image description backends."""
from abc import ABC, abstractmethod

from alttext.models import GenerationRequest, GenerationResult


class VisionClient(ABC):
    @abstractmethod
    async def generate(self, request: GenerationRequest) -> GenerationResult:
        """Describe the request's image. API failures come back as GenerationError, never raised."""
        ...
