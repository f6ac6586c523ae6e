import logging
import time
from typing import List, Optional, Sequence

import numpy as np
import openai

from ..config import settings
from ..errors import EmbeddingError
from .secrets import get_openai_key

logger = logging.getLogger(__name__)


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """
    Cosine similarity of two vectors.

    Returns 0.0 when either vector has zero norm.

    Raises:
        ValueError: Vectors differ in length
    """
    if len(a) != len(b):
        raise ValueError(f"Vectors must have the same length ({len(a)} != {len(b)})")
    va = np.asarray(a, dtype=float)
    vb = np.asarray(b, dtype=float)
    norm_a = np.linalg.norm(va)
    norm_b = np.linalg.norm(vb)
    if norm_a == 0 or norm_b == 0:
        return 0.0
    return float(np.dot(va, vb) / (norm_a * norm_b))


class EmbeddingClient:
    """OpenAI embeddings. No retry: callers degrade instead."""

    def __init__(
        self,
        model: Optional[str] = None,
        max_chars: Optional[int] = None,
        client: Optional[openai.AsyncOpenAI] = None,
    ) -> None:
        self.model = model or settings.embedding_model
        self.max_chars = max_chars or settings.embedding_max_chars
        self._client = client

    @property
    def client(self) -> openai.AsyncOpenAI:
        # Key is resolved lazily so heuristic-only runs need no credentials
        if self._client is None:
            api_key = get_openai_key()
            self._client = openai.AsyncOpenAI(api_key=api_key)
            logger.info(f"Initialized embedding client: model={self.model}")
        return self._client

    async def embed(self, text: str) -> List[float]:
        """
        Embed text truncated to max_chars.

        Raises:
            EmbeddingError: Provider call failed or credentials are missing
        """
        start = time.time()
        try:
            response = await self.client.embeddings.create(model=self.model, input=text[: self.max_chars])
        except (openai.OpenAIError, ValueError) as e:
            logger.error(f"EMBEDDING_RESPONSE model={self.model} status=error error={str(e)[:100]}")
            raise EmbeddingError(f"Embedding failed: {e}") from e

        duration_ms = int((time.time() - start) * 1000)
        logger.debug(f"EMBEDDING_RESPONSE model={self.model} status=success duration_ms={duration_ms}")
        return list(response.data[0].embedding)
