import asyncio
import logging
from typing import Dict, List, Mapping, Optional, Protocol, Sequence

from ..models.canonical_item import SemanticTag
from ..utils.embeddings import cosine_similarity
from .prototypes import TAG_PROTOTYPES

logger = logging.getLogger(__name__)

DEFAULT_THRESHOLD = 0.7
DEFAULT_MAX_TAGS = 5


class Embedder(Protocol):
    async def embed(self, text: str) -> List[float]: ...


class SemanticTagger:
    """
    Tags text by cosine similarity to a fixed set of prototype embeddings.

    Prototype vectors are computed once by initialize() and kept for the
    lifetime of the tagger.
    """

    def __init__(self, embedder: Embedder, prototypes: Optional[Mapping[str, str]] = None):
        self.embedder = embedder
        self.prototypes = dict(prototypes if prototypes is not None else TAG_PROTOTYPES)
        self._vectors: Dict[str, List[float]] = {}
        self._lock = asyncio.Lock()

    @property
    def is_warm(self) -> bool:
        return bool(self.prototypes) and len(self._vectors) == len(self.prototypes)

    async def initialize(self) -> None:
        """
        Embed every prototype description. Idempotent.

        Raises:
            EmbeddingError: Any prototype failed; the cache stays cold
        """
        async with self._lock:
            if self.is_warm:
                return
            logger.info(f"Initializing {len(self.prototypes)} prototype embeddings...")
            tags = list(self.prototypes)
            vectors = await asyncio.gather(*(self.embedder.embed(self.prototypes[t]) for t in tags))
            self._vectors = dict(zip(tags, vectors))
            logger.info(f"✅ Prototype embeddings ready ({len(self._vectors)})")

    def tag_embedding(
        self,
        embedding: Sequence[float],
        threshold: float = DEFAULT_THRESHOLD,
        max_tags: int = DEFAULT_MAX_TAGS,
    ) -> List[SemanticTag]:
        """Prototype tags with similarity >= threshold, best first, at most max_tags."""
        if not self.is_warm:
            raise RuntimeError("Prototype embeddings not initialized")

        scored = [
            SemanticTag(tag=tag, similarity=cosine_similarity(embedding, vector))
            for tag, vector in self._vectors.items()
        ]
        kept = [s for s in scored if s.similarity >= threshold]
        kept.sort(key=lambda s: s.similarity, reverse=True)
        return kept[:max_tags]

    async def tag(
        self,
        text: str,
        threshold: float = DEFAULT_THRESHOLD,
        max_tags: int = DEFAULT_MAX_TAGS,
    ) -> List[SemanticTag]:
        await self.initialize()
        embedding = await self.embedder.embed(text)
        return self.tag_embedding(embedding, threshold, max_tags)
