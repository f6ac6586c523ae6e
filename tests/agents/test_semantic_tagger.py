"""Cosine similarity and prototype-based semantic tags."""
import math

import pytest

from feedgate.agents.semantic_tagger import SemanticTagger
from feedgate.errors import EmbeddingError
from feedgate.utils.embeddings import cosine_similarity

PROTOTYPES = {"scripting": "python scripting", "systems": "rust systems"}


class AxisEmbedder:
    """Two-dimensional embedder: one axis per language mentioned in the text."""

    def __init__(self, fail: bool = False):
        self.fail = fail
        self.calls = 0

    async def embed(self, text: str):
        self.calls += 1
        if self.fail:
            raise EmbeddingError("provider unavailable")
        lowered = text.lower()
        return [1.0 if "python" in lowered else 0.0, 1.0 if "rust" in lowered else 0.0]


class TestCosine:

    def test_identical(self):
        assert cosine_similarity([0.3, 0.4, 0.5], [0.3, 0.4, 0.5]) == pytest.approx(1.0)

    def test_orthogonal_and_opposite(self):
        assert cosine_similarity([1, 0], [0, 1]) == pytest.approx(0.0)
        assert cosine_similarity([1, 2], [-1, -2]) == pytest.approx(-1.0)

    def test_symmetric_and_bounded(self):
        a, b = [0.1, 0.9, -0.3], [0.7, -0.2, 0.4]
        assert cosine_similarity(a, b) == pytest.approx(cosine_similarity(b, a))
        assert -1.0 <= cosine_similarity(a, b) <= 1.0

    def test_scale_invariant(self):
        assert cosine_similarity([1, 1], [5, 5]) == pytest.approx(1.0)
        assert cosine_similarity([1, 0], [1, 1]) == pytest.approx(1 / math.sqrt(2))

    def test_zero_vector(self):
        assert cosine_similarity([0, 0], [1, 2]) == 0.0

    def test_length_mismatch(self):
        with pytest.raises(ValueError):
            cosine_similarity([1, 2], [1, 2, 3])


class TestSemanticTagger:

    @pytest.mark.asyncio
    async def test_initialize_is_idempotent(self):
        embedder = AxisEmbedder()
        tagger = SemanticTagger(embedder, prototypes=PROTOTYPES)
        assert not tagger.is_warm

        await tagger.initialize()
        await tagger.initialize()

        assert tagger.is_warm
        assert embedder.calls == len(PROTOTYPES)

    @pytest.mark.asyncio
    async def test_failed_initialize_stays_cold(self):
        tagger = SemanticTagger(AxisEmbedder(fail=True), prototypes=PROTOTYPES)
        with pytest.raises(EmbeddingError):
            await tagger.initialize()
        assert not tagger.is_warm

    def test_cold_tagger_refuses(self):
        tagger = SemanticTagger(AxisEmbedder(), prototypes=PROTOTYPES)
        with pytest.raises(RuntimeError):
            tagger.tag_embedding([1.0, 0.0])

    @pytest.mark.asyncio
    async def test_threshold_and_ordering(self):
        tagger = SemanticTagger(AxisEmbedder(), prototypes=PROTOTYPES)
        await tagger.initialize()

        exact = tagger.tag_embedding([1.0, 0.0], threshold=0.7)
        assert [(s.tag, s.similarity) for s in exact] == [("scripting", pytest.approx(1.0))]

        # Near the diagonal both prototypes clear 0.7
        mixed = tagger.tag_embedding([1.0, 1.02], threshold=0.7)
        assert [s.tag for s in mixed] == ["systems", "scripting"]
        assert mixed[0].similarity >= mixed[1].similarity

        assert tagger.tag_embedding([1.0, 1.02], threshold=0.7, max_tags=1)[0].tag == "systems"
        assert tagger.tag_embedding([1.0, 0.0], threshold=1.01) == []

    @pytest.mark.asyncio
    async def test_tag_text(self):
        tagger = SemanticTagger(AxisEmbedder(), prototypes=PROTOTYPES)
        tags = await tagger.tag("Writing a Rust CLI")
        assert [s.tag for s in tags] == ["systems"]

    def test_default_prototypes(self):
        tagger = SemanticTagger(AxisEmbedder())
        assert "python" in tagger.prototypes
        assert len(tagger.prototypes) >= 40
