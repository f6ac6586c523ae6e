from abc import ABC, abstractmethod
import logging
from typing import ClassVar, List

from ..models.canonical_item import CanonicalItem
from ..models.source import SourceConfig

logger = logging.getLogger(__name__)


class BatchDeduplicator:
    """Seen-set for one fetch call. First occurrence of an id or url wins."""

    def __init__(self) -> None:
        self.seen_ids: set[str] = set()
        self.seen_urls: set[str] = set()

    def admit(self, item: CanonicalItem) -> bool:
        if item.external_id in self.seen_ids or item.url in self.seen_urls:
            return False
        self.seen_ids.add(item.external_id)
        self.seen_urls.add(item.url)
        return True


class BaseAdapter(ABC):
    """Abstract base class for all source adapters.

    Every adapter follows the same template: retrieve the raw payload, map each
    record to a CanonicalItem, drop in-batch duplicates, enrich
    original_metadata. The returned list is always sorted newest first.
    """

    key: ClassVar[str]
    config: ClassVar[SourceConfig]

    @property
    def name(self) -> str:
        return self.config.name

    @abstractmethod
    async def fetch_and_parse(self) -> List[CanonicalItem]:
        """
        Fetch the source and return canonical items.

        Returns:
            Items sorted by published_at descending, unique by external_id and url

        Raises:
            FetchError: Source unreachable after retries
            FeedParseError: Root document unusable
        """
        pass
