from .base import BaseAdapter, BatchDeduplicator
from .generic_rss import GenericRSSAdapter
from .multi_feed import MultiFeedAdapter
from .registry import ADAPTER_REGISTRY, adapter_keys, get_adapter, register_adapter, source_name_for

__all__ = [
    "BaseAdapter", "BatchDeduplicator",
    "GenericRSSAdapter", "MultiFeedAdapter",
    "ADAPTER_REGISTRY", "adapter_keys", "get_adapter", "register_adapter", "source_name_for",
]
