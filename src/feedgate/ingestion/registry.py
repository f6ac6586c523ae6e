"""Adapter key -> adapter class, and adapter key -> persisted source name."""
import logging
from typing import Dict, List, Type

from ..errors import SourceNotRegisteredError
from .arxiv import ArxivAdapter
from .base import BaseAdapter
from .google_research import GoogleResearchAdapter
from .huggingface import HuggingFacePapersAdapter
from .multi_feed import MicrosoftBlogAdapter, MITNewsAdapter
from .pypi import PyPIAdapter
from .rss_sources import (
    ArsTechnicaAdapter,
    AWSBigDataAdapter,
    MITSloanAdapter,
    OpenAIBlogAdapter,
    TechCrunchAdapter,
    VentureBeatAdapter,
)

logger = logging.getLogger(__name__)

ADAPTER_REGISTRY: Dict[str, Type[BaseAdapter]] = {}


def register_adapter(cls: Type[BaseAdapter]) -> Type[BaseAdapter]:
    """Class decorator adding an adapter under its `key`. Keys are unique."""
    existing = ADAPTER_REGISTRY.get(cls.key)
    if existing is not None and existing is not cls:
        raise ValueError(f"Adapter key '{cls.key}' already registered by {existing.__name__}")
    ADAPTER_REGISTRY[cls.key] = cls
    logger.debug(f"Registered adapter {cls.key} -> {cls.__name__}")
    return cls


for _adapter in (
    AWSBigDataAdapter,
    OpenAIBlogAdapter,
    MicrosoftBlogAdapter,
    MITNewsAdapter,
    MITSloanAdapter,
    VentureBeatAdapter,
    ArsTechnicaAdapter,
    GoogleResearchAdapter,
    HuggingFacePapersAdapter,
    ArxivAdapter,
    PyPIAdapter,
    TechCrunchAdapter,
):
    register_adapter(_adapter)


def adapter_keys() -> List[str]:
    return list(ADAPTER_REGISTRY)


def get_adapter(key: str) -> BaseAdapter:
    """
    Instantiate the adapter registered under `key`.

    Raises:
        SourceNotRegisteredError: Unknown key
    """
    try:
        return ADAPTER_REGISTRY[key]()
    except KeyError:
        raise SourceNotRegisteredError(
            f"Unknown adapter '{key}'. Available: {', '.join(adapter_keys())}"
        ) from None


def source_name_for(key: str) -> str:
    """Persisted source name the adapter writes under."""
    try:
        return ADAPTER_REGISTRY[key].config.name
    except KeyError:
        raise SourceNotRegisteredError(f"Unknown adapter '{key}'") from None

