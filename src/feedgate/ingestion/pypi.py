import logging
import re
from typing import Any, Dict, List

from pydantic import ValidationError

from ..errors import FetchError, ItemMappingError
from ..models.canonical_item import CanonicalItem
from ..models.source import SourceConfig, SourceType
from .base import BaseAdapter, BatchDeduplicator
from .fetch import fetch_json
from .normalize import html_to_markdown, parse_iso_datetime, sort_newest_first, truncate, utcnow

logger = logging.getLogger(__name__)

TOP_PACKAGES = [
    "pandas",
    "numpy",
    "scikit-learn",
    "matplotlib",
    "seaborn",
    "jupyter",
    "flask",
    "django",
    "requests",
    "tensorflow",
    "torch",
    "sqlalchemy",
    "fastapi",
    "streamlit",
    "plotly",
]

_NUMBER_RE = re.compile(r"\d+")


def version_key(version: str) -> tuple[int, ...]:
    """Numeric release parts, e.g. "2.1.0rc1" -> (2, 1, 0)."""
    parts = []
    for segment in version.split("."):
        match = _NUMBER_RE.match(segment)
        parts.append(int(match.group()) if match else 0)
    return tuple(parts)


def recent_versions(releases: Dict[str, List[Dict[str, Any]]], limit: int = 3) -> List[str]:
    """Newest `limit` versions that have uploaded files."""
    with_files = [v for v, files in releases.items() if files]
    return sorted(with_files, key=version_key, reverse=True)[:limit]


class PyPIAdapter(BaseAdapter):
    """Release announcements for popular Python packages via the PyPI JSON API."""

    key = "pypi-packages"
    config = SourceConfig(
        name="PyPI Top Packages",
        type=SourceType.API,
        endpoint_url="https://pypi.org/pypi/",
        fetch_frequency_minutes=180,
    )

    packages: List[str] = TOP_PACKAGES
    versions_per_package = 3

    async def fetch_and_parse(self) -> List[CanonicalItem]:
        dedup = BatchDeduplicator()
        items: List[CanonicalItem] = []
        failures = 0

        for package in self.packages:
            package_url = f"{self.config.endpoint_url}{package}/json"
            try:
                data = await fetch_json(package_url)
            except FetchError as e:
                # One missing package should not sink the batch
                logger.warning(f"Failed to fetch {package}: {e}")
                failures += 1
                continue

            try:
                for item in self.map_package(package, data, package_url):
                    if dedup.admit(item):
                        items.append(item)
            except (ItemMappingError, ValidationError, KeyError, TypeError, AttributeError) as e:
                logger.warning(f"Error processing package {package}: {e}")
                continue

        if self.packages and failures == len(self.packages):
            raise FetchError(f"All {failures} PyPI package lookups failed", url=self.config.endpoint_url)

        logger.info(f"✅ PyPI: extracted {len(items)} releases from {len(self.packages) - failures} packages")
        return sort_newest_first(items)

    def map_package(self, package: str, data: Dict[str, Any], package_url: str = "") -> List[CanonicalItem]:
        info = data.get("info") or {}
        releases = data.get("releases") or {}
        versions = recent_versions(releases, self.versions_per_package)
        logger.debug(f"{package}: recent versions {versions}")

        description = info.get("description") or info.get("summary") or ""
        content = truncate(html_to_markdown(description)) or info.get("summary") or f"{package} release"

        items = []
        for version in versions:
            try:
                items.append(self.map_release(package, version, data, content, versions, package_url))
            except (ItemMappingError, ValidationError, KeyError, TypeError, AttributeError, IndexError) as e:
                logger.warning(f"Skipping {package} {version}: {e}")
        return items

    def map_release(
        self,
        package: str,
        version: str,
        data: Dict[str, Any],
        content: str,
        versions: List[str],
        package_url: str = "",
    ) -> CanonicalItem:
        info = data.get("info") or {}
        files = data["releases"][version]
        first_file = files[0]
        upload_time = first_file.get("upload_time_iso_8601") or first_file.get("upload_time")
        if upload_time is not None and not isinstance(upload_time, str):
            raise ItemMappingError(f"upload time is not a string: {upload_time!r}")
        published_at = parse_iso_datetime(upload_time) or utcnow()

        return CanonicalItem(
            title=f"{info.get('name') or package} {version}",
            url=f"https://pypi.org/project/{package}/{version}/",
            content=content,
            published_at=published_at,
            external_id=f"pypi-{package}-{version}",
            summary=info.get("summary") or None,
            author=info.get("author") or None,
            story_category="tools",
            original_metadata={
                "pypi_package_info": info,
                "pypi_release_version": version,
                "pypi_release_files": files,
                "pypi_release_upload_time": upload_time,
                "pypi_recent_versions": versions,
                "pypi_vulnerabilities": data.get("vulnerabilities"),
                "pypi_last_serial": data.get("last_serial"),
                "extraction_timestamp": utcnow().isoformat(),
                "source_name": self.name,
                "source_type": self.config.type.value,
                "source_endpoint": package_url,
                "platform": "pypi",
                "package_ecosystem": "python",
                "content_type": "package_release",
                "package_name": package,
                "version_number": version,
            },
        )
