"""Single-feed RSS sources. Each one is a GenericRSSAdapter plus identity."""
from typing import List

from ..models.source import SourceConfig, SourceType
from .generic_rss import GenericRSSAdapter


class AWSBigDataAdapter(GenericRSSAdapter):
    key = "aws-big-data"
    config = SourceConfig(
        name="AWS Big Data Blog",
        type=SourceType.RSS,
        endpoint_url="https://aws.amazon.com/blogs/big-data/feed/",
        fetch_frequency_minutes=60,
    )
    extra_metadata = {
        "platform": "aws",
        "publication_type": "technical_blog",
        "content_focus": "big_data_analytics_cloud",
        "article_format": "technical_tutorials_announcements",
    }


class OpenAIBlogAdapter(GenericRSSAdapter):
    key = "openai-blog"
    config = SourceConfig(
        name="OpenAI Official Blog",
        type=SourceType.RSS,
        endpoint_url="https://openai.com/news/rss.xml",
        fetch_frequency_minutes=60,
    )
    extra_metadata = {
        "platform": "openai",
        "publication_type": "official_announcements",
        "content_focus": "ai_research_product_updates",
        "organization_type": "ai_research_company",
    }


class TechCrunchAdapter(GenericRSSAdapter):
    key = "techcrunch"
    config = SourceConfig(
        name="TechCrunch",
        type=SourceType.RSS,
        endpoint_url="https://techcrunch.com/feed/",
        fetch_frequency_minutes=30,
    )
    extra_metadata = {
        "platform": "techcrunch",
        "publication_type": "tech_journalism",
        "content_focus": "startup_technology_business",
    }


class VentureBeatAdapter(GenericRSSAdapter):
    key = "venturebeat"
    config = SourceConfig(
        name="VentureBeat",
        type=SourceType.RSS,
        endpoint_url="https://venturebeat.com/feed/",
        fetch_frequency_minutes=60,
    )
    source_tags = [
        "venturebeat", "tech-news", "ai-news", "artificial-intelligence", "industry-news",
        "enterprise-tech", "business-technology", "startup-news", "venture-capital", "technology",
    ]
    extra_metadata = {
        "content_type": "tech_news_article",
        "focus": "enterprise_technology",
        "publication": "venturebeat",
    }


class MITSloanAdapter(GenericRSSAdapter):
    key = "mit-sloan"
    config = SourceConfig(
        name="MIT Sloan Management Review",
        type=SourceType.RSS,
        endpoint_url="https://sloanreview.mit.edu/feed/",
        fetch_frequency_minutes=1440,
    )
    source_tags = [
        "mit-sloan", "mit-sloan-management-review", "business-strategy", "management", "innovation",
        "leadership", "digital-transformation", "organizational-behavior", "academic-research",
        "business-insights",
    ]
    extra_metadata = {
        "content_type": "management_article",
        "publication": "mit_sloan_management_review",
        "academic_source": True,
    }


# (title keywords, content keywords, tags)
_ARS_TOPICS = [
    (("ai", "machine learning"), ("artificial intelligence",), ["artificial-intelligence", "ai"]),
    (("policy", "law"), ("regulation",), ["tech-policy", "regulation"]),
    (("science", "study"), ("research",), ["science", "research"]),
    (("security", "privacy"), ("cybersecurity",), ["cybersecurity", "privacy"]),
    (("review", "tested"), ("hands-on",), ["product-review", "hardware"]),
    (("gaming", "console"), ("game",), ["gaming", "entertainment"]),
    (("space", "rocket"), ("nasa",), ["space", "aerospace"]),
    (("cars", "automotive", "electric vehicle"), (), ["automotive", "transportation"]),
]


class ArsTechnicaAdapter(GenericRSSAdapter):
    key = "arstechnica"
    config = SourceConfig(
        name="Ars Technica",
        type=SourceType.RSS,
        endpoint_url="https://feeds.arstechnica.com/arstechnica/index",
        fetch_frequency_minutes=60,
    )
    source_tags = [
        "arstechnica", "ars-technica", "tech-journalism", "industry-news", "science-tech",
        "tech-analysis", "investigative-journalism", "technical-depth",
    ]
    extra_metadata = {
        "content_type": "tech_journalism",
        "publication": "ars_technica",
        "editorial_quality": "high",
        "technical_depth": "deep",
    }

    def derived_tags(self, title: str, content: str) -> List[str]:
        # Substring checks, so "ai" also fires inside longer title words
        title_lc = title.lower()
        content_lc = content.lower()
        tags: List[str] = []
        for title_words, content_words, topic_tags in _ARS_TOPICS:
            if any(w in title_lc for w in title_words) or any(w in content_lc for w in content_words):
                tags.extend(topic_tags)
        return tags
