"""
Validated shapes for provider payloads.

Scrape responses and LLM analysis output arrive as loosely typed JSON. Every
field is defaulted so a partial payload still validates; anything that cannot
be coerced fails validation and the caller takes its fallback path.
"""

from typing import List, Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator

from newsprism.utils.dates import parse_datetime, utcnow


def _first_str(v):
    if isinstance(v, list):
        v = next((x for x in v if isinstance(x, str) and x.strip()), None)
    if v is None:
        return None
    return str(v)


class ExtractedFields(BaseModel):
    """Structured extraction returned alongside the page markdown."""
    model_config = ConfigDict(extra='ignore')

    title: Optional[str] = None
    author: Optional[str] = None
    publishedDate: Optional[str] = None
    summary: Optional[str] = None
    content: Optional[str] = None
    image: Optional[str] = None
    tags: List[str] = Field(default_factory=list)

    @field_validator('title', 'author', 'publishedDate', 'summary', 'content', 'image', mode='before')
    @classmethod
    def _coerce_str(cls, v):
        return _first_str(v)

    @field_validator('tags', mode='before')
    @classmethod
    def _coerce_tags(cls, v):
        if v is None:
            return []
        if isinstance(v, str):
            return [t.strip() for t in v.split(',') if t.strip()]
        return [str(t).strip() for t in v if t is not None and str(t).strip()]


class PageMetadata(BaseModel):
    """Raw page metadata (HTML <meta> tags)."""
    model_config = ConfigDict(extra='allow', populate_by_name=True)

    title: Optional[str] = None
    description: Optional[str] = None
    author: Optional[str] = None
    ogTitle: Optional[str] = None
    ogDescription: Optional[str] = None
    ogImage: Optional[str] = None
    og_image: Optional[str] = Field(default=None, alias='og:image')
    twitter_image: Optional[str] = Field(default=None, alias='twitter:image')
    publishedTime: Optional[str] = None
    article_published_time: Optional[str] = Field(default=None, alias='article:published_time')
    modifiedTime: Optional[str] = None
    article_modified_time: Optional[str] = Field(default=None, alias='article:modified_time')
    sourceURL: Optional[str] = None

    @field_validator(
        'title', 'description', 'author', 'ogTitle', 'ogDescription', 'ogImage', 'og_image',
        'twitter_image', 'publishedTime', 'article_published_time', 'modifiedTime',
        'article_modified_time', 'sourceURL', mode='before',
    )
    @classmethod
    def _coerce_str(cls, v):
        return _first_str(v)


class ScrapeResult(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    markdown: str = ''
    extracted: ExtractedFields = Field(default_factory=ExtractedFields, alias='json')
    metadata: PageMetadata = Field(default_factory=PageMetadata)

    @field_validator('markdown', mode='before')
    @classmethod
    def _none_to_empty(cls, v):
        return v or ''

    @field_validator('extracted', 'metadata', mode='before')
    @classmethod
    def _none_to_default(cls, v):
        return v or {}

    def date_candidates(self):
        meta = self.metadata
        return [
            meta.publishedTime,
            meta.article_published_time,
            meta.modifiedTime,
            meta.article_modified_time,
            self.extracted.publishedDate,
        ]

    def to_article_fields(self):
        """Resolve article fields: structured extraction, then page metadata, then defaults."""
        meta = self.metadata
        ext = self.extracted

        pub_date = None
        for candidate in self.date_candidates():
            pub_date = parse_datetime(candidate)
            if pub_date:
                break

        return {
            'title': ext.title or meta.title or meta.ogTitle or 'Untitled',
            'description': ext.summary or meta.description or meta.ogDescription or '',
            'author': ext.author or meta.author or '',
            'pub_date': pub_date or utcnow(),
            'image_url': meta.ogImage or meta.og_image or meta.twitter_image or ext.image or '',
            'tags': list(ext.tags),
            'content': self.markdown or ext.content or '',
        }


SENTIMENTS = ('positive', 'negative', 'neutral')


class SourcePerspectiveLLM(BaseModel):
    model_config = ConfigDict(extra='ignore')

    source_name: str = ''
    source_category: str = ''
    source_country: str = ''
    article_count: int = 0
    perspective_summary: str = ''
    key_themes: List[str] = Field(default_factory=list)
    sentiment: str = 'neutral'

    @field_validator('source_name', 'source_category', 'source_country', 'perspective_summary', mode='before')
    @classmethod
    def _coerce_str(cls, v):
        return '' if v is None else str(v)

    @field_validator('key_themes', mode='before')
    @classmethod
    def _coerce_themes(cls, v):
        if v is None:
            return []
        if isinstance(v, str):
            return [v]
        return [str(t) for t in v if t is not None]

    @field_validator('sentiment', mode='before')
    @classmethod
    def _normalize_sentiment(cls, v):
        value = str(v or '').strip().lower()
        return value if value in SENTIMENTS else 'neutral'


class ComparativeAnalysisLLM(BaseModel):
    """What the summarization model must return for one topic cluster."""
    model_config = ConfigDict(extra='ignore')

    topic_title: str = Field(min_length=1)
    aggregate_summary: str = Field(min_length=1)
    source_perspectives: List[SourcePerspectiveLLM] = Field(default_factory=list)
