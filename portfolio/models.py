"""Typed records written to the generated JSON collections."""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from portfolio.slugs import dedupe_tags


class ContentItem(BaseModel):
    # Unknown frontmatter keys (icon, paperUrl, timeframe...) are passed through
    model_config = ConfigDict(extra='allow', populate_by_name=True)

    slug: str = Field(min_length=1, pattern=r'^[a-z0-9-]+$')
    title: str
    date: Optional[str] = None
    excerpt: str = ''
    tags: list[str] = Field(default_factory=list)
    featured: bool = False
    order: Optional[int] = None
    content: str = ''
    raw_content: str = Field(default='', alias='rawContent')

    @field_validator('tags')
    @classmethod
    def unique_tags(cls, tags):
        return dedupe_tags(tags, max_tags=None)

    def to_json(self):
        return self.model_dump(mode='json', by_alias=True, exclude_none=True)


class BlogPost(ContentItem):
    author: str = ''


class Publication(ContentItem):
    authors: list[str] = Field(default_factory=list)


class ResearchArea(ContentItem):
    collaborators: list[str] = Field(default_factory=list)


class Event(ContentItem):
    event: str = ''
    location: str = ''
    type: str = 'speaking'


MODELS = {
    'blog': BlogPost,
    'publication': Publication,
    'research': ResearchArea,
    'event': Event,
}


def model_for(kind):
    return MODELS.get(kind, ContentItem)
