"""
Story input models

The rendered story as handed over by the content pipeline: front matter fields,
chapters (HTML body plus an illustration) and the cover artwork.
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field


class Chapter(BaseModel):
    """Single chapter"""
    title: str = Field(..., description="Chapter title, may carry a 'Chapter N:' prefix")
    content: str = Field(default="", description="Chapter body, already formatted HTML")
    image_uri: Optional[str] = Field(None, alias="imageUri", description="Chapter illustration URL or path")

    class Config:
        populate_by_name = True


class StoryData(BaseModel):
    """Complete story ready for print"""
    title: str = Field(default="", description="Story title")
    chapters: List[Chapter] = Field(default_factory=list)
    story_language: str = Field(default="en", alias="storyLanguage")
    target_audience: Optional[str] = Field(None, alias="targetAudience", description="e.g. children-3-6")
    synopsis: str = Field(default="")
    dedication_message: str = Field(default="", alias="dedicationMessage")
    custom_author: Optional[str] = Field(None, alias="customAuthor")
    created_at: Optional[datetime] = Field(None, alias="createdAt")
    cover_uri: Optional[str] = Field(None, alias="coverUri", description="Front cover artwork")
    backcover_uri: Optional[str] = Field(None, alias="backcoverUri", description="Back cover artwork")

    class Config:
        populate_by_name = True
        json_schema_extra = {
            "example": {
                "title": "The Whispering Woods",
                "storyLanguage": "en",
                "targetAudience": "children-7-10",
                "customAuthor": "Ana Silva",
                "createdAt": "2025-03-14T10:00:00Z",
                "coverUri": "https://example.com/cover.jpg",
                "chapters": [
                    {"title": "Chapter 1: The Beginning", "content": "<p>Once upon a time...</p>",
                     "imageUri": "https://example.com/ch1.jpg"}
                ],
            }
        }
