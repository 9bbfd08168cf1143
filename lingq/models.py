"""Response and request shapes for the LingQ private API.

The API is unversioned and undocumented, so every model below was written
from observed traffic. Extra fields are kept as-is; only the fields listed
here are required to be present with the right types.
"""

from __future__ import annotations

from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class LingQModel(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True)


class Translation(LingQModel):
    language: str
    text: str
    type: str


class Sentence(LingQModel):
    index: int = Field(ge=1)
    text: str
    clean_text: str = Field(alias="cleanText")
    translations: list[Translation] = Field(default_factory=list)
    # (start, end), either side may be null
    timestamp: tuple[Optional[float], Optional[float]] = (None, None)


class Paragraph(LingQModel):
    index: int
    style: str
    sentences: list[Sentence]


class Collection(LingQModel):
    id: int
    title: str
    url: Optional[str] = None
    description: Optional[str] = None
    level: Optional[str] = None
    lessons_count: Optional[int] = Field(default=None, alias="lessonsCount")
    tags: list[str] = Field(default_factory=list)
    type: Optional[str] = None


class Lesson(LingQModel):
    id: int
    title: str
    status: Literal["private", "public"]
    level: Optional[int] = None
    collection: Optional[Collection] = None
    language: str
    paragraphs: list[Paragraph]

    description: Optional[str] = None
    audio: Optional[str] = None
    duration: Optional[float] = None
    image_url: Optional[str] = Field(default=None, alias="imageUrl")
    original_url: Optional[str] = Field(default=None, alias="originalUrl")
    tags: list[str] = Field(default_factory=list)
    shelves: list[str] = Field(default_factory=list)
    is_hidden: Optional[bool] = Field(default=None, alias="isHidden")
    is_protected: Optional[bool] = Field(default=None, alias="isProtected")

    def sentences(self) -> list[Sentence]:
        """All sentences of the lesson in reading order."""
        return [sentence for paragraph in self.paragraphs for sentence in paragraph.sentences]


class LessonCreateParams(LingQModel):
    title: str
    text: str
    language: str
    status: Literal["private", "public"] = "private"
    description: str = ""
    is_hidden: bool = Field(default=True, alias="isHidden")
    is_protected: bool = Field(default=False, alias="isProtected")
    has_price: bool = Field(default=False, alias="hasPrice")
    groups: list[Any] = Field(default_factory=list)
    tags: list[str] = Field(default_factory=list)
    translations: list[Any] = Field(default_factory=list)
    notes: str = ""
    save: bool = True

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True)


class LessonCreated(LingQModel):
    id: int
    title: Optional[str] = None
    url: Optional[str] = None
    status: Optional[str] = None
    collection_id: Optional[int] = Field(default=None, alias="collectionId")


class LessonStats(LingQModel):
    listen_times: float = Field(alias="listenTimes")
    read_times: float = Field(alias="readTimes")
    cards_created: int = Field(default=0, alias="cardsCreated")


class Hint(LingQModel):
    text: str
    locale: Optional[str] = None
    id: Optional[int] = None
    popularity: Optional[int] = None


class Card(LingQModel):
    pk: int
    term: str
    fragment: Optional[str] = None
    status: int
    extended_status: Optional[int] = None
    hints: list[Hint] = Field(default_factory=list)
    srs_due_date: Optional[str] = None
    importance: Optional[int] = None


class Word(LingQModel):
    text: str
    status: str
    importance: Optional[int] = None
    hints: list[Hint] = Field(default_factory=list)
    tags: list[str] = Field(default_factory=list)


class LessonWords(LingQModel):
    # keyed by numeric ids of unknown meaning; kept as opaque string keys
    cards: dict[str, Card]
    words: dict[str, Word]

    @field_validator("cards", "words", mode="before")
    @classmethod
    def _keys_as_strings(cls, value: Any) -> Any:
        if isinstance(value, dict):
            return {str(key): item for key, item in value.items()}
        return value


class TTSResult(LingQModel):
    id: int
    voice: str
    text: str
    audio: str
    timestamps: list[Any] = Field(default_factory=list)

