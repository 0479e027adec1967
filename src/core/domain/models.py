"""Modelos del dominio (Pydantic v2).

Por qué Pydantic en el dominio:
- Nos da validación estricta y documentación autocontenida (Field) sin acoplar
  el Core a librerías de I/O.
- El payload del catálogo se normaliza una sola vez, en el borde.

Nota:
- Estos modelos describen *qué* es la información, no *cómo* se obtiene.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, Field, field_validator
from pydantic.config import ConfigDict


class _ChoiceEnum(str, Enum):
    """String enum whose empty member means "no constraint"."""

    @classmethod
    def parse(cls, value: Any) -> Any:
        if isinstance(value, cls):
            return value
        if value is None:
            return cls("")
        text = str(value).strip().lower()
        try:
            return cls(text)
        except ValueError:
            choices = ", ".join(m.value for m in cls if m.value)
            raise ValueError(f"unknown {cls.__name__.lower()} {value!r} (expected one of: {choices})") from None

    @property
    def is_empty(self) -> bool:
        return self.value == ""


class Status(_ChoiceEnum):
    EMPTY = ""
    ALIVE = "alive"
    DEAD = "dead"
    UNKNOWN = "unknown"


class Gender(_ChoiceEnum):
    EMPTY = ""
    MALE = "male"
    FEMALE = "female"
    GENDERLESS = "genderless"
    UNKNOWN = "unknown"


class CyclePhase(str, Enum):
    """Phase of the newest query cycle held by the controller."""

    IDLE = "idle"
    PENDING_EDIT = "pending_edit"
    FETCHING = "fetching"


class FilterState(BaseModel):
    """Filters and page currently selected by the user.

    Every filter is independently optional: an empty value means "no
    constraint". `page` always has a value.
    """

    model_config = ConfigDict(frozen=True)

    status: Status = Field(
        default=Status.EMPTY,
        description="Life status filter (alive/dead/unknown) or empty.",
    )
    gender: Gender = Field(
        default=Gender.EMPTY,
        description="Gender filter or empty.",
    )
    name: str = Field(
        default="",
        description="Free-text name search (substring match on the service side).",
    )
    page: int = Field(
        default=1,
        ge=1,
        description="1-based page number.",
    )

    @field_validator("status", mode="before")
    @classmethod
    def _parse_status(cls, value: Any) -> Status:
        return Status.parse(value)

    @field_validator("gender", mode="before")
    @classmethod
    def _parse_gender(cls, value: Any) -> Gender:
        return Gender.parse(value)

    @property
    def search_name(self) -> str:
        """Name as it is sent to the service ("" when blank)."""

        return self.name.strip()

    def edit(self, **changes: Any) -> "FilterState":
        """Return a validated copy with `changes` applied."""

        return FilterState.model_validate({**self.model_dump(), **changes})

    def query_params(self, *, include_page: bool = True) -> dict[str, str]:
        """Non-empty fields as string parameters (empty filters are omitted)."""

        params: dict[str, str] = {}
        if include_page:
            params["page"] = str(self.page)
        if not self.status.is_empty:
            params["status"] = self.status.value
        if not self.gender.is_empty:
            params["gender"] = self.gender.value
        if self.search_name:
            params["name"] = self.search_name
        return params


class Place(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)

    name: str = ""
    url: str = ""


class Character(BaseModel):
    """A catalog entity. Identity is `id` (also the render key)."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True, frozen=True)

    id: int = Field(..., ge=0, description="Unique, stable identifier.")
    name: str = Field(..., description="Display name.")
    status: str = Field(default="unknown", description="Alive, Dead or unknown (as sent by the service).")
    species: str = Field(default="")
    type: str = Field(default="", description="Subspecies/variant; often empty.")
    gender: str = Field(default="unknown")
    origin: Place = Field(default_factory=Place)
    location: Place = Field(default_factory=Place, description="Last known location.")
    image_url: str = Field(default="", alias="image", description="Avatar URL.")
    episode: tuple[str, ...] = Field(default=(), description="Episode URLs the character appears in.")
    url: str = Field(default="", description="Canonical API URL of the character.")
    created: str | None = Field(default=None, description="Creation timestamp (ISO 8601).")


class PageInfo(BaseModel):
    model_config = ConfigDict(extra="ignore")

    count: int = Field(default=0, ge=0)
    pages: int = Field(default=0, ge=0)
    next: str | None = None
    prev: str | None = None


class ApiResponse(BaseModel):
    """Wire shape of a list query: `{info: {...}, results: [...]}`."""

    model_config = ConfigDict(extra="ignore")

    info: PageInfo = Field(default_factory=PageInfo)
    results: list[Character] = Field(default_factory=list)


class ResultPage(BaseModel):
    """One page of results. Immutable once received."""

    model_config = ConfigDict(frozen=True)

    items: tuple[Character, ...] = Field(default=())
    page_count: int = Field(default=0, ge=0, description="Total number of pages for the query.")
    total_count: int = Field(default=0, ge=0, description="Total number of matching entities.")
    next_url: str | None = None
    prev_url: str | None = None

    @classmethod
    def empty(cls) -> "ResultPage":
        return cls()

    @classmethod
    def from_response(cls, response: ApiResponse) -> "ResultPage":
        return cls(
            items=tuple(response.results),
            page_count=response.info.pages,
            total_count=response.info.count,
            next_url=response.info.next,
            prev_url=response.info.prev,
        )

    @property
    def item_count(self) -> int:
        return len(self.items)

    @property
    def ids(self) -> list[int]:
        return [item.id for item in self.items]


class ControllerState(BaseModel):
    """Snapshot emitted by the query controller on every change."""

    model_config = ConfigDict(frozen=True)

    filters: FilterState = Field(default_factory=FilterState)
    results: ResultPage = Field(default_factory=ResultPage)
    is_loading: bool = False
    last_request_token: int = Field(
        default=0,
        ge=0,
        description="Token of the newest issued fetch; only its response may be applied.",
    )
    phase: CyclePhase = CyclePhase.IDLE
