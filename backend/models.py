from __future__ import annotations

from typing import Any, List, Literal, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator, model_validator

from reporting.pagination import PagePlan


class CapacityOverride(BaseModel):
    """
    Per-request page capacities. Either value may be omitted to keep the profile default.
    Values are validated by the pagination engine, not here.
    """
    model_config = ConfigDict(populate_by_name=True)

    first_page_rows: Optional[int] = Field(
        default=None, validation_alias=AliasChoices("first_page_rows", "firstPageRows", "firstPageLimit")
    )
    other_page_rows: Optional[int] = Field(
        default=None, validation_alias=AliasChoices("other_page_rows", "otherPageRows", "otherPageLimit")
    )


class GroupIn(BaseModel):
    """One group of opaque rows. rows=None is accepted and paginated as empty."""
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    name: Optional[str] = Field(default=None, validation_alias=AliasChoices("name", "housingName", "groupName"))
    rows: Optional[List[Any]] = None

    @field_validator("name", mode="before")
    @classmethod
    def _trim_name(cls, value: Any) -> Optional[str]:
        if value is None:
            return None
        text = str(value).strip()
        return text or None


class PaginateRequest(BaseModel):
    """
    Request body for POST /paginate. Send `groups` for grouped reports or `rows` for a flat one.

    `scope` picks the default capacities when no `profile` is named and defaults to "group".
    With a profile the profile fixes the scope; a differing `scope` is rejected.
    """
    profile: Optional[str] = None
    scope: Optional[Literal["document", "group"]] = None
    groups: Optional[List[GroupIn]] = None
    rows: Optional[List[Any]] = None
    capacity: Optional[CapacityOverride] = None

    @model_validator(mode="after")
    def _groups_or_rows(self) -> "PaginateRequest":
        if self.groups is not None and self.rows is not None:
            raise ValueError("send either groups or rows, not both")
        return self


class PagePlanOut(BaseModel):
    group_name: Optional[str] = None
    rows: List[Any] = Field(default_factory=list)
    is_first_page_of_group: bool
    is_first_page_of_document: bool
    local_page_index: int
    local_page_count: int
    group_index: int
    global_page_index: int
    first_row_number: int = 1

    @classmethod
    def from_plan(cls, page: PagePlan) -> "PagePlanOut":
        return cls(
            group_name=page.group_name,
            rows=list(page.rows),
            is_first_page_of_group=page.is_first_page_of_group,
            is_first_page_of_document=page.is_first_page_of_document,
            local_page_index=page.local_page_index,
            local_page_count=page.local_page_count,
            group_index=page.group_index,
            global_page_index=page.global_page_index,
            first_row_number=page.first_row_number,
        )


class GroupPageCount(BaseModel):
    group_name: Optional[str] = None
    pages: int


class PaginateResponse(BaseModel):
    """Response from the paginate endpoints."""
    profile: Optional[str] = None
    scope: str
    first_page_rows: int
    other_page_rows: int
    total_pages: int
    group_page_counts: List[GroupPageCount] = Field(default_factory=list)
    pages: List[PagePlanOut] = Field(default_factory=list)


class ReportMeta(BaseModel):
    """Optional header metadata for rendered reports."""
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    title: Optional[str] = None
    start_date: Optional[str] = Field(default=None, validation_alias=AliasChoices("start_date", "startDate"))
    end_date: Optional[str] = Field(default=None, validation_alias=AliasChoices("end_date", "endDate"))
    company_name: Optional[str] = Field(default=None, validation_alias=AliasChoices("company_name", "companyName"))
    generated_at: Optional[str] = Field(default=None, validation_alias=AliasChoices("generated_at", "generatedAt"))

    @field_validator("title", "start_date", "end_date", "company_name", "generated_at", mode="before")
    @classmethod
    def _trim_text_fields(cls, value: Any) -> Optional[str]:
        if value is None:
            return None
        text = str(value).strip()
        if not text:
            return None
        return text[:400]


class ReportRenderRequest(BaseModel):
    """
    Request body for /reports/{profile}/paginate, /preview and /pdf.
    `payload` is the upstream API response for the report, passed through untouched.
    """
    payload: Any = None
    meta: Optional[ReportMeta] = None
    capacity: Optional[CapacityOverride] = None


class ReportColumnOut(BaseModel):
    key: str
    label: str
    kind: str


class ReportProfileOut(BaseModel):
    key: str
    title: str
    scope: str
    grouped: bool
    has_summary: bool
    first_page_rows: int
    other_page_rows: int
    columns: List[ReportColumnOut] = Field(default_factory=list)
