"""
Grouped report pagination.

Splits ordered report rows into fixed-capacity pages for the print renderer.
Rows are opaque: they are only counted and sliced, never inspected or re-sorted.
A flat report is a single unnamed group. Every group gets its own page numbering,
and an empty group still produces one page so its banner is drawn.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from itertools import accumulate, chain
from typing import Any, Callable, Iterable, Mapping, Sequence, Union

_LOG = logging.getLogger(__name__)

# Flat reports: page 1 also hosts the statistics panel.
DEFAULT_DOCUMENT_FIRST_PAGE_ROWS = 4
DEFAULT_DOCUMENT_OTHER_PAGE_ROWS = 7

# Grouped reports: first page of every group also hosts the group banner.
DEFAULT_GROUP_FIRST_PAGE_ROWS = 7
DEFAULT_GROUP_OTHER_PAGE_ROWS = 8

SCOPE_DOCUMENT = "document"
SCOPE_GROUP = "group"

CapacityFn = Callable[[bool, bool], int]


class CapacityPolicyError(ValueError):
    """Raised when a capacity policy yields a page size below one row."""


@dataclass(frozen=True)
class CapacityPolicy:
    """
    Rows per page, keyed on the page's role.

    scope="document": only the document's first page is reduced (summary panel).
    scope="group": the first page of every group is reduced (group banner).
    """
    first_page_rows: int
    other_page_rows: int
    scope: str = SCOPE_GROUP

    def __post_init__(self) -> None:
        if self.scope not in (SCOPE_DOCUMENT, SCOPE_GROUP):
            raise CapacityPolicyError(f"Unknown capacity scope: {self.scope!r}")
        _require_positive(self.first_page_rows, "first_page_rows")
        _require_positive(self.other_page_rows, "other_page_rows")

    def __call__(self, is_first_page_of_document: bool, is_first_page_of_group: bool) -> int:
        reduced = is_first_page_of_document if self.scope == SCOPE_DOCUMENT else is_first_page_of_group
        return self.first_page_rows if reduced else self.other_page_rows

    def with_overrides(self, first_page_rows: int | None = None, other_page_rows: int | None = None) -> "CapacityPolicy":
        return replace(
            self,
            first_page_rows=self.first_page_rows if first_page_rows is None else first_page_rows,
            other_page_rows=self.other_page_rows if other_page_rows is None else other_page_rows,
        )


def document_summary_policy(
    first_page_rows: int = DEFAULT_DOCUMENT_FIRST_PAGE_ROWS,
    other_page_rows: int = DEFAULT_DOCUMENT_OTHER_PAGE_ROWS,
) -> CapacityPolicy:
    return CapacityPolicy(first_page_rows, other_page_rows, scope=SCOPE_DOCUMENT)


def group_banner_policy(
    first_page_rows: int = DEFAULT_GROUP_FIRST_PAGE_ROWS,
    other_page_rows: int = DEFAULT_GROUP_OTHER_PAGE_ROWS,
) -> CapacityPolicy:
    return CapacityPolicy(first_page_rows, other_page_rows, scope=SCOPE_GROUP)


def uniform_policy(rows_per_page: int) -> CapacityPolicy:
    return CapacityPolicy(rows_per_page, rows_per_page, scope=SCOPE_GROUP)


@dataclass
class ReportGroup:
    """A named bucket of rows sharing one banner and one page numbering."""
    name: str | None = None
    rows: Sequence[Any] | None = None


GroupLike = Union[ReportGroup, Mapping[str, Any]]


@dataclass(frozen=True)
class PagePlan:
    group_name: str | None
    rows: tuple[Any, ...]
    is_first_page_of_group: bool
    local_page_index: int
    local_page_count: int
    is_first_page_of_document: bool = False
    group_index: int = 0
    global_page_index: int = 1
    first_row_number: int = 1

    @property
    def is_last_page_of_group(self) -> bool:
        return self.local_page_index == self.local_page_count


@dataclass(frozen=True)
class PlanSummary:
    total_pages: int
    group_page_counts: list[tuple[str | None, int]] = field(default_factory=list)


def _require_positive(value: Any, label: str) -> int:
    # bool is an int subclass; True would silently mean one row
    if isinstance(value, bool) or not isinstance(value, int):
        raise CapacityPolicyError(f"{label} must be an integer, got {value!r}")
    if value < 1:
        raise CapacityPolicyError(f"{label} must be >= 1, got {value}")
    return value


_REACHABLE_ROLES = ((True, True), (False, True), (False, False))


def _capacity_table(policy: CapacityFn) -> dict[tuple[bool, bool], int]:
    """
    Evaluate the policy up front so bad policies fail before any slicing.

    Only roles a plan can contain are checked: the document's first page is always
    also the first page of its group, so (first_of_document=True, first_of_group=False)
    never occurs.
    """
    table: dict[tuple[bool, bool], int] = {}
    for first_of_document, first_of_group in _REACHABLE_ROLES:
        capacity = policy(first_of_document, first_of_group)
        label = f"capacity(first_of_document={first_of_document}, first_of_group={first_of_group})"
        table[(first_of_document, first_of_group)] = _require_positive(capacity, label)
    return table


def _group_name(group: GroupLike) -> str | None:
    if isinstance(group, Mapping):
        return group.get("name")
    return group.name


def _group_rows(group: GroupLike) -> list[Any]:
    rows = group.get("rows") if isinstance(group, Mapping) else group.rows
    return list(rows or [])


def _slice_sizes(row_count: int, first: int, other: int) -> list[int]:
    if row_count <= first:
        return [row_count]
    remaining = row_count - first
    full, partial = divmod(remaining, other)
    return [first] + [other] * full + ([partial] if partial else [])


def _chunk_with_table(
    group: GroupLike,
    table: dict[tuple[bool, bool], int],
    *,
    starts_document: bool,
    group_index: int,
) -> list[PagePlan]:
    name = _group_name(group)
    rows = _group_rows(group)
    if not rows:
        return [
            PagePlan(
                group_name=name,
                rows=(),
                is_first_page_of_group=True,
                local_page_index=1,
                local_page_count=1,
                is_first_page_of_document=starts_document,
                group_index=group_index,
            )
        ]

    sizes = _slice_sizes(len(rows), table[(starts_document, True)], table[(False, False)])
    bounds = [0, *accumulate(sizes)]
    return [
        PagePlan(
            group_name=name,
            rows=tuple(rows[bounds[i]:bounds[i + 1]]),
            is_first_page_of_group=i == 0,
            local_page_index=i + 1,
            local_page_count=len(sizes),
            is_first_page_of_document=starts_document and i == 0,
            group_index=group_index,
            global_page_index=i + 1,
            first_row_number=bounds[i] + 1,
        )
        for i in range(len(sizes))
    ]


def chunk_group(group: GroupLike, policy: CapacityFn, *, starts_document: bool = True, group_index: int = 0) -> list[PagePlan]:
    """
    Split one group's rows into pages.

    The first page takes the policy's first-page capacity, every later page the
    other-page capacity; only the last page may be partial. A group without rows
    (or with rows=None) yields a single empty page numbered 1 of 1.
    """
    return _chunk_with_table(group, _capacity_table(policy), starts_document=starts_document, group_index=group_index)


def plan_pages(groups: Iterable[GroupLike] | None, policy: CapacityFn) -> list[PagePlan]:
    """
    Paginate every group in input order and linearize into one document.

    Only the very first page is flagged as the document's first page.
    An empty group list returns an empty plan; presenting "no data" is the renderer's job.
    """
    table = _capacity_table(policy)
    per_group = [
        _chunk_with_table(group, table, starts_document=index == 0, group_index=index)
        for index, group in enumerate(groups or [])
    ]
    pages = [
        replace(page, global_page_index=position)
        for position, page in enumerate(chain.from_iterable(per_group), start=1)
    ]
    _LOG.debug("plan_pages groups=%s pages=%s", len(per_group), len(pages))
    return pages


def plan_flat_report(rows: Sequence[Any] | None, policy: CapacityFn) -> list[PagePlan]:
    """Flat reports are one unnamed group, so first-of-group and first-of-document coincide."""
    return plan_pages([ReportGroup(name=None, rows=rows)], policy)


def summarize_plan(pages: Sequence[PagePlan]) -> PlanSummary:
    counts = [(page.group_name, page.local_page_count) for page in pages if page.is_first_page_of_group]
    return PlanSummary(total_pages=len(pages), group_page_counts=counts)
