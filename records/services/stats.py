"""
Coding statistics over a set of admission records.

Two entry points build the same payload.  :func:`compute_patient_stats`
works on records already in memory (model instances or any object with
the same attribute names) and is what the seed command and the unit
tests use.  :func:`aggregate_patient_stats` takes a ``Patient`` queryset
and lets the database do the counting, so the stats endpoint never
loads rows.  Both depend only on the records and on the ``now`` used for
the recency window.
"""
from __future__ import annotations

from collections import defaultdict
from datetime import datetime, timedelta
from typing import Any, Iterable, Optional

from django.db.models import Avg, Case, Count, IntegerField, Q, QuerySet, Sum, Value, When
from django.db.models.functions import Substr
from django.utils import timezone

from records.models import CODE_FIELDS

STATUS_COMPLETED = 'COMPLETED'
STATUS_IN_REVIEW = 'IN_REVIEW'
STATUS_PENDING = 'PENDING'

DEFAULT_DEPARTMENT = 'General'

# Evaluated top to bottom, first match wins.  Each rule lists the leading
# letters of the principal diagnosis code that select its department.
DEPARTMENT_RULES: tuple[tuple[tuple[str, ...], str], ...] = (
    (('J', 'R'), 'Respiratory'),
    (('I',), 'Cardiology'),
    (('G',), 'Neurology'),
    (('M', 'S'), 'Orthopedics'),
)

# Any of these marks a record as carrying some coding
CODING_MARKERS = ('pdx', 'sdx1', 'proc1')


def is_present(value: Any) -> bool:
    return value is not None and value != ''


def mean(values: Iterable[Optional[float]]) -> float:
    """Average of the non-null values, 0 when there are none."""
    total = 0.0
    n = 0
    for v in values:
        if v is None:
            continue
        total += v
        n += 1
    return total / n if n else 0


def classify_department(pdx: Optional[str]) -> str:
    if not is_present(pdx):
        return DEFAULT_DEPARTMENT
    for initials, label in DEPARTMENT_RULES:
        if pdx[:1] in initials:
            return label
    return DEFAULT_DEPARTMENT


def record_status(record) -> str:
    if getattr(record, 'datedsc', None) is not None:
        return STATUS_COMPLETED
    if is_present(getattr(record, 'pdx', None)):
        return STATUS_IN_REVIEW
    return STATUS_PENDING


def count_codes(record) -> int:
    """Number of filled diagnosis and procedure slots on one record."""
    return sum(1 for f in CODE_FIELDS if is_present(getattr(record, f, None)))


def has_any_coding(record) -> bool:
    return any(is_present(getattr(record, f, None)) for f in CODING_MARKERS)


def code_summary(total: int, n: int) -> dict:
    return {
        'totalCodes': total,
        'avgCodesPerPatient': total / n if n else 0,
    }


def rank_drgs(rows: list[dict], limit: int) -> list[dict]:
    # ties broken by code so repeated runs agree
    rows.sort(key=lambda row: (-row['count'], row['drg']))
    return rows[:limit]


def department_rows(counts: dict[str, int], coded: dict[str, int]) -> list[dict]:
    rows = []
    for dept, n in counts.items():
        completeness = coded.get(dept, 0) / n * 100
        rows.append({
            'department': dept,
            'count': n,
            'codingCompleteness': completeness,
            # legacy key read by the dashboards
            'accuracy': completeness,
        })
    rows.sort(key=lambda row: (-row['count'], row['department']))
    return rows


# In-memory records

def summarize(records: list, now: datetime, recent_days: int = 7) -> dict:
    since = now - timedelta(days=recent_days)
    statuses = [record_status(r) for r in records]
    recent = 0
    for r in records:
        admitted = getattr(r, 'dateadm', None)
        if admitted is not None and admitted >= since:
            recent += 1
    return {
        'totalPatients': len(records),
        'completedCount': statuses.count(STATUS_COMPLETED),
        'pendingCount': statuses.count(STATUS_PENDING),
        'inReviewCount': statuses.count(STATUS_IN_REVIEW),
        'recentAdmissions': recent,
        'avgLengthOfStay': mean(getattr(r, 'lengthofstay', None) for r in records),
        'avgAge': mean(getattr(r, 'age', None) for r in records),
        'avgRW': mean(getattr(r, 'rw', None) for r in records),
    }


def code_totals(records: list) -> dict:
    return code_summary(sum(count_codes(r) for r in records), len(records))


def top_drgs(records: list, limit: int = 10) -> list[dict]:
    groups: dict[str, list] = defaultdict(list)
    for r in records:
        drg = getattr(r, 'drg', None)
        if is_present(drg):
            groups[drg].append(r)
    rows = [
        {
            'drg': drg,
            'count': len(members),
            'avgRW': mean(getattr(m, 'rw', None) for m in members),
            'avgLOS': mean(getattr(m, 'lengthofstay', None) for m in members),
        }
        for drg, members in groups.items()
    ]
    return rank_drgs(rows, limit)


def department_breakdown(records: list) -> list[dict]:
    counts: dict[str, int] = defaultdict(int)
    coded: dict[str, int] = defaultdict(int)
    for r in records:
        dept = classify_department(getattr(r, 'pdx', None))
        counts[dept] += 1
        if has_any_coding(r):
            coded[dept] += 1
    return department_rows(counts, coded)


def compute_patient_stats(records: Iterable, now: Optional[datetime] = None,
                          recent_days: int = 7, top_drg_limit: int = 10) -> dict:
    """Build the statistics payload served at ``/api/patients/stats/summary``.

    ``summary`` holds counts by status plus averages of length of stay, age
    and relative weight; ``codes`` the number of filled code slots;
    ``topDRGs`` the most frequent DRG codes and ``departments`` the record
    count and coding completeness per department.  Absent numeric values
    are left out of averages and an average over nothing is 0.
    """
    records = list(records)
    if now is None:
        now = timezone.now()
    return {
        'summary': summarize(records, now, recent_days),
        'codes': code_totals(records),
        'topDRGs': top_drgs(records, top_drg_limit),
        'departments': department_breakdown(records),
    }


# Querysets

def present_q(field: str) -> Q:
    return Q(**{f'{field}__isnull': False}) & ~Q(**{field: ''})


def filled_slots():
    """Per-row count of filled code slots, as an SQL expression."""
    return sum(
        (Case(When(present_q(f), then=Value(1)), default=Value(0), output_field=IntegerField())
         for f in CODE_FIELDS),
        Value(0),
    )


def department_case() -> Case:
    # compares the first character exactly; LIKE is case-insensitive on SQLite
    return Case(
        *(When(pdx_initial__in=initials, then=Value(label)) for initials, label in DEPARTMENT_RULES),
        default=Value(DEFAULT_DEPARTMENT),
    )


def aggregate_patient_stats(qs: QuerySet, now: Optional[datetime] = None,
                            recent_days: int = 7, top_drg_limit: int = 10) -> dict:
    """Same payload as :func:`compute_patient_stats`, computed by the database.

    Runs three queries (totals, DRG groups, department groups) whatever
    the number of rows.
    """
    if now is None:
        now = timezone.now()
    since = now - timedelta(days=recent_days)
    qs = qs.order_by()

    totals = qs.aggregate(
        total=Count('pk'),
        completed=Count('pk', filter=Q(datedsc__isnull=False)),
        in_review=Count('pk', filter=Q(datedsc__isnull=True) & present_q('pdx')),
        recent=Count('pk', filter=Q(dateadm__gte=since)),
        avg_los=Avg('lengthofstay'),
        avg_age=Avg('age'),
        avg_rw=Avg('rw'),
        codes=Sum(filled_slots()),
    )
    total = totals['total']
    summary = {
        'totalPatients': total,
        'completedCount': totals['completed'],
        'pendingCount': total - totals['completed'] - totals['in_review'],
        'inReviewCount': totals['in_review'],
        'recentAdmissions': totals['recent'],
        'avgLengthOfStay': totals['avg_los'] or 0,
        'avgAge': totals['avg_age'] or 0,
        'avgRW': totals['avg_rw'] or 0,
    }

    drg_groups = (
        qs.filter(present_q('drg'))
        .values('drg')
        .annotate(n=Count('pk'), avg_rw=Avg('rw'), avg_los=Avg('lengthofstay'))
    )
    drgs = [
        {'drg': g['drg'], 'count': g['n'], 'avgRW': g['avg_rw'] or 0, 'avgLOS': g['avg_los'] or 0}
        for g in drg_groups
    ]

    coding_q = present_q(CODING_MARKERS[0])
    for f in CODING_MARKERS[1:]:
        coding_q |= present_q(f)
    dept_groups = (
        qs.annotate(pdx_initial=Substr('pdx', 1, 1))
        .annotate(dept=department_case())
        .values('dept')
        .annotate(n=Count('pk'), coded=Count('pk', filter=coding_q))
    )
    counts, coded = {}, {}
    for g in dept_groups:
        counts[g['dept']] = g['n']
        coded[g['dept']] = g['coded']

    return {
        'summary': summary,
        'codes': code_summary(totals['codes'] or 0, total),
        'topDRGs': rank_drgs(drgs, top_drg_limit),
        'departments': department_rows(counts, coded),
    }
