"""
OTR lead analytics — pure aggregation over already-fetched leads.

Leads are any objects exposing .status, .message, .created_at (and .name,
.email, .company for search). Nothing here touches the store.
"""
import math
from collections import OrderedDict
from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta, timezone
from typing import Dict, List, Optional

from otr_crm.config import STATUS_LABELS, STATUS_PLURAL_LABELS
from otr_crm.leads.parser import parse_otr_message

NOT_INFORMED = 'Não informado'
OTHER_REGION = 'Outros'

# First match wins.
REGION_RULES = [
    ('Brasil',          ['Brazil', 'brasil', 'SP', 'MG', 'PA']),
    ('Itália',          ['Italy', 'itália', 'italia']),
    ('Alemanha',        ['Germany', 'alemanha']),
    ('Europa (Outros)', ['Europe', 'europa']),
    ('América Latina',  ['Chile', 'Peru', 'Colombia']),
]

MONTH_ABBR_PT = ['jan', 'fev', 'mar', 'abr', 'mai', 'jun',
                 'jul', 'ago', 'set', 'out', 'nov', 'dez']


@dataclass
class LeadAnalytics:
    total: int
    status_counts: Dict[str, int]
    status_data: List[dict]
    region_data: List[dict]
    source_type_data: List[dict]
    monthly_data: List[dict]
    conversion_rate: int
    period: Dict[str, Optional[str]] = field(default_factory=dict)


# ── Helpers ──────────────────────────────────────────────────────────────────

def as_utc(value):
    """Normalize a timestamp to an aware UTC datetime. Naive values are taken as UTC."""
    if value is None:
        return None
    if isinstance(value, str):
        value = datetime.fromisoformat(value.replace('Z', '+00:00'))
    elif isinstance(value, date) and not isinstance(value, datetime):
        value = datetime.combine(value, time.min)
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _as_day(value):
    if isinstance(value, datetime):
        return as_utc(value).date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value)[:10])


def percentage(part, whole):
    """round(100 * part / whole) with half-up rounding; 0 when whole is 0."""
    if not whole:
        return 0
    return int(math.floor(100 * part / whole + 0.5))


def _parsed(lead):
    return parse_otr_message(getattr(lead, 'message', '') or '')


# ── Filters ──────────────────────────────────────────────────────────────────

def filter_by_date(leads, start=None, end=None):
    """Keep leads created within [start, end]. end covers its whole day."""
    if not start and not end:
        return list(leads)

    start_dt = as_utc(start) if start else None
    end_dt = None
    if end:
        end_dt = datetime.combine(_as_day(end), time(23, 59, 59), tzinfo=timezone.utc)

    kept = []
    for lead in leads:
        created = as_utc(lead.created_at)
        if created is None:
            continue
        if start_dt and created < start_dt:
            continue
        if end_dt and created > end_dt:
            continue
        kept.append(lead)
    return kept


def filter_leads(leads, search='', status='all'):
    """Case-insensitive search across name/email/company/message plus a status filter."""
    term = (search or '').strip().lower()
    kept = []
    for lead in leads:
        if status and status != 'all' and lead.status != status:
            continue
        if term:
            haystack = [lead.name or '', lead.email or '', lead.company or '', lead.message or '']
            if not any(term in value.lower() for value in haystack):
                continue
        kept.append(lead)
    return kept


# ── Aggregations ─────────────────────────────────────────────────────────────

def status_counts(leads):
    """
    {'total': n, 'by_status': {status: count}}.

    Known statuses are always present in by_status, in workflow order; any
    other stored value is counted under its raw string.
    """
    by_status = OrderedDict((status, 0) for status in STATUS_LABELS)
    total = 0
    for lead in leads:
        total += 1
        key = lead.status or ''
        by_status[key] = by_status.get(key, 0) + 1
    return {'total': total, 'by_status': by_status}


def status_breakdown(leads):
    """Chart data for non-empty statuses, in workflow order."""
    by_status = status_counts(leads)['by_status']
    return [
        {'status': status, 'name': STATUS_PLURAL_LABELS.get(status, status or NOT_INFORMED), 'value': value}
        for status, value in by_status.items()
        if value > 0
    ]


def classify_region(location):
    """Map a free-text location to exactly one region bucket."""
    if not location or not location.strip():
        return NOT_INFORMED
    for region, needles in REGION_RULES:
        if any(needle in location for needle in needles):
            return region
    return OTHER_REGION


def _breakdown(values, total):
    counts = OrderedDict()
    for value in values:
        counts[value] = counts.get(value, 0) + 1
    return [
        {'name': name, 'value': value, 'percentage': percentage(value, total)}
        for name, value in counts.items()
    ]


def region_breakdown(leads):
    leads = list(leads)
    return _breakdown((classify_region(_parsed(l).location) for l in leads), len(leads))


def source_type_breakdown(leads):
    leads = list(leads)
    return _breakdown((_parsed(l).source_type or NOT_INFORMED for l in leads), len(leads))


def month_label(year, month):
    return f"{MONTH_ABBR_PT[month - 1]}/{year % 100:02d}"


def _shift_month(year, month, delta):
    index = year * 12 + (month - 1) + delta
    return index // 12, index % 12 + 1


def monthly_trend(leads, today=None, months=6):
    """Totals vs. conversions for the trailing `months` calendar months ending at today's month."""
    today = today or datetime.now(timezone.utc).date()
    buckets = OrderedDict()
    for delta in range(months - 1, -1, -1):
        buckets[_shift_month(today.year, today.month, -delta)] = {'total': 0, 'converted': 0}

    for lead in leads:
        created = as_utc(lead.created_at)
        if created is None:
            continue
        bucket = buckets.get((created.year, created.month))
        if bucket is None:
            continue
        bucket['total'] += 1
        if lead.status == 'converted':
            bucket['converted'] += 1

    return [
        {
            'month': month_label(year, month),
            'year': year,
            'month_number': month,
            'total': data['total'],
            'converted': data['converted'],
            'rate': percentage(data['converted'], data['total']),
        }
        for (year, month), data in buckets.items()
    ]


def conversion_rate(leads):
    leads = list(leads)
    converted = sum(1 for l in leads if l.status == 'converted')
    return percentage(converted, len(leads))


def summarize(leads, today=None, start=None, end=None):
    """Everything the analytics tab shows, for leads already filtered by date."""
    leads = list(leads)
    counts = status_counts(leads)
    return LeadAnalytics(
        total=counts['total'],
        status_counts=dict(counts['by_status']),
        status_data=status_breakdown(leads),
        region_data=region_breakdown(leads),
        source_type_data=source_type_breakdown(leads),
        monthly_data=monthly_trend(leads, today=today),
        conversion_rate=conversion_rate(leads),
        period={'start': str(start) if start else None, 'end': str(end) if end else None},
    )


# ── Goals / weekly digest ────────────────────────────────────────────────────

def goal_progress(goal, leads):
    """Leads and conversions created in the goal's month against its targets."""
    in_month = []
    for lead in leads:
        created = as_utc(lead.created_at)
        if created is not None and (created.year, created.month) == (goal.year, goal.month):
            in_month.append(lead)
    converted = sum(1 for l in in_month if l.status == 'converted')
    return {
        'month': goal.month,
        'year': goal.year,
        'leads': len(in_month),
        'target_leads': goal.target_leads,
        'leads_pct': percentage(len(in_month), goal.target_leads),
        'conversions': converted,
        'target_conversions': goal.target_conversions,
        'conversions_pct': percentage(converted, goal.target_conversions),
    }


def weekly_stats(leads, now=None):
    """Status counts for the last 7 days plus the all-time conversion rate."""
    now = as_utc(now) if now else datetime.now(timezone.utc)
    start = now - timedelta(days=7)
    leads = list(leads)
    recent = []
    for lead in leads:
        created = as_utc(lead.created_at)
        if created is not None and start <= created <= now:
            recent.append(lead)
    return {
        'start': start.date().isoformat(),
        'end': now.date().isoformat(),
        'weekly': status_counts(recent),
        'all_time_total': len(leads),
        'all_time_converted': sum(1 for l in leads if l.status == 'converted'),
        'conversion_rate': conversion_rate(leads),
    }
