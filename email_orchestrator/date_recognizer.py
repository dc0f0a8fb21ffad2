"""
Natural-language date/time recognizer.

Finds date and time mentions in free text ("Tuesday at 3pm", "tomorrow
10am-11:30am", "March 14 at 2 pm", "2025-03-14T15:00") and resolves them
against a reference "now", preferring future dates.

Recognition is done in two passes:

1. Regex matching of day components (explicit, relative and weekday dates)
   and time components (single times and ranges). Earlier rules win when
   spans overlap; anything inside a URL is ignored.
2. Adjacent day and time components separated only by filler ("at", "on",
   "from", a comma, "in the morning") are merged into one mention.

Date arithmetic and explicit-date parsing use python-dateutil.
"""

import logging
import re
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from typing import List, Optional, Tuple

from dateutil import parser as date_parser
from dateutil.relativedelta import FR, MO, SA, SU, TH, TU, WE, relativedelta

logger = logging.getLogger(__name__)

DEFAULT_TIME = time(12, 0)
TONIGHT_TIME = time(20, 0)

WEEKDAYS = {
    "monday": MO,
    "tuesday": TU,
    "wednesday": WE,
    "thursday": TH,
    "friday": FR,
    "saturday": SA,
    "sunday": SU,
}

_MONTH = (
    r"(jan(?:uary)?|feb(?:ruary)?|mar(?:ch)?|apr(?:il)?|may|june?|july?|aug(?:ust)?"
    r"|sep(?:t(?:ember)?)?|oct(?:ober)?|nov(?:ember)?|dec(?:ember)?)"
)
_MERIDIEM = r"(a\.?m\.?|p\.?m\.?)"

URL_RE = re.compile(r"https?://[^\s<>\"]+", re.IGNORECASE)

ISO_RE = re.compile(
    r"\b(\d{4}-\d{2}-\d{2})(?:[T ](\d{2}:\d{2}(?::\d{2})?(?:Z|[+-]\d{2}:?\d{2})?))?",
)
MONTH_DAY_RE = re.compile(
    r"\b" + _MONTH + r"\.?\s+(\d{1,2})(?:st|nd|rd|th)?\b(?:,?\s+(\d{4})\b)?",
    re.IGNORECASE,
)
DAY_MONTH_RE = re.compile(
    r"\b(\d{1,2})(?:st|nd|rd|th)?\s+(?:of\s+)?" + _MONTH + r"\b\.?(?:,?\s+(\d{4})\b)?",
    re.IGNORECASE,
)
NUMERIC_DATE_RE = re.compile(r"\b(\d{1,2})/(\d{1,2})(?:/(\d{4}|\d{2}))?\b")
RELATIVE_DAY_RE = re.compile(r"\b(day after tomorrow|today|tonight|tomorrow)\b", re.IGNORECASE)
WEEKDAY_RE = re.compile(
    r"\b(?:(this|next|coming)\s+)?(monday|tuesday|wednesday|thursday|friday|saturday|sunday)\b",
    re.IGNORECASE,
)

TIME_RANGE_12H_RE = re.compile(
    r"\b(\d{1,2})(?::([0-5]\d))?\s*" + _MERIDIEM + r"?\s*(?:-|–|to|until|till)\s*"
    r"(\d{1,2})(?::([0-5]\d))?\s*" + _MERIDIEM + r"(?![a-z])",
    re.IGNORECASE,
)
TIME_RANGE_24H_RE = re.compile(
    r"\b([01]?\d|2[0-3]):([0-5]\d)\s*(?:-|–|to|until|till)\s*([01]?\d|2[0-3]):([0-5]\d)\b",
    re.IGNORECASE,
)
TIME_12H_RE = re.compile(r"\b(\d{1,2})(?::([0-5]\d))?\s*" + _MERIDIEM + r"(?![a-z])", re.IGNORECASE)
TIME_24H_RE = re.compile(r"\b([01]?\d|2[0-3]):([0-5]\d)\b")
NAMED_TIME_RE = re.compile(r"\b(noon|midday|midnight)\b", re.IGNORECASE)

_PART_OF_DAY = r"(?:(?:in\s+the\s+)?(?:morning|afternoon|evening))?"
DAY_THEN_TIME_GAP_RE = re.compile(
    r"^[\s,]*" + _PART_OF_DAY + r"[\s,]*(?:at|@|from|between|by)?\s*$",
    re.IGNORECASE,
)
TIME_THEN_DAY_GAP_RE = re.compile(r"^[\s,]*(?:on)?\s*$", re.IGNORECASE)


@dataclass(frozen=True)
class DateMention:
    """
    One resolved date/time mention.

    ``index`` is the character offset of the mention in the scanned text;
    ``end`` is only set when the text stated an explicit end time.
    """

    start: datetime
    end: Optional[datetime]
    index: int
    text: str


@dataclass
class _Component:
    span: Tuple[int, int]
    day: Optional[date] = None
    # Set when the day was stated by weekday or relative word and may need
    # to roll forward a week if its time has already passed.
    weekday_rollover: bool = False
    default_time: time = DEFAULT_TIME
    start_time: Optional[time] = None
    end_time: Optional[time] = None
    tzinfo: Optional[object] = None

    @property
    def has_day(self) -> bool:
        return self.day is not None

    @property
    def has_time(self) -> bool:
        return self.start_time is not None


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _to_24h(hour: int, meridiem: Optional[str]) -> Optional[int]:
    if meridiem is None:
        return hour if 0 <= hour <= 23 else None
    if not 1 <= hour <= 12:
        return None
    is_pm = meridiem.lower().startswith("p")
    if is_pm and hour != 12:
        return hour + 12
    if not is_pm and hour == 12:
        return 0
    return hour


def _forward_date(candidate: date, today: date, year_given: bool) -> date:
    if not year_given and candidate < today:
        return candidate + relativedelta(years=1)
    return candidate


def _overlaps(span: Tuple[int, int], taken: List[Tuple[int, int]]) -> bool:
    return any(span[0] < end and start < span[1] for start, end in taken)


# ---------------------------------------------------------------------------
# Component matchers
# ---------------------------------------------------------------------------


def _iso_components(text: str, now: datetime) -> List[_Component]:
    out: List[_Component] = []
    for m in ISO_RE.finditer(text):
        try:
            parsed = date_parser.isoparse(m.group(0).replace(" ", "T"))
        except ValueError:
            continue
        comp = _Component(span=m.span(), day=parsed.date())
        if m.group(2):
            comp.start_time = parsed.time().replace(tzinfo=None)
            comp.tzinfo = parsed.tzinfo
        out.append(comp)
    return out


def _month_name_components(text: str, now: datetime) -> List[_Component]:
    out: List[_Component] = []
    default = datetime(now.year, 1, 1)
    for regex, month_group, day_group in ((MONTH_DAY_RE, 1, 2), (DAY_MONTH_RE, 2, 1)):
        for m in regex.finditer(text):
            year = m.group(3)
            raw = f"{m.group(month_group)} {m.group(day_group)} {year or ''}".strip()
            try:
                parsed = date_parser.parse(raw, default=default).date()
            except (ValueError, OverflowError):
                continue
            out.append(
                _Component(
                    span=m.span(),
                    day=_forward_date(parsed, now.date(), year_given=bool(year)),
                )
            )
    return out


def _numeric_date_components(text: str, now: datetime) -> List[_Component]:
    out: List[_Component] = []
    for m in NUMERIC_DATE_RE.finditer(text):
        month, day, year = int(m.group(1)), int(m.group(2)), m.group(3)
        y = now.year
        if year:
            y = int(year)
            if y < 100:
                y += 2000
        try:
            parsed = date(y, month, day)
        except ValueError:
            continue
        out.append(
            _Component(
                span=m.span(),
                day=_forward_date(parsed, now.date(), year_given=bool(year)),
            )
        )
    return out


def _relative_day_components(text: str, now: datetime) -> List[_Component]:
    offsets = {"today": 0, "tonight": 0, "tomorrow": 1, "day after tomorrow": 2}
    out: List[_Component] = []
    for m in RELATIVE_DAY_RE.finditer(text):
        word = m.group(1).lower()
        comp = _Component(span=m.span(), day=now.date() + timedelta(days=offsets[word]))
        if word == "tonight":
            comp.default_time = TONIGHT_TIME
        out.append(comp)
    return out


def _weekday_components(text: str, now: datetime) -> List[_Component]:
    out: List[_Component] = []
    for m in WEEKDAY_RE.finditer(text):
        modifier = (m.group(1) or "").lower()
        weekday = WEEKDAYS[m.group(2).lower()]
        today = now.date()
        if modifier == "next":
            # The named day of the following Monday-to-Sunday week.
            next_monday = today + timedelta(days=7 - today.weekday())
            target = next_monday + timedelta(days=weekday.weekday)
            rollover = False
        else:
            # relativedelta(weekday=TU) lands on today when today is Tuesday.
            target = today + relativedelta(weekday=weekday)
            rollover = True
        out.append(_Component(span=m.span(), day=target, weekday_rollover=rollover))
    return out


def _time_range_components(text: str, now: datetime) -> List[_Component]:
    out: List[_Component] = []
    for m in TIME_RANGE_12H_RE.finditer(text):
        end_mer = m.group(6)
        end_h = _to_24h(int(m.group(4)), end_mer)
        if end_h is None:
            continue
        start_mer = m.group(3)
        if start_mer:
            start_h = _to_24h(int(m.group(1)), start_mer)
        else:
            # "3-4pm" inherits pm; "11-1pm" means 11am.
            start_h = _to_24h(int(m.group(1)), end_mer)
            if start_h is not None and start_h > end_h:
                start_h = _to_24h(int(m.group(1)), "am" if end_mer.lower().startswith("p") else "pm")
        if start_h is None:
            continue
        out.append(
            _Component(
                span=m.span(),
                start_time=time(start_h, int(m.group(2) or 0)),
                end_time=time(end_h, int(m.group(5) or 0)),
            )
        )
    for m in TIME_RANGE_24H_RE.finditer(text):
        out.append(
            _Component(
                span=m.span(),
                start_time=time(int(m.group(1)), int(m.group(2))),
                end_time=time(int(m.group(3)), int(m.group(4))),
            )
        )
    return out


def _single_time_components(text: str, now: datetime) -> List[_Component]:
    out: List[_Component] = []
    for m in TIME_12H_RE.finditer(text):
        hour = _to_24h(int(m.group(1)), m.group(3))
        if hour is None:
            continue
        out.append(_Component(span=m.span(), start_time=time(hour, int(m.group(2) or 0))))
    for m in TIME_24H_RE.finditer(text):
        out.append(_Component(span=m.span(), start_time=time(int(m.group(1)), int(m.group(2)))))
    for m in NAMED_TIME_RE.finditer(text):
        word = m.group(1).lower()
        out.append(_Component(span=m.span(), start_time=time(0, 0) if word == "midnight" else time(12, 0)))
    return out


# Earlier matchers take precedence when spans overlap.
_MATCHERS = (
    _iso_components,
    _month_name_components,
    _numeric_date_components,
    _time_range_components,
    _relative_day_components,
    _weekday_components,
    _single_time_components,
)


def _collect_components(text: str, now: datetime) -> List[_Component]:
    taken: List[Tuple[int, int]] = [m.span() for m in URL_RE.finditer(text)]
    accepted: List[_Component] = []
    for matcher in _MATCHERS:
        for comp in matcher(text, now):
            if _overlaps(comp.span, taken):
                continue
            taken.append(comp.span)
            accepted.append(comp)
    accepted.sort(key=lambda c: c.span[0])
    return accepted


def _merge(text: str, components: List[_Component]) -> List[_Component]:
    merged: List[_Component] = []
    i = 0
    while i < len(components):
        current = components[i]
        if i + 1 < len(components):
            nxt = components[i + 1]
            gap = text[current.span[1] : nxt.span[0]]
            day_time = (
                current.has_day and not current.has_time and nxt.has_time and not nxt.has_day
                and DAY_THEN_TIME_GAP_RE.match(gap)
            )
            time_day = (
                current.has_time and not current.has_day and nxt.has_day and not nxt.has_time
                and TIME_THEN_DAY_GAP_RE.match(gap)
            )
            if day_time or time_day:
                day_comp, time_comp = (current, nxt) if day_time else (nxt, current)
                merged.append(
                    _Component(
                        span=(current.span[0], nxt.span[1]),
                        day=day_comp.day,
                        weekday_rollover=day_comp.weekday_rollover,
                        default_time=day_comp.default_time,
                        start_time=time_comp.start_time,
                        end_time=time_comp.end_time,
                    )
                )
                i += 2
                continue
        merged.append(current)
        i += 1
    return merged


def _resolve(comp: _Component, text: str, now: datetime) -> Optional[DateMention]:
    """Resolve one component; None when its arithmetic leaves the datetime range."""
    try:
        start, end = _resolve_bounds(comp, now)
    except OverflowError:
        logger.debug("Skipping out-of-range date mention %r", text[comp.span[0] : comp.span[1]])
        return None

    return DateMention(
        start=start,
        end=end,
        index=comp.span[0],
        text=text[comp.span[0] : comp.span[1]],
    )


def _resolve_bounds(comp: _Component, now: datetime) -> Tuple[datetime, Optional[datetime]]:
    tzinfo = comp.tzinfo if comp.tzinfo is not None else now.tzinfo
    start_time = comp.start_time or comp.default_time

    if comp.has_day:
        start = datetime.combine(comp.day, start_time, tzinfo=tzinfo)
        if comp.weekday_rollover and comp.day == now.date() and comp.has_time and start <= now:
            # A bare weekday naming today whose time has passed means next week.
            start += timedelta(days=7)
    else:
        start = datetime.combine(now.date(), start_time, tzinfo=tzinfo)
        if start <= now:
            start += timedelta(days=1)

    end: Optional[datetime] = None
    if comp.end_time is not None:
        end = datetime.combine(start.date(), comp.end_time, tzinfo=tzinfo)
        if end <= start:
            end += timedelta(days=1)

    return start, end


def recognize_dates(text: str, now: Optional[datetime] = None) -> List[DateMention]:
    """
    Return every date/time mention in ``text``, in order of appearance.

    ``now`` defaults to the current local time (timezone-aware). Relative
    mentions resolve forward from it; results carry ``now``'s tzinfo unless
    the text stated an explicit offset.
    """
    if now is None:
        now = datetime.now().astimezone()
    if not text:
        return []

    components = _merge(text, _collect_components(text, now))
    mentions = [m for m in (_resolve(c, text, now) for c in components) if m is not None]
    logger.debug("Recognized %d date mention(s)", len(mentions))
    return mentions
