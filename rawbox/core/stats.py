"""
Statistics building.

The logs endpoint either returns server-aggregated statistics or a raw
list of access-log entries. Raw entries are only turned into numbers by
an explicitly enabled summarizer; otherwise the summary carries the raw
data alone.
"""
from collections import Counter
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple

from .models import StatsSummary

LogSummarizer = Callable[[List[Dict[str, Any]]], StatsSummary]

AGGREGATE_KEYS = ('totalRequests', 'successRate', 'uniqueIPs', 'hotFiles', 'hotIPs')

TOP_N = 10


def _first(entry: Dict[str, Any], keys: Iterable[str]) -> Any:
    for key in keys:
        value = entry.get(key)
        if value not in (None, ''):
            return value
    return None


def _ranked(items: Any, name_keys: Tuple[str, ...]) -> List[Tuple[str, int]]:
    """Normalize ``[{name, count}]`` or ``[[name, count]]`` lists."""
    ranked = []
    for item in items or ():
        if isinstance(item, dict):
            name = _first(item, name_keys)
            count = item.get('count', 0)
        elif isinstance(item, (list, tuple)) and len(item) == 2:
            name, count = item
        else:
            continue
        if name is None:
            continue
        try:
            ranked.append((str(name), int(count)))
        except (TypeError, ValueError):
            continue
    return ranked


def _optional_int(value: Any) -> Optional[int]:
    try:
        return None if value is None else int(value)
    except (TypeError, ValueError):
        return None


def _optional_float(value: Any) -> Optional[float]:
    try:
        return None if value is None else float(value)
    except (TypeError, ValueError):
        return None


def find_aggregates(data: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    """Server-side aggregates, either top level or under ``stats``."""
    nested = data.get('stats')
    if isinstance(nested, dict) and any(key in nested for key in AGGREGATE_KEYS):
        return nested
    if any(key in data for key in AGGREGATE_KEYS):
        return data
    return None


def summary_from_aggregates(aggregates: Dict[str, Any]) -> StatsSummary:
    return StatsSummary(
        total_requests=_optional_int(aggregates.get('totalRequests')),
        success_rate=_optional_float(aggregates.get('successRate')),
        unique_ips=_optional_int(aggregates.get('uniqueIPs')),
        hot_files=_ranked(aggregates.get('hotFiles'), ('path', 'file', 'name')),
        hot_ips=_ranked(aggregates.get('hotIPs'), ('ip', 'address', 'name')),
        aggregated=True,
    )


def summarize_logs(logs: List[Dict[str, Any]]) -> StatsSummary:
    """
    Count requests, successes, IPs and files in raw log entries.

    Entries without a status are left out of the success rate; if none
    carries a status the rate is None.
    """
    entries = [entry for entry in logs if isinstance(entry, dict)]
    files: Counter = Counter()
    ips: Counter = Counter()
    with_status = 0
    succeeded = 0

    for entry in entries:
        path = _first(entry, ('path', 'file', 'url'))
        if path is not None:
            files[str(path)] += 1

        ip = _first(entry, ('ip', 'client_ip', 'remote_addr'))
        if ip is not None:
            ips[str(ip)] += 1

        status = _optional_int(_first(entry, ('status', 'code')))
        if status is not None:
            with_status += 1
            if 200 <= status < 400:
                succeeded += 1

    return StatsSummary(
        total_requests=len(entries),
        success_rate=(succeeded / with_status * 100) if with_status else None,
        unique_ips=len(ips),
        hot_files=files.most_common(TOP_N),
        hot_ips=ips.most_common(TOP_N),
        summarized=True,
    )


def build_stats(
    data: Dict[str, Any],
    summarizer: Optional[LogSummarizer] = None
) -> StatsSummary:
    """
    Build a StatsSummary from a logs endpoint payload.

    Args:
        data: Decoded ``{code, files?, logs?, message, ...}`` payload
        summarizer: Aggregation applied to raw logs when the server sent
            no aggregates; None keeps the raw data only
    """
    raw_logs = [entry for entry in data.get('logs') or () if isinstance(entry, dict)]
    log_files = [str(name) for name in data.get('files') or ()]

    aggregates = find_aggregates(data)
    if aggregates is not None:
        summary = summary_from_aggregates(aggregates)
    elif summarizer is not None and raw_logs:
        summary = summarizer(raw_logs)
    else:
        summary = StatsSummary()

    summary.raw_logs = raw_logs
    summary.log_files = log_files
    return summary
