import logging
from typing import Callable, Optional

from django.db.models import Q

from core.exceptions import ServiceError
from core.models import Patient, Specialist, Referral, RecentSearch

logger = logging.getLogger(__name__)

MAX_QUERY_LENGTH = 255
RECENT_SEARCH_LIMIT = 20
SUGGESTIONS_PER_SOURCE = 3
MAX_SUGGESTIONS = 6


class SearchException(ServiceError):
    code = 'search_error'


def _clean(query: Optional[str]) -> str:
    query = (query or '').strip()
    if len(query) > MAX_QUERY_LENGTH:
        raise SearchException(f'Query must be at most {MAX_QUERY_LENGTH} characters')
    return query


def find_patients(query: str):
    return Patient.objects.filter(
        Q(name__icontains=query) | Q(medical_record_number__icontains=query) | Q(email__icontains=query)
    ).order_by('name')


def find_specialists(query: str):
    return Specialist.objects.filter(
        Q(name__icontains=query) | Q(specialty__icontains=query) | Q(hospital__icontains=query)
    ).order_by('-rating')


def find_referrals(query: str):
    return Referral.objects.filter(
        Q(tracking_number__icontains=query) | Q(symptoms_description__icontains=query) | Q(department__icontains=query)
    ).order_by('-created_at')


def _patient_result(p: Patient) -> dict:
    return {
        'type': 'patient',
        'id': p.id,
        'title': p.name,
        'subtitle': f"Patient • {p.email or 'No email'}",
        'data': p.to_dict(),
    }


def _specialist_result(s: Specialist) -> dict:
    return {
        'type': 'specialist',
        'id': s.id,
        'title': s.name,
        'subtitle': f"{s.specialty} • {s.hospital}",
        'data': s.to_dict(),
    }


def _referral_result(r: Referral) -> dict:
    return {
        'type': 'referral',
        'id': r.id,
        'title': f"Referral #{r.tracking_number}",
        'subtitle': f"{r.status} • {r.urgency}",
        'data': r.to_dict(),
    }


# type -> (lookup, result builder); order is the order results are concatenated in
LOOKUPS: dict[str, tuple[Callable, Callable]] = {
    'patient': (find_patients, _patient_result),
    'specialist': (find_specialists, _specialist_result),
    'referral': (find_referrals, _referral_result),
}


def _run_lookup(kind: str, query: str) -> list[dict]:
    lookup, build = LOOKUPS[kind]
    try:
        return [build(obj) for obj in lookup(query)]
    except Exception as e:
        logger.warning('Error searching %ss for %r: %s', kind, query, e)
        return []


def search(query: Optional[str]) -> list[dict]:
    """Search patients, specialists and referrals.

    Results of the three lookups are tagged with their ``type`` and
    concatenated in that order; a failing lookup contributes nothing.
    """
    query = _clean(query)
    if not query:
        return []
    results: list[dict] = []
    for kind in LOOKUPS:
        results.extend(_run_lookup(kind, query))
    logger.debug('Found %d results for %r', len(results), query)
    return results


def search_by_type(query: Optional[str], kind: Optional[str]) -> list[dict]:
    kind = (kind or '').lower()
    if kind not in LOOKUPS:
        return search(query)
    query = _clean(query)
    if not query:
        return []
    return _run_lookup(kind, query)


def get_suggestions(partial: Optional[str]) -> list[str]:
    partial = (partial or '').strip()
    if not partial:
        return []
    try:
        suggestions = list(
            find_patients(partial).values_list('name', flat=True)[:SUGGESTIONS_PER_SOURCE]
        )
        suggestions += list(
            find_specialists(partial).values_list('name', flat=True)[:SUGGESTIONS_PER_SOURCE]
        )
        return suggestions[:MAX_SUGGESTIONS]
    except Exception as e:
        logger.warning('Error getting suggestions for %r: %s', partial, e)
        return []


# ---------------------------------------------------------------------------
# Recent searches
# ---------------------------------------------------------------------------

def save_recent_search(user, query: str, result_count: int = 0) -> None:
    query = (query or '').strip()
    if not query:
        return
    RecentSearch.objects.create(user=user, query=query[:MAX_QUERY_LENGTH], result_count=result_count)
    stale = RecentSearch.objects.filter(user=user).order_by('-created_at', '-id').values_list('id', flat=True)[RECENT_SEARCH_LIMIT:]
    RecentSearch.objects.filter(id__in=list(stale)).delete()


def get_recent_searches(user) -> list[str]:
    return list(
        RecentSearch.objects.filter(user=user).order_by('-created_at', '-id').values_list('query', flat=True)[:RECENT_SEARCH_LIMIT]
    )


def clear_recent_searches(user) -> int:
    deleted, _ = RecentSearch.objects.filter(user=user).delete()
    return deleted
