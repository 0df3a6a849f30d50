from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from core.permissions import IsClinicalRole
from core.serializers.search import SearchQuerySerializer, SuggestionQuerySerializer
from core.services.search import (
    search, search_by_type, get_suggestions,
    save_recent_search, get_recent_searches, clear_recent_searches,
)


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsClinicalRole])
def global_search(request):
    q = SearchQuerySerializer(data=request.query_params)
    q.is_valid(raise_exception=True)
    query = q.validated_data.get('q', '')
    kind = q.validated_data.get('type')
    results = search_by_type(query, kind) if kind else search(query)
    if q.validated_data.get('save') and query.strip():
        save_recent_search(request.user, query, len(results))
    return Response({'ok': True, 'query': query, 'total': len(results), 'data': results})


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsClinicalRole])
def search_suggestions(request):
    q = SuggestionQuerySerializer(data=request.query_params)
    q.is_valid(raise_exception=True)
    return Response({'ok': True, 'data': get_suggestions(q.validated_data.get('q', ''))})


@api_view(['GET', 'DELETE'])
@permission_classes([IsAuthenticated, IsClinicalRole])
def recent_searches(request):
    if request.method == 'DELETE':
        return Response({'ok': True, 'deleted': clear_recent_searches(request.user)})
    return Response({'ok': True, 'data': get_recent_searches(request.user)})
