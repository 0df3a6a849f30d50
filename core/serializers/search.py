from rest_framework import serializers

from core.services.search import MAX_QUERY_LENGTH


class SearchQuerySerializer(serializers.Serializer):
    q = serializers.CharField(max_length=MAX_QUERY_LENGTH, required=False, allow_blank=True)
    type = serializers.ChoiceField(choices=['patient', 'specialist', 'referral'], required=False)
    save = serializers.BooleanField(required=False, default=True)


class SuggestionQuerySerializer(serializers.Serializer):
    q = serializers.CharField(max_length=MAX_QUERY_LENGTH, required=False, allow_blank=True)
