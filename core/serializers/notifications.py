from rest_framework import serializers

from core.services.notifications import NotificationType


class NotificationListQuerySerializer(serializers.Serializer):
    type = serializers.ChoiceField(choices=[t.value for t in NotificationType], required=False)
    unreadOnly = serializers.BooleanField(required=False, default=False)


class NotificationCreateSerializer(serializers.Serializer):
    userId = serializers.IntegerField(min_value=1, required=False)
    title = serializers.CharField(max_length=255)
    message = serializers.CharField(max_length=2000)
    type = serializers.ChoiceField(choices=[t.value for t in NotificationType], required=False, default='info')
    actionRoute = serializers.CharField(max_length=255, required=False, allow_blank=True)
    data = serializers.DictField(required=False)
    autoRemoveAfter = serializers.IntegerField(min_value=1, required=False, help_text='seconds')


class NotificationIdSerializer(serializers.Serializer):
    id = serializers.CharField(max_length=64)
