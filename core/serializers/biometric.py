from rest_framework import serializers

from core.services.biometric import BiometricType


class DeviceReportSerializer(serializers.Serializer):
    canCheckBiometrics = serializers.BooleanField(required=False, default=False)
    deviceSupported = serializers.BooleanField(required=False, default=False)
    biometrics = serializers.ListField(
        child=serializers.ChoiceField(choices=[t.value for t in BiometricType]), required=False, default=list
    )
    authenticated = serializers.BooleanField(required=False, default=False)
    errorCode = serializers.CharField(required=False, allow_blank=True, max_length=64)
    errorMessage = serializers.CharField(required=False, allow_blank=True, max_length=255)


class BiometricEnableSerializer(serializers.Serializer):
    device = DeviceReportSerializer()
    userData = serializers.DictField(required=False, default=dict)
