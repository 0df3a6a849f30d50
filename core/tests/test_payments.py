import pytest

from core.services.payments import (
    MpesaConfig,
    get_error_message,
    SANDBOX_BASE_URL,
    PRODUCTION_BASE_URL,
    TEST_PHONE_NUMBERS,
)


def test_known_error_codes():
    assert get_error_message('1032') == 'Request cancelled by user'
    assert get_error_message(1) == 'Insufficient funds in the account'
    assert get_error_message('4010') == 'Transaction failed - Unable to reach M-Pesa system'


def test_unknown_error_code_falls_back():
    assert get_error_message('9999') == 'Transaction failed with error code: 9999'


def test_sandbox_is_default(settings):
    config = MpesaConfig.from_settings()
    assert config.is_production is False
    assert config.base_url == SANDBOX_BASE_URL
    assert config.business_short_code == settings.MPESA_SANDBOX_SHORTCODE
    # placeholder credentials
    assert config.is_configured is False


def test_production_selects_production_credentials(settings):
    settings.MPESA_ENVIRONMENT = 'production'
    settings.MPESA_PRODUCTION_CONSUMER_KEY = 'live-key'
    settings.MPESA_PRODUCTION_CONSUMER_SECRET = 'live-secret'
    settings.MPESA_PRODUCTION_SHORTCODE = '600000'
    config = MpesaConfig.from_settings()
    assert config.base_url == PRODUCTION_BASE_URL
    assert config.consumer_key == 'live-key'
    assert config.business_short_code == '600000'
    assert config.is_configured is True
    summary = config.public_summary()
    assert 'testPhoneNumbers' not in summary
    assert 'live-secret' not in summary.values()


def test_sandbox_summary_lists_test_numbers():
    summary = MpesaConfig.from_settings().public_summary()
    assert summary['testPhoneNumbers'] == TEST_PHONE_NUMBERS
    assert summary['transactionType'] == 'CustomerPayBillOnline'
    assert summary['timeoutSeconds'] == 120
    assert summary['maxRetries'] == 3


@pytest.mark.django_db
def test_config_endpoint_hides_secrets(patient, client_for, settings):
    settings.MPESA_SANDBOX_CONSUMER_SECRET = 'sandbox-secret'
    r = client_for(patient).get('/api/payments/config')
    assert r.status_code == 200
    assert r.data['data']['environment'] == 'sandbox'
    assert 'sandbox-secret' not in str(r.data)


@pytest.mark.django_db
def test_error_message_endpoint(patient, client_for):
    r = client_for(patient).get('/api/payments/errors/2001')
    assert r.status_code == 200
    assert r.data['message'] == 'Invalid PIN entered'
