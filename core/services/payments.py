"""
M-Pesa gateway configuration.

Credentials and endpoints come from Django settings (``MPESA_*``), which
in turn read the environment / ``.env``.  ``MPESA_ENVIRONMENT`` selects
between the sandbox and production sets.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

from django.conf import settings

SANDBOX_BASE_URL = 'https://sandbox.safaricom.co.ke'
PRODUCTION_BASE_URL = 'https://api.safaricom.co.ke'

TRANSACTION_TYPE = 'CustomerPayBillOnline'
TIMEOUT_SECONDS = 120
MAX_RETRIES = 3

PLACEHOLDER_CREDENTIALS = {
    'YOUR_SANDBOX_CONSUMER_KEY',
    'YOUR_PRODUCTION_CONSUMER_KEY',
    'YOUR_SANDBOX_CONSUMER_SECRET',
    'YOUR_PRODUCTION_CONSUMER_SECRET',
}

# Sandbox only
TEST_PHONE_NUMBERS = [
    '254708374149',
    '254711XXXXXX',
    '254733XXXXXX',
]

ERROR_MESSAGES = {
    '1': 'Insufficient funds in the account',
    '1001': 'Unable to lock subscriber, a transaction is already in process for the current subscriber',
    '1019': 'Transaction expired. No MO has been received',
    '1032': 'Request cancelled by user',
    '1037': 'DS timeout user cannot be reached',
    '2001': 'Invalid PIN entered',
    '4001': 'Transaction failed',
    '4002': 'Transaction failed - Invalid account',
    '4003': 'Transaction failed - Invalid amount',
    '4004': 'Transaction failed - Invalid phone number',
    '4005': 'Transaction failed - Transaction not permitted to originator',
    '4006': 'Transaction failed - Transaction not permitted to receiver',
    '4007': 'Transaction failed - Cannot route to receiver',
    '4008': 'Transaction failed - Transaction expired',
    '4009': 'Transaction failed - Invalid transaction reference',
    '4010': 'Transaction failed - Unable to reach M-Pesa system',
}


def get_error_message(code) -> str:
    code = str(code).strip()
    return ERROR_MESSAGES.get(code, f'Transaction failed with error code: {code}')


@dataclass(frozen=True)
class Credentials:
    consumer_key: str
    consumer_secret: str
    business_short_code: str
    passkey: str
    callback_url: str


@dataclass(frozen=True)
class MpesaConfig:
    environment: str
    sandbox: Credentials
    production: Credentials
    test_phone_numbers: list[str] = field(default_factory=lambda: list(TEST_PHONE_NUMBERS))

    @classmethod
    def from_settings(cls) -> 'MpesaConfig':
        return cls(
            environment=settings.MPESA_ENVIRONMENT,
            sandbox=Credentials(
                consumer_key=settings.MPESA_SANDBOX_CONSUMER_KEY,
                consumer_secret=settings.MPESA_SANDBOX_CONSUMER_SECRET,
                business_short_code=settings.MPESA_SANDBOX_SHORTCODE,
                passkey=settings.MPESA_SANDBOX_PASSKEY,
                callback_url=settings.MPESA_SANDBOX_CALLBACK_URL,
            ),
            production=Credentials(
                consumer_key=settings.MPESA_PRODUCTION_CONSUMER_KEY,
                consumer_secret=settings.MPESA_PRODUCTION_CONSUMER_SECRET,
                business_short_code=settings.MPESA_PRODUCTION_SHORTCODE,
                passkey=settings.MPESA_PRODUCTION_PASSKEY,
                callback_url=settings.MPESA_PRODUCTION_CALLBACK_URL,
            ),
        )

    @property
    def is_production(self) -> bool:
        return self.environment == 'production'

    @property
    def active(self) -> Credentials:
        return self.production if self.is_production else self.sandbox

    @property
    def base_url(self) -> str:
        return PRODUCTION_BASE_URL if self.is_production else SANDBOX_BASE_URL

    @property
    def consumer_key(self) -> str:
        return self.active.consumer_key

    @property
    def consumer_secret(self) -> str:
        return self.active.consumer_secret

    @property
    def business_short_code(self) -> str:
        return self.active.business_short_code

    @property
    def passkey(self) -> str:
        return self.active.passkey

    @property
    def callback_url(self) -> str:
        return self.active.callback_url

    @property
    def is_configured(self) -> bool:
        key, secret = self.consumer_key, self.consumer_secret
        return bool(key and secret) and key not in PLACEHOLDER_CREDENTIALS and secret not in PLACEHOLDER_CREDENTIALS

    def get_error_message(self, code) -> str:
        return get_error_message(code)

    def public_summary(self) -> dict:
        """Non-secret configuration that may be shown to clients."""
        summary: dict[str, Optional[object]] = {
            'environment': self.environment,
            'baseUrl': self.base_url,
            'businessShortCode': self.business_short_code,
            'callbackUrl': self.callback_url,
            'transactionType': TRANSACTION_TYPE,
            'timeoutSeconds': TIMEOUT_SECONDS,
            'maxRetries': MAX_RETRIES,
            'configured': self.is_configured,
        }
        if not self.is_production:
            summary['testPhoneNumbers'] = list(self.test_phone_numbers)
        return summary
