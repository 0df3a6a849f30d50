import base64
from typing import Optional

from Crypto.Cipher import AES
from Crypto.Hash import SHA256
from Crypto.Random import get_random_bytes
from django.conf import settings

from core.models import SecureValue


class SecureStorage:
    """Per-user encrypted key/value store.

    Values are sealed with AES-GCM under a key derived from ``SECRET_KEY``
    and stored base64 encoded as ``nonce | tag | ciphertext``.
    """
    NONCE_SIZE = 12
    TAG_SIZE = 16

    def __init__(self, user, secret: Optional[str] = None):
        self.user = user
        self._key = SHA256.new((secret or settings.SECRET_KEY).encode('utf-8')).digest()

    def _seal(self, plain: str) -> str:
        nonce = get_random_bytes(self.NONCE_SIZE)
        cipher = AES.new(self._key, AES.MODE_GCM, nonce=nonce)
        ct, tag = cipher.encrypt_and_digest(plain.encode('utf-8'))
        return base64.b64encode(nonce + tag + ct).decode('ascii')

    def _open(self, sealed: str) -> str:
        raw = base64.b64decode(sealed)
        nonce = raw[:self.NONCE_SIZE]
        tag = raw[self.NONCE_SIZE:self.NONCE_SIZE + self.TAG_SIZE]
        ct = raw[self.NONCE_SIZE + self.TAG_SIZE:]
        cipher = AES.new(self._key, AES.MODE_GCM, nonce=nonce)
        # raises ValueError when the value was tampered with
        return cipher.decrypt_and_verify(ct, tag).decode('utf-8')

    def read(self, key: str) -> Optional[str]:
        row = SecureValue.objects.filter(user=self.user, key=key).first()
        if row is None:
            return None
        return self._open(row.value)

    def write(self, key: str, value: str) -> None:
        SecureValue.objects.update_or_create(
            user=self.user, key=key, defaults={'value': self._seal(value)}
        )

    def delete(self, key: str) -> None:
        SecureValue.objects.filter(user=self.user, key=key).delete()
