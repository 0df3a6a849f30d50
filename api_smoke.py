#!/usr/bin/env python3
"""
MedRefer API smoke test.

Runs against a live server (``MEDREFER_BASE_URL``, default
http://127.0.0.1:8000) using the accounts created by
``manage.py ensure_test_users`` and reports every endpoint that did not
answer with the expected status.
"""
import os
import sys
import time
from dataclasses import dataclass, field
from typing import Dict, Optional

import requests

BASE_URL = os.getenv("MEDREFER_BASE_URL", "http://127.0.0.1:8000")
PASSWORD = os.getenv("MEDREFER_TEST_PASSWORD", "medrefer123")

TEST_USERS = {
    "admin": "admin1",
    "physician": "doctor1",
    "patient": "patient1",
}


@dataclass
class SmokeResult:
    success: bool
    endpoint: str
    method: str
    status_code: int
    response_time: float
    error_message: str = ""
    user_role: str = ""
    body: dict = field(default_factory=dict)


class APISmokeTester:
    def __init__(self):
        self.session = requests.Session()
        self.headers: Dict[str, str] = {}
        self.current_role: Optional[str] = None
        self.results = []
        self.errors = []

    def login(self, role: str) -> bool:
        username = TEST_USERS[role]
        result = self.call("POST", "/api/auth/login", {"username": username, "password": PASSWORD})
        if not result.success:
            return False
        token = result.body.get("jwt_access")
        self.headers = {"Authorization": f"Bearer {token}", "Content-Type": "application/json"}
        self.current_role = role
        return True

    def call(self, method: str, endpoint: str, data: Optional[dict] = None, expected_status: int = 200):
        start = time.time()
        try:
            response = self.session.request(method, f"{BASE_URL}{endpoint}", json=data,
                                            headers=self.headers, timeout=10)
            elapsed = time.time() - start
            result = SmokeResult(
                success=response.status_code == expected_status,
                endpoint=endpoint,
                method=method,
                status_code=response.status_code,
                response_time=elapsed,
                error_message="" if response.status_code == expected_status else response.text[:200],
                user_role=self.current_role or "",
            )
            try:
                result.body = response.json()
            except ValueError:
                result.body = {}
        except requests.RequestException as e:
            result = SmokeResult(False, endpoint, method, 0, time.time() - start, str(e), self.current_role or "")

        mark = "ok  " if result.success else "FAIL"
        print(f"{mark} {method} {endpoint} -> {result.status_code} ({result.response_time:.2f}s)")
        self.results.append(result)
        if not result.success:
            self.errors.append(result)
        return result

    def run_for_role(self, role: str):
        print(f"\n== {role} ==")
        if not self.login(role):
            return

        cases = [
            ("GET", "/healthz", None, 200),
            ("GET", "/api/biometric/status", None, 200),
            ("GET", "/api/payments/config", None, 200),
            ("GET", "/api/payments/errors/1032", None, 200),
            ("GET", "/api/notifications", None, 200),
            ("POST", "/api/notifications/create", {"title": "Smoke", "message": "test"}, 201),
            ("POST", "/api/notifications/read-all", {}, 200),
            ("POST", "/api/notifications/clear", {}, 200),
            ("GET", "/api/pharmacy/drugs", None, 200),
            ("GET", "/api/pharmacy/categories", None, 200),
            ("GET", "/api/pharmacy/cart", None, 200),
            ("GET", "/api/pharmacy/orders", None, 200),
        ]
        if role in ("physician", "admin"):
            cases += [
                ("GET", "/api/search?q=a", None, 200),
                ("GET", "/api/search/suggestions?q=a", None, 200),
                ("GET", "/api/search/recent", None, 200),
            ]
        else:
            cases.append(("GET", "/api/search?q=a", None, 403))

        for method, endpoint, data, expected in cases:
            self.call(method, endpoint, data, expected)
        self.call("POST", "/api/auth/logout", {}, 200)

    def run(self) -> bool:
        for role in TEST_USERS:
            self.run_for_role(role)
            self.session = requests.Session()
            self.headers = {}
            self.current_role = None

        total = len(self.results)
        print(f"\n{total - len(self.errors)}/{total} checks passed")
        for error in self.errors:
            print(f"[{error.user_role}] {error.method} {error.endpoint} -> {error.status_code}: {error.error_message}")
        return not self.errors


def main():
    sys.exit(0 if APISmokeTester().run() else 1)


if __name__ == "__main__":
    main()
