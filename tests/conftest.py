"""
Shared fixtures: a config with every credential set, and in-memory stand-ins
for the repository store, the payment gateway and the notifier.
"""

import hashlib
from typing import Dict, List, Optional

import pytest

from config import StoreConfig
from errors import GatewayError, StorageConflictError, StorageError
from schemas.order_definitions import Payment, Preference
from services.signature import compute_signature
from storage.github_storage import StoredFile


WEBHOOK_SECRET = "whsec-test"


class InMemoryFileStore:
    """Same contract as GitHubFileStore, sha = sha1 of the content."""

    def __init__(self):
        self.files: Dict[str, str] = {}
        self.puts: List[dict] = []
        self.updates: List[dict] = []
        self.fail_put: Optional[Exception] = None
        self.fail_update: Optional[Exception] = None

    @staticmethod
    def sha_of(content: str) -> str:
        return hashlib.sha1(content.encode("utf-8")).hexdigest()

    async def put(self, path, content, message):
        if self.fail_put:
            raise self.fail_put
        self.puts.append({"path": path, "content": content, "message": message})
        self.files[path] = content
        return {"content": {"sha": self.sha_of(content)}}

    async def get(self, path):
        if path not in self.files:
            raise StorageError("Not Found", status_code=404)
        content = self.files[path]
        return StoredFile(path=path, content=content, sha=self.sha_of(content))

    async def update(self, path, content, message, sha):
        self.updates.append({"path": path, "content": content, "message": message, "sha": sha})
        if self.fail_update:
            raise self.fail_update
        current = self.files.get(path)
        if current is None or self.sha_of(current) != sha:
            raise StorageConflictError("sha does not match", status_code=409)
        self.files[path] = content
        return {"content": {"sha": self.sha_of(content)}}


class FakeGateway:
    def __init__(self):
        self.preference = Preference(
            id="pref-1",
            init_point="https://www.mercadopago.com/checkout?pref_id=pref-1",
            sandbox_init_point="https://sandbox.mercadopago.com/checkout?pref_id=pref-1",
        )
        self.payments: Dict[str, Payment] = {}
        self.preference_calls: List[dict] = []
        self.fetch_calls: List[str] = []
        self.fail_preference: Optional[Exception] = None

    async def create_preference(self, items, order_id, base_url):
        self.preference_calls.append({"items": items, "order_id": order_id, "base_url": base_url})
        if self.fail_preference:
            raise self.fail_preference
        return self.preference

    async def fetch_payment(self, payment_id):
        self.fetch_calls.append(payment_id)
        if payment_id not in self.payments:
            raise GatewayError("Payment not found", status_code=404)
        return self.payments[payment_id]

    def add_payment(self, payment_id, status="approved", external_reference="order-1", amount=30.0):
        self.payments[str(payment_id)] = Payment(
            id=payment_id,
            status=status,
            transaction_amount=amount,
            payment_method_id="visa",
            external_reference=external_reference,
        )


class RecordingNotifier:
    def __init__(self):
        self.customer: list = []
        self.store: list = []
        self.fail: Optional[Exception] = None

    async def notify_customer(self, order):
        if self.fail:
            raise self.fail
        self.customer.append(order)
        return True

    async def notify_store(self, order, to=None):
        if self.fail:
            raise self.fail
        self.store.append((to, order))
        return True


def sign(body: str, secret: str = WEBHOOK_SECRET, timestamp: str = "1700000000") -> str:
    return f"ts={timestamp},v1={compute_signature(timestamp, body, secret)}"


@pytest.fixture
def config():
    return StoreConfig(
        mp_access_token="mp-token",
        mp_webhook_secret=WEBHOOK_SECRET,
        github_token="gh-token",
        github_owner="nude",
        github_repo="shop",
        store_email="owner@nude.test",
        smtp_host="smtp.nude.test",
        smtp_port=587,
        smtp_user="mailer",
        smtp_pass="secret",
        public_base_url="https://shop.nude.test",
    )


@pytest.fixture
def store():
    return InMemoryFileStore()


@pytest.fixture
def gateway():
    return FakeGateway()


@pytest.fixture
def notifier():
    return RecordingNotifier()
