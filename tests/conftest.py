import tempfile
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

from ninja_wallet.config import StatusConfig, TransferConfig, WalletConfig
from ninja_wallet.identity import AuthClient, LoginSuccess
from ninja_wallet.models import (
    Address,
    Balance,
    BuildResult,
    Identity,
    TransactionReceipt,
)
from ninja_wallet.shared.network import NetworkError, NetworkErrorType

TEST_ADDRESS = "kaspa:qypr7ayn2qjxg9z4mgyj9aj7p3d0r6lqz3x0kcudgt4lfsd7r6d4ncs4lm5ht4"
TEST_RECIPIENT = "kaspa:qzk3uh2twkhu0fmuq50mdy3r2yzuwqvstq745hxs7tet25hfd4egcafcdmpdl"
TEST_TX_ID = "4b1c9c2f8e0d6a3b7f5e2d1c0b9a8f7e6d5c4b3a2918f7e6d5c4b3a29180f7e6"


class FakeHandle:
    """In-memory wallet canister used in place of ``LedgerHandle``."""

    def __init__(
        self,
        address=None,
        balances=None,
        receipt=None,
        build_result=None,
        broadcast_id=TEST_TX_ID,
    ):
        self.address = address or Address(
            value=TEST_ADDRESS,
            derivation_path="m/44'/111111'/0'/0/0",
            public_key=bytes(range(33)),
            script_public_key="20" + "ab" * 32 + "ac",
        )
        self.balances = list(balances or [Balance(150_000_000, 0, 0, 150_000_000)])
        self.receipt = receipt or TransactionReceipt(TEST_TX_ID, 2_000)
        self.build_result = build_result or BuildResult("0a0b0c", 1_500)
        self.broadcast_id = broadcast_id
        self.calls: list[tuple] = []
        self.errors: dict[str, Exception] = {}

    def _record(self, name, *args):
        self.calls.append((name, *args))
        if name in self.errors:
            raise self.errors[name]

    def call_count(self, name):
        return sum(1 for call in self.calls if call[0] == name)

    async def generate_address(self):
        self._record("generate_address")
        return self.address

    async def get_balance(self, address):
        self._record("get_balance", address)
        if len(self.balances) > 1:
            return self.balances.pop(0)
        return self.balances[0]

    async def send_transaction(self, from_address, to_address, amount):
        self._record("send_transaction", from_address, to_address, amount)
        return self.receipt

    async def build_transaction(self, from_address, to_address, amount):
        self._record("build_transaction", from_address, to_address, amount)
        return self.build_result

    async def broadcast_transaction(self, serialized_tx):
        self._record("broadcast_transaction", serialized_tx)
        return self.broadcast_id

    async def whoami(self):
        self._record("whoami")
        return "2vxsx-fae"

    async def health(self):
        self._record("health")
        return "ok"


class FakeSessionFactory:
    def __init__(self, handle, error=None):
        self.handle = handle
        self.error = error
        self.created_for: list[Identity] = []

    async def create_handle(self, identity):
        self.created_for.append(identity)
        if self.error is not None:
            raise self.error
        return self.handle


def make_identity(principal="2vxsx-fae", hours=24):
    return Identity(
        principal=principal,
        delegation="d3b07384d113edec49eaa6238ad5ff00",
        expires_at=datetime.now(timezone.utc) + timedelta(hours=hours),
    )


def connection_error(context="getBalance"):
    return NetworkError(
        error_type=NetworkErrorType.CONNECTION_ERROR,
        message=f"{context}: Cannot connect to http://127.0.0.1:4943.",
    )


@pytest.fixture(autouse=True)
def isolate_wallet_storage(monkeypatch):
    """Run tests with isolated wallet storage."""
    with tempfile.TemporaryDirectory(prefix="ninja-wallet-test-") as tmp_dir:
        monkeypatch.setenv("NINJA_WALLET_DIR", str(Path(tmp_dir)))
        yield


@pytest.fixture
def storage_dir(tmp_path):
    return tmp_path / "wallet"


@pytest.fixture
def wallet_config(storage_dir):
    """Local-network config with short timers so scheduled work finishes quickly."""
    return WalletConfig(
        canister_id="bkyz2-fmaaa-aaaaa-qaaaq-cai",
        network="local",
        host="http://127.0.0.1:4943",
        identity_provider="http://rdmx6-jaaaa-aaaaa-aaadq-cai.localhost:4943",
        storage_dir=storage_dir,
        transfer=TransferConfig(refresh_delay=0.05),
        status=StatusConfig(message_duration=5.0, copied_indicator_duration=0.05),
    )


@pytest.fixture
def identity():
    return make_identity()


@pytest.fixture
def auth_client(storage_dir):
    return AuthClient(storage_dir)


@pytest.fixture
def fake_handle():
    return FakeHandle()


@pytest.fixture
def approving_authenticator(identity):
    calls = []

    async def authenticator(provider_url, max_time_to_live):
        calls.append((provider_url, max_time_to_live))
        return LoginSuccess(identity)

    authenticator.calls = calls
    return authenticator


@pytest.fixture
def session_factory(fake_handle):
    return FakeSessionFactory(fake_handle)


@pytest.fixture
def network_down():
    return connection_error()
