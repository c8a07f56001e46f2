"""
Test configuration: shared publisher keys and quote factories

Set ORACLEZK_SKIP_SLOW=1 to skip tests that build full signature circuits.
"""
import os
import pytest

from oraclezk.circuit import eddsa
from oraclezk.schemas.witness import SignedQuote

SKIP_SLOW = os.getenv("ORACLEZK_SKIP_SLOW", "0")

if SKIP_SLOW == "1":
    @pytest.hookimpl(tryfirst=True)
    def pytest_collection_modifyitems(config, items):
        skip_slow = pytest.mark.skip(reason="ORACLEZK_SKIP_SLOW=1; skipping @slow tests")
        for item in items:
            if "slow" in item.keywords:
                item.add_marker(skip_slow)


@pytest.fixture(scope="session")
def publisher_keys():
    return [eddsa.keygen(f"publisher-{i}".encode()) for i in range(4)]


@pytest.fixture(scope="session")
def make_quote(publisher_keys):
    """Factory: make_quote(slot_key, price, confidence, timestamp) -> SignedQuote"""
    def _make(key_index, price, confidence, timestamp, observed_online=1):
        key = publisher_keys[key_index]
        sig = eddsa.sign(key, price, confidence)
        return SignedQuote(price=price, confidence=confidence, timestamp=timestamp,
                           observed_online=observed_online, a=sig.a, r=sig.r, s=sig.s)
    return _make
