import pytest

from .fakes import FakeLedger


@pytest.fixture
def ledger():
    """풀 1개가 등록된 인메모리 원장"""
    fake = FakeLedger(current_state_version=1_000)
    fake.add_pool(bins={
        80: ("500", "50"),
        90: ("300", "0"),
        110: ("700", "70"),
    })
    return fake
