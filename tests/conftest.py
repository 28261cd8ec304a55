import itertools
import shutil
import tempfile

import pytest

from custodynet.core.access import MemberRegistry
from custodynet.core.directory import DepositAddressDirectory
from custodynet.core.ledger import InMemoryLedger
from custodynet.core.registry import RequestRegistry
from custodynet.events.log import EventLog

GENESIS_TIME = 1_700_000_000


class FailingEventLog(EventLog):
    """
    In-memory log whose writes fail for the event types in ``fail_on``.
    """

    def __init__(self):
        super().__init__()
        self.fail_on = set()

    def emit(self, event_type, **payload):
        if event_type in self.fail_on:
            raise OSError(f"disk full writing {event_type.value}")
        return super().emit(event_type, **payload)


class ScriptedController:
    """
    Token controller double: records every call, fails on demand.

    ``fail`` holds operations that return False, ``explode`` operations
    that raise.
    """

    def __init__(self):
        self.calls = []
        self.fail = set()
        self.explode = set()

    def _call(self, operation, *args):
        self.calls.append((operation,) + args)
        if operation in self.explode:
            raise RuntimeError(f"{operation} exploded")
        return operation not in self.fail

    def mint(self, to_identity, amount):
        return self._call("mint", to_identity, amount)

    def burn(self, amount):
        return self._call("burn", amount)

    def transfer_into(self, from_identity, amount):
        return self._call("transfer_into", from_identity, amount)

    def release(self, to_identity, amount):
        return self._call("release", to_identity, amount)


# ===========================================================================
# Identities
# ===========================================================================


@pytest.fixture
def owner():
    return "0xowner"


@pytest.fixture
def custodian():
    return "0xcustodian"


@pytest.fixture
def merchant():
    return "0xmerchant1"


@pytest.fixture
def merchant2():
    return "0xmerchant2"


@pytest.fixture
def outsider():
    return "0xoutsider"


# ===========================================================================
# Components
# ===========================================================================


@pytest.fixture
def tmp_dir():
    d = tempfile.mkdtemp(prefix="custodynet_test_")
    yield d
    shutil.rmtree(d, ignore_errors=True)


@pytest.fixture
def genesis_time():
    return GENESIS_TIME


@pytest.fixture
def clock(genesis_time):
    ticks = itertools.count(genesis_time)
    return lambda: next(ticks)


@pytest.fixture
def event_log():
    return EventLog()


@pytest.fixture
def members(owner, custodian, merchant, merchant2):
    registry = MemberRegistry(owner)
    registry.set_custodian(owner, custodian)
    registry.add_merchant(owner, merchant)
    registry.add_merchant(owner, merchant2)
    return registry


@pytest.fixture
def ledger(owner):
    return InMemoryLedger(owner)


@pytest.fixture
def directory(members, event_log):
    return DepositAddressDirectory(members, event_log=event_log)


@pytest.fixture
def registry(members, ledger, directory, event_log, clock):
    return RequestRegistry(members, ledger, directory, event_log=event_log, clock=clock)


@pytest.fixture
def scripted():
    return ScriptedController()


@pytest.fixture
def scripted_registry(members, scripted, directory, event_log, clock):
    return RequestRegistry(members, scripted, directory, event_log=event_log, clock=clock)


@pytest.fixture
def failing_log():
    return FailingEventLog()


@pytest.fixture
def failing_registry(members, ledger, directory, failing_log, clock):
    return RequestRegistry(members, ledger, directory, event_log=failing_log, clock=clock)


@pytest.fixture
def failing_scripted_registry(members, scripted, directory, failing_log, clock):
    return RequestRegistry(members, scripted, directory, event_log=failing_log, clock=clock)
