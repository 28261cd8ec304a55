"""
Tests for the in-memory token ledger.
"""

import pytest

from custodynet.core.ledger import CUSTODY_ACCOUNT, InMemoryLedger
from custodynet.events.log import EventLog
from custodynet.protocol.enums import EventType
from custodynet.protocol.errors import InvalidAddressError, LedgerError, UnauthorizedError


class TestInMemoryLedger:
    def test_defaults(self, ledger):
        assert ledger.symbol == "WBTC"
        assert ledger.decimals == 8
        assert ledger.total_supply == 0
        assert not ledger.paused

    def test_mint_and_transfer(self, ledger):
        assert ledger.mint("0xa", 100) is True
        assert ledger.transfer("0xa", "0xb", 40) is True
        assert ledger.balance_of("0xa") == 60
        assert ledger.balance_of("0xb") == 40
        assert ledger.total_supply == 100

    def test_transfer_into_and_burn(self, ledger):
        ledger.mint("0xa", 100)
        ledger.transfer_into("0xa", 30)
        assert ledger.balance_of(CUSTODY_ACCOUNT) == 30
        ledger.burn(30)
        assert ledger.balance_of(CUSTODY_ACCOUNT) == 0
        assert ledger.balance_of("0xa") == 70
        assert ledger.total_supply == 70

    def test_release_returns_custody(self, ledger):
        ledger.mint("0xa", 10)
        ledger.transfer_into("0xa", 10)
        ledger.release("0xa", 10)
        assert ledger.balance_of("0xa") == 10
        assert ledger.balance_of(CUSTODY_ACCOUNT) == 0

    def test_insufficient_balance_leaves_state(self, ledger):
        ledger.mint("0xa", 5)
        with pytest.raises(LedgerError):
            ledger.transfer_into("0xa", 6)
        with pytest.raises(LedgerError):
            ledger.burn(1)
        assert ledger.balance_of("0xa") == 5
        assert ledger.total_supply == 5

    @pytest.mark.parametrize("amount", [0, -1, True, 1.5])
    def test_invalid_amounts(self, ledger, amount):
        with pytest.raises(LedgerError):
            ledger.mint("0xa", amount)

    def test_null_destinations(self, ledger):
        with pytest.raises(InvalidAddressError):
            ledger.mint("", 1)
        ledger.mint("0xa", 1)
        with pytest.raises(InvalidAddressError):
            ledger.transfer("0xa", None, 1)

    def test_pause_blocks_movements(self, ledger, owner):
        ledger.mint("0xa", 10)
        ledger.pause(owner)
        with pytest.raises(LedgerError, match="paused"):
            ledger.mint("0xa", 1)
        with pytest.raises(LedgerError, match="paused"):
            ledger.transfer("0xa", "0xb", 1)
        ledger.unpause(owner)
        ledger.transfer("0xa", "0xb", 1)
        assert ledger.balance_of("0xb") == 1

    def test_only_owner_pauses(self, ledger):
        with pytest.raises(UnauthorizedError):
            ledger.pause("0xsomeone")

    def test_events(self, owner):
        log = EventLog()
        ledger = InMemoryLedger(owner, event_log=log)
        ledger.mint("0xa", 10)
        ledger.transfer_into("0xa", 4)
        ledger.burn(4)
        assert [e.event_type for e in log.events()] == [
            EventType.MINT,
            EventType.TRANSFER,
            EventType.BURN,
        ]
        transfer = log.last(EventType.TRANSFER)
        assert transfer.payload == {"from": "0xa", "to": CUSTODY_ACCOUNT, "amount": 4}

    def test_failed_event_write_leaves_balances(self, owner, failing_log):
        ledger = InMemoryLedger(owner, event_log=failing_log)
        ledger.mint("0xa", 10)
        failing_log.fail_on.update({EventType.MINT, EventType.TRANSFER, EventType.PAUSE})

        with pytest.raises(OSError):
            ledger.mint("0xa", 5)
        with pytest.raises(OSError):
            ledger.transfer_into("0xa", 4)
        with pytest.raises(OSError):
            ledger.pause(owner)

        assert ledger.balance_of("0xa") == 10
        assert ledger.balance_of(CUSTODY_ACCOUNT) == 0
        assert ledger.total_supply == 10
        assert not ledger.paused
        assert len(failing_log) == 1
