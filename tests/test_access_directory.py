"""
Tests for role membership and the deposit address directory.
"""

import threading

import pytest

from custodynet.core.access import (
    NULL_IDENTITY,
    MemberRegistry,
    is_null_identity,
    require_custodian,
    require_merchant,
)
from custodynet.core.directory import DepositAddressDirectory
from custodynet.events.log import EventLog
from custodynet.protocol.enums import EventType
from custodynet.protocol.errors import (
    EmptyValueError,
    IndexOutOfRangeError,
    InvalidAddressError,
    InvalidInputError,
    UnauthorizedError,
)


# ===========================================================================
# Member registry
# ===========================================================================


class TestMemberRegistry:
    def test_roles(self, members, custodian, merchant, outsider):
        assert members.is_custodian(custodian)
        assert not members.is_merchant(custodian)
        assert members.is_merchant(merchant)
        assert not members.is_custodian(merchant)
        assert not members.is_merchant(outsider)
        assert not members.is_custodian(outsider)

    def test_only_owner_manages(self, members, merchant, outsider):
        with pytest.raises(UnauthorizedError):
            members.add_merchant(merchant, outsider)
        with pytest.raises(UnauthorizedError):
            members.set_custodian(outsider, outsider)
        with pytest.raises(UnauthorizedError):
            members.remove_merchant(outsider, merchant)

    def test_null_identities_rejected(self, members, owner):
        with pytest.raises(InvalidAddressError):
            members.add_merchant(owner, NULL_IDENTITY)
        with pytest.raises(InvalidAddressError):
            members.set_custodian(owner, "")
        with pytest.raises(InvalidAddressError):
            MemberRegistry(None)

    def test_duplicate_and_missing_merchant(self, members, owner, merchant, outsider):
        with pytest.raises(InvalidInputError):
            members.add_merchant(owner, merchant)
        with pytest.raises(InvalidInputError):
            members.remove_merchant(owner, outsider)

    def test_enumeration(self, members, owner, merchant, merchant2):
        assert members.get_merchants() == [merchant, merchant2]
        assert members.merchant_count() == 2
        assert members.get_merchant(1) == merchant2
        with pytest.raises(IndexOutOfRangeError):
            members.get_merchant(2)

        members.remove_merchant(owner, merchant)
        assert members.get_merchants() == [merchant2]
        assert not members.is_merchant(merchant)

    def test_replacing_custodian(self, members, owner, custodian, outsider):
        members.set_custodian(owner, outsider)
        assert members.get_custodian() == outsider
        assert not members.is_custodian(custodian)

    def test_membership_events(self, owner):
        log = EventLog()
        m = MemberRegistry(owner, event_log=log)
        m.set_custodian(owner, "0xc")
        m.add_merchant(owner, "0xm")
        m.remove_merchant(owner, "0xm")
        assert [e.event_type for e in log.events()] == [
            EventType.CUSTODIAN_SET,
            EventType.MERCHANT_ADD,
            EventType.MERCHANT_REMOVE,
        ]
        assert log.last()["merchant"] == "0xm"


class TestRoleChecks:
    def test_require_helpers(self, members, custodian, merchant):
        require_custodian(members, custodian)
        require_merchant(members, merchant)
        with pytest.raises(UnauthorizedError):
            require_custodian(members, merchant)
        with pytest.raises(UnauthorizedError):
            require_merchant(members, custodian)
        with pytest.raises(UnauthorizedError):
            require_merchant(members, None)

    def test_is_null_identity(self):
        assert is_null_identity(None)
        assert is_null_identity("  ")
        assert is_null_identity(NULL_IDENTITY)
        assert not is_null_identity("0xabc")


# ===========================================================================
# Deposit address directory
# ===========================================================================


class TestDepositAddressDirectory:
    def test_custodian_sets_address_for_merchant(self, directory, event_log, custodian, merchant):
        directory.set_custodian_deposit_address(custodian, merchant, "addr1")
        assert directory.custodian_deposit_address(merchant) == "addr1"

        event = event_log.last(EventType.CUSTODIAN_BTC_DEPOSIT_ADDRESS_SET)
        assert event.payload == {
            "merchant": merchant,
            "sender": custodian,
            "btcDepositAddress": "addr1",
        }

    def test_last_write_wins(self, directory, custodian, merchant):
        directory.set_custodian_deposit_address(custodian, merchant, "addr1")
        directory.set_custodian_deposit_address(custodian, merchant, "addr2")
        assert directory.custodian_deposit_address(merchant) == "addr2"

    def test_custodian_address_guards(self, directory, event_log, custodian, merchant):
        with pytest.raises(UnauthorizedError):
            directory.set_custodian_deposit_address(merchant, merchant, "addr1")
        with pytest.raises(InvalidAddressError):
            directory.set_custodian_deposit_address(custodian, NULL_IDENTITY, "addr1")
        with pytest.raises(EmptyValueError):
            directory.set_custodian_deposit_address(custodian, merchant, "   ")
        assert directory.custodian_deposit_address(merchant) == ""
        assert len(event_log) == 0

    def test_custodian_may_set_for_non_member(self, directory, custodian, outsider):
        directory.set_custodian_deposit_address(custodian, outsider, "addrX")
        assert directory.custodian_deposit_address(outsider) == "addrX"

    def test_merchant_sets_own_address(self, directory, event_log, merchant, merchant2):
        directory.set_merchant_deposit_address(merchant, "bc1qmerchant")
        assert directory.merchant_deposit_address(merchant) == "bc1qmerchant"
        assert directory.merchant_deposit_address(merchant2) == ""

        event = event_log.last(EventType.MERCHANT_BTC_DEPOSIT_ADDRESS_SET)
        assert event["merchant"] == merchant
        assert event["btcDepositAddress"] == "bc1qmerchant"

    def test_merchant_address_guards(self, directory, custodian, merchant):
        with pytest.raises(UnauthorizedError):
            directory.set_merchant_deposit_address(custodian, "addr")
        with pytest.raises(EmptyValueError):
            directory.set_merchant_deposit_address(merchant, "")

    def test_mappings_are_independent(self, directory, custodian, merchant):
        directory.set_custodian_deposit_address(custodian, merchant, "custodian-side")
        directory.set_merchant_deposit_address(merchant, "merchant-side")
        assert directory.custodian_deposit_address(merchant) == "custodian-side"
        assert directory.merchant_deposit_address(merchant) == "merchant-side"

    def test_works_without_event_log(self, members, custodian, merchant):
        d = DepositAddressDirectory(members)
        d.set_custodian_deposit_address(custodian, merchant, "addr1")
        assert d.custodian_deposit_address(merchant) == "addr1"


class TestConcurrentMembership:
    def test_readers_see_consistent_state(self, owner):
        members = MemberRegistry(owner)
        merchants = [f"0xm{i}" for i in range(50)]
        counts = []
        custodians = []

        def churn():
            for identity in merchants:
                members.add_merchant(owner, identity)
                members.set_custodian(owner, identity)

        def read():
            for _ in range(200):
                counts.append(members.merchant_count())
                custodians.append(members.get_custodian())

        writer = threading.Thread(target=churn)
        reader = threading.Thread(target=read)
        writer.start()
        reader.start()
        writer.join()
        reader.join()

        assert counts == sorted(counts)
        assert all(c is None or c in merchants for c in custodians)
        assert members.merchant_count() == 50
        assert members.get_custodian() == "0xm49"


class TestEventWriteFailure:
    def test_membership_unchanged(self, owner, custodian, merchant, failing_log):
        members = MemberRegistry(owner, event_log=failing_log)
        members.add_merchant(owner, merchant)
        failing_log.fail_on.update(
            {EventType.CUSTODIAN_SET, EventType.MERCHANT_ADD, EventType.MERCHANT_REMOVE}
        )

        with pytest.raises(OSError):
            members.set_custodian(owner, custodian)
        with pytest.raises(OSError):
            members.add_merchant(owner, "0xother")
        with pytest.raises(OSError):
            members.remove_merchant(owner, merchant)

        assert members.get_custodian() is None
        assert members.get_merchants() == [merchant]

    def test_addresses_unchanged(self, members, custodian, merchant, failing_log):
        directory = DepositAddressDirectory(members, event_log=failing_log)
        failing_log.fail_on.update(
            {
                EventType.CUSTODIAN_BTC_DEPOSIT_ADDRESS_SET,
                EventType.MERCHANT_BTC_DEPOSIT_ADDRESS_SET,
            }
        )

        with pytest.raises(OSError):
            directory.set_custodian_deposit_address(custodian, merchant, "bc1qcustody")
        with pytest.raises(OSError):
            directory.set_merchant_deposit_address(merchant, "bc1qmerchant")

        assert directory.custodian_deposit_address(merchant) == ""
        assert directory.merchant_deposit_address(merchant) == ""
