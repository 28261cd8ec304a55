from enum import Enum


class ErrorCode(str, Enum):
    UNAUTHORIZED = "unauthorized"
    INVALID_INPUT = "invalid_input"
    INVALID_ADDRESS = "invalid_address"
    EMPTY_VALUE = "empty_value"
    ADDRESS_MISMATCH = "address_mismatch"
    NOT_FOUND = "not_found"
    INDEX_OUT_OF_RANGE = "index_out_of_range"
    NOT_PENDING = "not_pending"
    HASH_MISMATCH = "hash_mismatch"
    COLLABORATOR_FAILURE = "collaborator_failure"
    LEDGER_ERROR = "ledger_error"
    EVENT_LOG_INTEGRITY = "event_log_integrity"
    INTERNAL_ERROR = "internal_error"


class RequestKind(str, Enum):
    MINT = "mint"
    BURN = "burn"


class RequestStatus(str, Enum):
    """
    Request lifecycle states.

    Legal transitions:
    - PENDING → CANCELED | APPROVED | REJECTED

    Every non-pending state is terminal.
    """

    PENDING = "pending"
    CANCELED = "canceled"
    APPROVED = "approved"
    REJECTED = "rejected"

    @property
    def label(self) -> str:
        return self.value

    @classmethod
    def is_terminal(cls, status: "RequestStatus") -> bool:
        return status != cls.PENDING

    @classmethod
    def validate_transition(cls, from_status: "RequestStatus", to_status: "RequestStatus") -> bool:
        legal_transitions = {
            cls.PENDING: {cls.CANCELED, cls.APPROVED, cls.REJECTED},
            cls.CANCELED: set(),
            cls.APPROVED: set(),
            cls.REJECTED: set(),
        }
        return to_status in legal_transitions.get(from_status, set())


class EventType(str, Enum):
    """
    Audit log event names (stable, consumed downstream).
    """

    # Deposit address directory
    CUSTODIAN_BTC_DEPOSIT_ADDRESS_SET = "CustodianBtcDepositAddressSet"
    MERCHANT_BTC_DEPOSIT_ADDRESS_SET = "MerchantBtcDepositAddressSet"

    # Mint flow
    MINT_REQUEST_ADD = "MintRequestAdd"
    MINT_REQUEST_CANCEL = "MintRequestCancel"
    MINT_CONFIRMED = "MintConfirmed"
    MINT_REJECTED = "MintRejected"

    # Burn flow
    BURNED = "Burned"
    BURN_CONFIRMED = "BurnConfirmed"

    # Membership
    CUSTODIAN_SET = "CustodianSet"
    MERCHANT_ADD = "MerchantAdd"
    MERCHANT_REMOVE = "MerchantRemove"

    # Ledger
    MINT = "Mint"
    BURN = "Burn"
    TRANSFER = "Transfer"
    PAUSE = "Pause"
    UNPAUSE = "Unpause"
