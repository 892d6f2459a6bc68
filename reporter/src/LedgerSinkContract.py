"""ContractLedgerSink: Submits prices to an on-chain oracle contract via web3."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from web3 import Web3
from web3.exceptions import ContractLogicError, TimeExhausted

from .ContractUtility import ContractUtility
from .LedgerSink import EncodedSubmission, LedgerReceipt, LedgerSink

if TYPE_CHECKING:
    from web3.contract import Contract

logger = logging.getLogger(__name__)


class ContractLedgerSink(LedgerSink):
    """Ledger sink calling ``submitPrice(pair, price, timestamp)``.

    Reverts surfaced during gas estimation, receipt timeouts and failed
    receipts are reported as rejections; anything else propagates.

    :ivar w3: Web3 instance that signs and sends transactions.
    :ivar contract: Oracle contract instance.
    :ivar receipt_timeout: Seconds to wait for a transaction receipt.
    """

    def __init__(self, w3: Web3, contract: Contract, receipt_timeout: float = 120.0) -> None:
        """Initialize the contract sink.

        :param w3: Web3 instance with a default signing account.
        :param contract: Oracle contract exposing submitPrice.
        :param receipt_timeout: Seconds to wait for the receipt (default: 120).
        """
        self.w3 = w3
        self.contract = contract
        self.receipt_timeout = receipt_timeout

    @classmethod
    def from_config(
        cls, rpc_url: str, contract_address: str, private_key: str
    ) -> ContractLedgerSink:
        """Build a sink for the given network, contract and reporter key.

        :param rpc_url: RPC endpoint URL.
        :param contract_address: Oracle contract address.
        :param private_key: Reporter account private key.
        :returns: Configured ContractLedgerSink.
        """
        contract_utility = ContractUtility(rpc_url, private_key)
        return cls(
            contract_utility.w3,
            contract_utility.get_oracle_contract(contract_address),
        )

    def submit(self, record: EncodedSubmission) -> LedgerReceipt:
        try:
            tx_params = self.contract.functions.submitPrice(
                *record.as_args()
            ).build_transaction({"gasPrice": self.w3.eth.gas_price})
        except ContractLogicError as e:
            logger.warning(f"{record.pair}: submitPrice would revert: {e}")
            return LedgerReceipt(accepted=False, reason=f"reverted: {e}")

        tx_hash = self.w3.eth.send_transaction(tx_params)
        reference = Web3.to_hex(tx_hash)

        try:
            tx_receipt = self.w3.eth.wait_for_transaction_receipt(
                tx_hash, timeout=self.receipt_timeout
            )
        except TimeExhausted:
            return LedgerReceipt(
                accepted=False,
                reason=f"no receipt after {self.receipt_timeout}s",
                reference=reference,
            )

        if tx_receipt["status"] == 1:
            return LedgerReceipt(accepted=True, reference=reference)
        return LedgerReceipt(
            accepted=False, reason="transaction reverted", reference=reference
        )
