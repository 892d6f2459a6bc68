"""ContractUtility: Web3 initialization and oracle contract ABI."""

from eth_account import Account
from eth_account.signers.local import LocalAccount
from web3 import Web3
from web3.middleware import SignAndSendRawMiddlewareBuilder

# ABI of the oracle entry point the reporter calls.
ORACLE_ABI: list[dict] = [
    {
        "type": "function",
        "name": "submitPrice",
        "stateMutability": "nonpayable",
        "inputs": [
            {"name": "pair", "type": "string"},
            {"name": "price", "type": "uint256"},
            {"name": "timestamp", "type": "uint256"},
        ],
        "outputs": [],
    },
]


class ContractUtility:
    """Utility for Web3 connection and signing setup.

    :ivar network: Network RPC URL.
    :ivar account: Reporter account used to sign submissions.
    :ivar w3: Web3 instance that signs with the reporter account.
    """

    def __init__(self, rpc_url: str, private_key: str) -> None:
        """Initialize the contract utility.

        :param rpc_url: RPC endpoint of the target network.
        :param private_key: Hex private key of the reporter account.
        """
        self.network = rpc_url
        self.account: LocalAccount = Account.from_key(private_key)

        self.w3 = Web3(Web3.HTTPProvider(self.network))
        self.w3.middleware_onion.add(SignAndSendRawMiddlewareBuilder.build(self.account))
        self.w3.eth.default_account = self.account.address

    def get_oracle_contract(self, address: str):
        """Return the oracle contract bound to this connection.

        :param address: Contract address (any case).
        :returns: web3 Contract instance.
        """
        return self.w3.eth.contract(
            address=Web3.to_checksum_address(address), abi=ORACLE_ABI
        )
