"""Chain submission — sends a relay call to a deployed invoker.

The submitter pays for the transaction; the signer of the commit never
touches the chain. This is the only module that needs a live node.
"""

from __future__ import annotations

import logging
from typing import Any

from eth_utils import to_checksum_address

from invoker.codec import encode_relay
from invoker.models.request import RelayReceipt, RelayRequest


logger = logging.getLogger(__name__)


def build_relay_transaction(
    request: RelayRequest,
    invoker_address: str,
    nonce: int,
    chain_id: int,
    gas: int,
    gas_price_wei: int,
    value: int = 0,
) -> dict[str, Any]:
    """Build the unsigned transaction dict for one relay call.

    ``nonce`` is the submitter's account nonce, unrelated to the commit.
    """
    return {
        "to": to_checksum_address(invoker_address),
        "value": value,
        "gas": gas,
        "gasPrice": gas_price_wei,
        "nonce": nonce,
        "chainId": chain_id,
        "data": encode_relay(request),
    }


def submit_relay(
    request: RelayRequest,
    invoker_address: str,
    rpc_url: str,
    private_key: str,
    chain_id: int,
    value: int = 0,
    gas: int = 300_000,
    gas_price_gwei: str = "2",
    timeout: int = 300,
) -> RelayReceipt:
    """Sign and send a relay transaction, then wait for one confirmation.

    Args:
        request: The relay call to send.
        invoker_address: Address of the deployed invoker.
        rpc_url: Ethereum RPC endpoint URL.
        private_key: Submitter's hex-encoded private key.
        chain_id: Network chain id.
        value: Wei attached to the call and forwarded to the target.
        gas: Gas limit for the transaction.
        gas_price_gwei: Gas price in gwei.
        timeout: Seconds to wait for the receipt.

    Returns:
        RelayReceipt with the mined transaction's details.
    """
    from web3 import HTTPProvider, Web3
    from eth_account import Account

    w3 = Web3(HTTPProvider(rpc_url))
    acct = Account.from_key(private_key)

    tx = build_relay_transaction(
        request,
        invoker_address,
        nonce=w3.eth.get_transaction_count(acct.address),
        chain_id=chain_id,
        gas=gas,
        gas_price_wei=w3.to_wei(gas_price_gwei, "gwei"),
        value=value,
    )

    signed = acct.sign_transaction(tx)
    tx_hash = w3.eth.send_raw_transaction(signed.raw_transaction)
    logger.info("Sent relay tx %s for commit 0x%s", tx_hash.hex(), request.commit.hex())

    receipt = w3.eth.wait_for_transaction_receipt(tx_hash, timeout=timeout)
    logger.info("Relay tx mined in block %d (status %d)", receipt.blockNumber, receipt.status)

    return RelayReceipt(
        tx_hash=tx_hash.hex(),
        block_number=receipt.blockNumber,
        status=receipt.status,
        chain_id=chain_id,
    )
