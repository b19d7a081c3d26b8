"""Cross-Chain Atomic Swap Example.

This example walks through a complete swap between a UTXO chain and an
account-based token chain, with a relayer batching the token leg:
- Alice locks coins on the UTXO chain for Bob
- Bob authorizes a relayer to lock tokens for Alice (EIP-712 signature)
- Alice redeems the tokens, revealing the secret
- Bob reuses the secret to claim the coins

Usage:
    python cross_chain_swap.py

Optional environment variables:
    HTLC_CHAIN_ID     chain id of the token chain (default: 31337)
    HTLC_LOG_LEVEL    logging level (default: INFO)
"""

import logging
import os

from eth_account import Account

from htlc_swap import (
    HTLC,
    Call,
    Chain,
    Multicall,
    Token,
    UtxoHTLC,
    UtxoSet,
    generate_secret,
    sign_initiate,
)
from htlc_swap.htlc import format_ether, parse_ether


def main():
    logging.basicConfig(
        level=os.environ.get("HTLC_LOG_LEVEL", "INFO"),
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
    )
    chain_id = int(os.environ.get("HTLC_CHAIN_ID", "31337"))

    alice = Account.create()
    bob = Account.create()
    relayer = Account.create()

    print("=" * 60)
    print("  CROSS-CHAIN ATOMIC SWAP")
    print("=" * 60)

    # Token chain
    chain = Chain(chain_id)
    token = Token("0x" + "22" * 20, symbol="SEED")
    htlc = HTLC.from_config(
        {"chain_id": chain_id, "verifying_contract": "0x" + "11" * 20}, token, chain
    )
    token.mint(bob.address, parse_ether("100"))
    token.approve(bob.address, htlc.address, parse_ether("100"))

    # UTXO chain
    utxos = UtxoSet(Chain(18443))
    utxos.fund(alice.address, 100_000)
    btc = UtxoHTLC(utxos)

    print("\n[1] Alice generates the secret and locks 10000 sats for Bob")
    secret, secret_hash = generate_secret()
    btc_order = btc.initiate(alice.address, bob.address, 144, 10_000, secret_hash)
    print(f"    UTXO order: {btc_order[:20]}...")

    print("\n[2] Bob signs an Initiate authorization; the relayer submits it")
    amount = parse_ether("10")
    signature = sign_initiate(bob.key.hex(), htlc.domain, alice.address, amount, 72, secret_hash)
    (token_order,) = Multicall().multicall(
        relayer.address,
        htlc,
        [Call("initiate_with_signature",
              (bob.address, alice.address, 72, amount, secret_hash, signature))],
    )
    print(f"    Token order: {token_order[:20]}...")

    print("\n[3] Alice redeems the tokens, revealing the secret")
    htlc.redeem(relayer.address, token_order, secret)
    revealed = htlc.events("Redeemed")[-1].data["secret"]
    print(f"    Alice balance: {format_ether(token.balance_of(alice.address))} SEED")

    print("\n[4] Bob claims the coins with the revealed secret")
    btc.redeem(relayer.address, btc_order, revealed)
    print(f"    Bob balance: {utxos.balance_of(bob.address)} sats")

    print("\n" + "=" * 60)
    print("  Swap complete: neither party could be cheated.")
    print("=" * 60)


if __name__ == "__main__":
    main()
