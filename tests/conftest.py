"""Shared fixtures for the HTLC test-suite."""

import pytest
from eth_account import Account

from htlc_swap.htlc import HTLC, ONE_ETHER, generate_secret
from htlc_swap.ledger import Chain, Token, UtxoSet

# Test wallets (DO NOT use in production)
ALICE = Account.from_key("0x" + "a1" * 32)
BOB = Account.from_key("0x" + "b2" * 32)
CHARLIE = Account.from_key("0x" + "c3" * 32)

CHAIN_ID = 31337
HTLC_ADDRESS = "0x" + "11" * 20
TOKEN_ADDRESS = "0x" + "22" * 20

TIMELOCK = 10
AMOUNT = ONE_ETHER
INITIAL_BALANCE = 1000 * ONE_ETHER
ALLOWANCE = 500 * ONE_ETHER


@pytest.fixture
def chain():
    return Chain(CHAIN_ID)


@pytest.fixture
def token():
    token = Token(TOKEN_ADDRESS, symbol="SEED")
    for account in (ALICE, BOB, CHARLIE):
        token.mint(account.address, INITIAL_BALANCE)
    return token


@pytest.fixture
def htlc(token, chain):
    htlc = HTLC(token, chain, address=HTLC_ADDRESS)
    for account in (ALICE, BOB, CHARLIE):
        token.approve(account.address, htlc.address, ALLOWANCE)
    return htlc


@pytest.fixture
def secret_pair():
    return generate_secret()


@pytest.fixture
def utxos():
    utxos = UtxoSet(Chain(18443))
    utxos.fund(ALICE.address, 50_000)
    utxos.fund(BOB.address, 50_000)
    return utxos
