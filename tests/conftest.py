from unittest.mock import Mock

import pytest
from algokit_utils import SigningAccount
from algosdk import account
from algosdk.v2client.algod import AlgodClient
from algosdk.v2client.indexer import IndexerClient

from tests.helpers.factories import compile_response


@pytest.fixture(scope="session")
def deployer() -> SigningAccount:
    private_key, address = account.generate_account()
    return SigningAccount(private_key=private_key, address=address)


@pytest.fixture
def mock_algod() -> Mock:
    """AlgodClient whose compile echoes the TEAL back as bytecode."""
    algod = Mock(spec=AlgodClient)
    algod.compile.side_effect = compile_response
    return algod


@pytest.fixture
def mock_indexer() -> Mock:
    return Mock(spec=IndexerClient)


@pytest.fixture
def mock_algorand(mock_algod: Mock) -> Mock:
    """AlgoKit AlgorandClient with a mocked algod and send API."""
    algorand = Mock()
    algorand.client.algod = mock_algod
    algorand.client.indexer_if_present = None
    return algorand
