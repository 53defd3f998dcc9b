"""Tests for the transfer orchestrator."""

import pytest

from conftest import BASE_RPC, RECIPIENT, TX_HASH, WALLET, RecordingRelayer
from relaywallet.chains import ChainRegistry
from relaywallet.config import Settings
from relaywallet.errors import (
    InvalidAddressError,
    InvalidAmountError,
    MissingConfigurationError,
    MissingCredentialError,
    RelayerExecutionFailure,
    UnsupportedChainError,
)
from relaywallet.tokens import DEFAULT_USDC_ADDRESS, TokenMetadataResolver
from relaywallet.transfers import ThresholdAccount, TransferOrchestrator

CREDENTIAL = {"session": "opaque-session-signature"}
TOKEN = "0x" + "dd" * 20


@pytest.fixture
def account() -> ThresholdAccount:
    return ThresholdAccount(address=WALLET, public_key="0x04" + "ab" * 64)


@pytest.fixture
def orchestrator(registry, resolver, recording_relayer) -> TransferOrchestrator:
    return TransferOrchestrator(registry, resolver, recording_relayer)


class TestTransferToken:
    """Tests for TransferOrchestrator.transfer_token."""

    @pytest.mark.asyncio
    async def test_six_decimal_token(self, orchestrator, recording_relayer, node, account):
        node.decimals[TOKEN] = 6

        result = await orchestrator.transfer_token(
            account,
            RECIPIENT,
            "10.25",
            token_contract=TOKEN,
            session_credential=CREDENTIAL,
        )

        assert result.transaction_hash == TX_HASH
        assert result.chain_id == 8453
        assert result.token_contract.lower() == TOKEN

        (request,) = recording_relayer.requests
        assert request.amount == 10_250_000
        assert request.chain_id == 8453
        assert request.rpc_endpoint == BASE_RPC
        assert request.recipient.lower() == RECIPIENT
        assert request.signer_address.lower() == WALLET
        assert request.signer_public_key == account.public_key
        assert request.session_credential is CREDENTIAL

    @pytest.mark.asyncio
    async def test_returns_relayer_hash_unchanged(self, registry, resolver, account):
        relayer = RecordingRelayer(tx_hash="0x" + "ef" * 32)
        orchestrator = TransferOrchestrator(registry, resolver, relayer)

        result = await orchestrator.transfer_token(
            account, RECIPIENT, "1", token_decimals=6, session_credential=CREDENTIAL
        )

        assert result.transaction_hash == "0x" + "ef" * 32

    @pytest.mark.asyncio
    async def test_missing_credential_makes_no_calls(self, orchestrator, recording_relayer, node, account):
        with pytest.raises(MissingCredentialError):
            await orchestrator.transfer_token(account, RECIPIENT, "10.25", token_contract=TOKEN)

        assert node.requests == []
        assert recording_relayer.requests == []

    @pytest.mark.asyncio
    async def test_default_token_uses_known_precision(self, orchestrator, recording_relayer, node, account):
        result = await orchestrator.transfer_token(
            account, RECIPIENT, "0.5", session_credential=CREDENTIAL
        )

        assert result.token_contract == DEFAULT_USDC_ADDRESS
        assert recording_relayer.requests[0].amount == 500_000
        assert node.requests == []

    @pytest.mark.asyncio
    async def test_explicit_decimals_skip_lookup(self, orchestrator, recording_relayer, node, account):
        await orchestrator.transfer_token(
            account,
            RECIPIENT,
            "2",
            token_contract=TOKEN,
            token_decimals=18,
            session_credential=CREDENTIAL,
        )

        assert recording_relayer.requests[0].amount == 2 * 10**18
        assert node.requests == []

    @pytest.mark.asyncio
    async def test_decimals_lookup_failure_falls_back(self, orchestrator, recording_relayer, node, account):
        node.failing.add("eth_call")

        await orchestrator.transfer_token(
            account, RECIPIENT, "1", token_contract=TOKEN, session_credential=CREDENTIAL
        )

        assert recording_relayer.requests[0].amount == 10**18

    @pytest.mark.asyncio
    @pytest.mark.parametrize("amount", ["abc", "-1", "1e3", ""])
    async def test_malformed_amount_fails_before_io(self, orchestrator, recording_relayer, node, account, amount):
        with pytest.raises(InvalidAmountError):
            await orchestrator.transfer_token(
                account, RECIPIENT, amount, token_contract=TOKEN, session_credential=CREDENTIAL
            )

        assert node.requests == []
        assert recording_relayer.requests == []

    @pytest.mark.asyncio
    async def test_excess_precision_rejected(self, orchestrator, recording_relayer, account):
        with pytest.raises(InvalidAmountError):
            await orchestrator.transfer_token(
                account, RECIPIENT, "1.0000001", session_credential=CREDENTIAL
            )
        assert recording_relayer.requests == []

    @pytest.mark.asyncio
    async def test_zero_amount_rejected(self, orchestrator, recording_relayer, account):
        with pytest.raises(InvalidAmountError):
            await orchestrator.transfer_token(account, RECIPIENT, "0", session_credential=CREDENTIAL)
        assert recording_relayer.requests == []

    @pytest.mark.asyncio
    @pytest.mark.parametrize("decimals", [-1, 256])
    async def test_bad_explicit_decimals(self, orchestrator, node, account, decimals):
        with pytest.raises(InvalidAmountError):
            await orchestrator.transfer_token(
                account,
                RECIPIENT,
                "1",
                token_contract=TOKEN,
                token_decimals=decimals,
                session_credential=CREDENTIAL,
            )
        assert node.requests == []

    @pytest.mark.asyncio
    async def test_invalid_recipient(self, orchestrator, node, account):
        with pytest.raises(InvalidAddressError):
            await orchestrator.transfer_token(account, "0x1234", "1", session_credential=CREDENTIAL)
        assert node.requests == []

    @pytest.mark.asyncio
    async def test_unknown_chain_rejected_before_io(self, orchestrator, node, account):
        with pytest.raises(UnsupportedChainError):
            await orchestrator.transfer_token(
                account,
                RECIPIENT,
                "1",
                chain_id=42161,
                token_contract=TOKEN,
                session_credential=CREDENTIAL,
            )
        assert node.requests == []

    @pytest.mark.asyncio
    async def test_transfer_endpoint_uses_keyed_fallback(self, node, recording_relayer, account):
        registry = ChainRegistry(Settings(_env_file=None, alchemy_api_key="secret"))
        orchestrator = TransferOrchestrator(
            registry,
            TokenMetadataResolver(registry, rpc_factory=node.rpc_factory),
            recording_relayer,
        )

        await orchestrator.transfer_token(account, RECIPIENT, "1", session_credential=CREDENTIAL)

        assert (
            recording_relayer.requests[0].rpc_endpoint
            == "https://base-mainnet.g.alchemy.com/v2/secret"
        )

    @pytest.mark.asyncio
    async def test_precision_lookup_needs_read_endpoint(self, node, recording_relayer, account):
        # Transfer endpoint resolves through the keyed fallback; the read endpoint does not
        registry = ChainRegistry(Settings(_env_file=None, alchemy_api_key="secret"))
        orchestrator = TransferOrchestrator(
            registry,
            TokenMetadataResolver(registry, rpc_factory=node.rpc_factory),
            recording_relayer,
        )
        node.decimals[TOKEN] = 6

        with pytest.raises(MissingConfigurationError):
            await orchestrator.transfer_token(
                account, RECIPIENT, "10", token_contract=TOKEN, session_credential=CREDENTIAL
            )

        assert node.requests == []
        assert recording_relayer.requests == []

    @pytest.mark.asyncio
    async def test_empty_credential_passed_through(self, orchestrator, recording_relayer, account):
        await orchestrator.transfer_token(account, RECIPIENT, "1", session_credential={})

        assert recording_relayer.requests[0].session_credential == {}

    @pytest.mark.asyncio
    async def test_relayer_failure_propagates(self, registry, resolver, account):
        failure = RelayerExecutionFailure("Transaction reverted: 0xdead")
        orchestrator = TransferOrchestrator(registry, resolver, RecordingRelayer(error=failure))

        with pytest.raises(RelayerExecutionFailure) as exc_info:
            await orchestrator.transfer_token(
                account, RECIPIENT, "1", session_credential=CREDENTIAL
            )

        assert exc_info.value is failure
