"""Tests for CLI subcommands."""

import json
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from drip.chain.coins import Coin
from drip.chain.tx import AccountState, BroadcastResult
from drip.cli import (
    CLIContext,
    cmd_account,
    cmd_keys_show,
    cmd_send,
    create_parser,
    run_cli,
)
from drip.config import DripConfig
from drip.core.keystore import KeyInfo
from drip.errors import BroadcastRejected, ChainMismatch, KeyNotFound

from conftest import make_address

FAUCET = make_address(1)
RECIPIENT = make_address(2)


@pytest.fixture
def mock_config():
    """Create mock config."""
    config = MagicMock(spec=DripConfig)
    config.lcd_endpoint = "http://localhost:1317"
    config.chain_id = "test-1"
    config.key_name = "faucet"
    config.account_prefix = "cosmos"
    config.private_key = None
    config.private_key_file = None
    config.broadcast_timeout_seconds = 30.0
    return config


@pytest.fixture
def mock_ctx(mock_config):
    """Create context with a mocked keystore and client."""
    ctx = CLIContext(mock_config)
    ctx._keystore = MagicMock()
    ctx._keystore.key_by_name.return_value = KeyInfo(
        name="faucet", address=FAUCET, pub_key=b"\x02" * 33
    )
    ctx._client = MagicMock()
    ctx._client.get_account = AsyncMock(return_value=AccountState(account_number=3, sequence=11))
    ctx._client.close = AsyncMock()
    return ctx


@pytest.fixture
def mock_faucet(mock_ctx):
    """Replace the context's faucet service with a mock."""
    faucet = MagicMock()
    faucet.amount = Coin("uatom", 1000)
    faucet.validate.return_value = RECIPIENT
    faucet.faucet_send = AsyncMock(
        return_value=BroadcastResult(code=0, codespace="", raw_log="", txhash="TXHASH", height=9)
    )
    mock_ctx.faucet = MagicMock(return_value=faucet)
    return faucet


class TestCreateParser:
    """Tests for argument parser creation."""

    def test_keys_subcommands(self):
        """Keys has generate and show subcommands."""
        parser = create_parser()

        args = parser.parse_args(["keys", "show"])
        assert args.command == "keys"
        assert args.keys_command == "show"

        args = parser.parse_args(["keys", "generate", "/tmp/faucet.key"])
        assert args.keys_command == "generate"
        assert args.file == "/tmp/faucet.key"
        assert args.prefix == "cosmos"

        args = parser.parse_args(["keys", "generate", "/tmp/faucet.key", "--prefix", "osmo"])
        assert args.prefix == "osmo"

    def test_account_and_send(self):
        """Parser has account and send subcommands."""
        parser = create_parser()

        assert parser.parse_args(["account"]).command == "account"

        args = parser.parse_args(["send", RECIPIENT])
        assert args.command == "send"
        assert args.address == RECIPIENT

    def test_run(self):
        """Parser has a run subcommand."""
        assert create_parser().parse_args(["run"]).command == "run"

    def test_no_command(self):
        """No arguments leaves command unset."""
        assert create_parser().parse_args([]).command is None

    def test_global_flags(self):
        """Parser accepts --json and --dry-run flags."""
        parser = create_parser()

        args = parser.parse_args(["--json", "account"])
        assert args.json is True

        args = parser.parse_args(["--dry-run", "send", RECIPIENT])
        assert args.dry_run is True


class TestCLIContext:
    """Tests for CLI context."""

    def test_context_stores_config(self, mock_config):
        """Context stores config and flags."""
        ctx = CLIContext(mock_config, dry_run=True, json_output=True)
        assert ctx.config == mock_config
        assert ctx.dry_run is True
        assert ctx.json_output is True

    def test_keystore_raises_without_key(self, mock_config):
        """Keystore property raises if no key configured."""
        ctx = CLIContext(mock_config)
        with pytest.raises(ValueError, match="No faucet key configured"):
            _ = ctx.keystore

    def test_client_lazy(self, mock_config):
        """Client is created once on first use."""
        ctx = CLIContext(mock_config)

        client = ctx.client

        assert client.endpoint == "http://localhost:1317"
        assert ctx.client is client

    @pytest.mark.asyncio
    async def test_close_without_client(self, mock_config):
        """Closing an unused context is a no-op."""
        await CLIContext(mock_config).close()

    def test_output_json(self, mock_config, capsys):
        """Output in JSON format."""
        ctx = CLIContext(mock_config, json_output=True)
        ctx.output({"amount": Coin("uatom", 5), "height": 3})

        data = json.loads(capsys.readouterr().out)
        assert data["amount"] == "5uatom"
        assert data["height"] == 3

    def test_output_text(self, mock_config, capsys):
        """Output in text format, nesting dicts."""
        ctx = CLIContext(mock_config, json_output=False)
        ctx.output({"address": FAUCET, "account": {"sequence": 4}})

        out = capsys.readouterr().out
        assert f"address: {FAUCET}" in out
        assert "account:" in out
        assert "  sequence: 4" in out


class TestKeysCommands:
    """Tests for key commands."""

    def test_keys_show(self, mock_ctx, capsys):
        """keys show prints name and address."""
        assert cmd_keys_show(mock_ctx) == 0

        out = capsys.readouterr().out
        assert "name: faucet" in out
        assert FAUCET in out

    def test_keys_show_missing(self, mock_ctx, capsys):
        """keys show fails when the key is missing."""
        mock_ctx._keystore.key_by_name.side_effect = KeyNotFound("Key not found: faucet")

        assert cmd_keys_show(mock_ctx) == 1
        assert "Key not found" in capsys.readouterr().out


class TestAccountCommand:
    """Tests for the account command."""

    @pytest.mark.asyncio
    async def test_account(self, mock_ctx, capsys):
        """account shows number and sequence."""
        assert await cmd_account(mock_ctx) == 0

        out = capsys.readouterr().out
        assert "account_number: 3" in out
        assert "sequence: 11" in out
        mock_ctx._client.get_account.assert_awaited_once_with(FAUCET)


class TestSendCommand:
    """Tests for the send command."""

    @pytest.mark.asyncio
    async def test_send_dry_run(self, mock_ctx, mock_faucet, capsys):
        """send with --dry-run validates but does not broadcast."""
        mock_ctx.dry_run = True

        assert await cmd_send(mock_ctx, RECIPIENT) == 0

        out = capsys.readouterr().out
        assert "dry_run" in out
        assert RECIPIENT in out
        mock_faucet.validate.assert_called_once_with("test-1", RECIPIENT)
        mock_faucet.faucet_send.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_send_executes(self, mock_ctx, mock_faucet, capsys):
        """send broadcasts and prints the tx hash."""
        assert await cmd_send(mock_ctx, RECIPIENT) == 0

        mock_faucet.faucet_send.assert_awaited_once_with(RECIPIENT)
        out = capsys.readouterr().out
        assert "TXHASH" in out
        assert "1000uatom" in out

    @pytest.mark.asyncio
    async def test_send_invalid(self, mock_ctx, mock_faucet, capsys):
        """Validation failures are reported."""
        mock_faucet.validate.side_effect = ChainMismatch("test-1", "other-2")

        assert await cmd_send(mock_ctx, RECIPIENT) == 1
        assert "Invalid chain id" in capsys.readouterr().out

    @pytest.mark.asyncio
    async def test_send_rejected(self, mock_ctx, mock_faucet, capsys):
        """Rejected broadcasts are reported with their diagnostics."""
        mock_faucet.faucet_send.side_effect = BroadcastRejected(5, "sdk", "insufficient funds")

        assert await cmd_send(mock_ctx, RECIPIENT) == 1
        assert "insufficient funds" in capsys.readouterr().out


class TestRunCLI:
    """Tests for run_cli function."""

    def test_run_cli_keys_show(self, mock_config):
        """run_cli routes to keys show."""
        args = create_parser().parse_args(["keys", "show"])

        with (
            patch("drip.cli.DripConfig", return_value=mock_config),
            patch("drip.cli.load_keystore") as mock_load,
        ):
            mock_config.private_key_file = "/tmp/test-key"
            mock_load.return_value.key_by_name.return_value = KeyInfo(
                name="faucet", address=FAUCET, pub_key=b""
            )

            assert run_cli(args) == 0

    def test_run_cli_account_closes_client(self, mock_config):
        """run_cli runs async commands and closes the client."""
        args = create_parser().parse_args(["account"])

        with (
            patch("drip.cli.DripConfig", return_value=mock_config),
            patch("drip.cli.cmd_account", new=AsyncMock(return_value=0)) as mock_cmd,
            patch.object(CLIContext, "close", new=AsyncMock()) as mock_close,
        ):
            assert run_cli(args) == 0

        mock_cmd.assert_awaited_once()
        mock_close.assert_awaited_once()

    def test_run_cli_missing_keys_subcommand(self, mock_config, capsys):
        """run_cli returns error for missing keys subcommand."""
        args = create_parser().parse_args(["keys"])

        with patch("drip.cli.DripConfig", return_value=mock_config):
            assert run_cli(args) == 1

        assert "Usage:" in capsys.readouterr().err

    def test_run_cli_config_error(self, capsys):
        """Missing configuration is reported."""
        args = create_parser().parse_args(["--json", "account"])

        assert run_cli(args) == 1

        data = json.loads(capsys.readouterr().out)
        assert data["error"].startswith("Configuration error")

    def test_run_cli_no_command(self, mock_config):
        """No command signals the caller to show help."""
        args = create_parser().parse_args([])

        with patch("drip.cli.DripConfig", return_value=mock_config):
            assert run_cli(args) == -1
