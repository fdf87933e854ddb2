"""CLI subcommands for DRIP testing and operations.

Provides command-line interface for:
- Key operations (generate, show)
- Account operations (account number and sequence of the faucet key)
- Faucet operations (one-off send bypassing the rate limit)
"""

import argparse
import asyncio
import json
import sys

from drip.chain.client import LCDClient
from drip.config import DripConfig
from drip.core.keystore import LocalKeystore, load_keystore
from drip.faucet.account import AccountResolver
from drip.faucet.service import FaucetService, create_faucet_service


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser with all subcommands."""
    parser = argparse.ArgumentParser(
        prog="drip",
        description="DRIP - rate-limited faucet for Cosmos SDK networks",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    # Global flags
    parser.add_argument(
        "--json",
        action="store_true",
        help="Output in JSON format",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Show what would happen without executing",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # Keys subcommand
    keys_parser = subparsers.add_parser("keys", help="Key operations")
    keys_sub = keys_parser.add_subparsers(dest="keys_command")

    generate_parser = keys_sub.add_parser("generate", help="Generate a new key file")
    generate_parser.add_argument("file", type=str, help="Path to write the private key to")
    generate_parser.add_argument(
        "--prefix", type=str, default="cosmos", help="Bech32 account prefix (default: cosmos)"
    )
    keys_sub.add_parser("show", help="Show the faucet key name and address")

    # Account subcommand
    subparsers.add_parser("account", help="Show faucet account number and sequence")

    # Send subcommand
    send_parser = subparsers.add_parser(
        "send", help="Send the configured amount to an address (no rate limit)"
    )
    send_parser.add_argument("address", type=str, help="Recipient address")

    # Run subcommand (start service)
    subparsers.add_parser("run", help="Start the DRIP service")

    return parser


class CLIContext:
    """Shared context for CLI commands."""

    def __init__(self, config: DripConfig, dry_run: bool = False, json_output: bool = False):
        self.config = config
        self.dry_run = dry_run
        self.json_output = json_output
        self._keystore: LocalKeystore | None = None
        self._client: LCDClient | None = None

    @property
    def keystore(self) -> LocalKeystore:
        """Get keystore (lazy loaded)."""
        if self._keystore is None:
            if not self.config.private_key and not self.config.private_key_file:
                raise ValueError(
                    "No faucet key configured. Set DRIP_PRIVATE_KEY or DRIP_PRIVATE_KEY_FILE"
                )
            self._keystore = load_keystore(
                self.config.key_name,
                private_key=self.config.private_key,
                private_key_file=self.config.private_key_file,
                prefix=self.config.account_prefix,
            )
        return self._keystore

    @property
    def client(self) -> LCDClient:
        """Get LCD client (lazy loaded)."""
        if self._client is None:
            self._client = LCDClient(
                self.config.lcd_endpoint,
                broadcast_timeout=self.config.broadcast_timeout_seconds,
            )
        return self._client

    def faucet(self) -> FaucetService:
        """Build a faucet service over the shared keystore and client."""
        return create_faucet_service(self.config, self.keystore, self.client)

    async def close(self) -> None:
        if self._client is not None:
            await self._client.close()

    def output(self, data: dict) -> None:
        """Output data in the appropriate format."""
        if self.json_output:
            print(json.dumps(data, default=str, indent=2))
        else:
            self._print_formatted(data)

    def _print_formatted(self, data: dict, indent: int = 0) -> None:
        """Print data in human-readable format."""
        prefix = "  " * indent
        for key, value in data.items():
            if isinstance(value, dict):
                print(f"{prefix}{key}:")
                self._print_formatted(value, indent + 1)
            else:
                print(f"{prefix}{key}: {value}")


# Key commands


def cmd_keys_show(ctx: CLIContext) -> int:
    """Show the faucet key."""
    try:
        info = ctx.keystore.key_by_name(ctx.config.key_name)
        ctx.output({"name": info.name, "address": info.address})
        return 0
    except Exception as e:
        ctx.output({"error": str(e)})
        return 1


# Account commands


async def cmd_account(ctx: CLIContext) -> int:
    """Show the faucet account's number and sequence."""
    try:
        info = ctx.keystore.key_by_name(ctx.config.key_name)
        state = await AccountResolver(ctx.client).resolve(info.address)
        ctx.output(
            {
                "address": info.address,
                "account_number": state.account_number,
                "sequence": state.sequence,
                "lcd": ctx.config.lcd_endpoint,
                "chain_id": ctx.config.chain_id,
            }
        )
        return 0
    except Exception as e:
        ctx.output({"error": str(e)})
        return 1


# Faucet commands


async def cmd_send(ctx: CLIContext, address: str) -> int:
    """Send the configured amount to an address."""
    try:
        faucet = ctx.faucet()
        address = faucet.validate(ctx.config.chain_id, address)

        if ctx.dry_run:
            ctx.output(
                {
                    "dry_run": True,
                    "action": "send",
                    "recipient": address,
                    "amount": str(faucet.amount),
                    "message": f"Would send {faucet.amount} to {address}",
                }
            )
            return 0

        result = await faucet.faucet_send(address)
        ctx.output(
            {
                "success": True,
                "recipient": address,
                "amount": str(faucet.amount),
                "tx_hash": result.txhash,
                "height": result.height,
            }
        )
        return 0
    except Exception as e:
        ctx.output({"error": str(e)})
        return 1


async def _run_async(ctx: CLIContext, command) -> int:
    try:
        return await command
    finally:
        await ctx.close()


def run_cli(args: argparse.Namespace) -> int:
    """Execute CLI command based on parsed arguments.

    Returns
    -------
    int
        Exit code: 0 for success, positive for error, -1 signals caller
        to show help (no CLI command specified).
    """
    # Load config
    try:
        config = DripConfig()
    except Exception as e:
        if args.json:
            print(json.dumps({"error": f"Configuration error: {e}"}))
        else:
            print(f"Configuration error: {e}", file=sys.stderr)
        return 1

    ctx = CLIContext(config, dry_run=args.dry_run, json_output=args.json)

    # Route to appropriate command
    if args.command == "keys":
        if args.keys_command == "show":
            return cmd_keys_show(ctx)
        else:
            print("Usage: drip keys [generate|show]", file=sys.stderr)
            return 1

    elif args.command == "account":
        return asyncio.run(_run_async(ctx, cmd_account(ctx)))

    elif args.command == "send":
        return asyncio.run(_run_async(ctx, cmd_send(ctx, args.address)))

    else:
        # No subcommand - show help
        return -1
