#!/usr/bin/env python3
"""DRIP - rate-limited faucet for Cosmos SDK networks.

Entry point for the DRIP service.
"""

import asyncio
import os
import signal
import sys
import tempfile
from pathlib import Path

from drip.chain.client import LCDClient
from drip.cli import create_parser, run_cli
from drip.config import DripConfig
from drip.core.keystore import LocalKeystore, generate_private_key, load_keystore
from drip.errors import KeyNotFound
from drip.faucet import FaucetHandler, FaucetServer, create_faucet_service
from drip.observability.health import FaucetRunningCheck, HealthServer, LCDHealthCheck
from drip.observability.logging import configure_logging, get_logger


def generate_key(output_path: str, prefix: str = "cosmos") -> str:
    """Generate a new key, save the private key to a file and return its address.

    Parameters
    ----------
    output_path : str
        Path to save the private key file.
    prefix : str
        Bech32 account prefix for the printed address.
    """
    key_hex = generate_private_key()

    # Write to a temp file in the same directory, then rename (same filesystem)
    key_path = Path(output_path)
    key_path.parent.mkdir(parents=True, exist_ok=True)

    fd, temp_path = tempfile.mkstemp(dir=key_path.parent, prefix=".drip-key-")
    fd_closed = False
    try:
        os.fchmod(fd, 0o600)  # Set permissions before writing
        os.write(fd, key_hex.encode())
        os.close(fd)
        fd_closed = True
        os.rename(temp_path, key_path)
    except Exception:
        if not fd_closed:
            os.close(fd)
        Path(temp_path).unlink(missing_ok=True)
        raise

    keystore = LocalKeystore(prefix=prefix)
    return keystore.add_key_file("new", str(key_path)).address


async def run_service() -> None:
    """Run the DRIP service (long-running mode).

    Wires up and starts all service components:
    - HealthServer for probes and metrics
    - Keystore and LCD client
    - FaucetService with its rate limiter and transaction pipeline
    - FaucetServer exposing the HTTP endpoint
    """
    config = DripConfig()
    configure_logging(level=config.log_level, log_format=config.log_format)

    logger = get_logger(__name__)
    logger.info(
        "DRIP starting",
        lcd_endpoint=config.lcd_endpoint,
        chain_id=config.chain_id,
        amount=config.amount,
    )

    # Load faucet key
    if config.private_key and config.private_key_file:
        logger.warning(
            "Both DRIP_PRIVATE_KEY and DRIP_PRIVATE_KEY_FILE set; using DRIP_PRIVATE_KEY"
        )
    try:
        keystore = load_keystore(
            config.key_name,
            private_key=config.private_key,
            private_key_file=config.private_key_file,
            prefix=config.account_prefix,
        )
    except (ValueError, FileNotFoundError) as e:
        logger.error("No usable faucet key", error=str(e))
        logger.error("Set DRIP_PRIVATE_KEY or DRIP_PRIVATE_KEY_FILE")
        sys.exit(1)

    client = LCDClient(
        config.lcd_endpoint,
        broadcast_timeout=config.broadcast_timeout_seconds,
    )

    try:
        faucet = create_faucet_service(config, keystore, client)
    except KeyNotFound as e:
        logger.error("Faucet key not found", error=str(e))
        await client.close()
        sys.exit(1)
    logger.info("Faucet key loaded", address=keystore.key_by_name(config.key_name).address)

    # Create shutdown event
    shutdown_event = asyncio.Event()
    loop = asyncio.get_running_loop()

    def on_shutdown_signal(sig_name: str) -> None:
        logger.info("Received signal, initiating shutdown", signal=sig_name)
        shutdown_event.set()

    loop.add_signal_handler(signal.SIGTERM, lambda: on_shutdown_signal("SIGTERM"))
    loop.add_signal_handler(signal.SIGINT, lambda: on_shutdown_signal("SIGINT"))

    health_server = HealthServer(
        port=config.metrics_port,
        checks=[LCDHealthCheck(client, config.chain_id), FaucetRunningCheck(faucet)],
    )
    await health_server.start()

    await faucet.start()

    faucet_server = FaucetServer(
        FaucetHandler(faucet),
        host=config.listen_host,
        port=config.listen_port,
    )
    await faucet_server.start()
    logger.info("DRIP service ready", host=config.listen_host, port=config.listen_port)

    await shutdown_event.wait()

    # Graceful shutdown
    logger.info("DRIP shutting down...")
    await faucet_server.stop()
    await faucet.stop()
    await health_server.stop()
    await client.close()
    logger.info("DRIP shutdown complete")


def main() -> None:
    """Main entry point for DRIP."""
    args = create_parser().parse_args()

    # Key generation needs no configuration
    if args.command == "keys" and args.keys_command == "generate":
        address = generate_key(args.file, prefix=args.prefix)
        print(f"""
Key generated successfully!

  Address:     {address}
  Private Key: {Path(args.file).absolute()}

Fund this address on your target network, then launch DRIP with:

  export DRIP_PRIVATE_KEY_FILE={Path(args.file).absolute()}
  drip run

IMPORTANT: Keep this private key secure. Anyone with access can control the funds.
""")
        return

    # Handle CLI subcommands
    if args.command and args.command != "run":
        exit_code = run_cli(args)
        if exit_code >= 0:
            sys.exit(exit_code)
        # exit_code < 0 means show help
        create_parser().print_help()
        sys.exit(0)

    # No subcommand or "run" - start service
    asyncio.run(run_service())


if __name__ == "__main__":
    main()
