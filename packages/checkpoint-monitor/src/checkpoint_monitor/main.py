#!/usr/bin/env python3
"""Command-line entry point for the Checkpoint Monitor.

Validates query parameters, dispatches to the chain adapters or the proof
generator and prints the result as JSON.
"""

import argparse
import asyncio
import json
import logging
import os
import sys
from typing import Any

from dotenv import load_dotenv

from .config import MonitoringConfig
from .exceptions import (
    BlockHashMismatchError,
    ProofGenerationError,
    ProofRequestError,
    StateRootMismatchError,
)
from .factory import AdapterFactory
from .models import Direction, NetworkType
from .proof_service import ProofGenerator
from .registry import ChainRegistry

# Get logger for this module
logger = logging.getLogger(__name__)

MAX_LIMIT = 100


def setup_logging(level: str = "INFO") -> None:
    """Configure logging for the application.

    Args:
        level: Logging level as string (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    """
    log_level: int = getattr(logging, level.upper(), logging.INFO)
    logging.basicConfig(
        level=log_level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        stream=sys.stderr,
    )


def parse_limit(value: str) -> int:
    try:
        limit = int(value, 10)
    except ValueError:
        limit = 0
    if not 1 <= limit <= MAX_LIMIT:
        raise argparse.ArgumentTypeError(f"Invalid limit. Must be between 1 and {MAX_LIMIT}")
    return limit


def parse_block_number(value: str) -> int:
    try:
        block_number = int(value, 10)
    except ValueError:
        block_number = -1
    if block_number < 0:
        raise argparse.ArgumentTypeError("Invalid blockNumber. Must be a non-negative integer")
    return block_number


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser with one subcommand per operation."""
    parser = argparse.ArgumentParser(
        prog="checkpoint-monitor",
        description="Checkpoint Monitor - inspect checkpoint anchoring between rollup layers",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""Environment Variables:
  <CHAIN>_<NETWORK>_L1_RPC / _L2_RPC  - RPC endpoint overrides (e.g. TAIKO_TESTNET_L1_RPC)
  REQUEST_TIMEOUT                     - Per-read timeout in seconds (default: 30)
  CHECKPOINT_LOOKBACK_BLOCKS          - Checkpoint event scan window (default: 10000)
  CONFIRMATION_LOOKBACK_BLOCKS        - Confirmation event scan window (default: 900)
  ACCESSIBILITY_WINDOW                - Recent L1 blocks readable on L2 (default: 256)
  LOG_LEVEL                           - Logging level (can be overridden with --log-level)
        """
    )
    parser.add_argument(
        "--log-level",
        default=os.environ.get("LOG_LEVEL", "WARNING"),
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Set the logging level (default: WARNING)"
    )
    parser.add_argument(
        "--network",
        default=NetworkType.TESTNET.value,
        choices=[network.value for network in NetworkType],
        help="Network to query (default: testnet)"
    )

    subparsers = parser.add_subparsers(dest="command", required=True)
    subparsers.add_parser("chains", help="List supported chains")

    def add_chain_command(name: str, help_text: str) -> argparse.ArgumentParser:
        sub = subparsers.add_parser(name, help=help_text)
        sub.add_argument("chain", help="Chain identifier (e.g. taiko, arbitrum)")
        sub.add_argument(
            "--direction",
            default=Direction.L2_TO_L1.value,
            choices=[direction.value for direction in Direction],
            help="Proof direction (default: l2ToL1)"
        )
        return sub

    add_chain_command("status", "Show latest checkpoint and staleness")

    checkpoints = add_chain_command("checkpoints", "List recent checkpoints")
    checkpoints.add_argument("--limit", type=parse_limit, default=20, help="Number of checkpoints (1-100)")

    check_proof = add_chain_command("check-proof", "Check whether a block is provable")
    check_proof.add_argument("--block-number", type=parse_block_number, required=True)

    generate = add_chain_command("generate-proof", "Generate a storage proof for a block")
    generate.add_argument("--block-number", type=parse_block_number, required=True)
    generate.add_argument("--storage-slot", default=None, help="Storage slot (decimal or 0x-hex)")

    return parser


def emit(payload: dict[str, Any]) -> None:
    print(json.dumps(payload, indent=2))


async def run_command(
    args: argparse.Namespace,
    registry: ChainRegistry,
    monitoring: MonitoringConfig,
) -> int:
    """Execute a parsed command. Returns the process exit code."""
    network = NetworkType(args.network)

    if args.command == "chains":
        emit({
            "network": network.value,
            "chains": [
                {
                    "id": config.id,
                    "name": config.name,
                    "family": config.family.value,
                    "directions": {
                        Direction.L1_TO_L2.value: config.directions.l1_to_l2,
                        Direction.L2_TO_L1.value: config.directions.l2_to_l1,
                    },
                    "supportsProofGeneration": config.supports_proof_generation,
                }
                for chain_id in registry.list_chains(network)
                if (config := registry.lookup(network, chain_id)) is not None
            ],
        })
        return 0

    chain: str = args.chain
    direction = Direction(args.direction)

    if not registry.supported(network, chain):
        supported = ", ".join(registry.list_chains(network))
        emit({"error": f"Unknown chain: {chain}. Supported: {supported}"})
        return 1

    if args.command == "generate-proof":
        return await _generate_proof(args, registry, monitoring, network, direction)

    factory = AdapterFactory(registry, monitoring)
    adapter = factory.get_adapter(chain, network)
    if adapter is None:
        emit({"error": f"Failed to initialize adapter for {chain} on {network.value}"})
        return 1

    match args.command:
        case "status":
            status = await adapter.get_status(direction)
            emit(status.to_dict())
        case "checkpoints":
            checkpoints = await adapter.get_checkpoints(direction, args.limit)
            emit({
                "chain": chain,
                "direction": direction.value,
                "checkpoints": [checkpoint.to_dict() for checkpoint in checkpoints],
                "count": len(checkpoints),
            })
        case "check-proof":
            result = await adapter.check_proof(direction, args.block_number)
            emit({"chain": chain, "direction": direction.value, **result.to_dict()})

    return 0


async def _generate_proof(
    args: argparse.Namespace,
    registry: ChainRegistry,
    monitoring: MonitoringConfig,
    network: NetworkType,
    direction: Direction,
) -> int:
    generator = ProofGenerator(registry, monitoring=monitoring)
    try:
        generated = await generator.generate(
            args.chain, network, direction, args.block_number, args.storage_slot
        )
    except ProofRequestError as e:
        emit({"error": str(e)})
        return 1
    except BlockHashMismatchError as e:
        emit({"error": "Block hash verification failed", "details": str(e)})
        return 1
    except StateRootMismatchError as e:
        emit({"error": "State root verification failed", "details": str(e)})
        return 1
    except ProofGenerationError as e:
        emit({"error": "Failed to generate proof", "details": str(e.__cause__ or e)})
        return 1

    emit(generated.to_dict())
    return 0


async def main(argv: list[str] | None = None) -> int:
    """Main entry point for the Checkpoint Monitor CLI.

    Parses arguments, loads configuration from environment and runs the
    requested command.

    Returns:
        Process exit code
    """
    # Local overrides, including LOG_LEVEL, must be visible to the parser defaults
    load_dotenv()

    parser = build_parser()
    args: argparse.Namespace = parser.parse_args(argv)

    setup_logging(args.log_level)

    try:
        # Only the selected network's overrides are resolved and validated
        registry = ChainRegistry.from_env([NetworkType(args.network)])
        monitoring = MonitoringConfig.from_env()
    except ValueError as e:
        logger.error(f"Configuration Error: {e}")
        logger.error("Please check your RPC endpoint, address and monitoring environment variables")
        return 1

    monitoring.log_config()

    return await run_command(args, registry, monitoring)


def run() -> None:
    """Console script entry point."""
    try:
        sys.exit(asyncio.run(main()))
    except KeyboardInterrupt:
        logger.info("Received interrupt signal, shutting down...")
        sys.exit(130)


if __name__ == "__main__":
    run()
