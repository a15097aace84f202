# cli/cli.py
"""
CLI registry and dispatcher for vendor leads commands.
"""
from __future__ import annotations

import argparse
import asyncio
import json
import os
import sys
from typing import Callable, Dict, Optional

from cli.verification import check_health, check_preflight, submit_test_lead
from vendor_leads.core.config import get_settings
from vendor_leads.core.logging import configure_structlog
from vendor_leads.dependencies import build_vendors_config_provider
from vendor_leads.services.lead_id import resolve_lead_id


def _supports_color() -> bool:
    """Check if terminal supports ANSI color codes."""
    if sys.platform == "win32":
        return os.getenv("TERM") == "xterm" or os.getenv("ANSICON") is not None
    return sys.stdout.isatty()


SUPPORTS_COLOR = _supports_color()

GREEN = '\033[92m' if SUPPORTS_COLOR else ''
RED = '\033[91m' if SUPPORTS_COLOR else ''
YELLOW = '\033[93m' if SUPPORTS_COLOR else ''
BLUE = '\033[94m' if SUPPORTS_COLOR else ''
RESET = '\033[0m' if SUPPORTS_COLOR else ''


def print_success(message: str):
    print(f"{GREEN}[✓]{RESET} {message}")


def print_error(message: str):
    print(f"{RED}[✗]{RESET} {message}")


def print_warning(message: str):
    print(f"{YELLOW}[!]{RESET} {message}")


def print_info(message: str):
    print(f"{BLUE}[i]{RESET} {message}")


async def cmd_vendors_config(args: argparse.Namespace) -> int:
    """Command: Print the vendors config as the service loads it."""
    settings = get_settings()
    provider = build_vendors_config_provider(settings)
    print_info(f"Loading {provider.parameter_name}...")

    config = await provider.load_async()
    if not config:
        print_warning("Vendors config is empty or unavailable; lead ids will be generated")
        return 1

    print_success(f"Loaded {len(config)} vendors")
    for vendor, entry in sorted(config.items()):
        print_info(f"  {vendor}: leadIdProperty={entry.lead_id_property!r}")
    return 0


async def cmd_resolve_lead_id(args: argparse.Namespace) -> int:
    """Command: Resolve the id a lead would be stored under."""
    try:
        lead = json.loads(args.lead)
    except ValueError as e:
        print_error(f"--lead is not valid JSON: {e}")
        return 1

    provider = build_vendors_config_provider(get_settings())
    config = await provider.load_async()
    lead_id = resolve_lead_id(lead, config, args.vendor)

    entry = config.get(args.vendor.lower())
    if entry and entry.lead_id_property:
        print_info(f"Vendor {args.vendor} uses leadIdProperty={entry.lead_id_property!r}")
    else:
        print_warning(f"Vendor {args.vendor} has no leadIdProperty; id is generated")
    print_success(f"Lead id: {lead_id}")
    return 0


async def cmd_verify_api(args: argparse.Namespace) -> int:
    """Command: Check preflight, health and a test submission against a running API."""
    checks = [
        ("Preflight", check_preflight(args.api_url)),
        ("Health", check_health(args.api_url)),
    ]
    if args.vendor:
        lead = json.loads(args.lead) if args.lead else {"requestId": "cli-verify"}
        checks.append(("Lead submission", submit_test_lead(args.api_url, args.vendor, lead)))

    results = []
    for name, check in checks:
        print_info(f"Running: {name}...")
        result = await check
        if result.success:
            print_success(result.message)
        else:
            print_error(result.message)
        if result.data.get("response"):
            print_info(f"  Response: {json.dumps(result.data['response'])}")
        results.append((name, result.success))

    passed = sum(1 for _, success in results if success)
    if passed == len(results):
        print_success(f"All {len(results)} checks passed")
        return 0

    print_error(f"{passed}/{len(results)} checks passed")
    for name, success in results:
        symbol = "✓" if success else "✗"
        print(f"  [{symbol}] {name}: {'PASS' if success else 'FAIL'}")
    return 1


async def cmd_store_writer(args: argparse.Namespace) -> int:
    """Command: Run the store writer worker until interrupted."""
    from workers.store_writer_worker import worker_main

    print_info("Starting store writer worker (Ctrl+C to stop)...")
    await worker_main()
    return 0


COMMANDS: Dict[str, Callable] = {
    'vendors-config': cmd_vendors_config,
    'resolve-lead-id': cmd_resolve_lead_id,
    'verify-api': cmd_verify_api,
    'store-writer': cmd_store_writer,
}


def create_parser() -> argparse.ArgumentParser:
    """Create argument parser with all commands."""
    parser = argparse.ArgumentParser(
        prog='vendor-leads',
        description='Vendor Leads CLI',
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    subparsers = parser.add_subparsers(dest='command', help='Command to execute')

    subparsers.add_parser('vendors-config', help='Show the vendors config')

    resolve_parser = subparsers.add_parser('resolve-lead-id', help='Resolve the stored id of a lead')
    resolve_parser.add_argument('--vendor', required=True, help='Vendor name')
    resolve_parser.add_argument('--lead', required=True, help='Lead as a JSON object')

    api_parser = subparsers.add_parser('verify-api', help='Verify a running API')
    api_parser.add_argument('--api-url', default='http://localhost:8000', help='API URL')
    api_parser.add_argument('--vendor', default=None, help='Also submit a test lead as this vendor')
    api_parser.add_argument('--lead', default=None, help='Test lead as a JSON object')

    subparsers.add_parser('store-writer', help='Run the store writer worker')

    return parser


def main(args: Optional[list] = None) -> int:
    """Main CLI entry point."""
    parser = create_parser()
    parsed_args = parser.parse_args(args)

    if not parsed_args.command:
        parser.print_help()
        return 1

    command_func = COMMANDS.get(parsed_args.command)
    if not command_func:
        print_error(f"Unknown command: {parsed_args.command}")
        parser.print_help()
        return 1

    configure_structlog(get_settings())
    try:
        return asyncio.run(command_func(parsed_args))
    except KeyboardInterrupt:
        print_error("\nInterrupted by user")
        return 130
    except Exception as e:
        print_error(f"Error executing command: {str(e)}")
        if os.getenv('DEBUG'):
            import traceback
            traceback.print_exc()
        return 1


if __name__ == '__main__':
    sys.exit(main())
