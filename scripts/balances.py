#!/usr/bin/env python
"""Balance CLI: fetch OKX account balances and print them as JSON.

Usage (examples):

python scripts/balances.py
python scripts/balances.py --ccy BTC,ETH --demo
python scripts/balances.py --config okx.yaml --log-level DEBUG
"""
import argparse
import asyncio
import json
import sys
from dataclasses import replace
from pathlib import Path as _Path
# Ensure project root is on sys.path so `okx_rest` package is importable when running as a script.
sys.path.insert(0, str(_Path(__file__).resolve().parents[1]))

from okx_rest.client import OkxClient
from okx_rest.config import ClientConfig
from okx_rest.errors import OkxError
from okx_rest.logging_setup import setup_logging
from okx_rest.secrets import load_credentials


async def run(args) -> int:
    if args.config:
        cfg = ClientConfig.from_yaml(args.config)
    else:
        cfg = ClientConfig()
    if args.log_level:
        cfg.logging.log_level = args.log_level
    setup_logging(log_file=cfg.logging.log_file, level=cfg.logging.log_level, enable_console=cfg.logging.enable_console)

    credentials = cfg.build_credentials() if cfg.credentials else load_credentials(args.credentials)
    if args.demo:
        credentials = replace(credentials, is_demo=True)

    async with OkxClient(credentials, base_url=cfg.exchange.base_url, timeout=cfg.exchange.timeout) as client:
        balances = await client.fetch_balances(ccy=args.ccy)
    print(json.dumps(balances, indent=2))
    return 0


def main():
    parser = argparse.ArgumentParser(description="Fetch OKX account balances")
    parser.add_argument("--config", help="Path to YAML config file")
    parser.add_argument("--credentials", help="Path to JSON credentials file (default ~/.okx_config.json)")
    parser.add_argument("--ccy", help="Comma-separated currency filter, e.g. BTC,ETH")
    parser.add_argument("--demo", action="store_true", help="Use demo trading (x-simulated-trading)")
    parser.add_argument("--log-level", help="Override log level")
    args = parser.parse_args()

    try:
        code = asyncio.run(run(args))
    except (OkxError, FileNotFoundError) as e:
        print(f"Error: {e}", file=sys.stderr)
        code = 1
    sys.exit(code)


if __name__ == "__main__":
    main()
