# connector_wrapper.py
from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

from crm_connector import Connector
from crm_connector.errors import ConfigError, ConnectorError
from logger.basic_logger import setup_logger
from utils.config_reader import ConfigReader

LOG = logging.getLogger("crm_connector.wrapper")


def load_config(log: logging.Logger, yaml_path: str) -> Dict[str, Any]:
    config = ConfigReader(log, Path(yaml_path)).load_configurations()
    log.info("Configuration loaded successfully.")
    return config.configs_data


def run_connector(
    source: str,
    env_name: str,
    yaml_path: str,
    run_mode: str = "read",
    target: Optional[str] = None,
    output_path: Optional[str] = None,
    log: Optional[logging.Logger] = None,
) -> Dict[str, Any]:
    """
    Execute one connector run and return its metadata dict.

    Args:
        source:      Source key under 'sources' in the YAML.
        env_name:    Env key under 'envs' (e.g. 'dev', 'prod').
        yaml_path:   Path to the YAML config.
        run_mode:    'read' (pull only) or 'sync' (pull and upsert).
        target:      (sync) Target key under 'targets'.
        output_path: (read) Optional local .csv/.jsonl[.gz] file to write.
    """
    log = log or LOG
    if not source:
        raise ConfigError("Parameter 'source' is required.")
    if not env_name:
        raise ConfigError("Parameter 'env_name' is required.")

    config = load_config(log, yaml_path)
    conn = Connector(config=config, log=log)

    mode = (run_mode or "read").lower()
    if mode == "sync":
        if not target:
            raise ConfigError("Sync requires a 'target'.")
        meta = conn.run_sync(source, target, env_name)
    elif mode == "read":
        meta = conn.run_read(source, env_name, output_path=output_path)
    else:
        raise ConfigError(f"Unsupported run_mode: {run_mode}")

    log.info("Connector metadata: %s", json.dumps(meta))
    return meta


def _parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Pull paginated records and optionally upsert them into a CRM."
    )
    parser.add_argument("-y", "--yaml_path", required=True, help="Path to the connector YAML")
    parser.add_argument("--source", required=True, help="Source key under 'sources'")
    parser.add_argument("--env", dest="env_name", required=True, help="Env key under 'envs'")
    parser.add_argument("--run_mode", choices=["read", "sync"], default="read")
    parser.add_argument("--target", help="Target key under 'targets' (sync)")
    parser.add_argument("--output", dest="output_path", help="Local output file (read)")
    parser.add_argument("--log_level", default="INFO")
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    args = _parse_args(argv)
    log = setup_logger("crm_connector", args.log_level)
    try:
        run_connector(
            source=args.source,
            env_name=args.env_name,
            yaml_path=args.yaml_path,
            run_mode=args.run_mode,
            target=args.target,
            output_path=args.output_path,
            log=log,
        )
    except ConnectorError as e:
        log.error(f"[runner] failed: {e}")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
