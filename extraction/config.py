"""Extraction configuration from the environment.

Reads settings from environment variables, loading ``.env`` from the repo
root first when it exists:

- ERP_CONTROLLING_AREA: Controlling area (required)
- ERP_FROM_DATE / ERP_TO_DATE: Inclusive posting date range, ISO or YYYYMMDD (required)
- ERP_PERIOD: Fiscal period (optional; all periods when unset)
- ERP_COST_CENTERS: Comma separated cost centers, or
- ERP_COST_CENTER_FILE: JSON file with a list, or an object with a "costCenters" list
- ERP_CONNECTOR: Connector type (default: sap_rfc)
- ERP_DESTINATION: RFC destination name
- ERP_ENVIRONMENT: production / sandbox (default: production)
- ERP_RFC_TRANSPORT: "module:factory" returning the RFC call for an ERPConfig
- ERP_REPLAY_FILE: Recorded BAPI responses to replay instead of a live transport
"""

import importlib
import json
import os
from pathlib import Path
from typing import List, Mapping, Optional, Union

from dotenv import load_dotenv

from connectors.erp_base import ControllingDocumentSource, ERPConfig, create_connector
from connectors.sap.recorded import RecordedRfcSession
from extraction.errors import ConfigurationError, RemoteExecutionError
from models.controlling import ExtractionRequest


REPO_ROOT = Path(__file__).resolve().parents[1]


def load_env_file(env_path: Optional[Union[str, Path]] = None) -> bool:
    """Load a .env file into the process environment (existing values win)."""
    path = Path(env_path) if env_path else REPO_ROOT / ".env"
    if not path.exists():
        return False
    return load_dotenv(path, override=False)


def _require(env: Mapping[str, str], name: str) -> str:
    value = (env.get(name) or "").strip()
    if not value:
        raise ConfigurationError(f"{name} environment variable not set", setting=name)
    return value


def read_cost_center_file(path: Union[str, Path]) -> List[str]:
    """Read cost centers from a JSON file.

    Accepted shapes: ``["0010", "0020"]`` or ``{"costCenters": ["0010", "0020"]}``.
    """
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        raise ConfigurationError(f"Cannot read cost center file {path}: {e}", setting="ERP_COST_CENTER_FILE") from e

    if isinstance(data, dict):
        data = data.get("costCenters", data.get("cost_centers"))
    if not isinstance(data, list):
        raise ConfigurationError(
            f"Cost center file {path} must contain a list or a 'costCenters' list",
            setting="ERP_COST_CENTER_FILE",
        )
    return [str(cc) for cc in data]


def _cost_centers_from_env(env: Mapping[str, str]) -> List[str]:
    inline = (env.get("ERP_COST_CENTERS") or "").strip()
    if inline:
        return [cc.strip() for cc in inline.split(",") if cc.strip()]
    cost_center_file = (env.get("ERP_COST_CENTER_FILE") or "").strip()
    if cost_center_file:
        return read_cost_center_file(cost_center_file)
    raise ConfigurationError(
        "Set ERP_COST_CENTERS or ERP_COST_CENTER_FILE",
        setting="ERP_COST_CENTERS",
    )


def load_extraction_request(
    env: Optional[Mapping[str, str]] = None,
    env_path: Optional[Union[str, Path]] = None,
) -> ExtractionRequest:
    """Build an ExtractionRequest from environment variables.

    Args:
        env: Mapping to read instead of os.environ (no .env loading then)
        env_path: Explicit .env file to load

    Raises:
        ConfigurationError: A setting is missing or invalid
    """
    if env is None:
        load_env_file(env_path)
        env = os.environ

    period = (env.get("ERP_PERIOD") or "").strip()
    try:
        return ExtractionRequest(
            controlling_area=_require(env, "ERP_CONTROLLING_AREA"),
            from_date=_require(env, "ERP_FROM_DATE"),
            to_date=_require(env, "ERP_TO_DATE"),
            period=int(period) if period else None,
            cost_centers=_cost_centers_from_env(env),
        )
    except ValueError as e:
        # pydantic ValidationError and a non-numeric ERP_PERIOD both land here
        raise ConfigurationError(f"Invalid extraction settings: {e}") from e


def load_erp_config(
    env: Optional[Mapping[str, str]] = None,
    env_path: Optional[Union[str, Path]] = None,
) -> ERPConfig:
    """Build the connector configuration from environment variables."""
    if env is None:
        load_env_file(env_path)
        env = os.environ

    return ERPConfig(
        connector_type=(env.get("ERP_CONNECTOR") or "sap_rfc").strip(),
        environment=(env.get("ERP_ENVIRONMENT") or "production").strip(),
        destination=(env.get("ERP_DESTINATION") or "").strip() or None,
    )


def load_rfc_transport(target: str, config: ERPConfig):
    """Resolve ERP_RFC_TRANSPORT ("package.module:factory") and call the factory.

    The factory receives the ERPConfig and returns the RFC call used by the
    SAP connector, e.g. ``lambda config: pyrfc.Connection(dest=config.destination).call``.

    Raises:
        ConfigurationError: The target cannot be resolved
        RemoteExecutionError: The factory failed to open the connection
    """
    module_name, _, attr = target.partition(":")
    if not module_name or not attr:
        raise ConfigurationError(
            f"ERP_RFC_TRANSPORT must look like 'package.module:factory', got {target!r}",
            setting="ERP_RFC_TRANSPORT",
        )
    try:
        module = importlib.import_module(module_name)
    except ImportError as e:
        raise ConfigurationError(f"Cannot import RFC transport module {module_name}: {e}", setting="ERP_RFC_TRANSPORT") from e

    factory = getattr(module, attr, None)
    if not callable(factory):
        raise ConfigurationError(f"{target} is not callable", setting="ERP_RFC_TRANSPORT")

    try:
        return factory(config)
    except ConfigurationError:
        raise
    except Exception as e:
        # Logon and communication failures while opening the connection
        raise RemoteExecutionError(
            f"Cannot open RFC transport {target} for destination {config.destination!r}: {e}"
        ) from e


def build_source(
    config: ERPConfig,
    env: Optional[Mapping[str, str]] = None,
    replay_file: Optional[Union[str, Path]] = None,
) -> ControllingDocumentSource:
    """Create the configured connector with its RFC transport.

    A replay file (argument or ERP_REPLAY_FILE) takes precedence over
    ERP_RFC_TRANSPORT.

    Raises:
        ConfigurationError: Missing or broken connector settings
        RemoteExecutionError: The RFC transport could not be opened
    """
    if env is None:
        env = os.environ

    replay_file = replay_file or (env.get("ERP_REPLAY_FILE") or "").strip() or None
    if replay_file:
        try:
            rfc_call = RecordedRfcSession.from_file(replay_file)
        except (OSError, ValueError) as e:
            raise ConfigurationError(f"Cannot read replay file {replay_file}: {e}", setting="ERP_REPLAY_FILE") from e
    else:
        target = (env.get("ERP_RFC_TRANSPORT") or "").strip()
        if not target:
            raise ConfigurationError(
                "Set ERP_RFC_TRANSPORT (or ERP_REPLAY_FILE) to reach the ERP",
                setting="ERP_RFC_TRANSPORT",
            )
        rfc_call = load_rfc_transport(target, config)

    try:
        return create_connector(config, rfc_call=rfc_call)
    except ValueError as e:
        raise ConfigurationError(str(e), setting="ERP_CONNECTOR") from e
