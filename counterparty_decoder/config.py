"""Network selection from environment variables and optional YAML."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Mapping

import yaml

from .addresses import MAINNET, NETWORKS, NetworkParams


class ConfigurationError(RuntimeError):
    """Raised when configuration is invalid."""


DEFAULT_CONFIG_PATH = Path.home() / ".counterparty-decoder.yaml"
CONFIG_PATH_ENV = "COUNTERPARTY_DECODER_CONFIG"
NETWORK_ENV = "COUNTERPARTY_NETWORK"


def _load_config_file(path: Path, *, required: bool) -> dict[str, Any]:
    if not path.exists():
        if required:
            raise ConfigurationError(f"Config file not found: {path}")
        return {}

    try:
        loaded = yaml.safe_load(path.read_text()) or {}
    except yaml.YAMLError as exc:
        raise ConfigurationError(f"Invalid YAML in config file {path}: {exc}") from exc

    if not isinstance(loaded, dict):
        raise ConfigurationError(f"Expected {path} to contain a YAML object")
    return loaded


def _coerce_version_byte(raw: Any, *, source: str) -> int:
    try:
        value = int(raw, 0) if isinstance(raw, str) else int(raw)
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(f"Invalid version byte in {source}: {raw!r}") from exc
    if not 0 <= value <= 0xFF:
        raise ConfigurationError(f"Version byte out of range in {source}: {raw!r}")
    return value


def _custom_networks(file_config: Mapping[str, Any], path: Path) -> dict[str, NetworkParams]:
    section = file_config.get("networks") or {}
    if not isinstance(section, dict):
        raise ConfigurationError(f"Expected 'networks' to be a mapping in {path}")

    networks: dict[str, NetworkParams] = {}
    for name, entry in section.items():
        source = f"{path} networks.{name}"
        if not isinstance(entry, dict):
            raise ConfigurationError(f"Expected {source} to be a mapping")
        missing = [key for key in ("pubkey_hash", "script_hash", "bech32_hrp") if key not in entry]
        if missing:
            raise ConfigurationError(f"{source} is missing {', '.join(missing)}")
        hrp = entry["bech32_hrp"]
        if not isinstance(hrp, str) or not hrp:
            raise ConfigurationError(f"Invalid bech32_hrp in {source}: {hrp!r}")
        networks[str(name).lower()] = NetworkParams(
            name=str(name).lower(),
            pubkey_hash=_coerce_version_byte(entry["pubkey_hash"], source=f"{source}.pubkey_hash"),
            script_hash=_coerce_version_byte(entry["script_hash"], source=f"{source}.script_hash"),
            bech32_hrp=hrp.lower(),
        )
    return networks


def load_network_params(
    *,
    network: str | None = None,
    config_path: str | Path | None = None,
    env: Mapping[str, str] | None = None,
) -> NetworkParams:
    """Resolve the address-encoding parameters to decode with.

    The network name comes from *network*, then ``COUNTERPARTY_NETWORK``,
    then the ``network`` key of the YAML config, and defaults to mainnet.
    Names are looked up in the config's ``networks`` section first, so a
    file may override or extend the built-in presets.
    """

    env_map = os.environ if env is None else env
    env_path = env_map.get(CONFIG_PATH_ENV)
    explicit_path = config_path is not None or bool(env_path)
    if config_path is not None:
        path = Path(config_path).expanduser()
    elif env_path:
        path = Path(env_path).expanduser()
    else:
        path = DEFAULT_CONFIG_PATH

    file_config = _load_config_file(path, required=explicit_path)
    known = dict(NETWORKS)
    known.update(_custom_networks(file_config, path))

    name = network or env_map.get(NETWORK_ENV) or file_config.get("network") or MAINNET.name
    if not isinstance(name, str):
        raise ConfigurationError(f"Invalid network name: {name!r}")
    try:
        return known[name.strip().lower()]
    except KeyError:
        raise ConfigurationError(
            f"Unknown network {name!r}; expected one of {', '.join(sorted(known))}"
        ) from None
