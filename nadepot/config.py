import os
from dataclasses import dataclass
from pathlib import Path

import yaml

from nadepot.errors import ConfigError

CONFIG_ENV = "NADEPOT_CONFIG"

DEFAULTS = {
    "data_dir": "data",
    "catalog_csv": "phenoData.csv",
    "annotation_csv": "gene_features.csv",
    "round_digits": 3,
    "contact_email": "lida@sioc.ac.cn",
    "log_level": "INFO",
}


@dataclass(frozen=True)
class BrowserConfig:
    data_dir: Path
    catalog_csv: str = DEFAULTS["catalog_csv"]
    annotation_csv: str = DEFAULTS["annotation_csv"]
    round_digits: int = DEFAULTS["round_digits"]
    contact_email: str = DEFAULTS["contact_email"]
    log_level: str = DEFAULTS["log_level"]

    @property
    def catalog_path(self) -> Path:
        return self.data_dir / self.catalog_csv

    @property
    def annotation_path(self) -> Path:
        return self.data_dir / self.annotation_csv


def read_yaml(path: Path) -> dict:
    try:
        cfg = yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as e:
        raise ConfigError(f"Could not parse {path}: {e}") from e
    if cfg is None:
        return {}
    if not isinstance(cfg, dict):
        raise ConfigError(f"{path} must contain a mapping, got {type(cfg).__name__}")
    return cfg


def load_config(path=None, base_dir=None) -> BrowserConfig:
    """Load the browser configuration.

    `path` falls back to $NADEPOT_CONFIG, then `config.yaml` in `base_dir`.
    A missing default file is not an error; every key has a default. A
    relative `data_dir` is anchored at the directory holding the config file.
    """
    base_dir = Path(base_dir) if base_dir is not None else Path.cwd()
    explicit = path or os.environ.get(CONFIG_ENV)
    cfg_path = Path(explicit) if explicit else base_dir / "config.yaml"

    if cfg_path.exists():
        cfg = read_yaml(cfg_path)
        anchor = cfg_path.parent.resolve()
    elif explicit:
        raise ConfigError(f"Config file not found: {cfg_path}")
    else:
        cfg = {}
        anchor = base_dir.resolve()

    unknown = set(cfg) - set(DEFAULTS)
    if unknown:
        raise ConfigError(f"Unknown config keys: {', '.join(sorted(unknown))}")

    merged = {**DEFAULTS, **cfg}
    data_dir = Path(merged["data_dir"])
    if not data_dir.is_absolute():
        data_dir = anchor / data_dir

    try:
        digits = int(merged["round_digits"])
    except (TypeError, ValueError) as e:
        raise ConfigError(f"round_digits must be an integer, got {merged['round_digits']!r}") from e

    return BrowserConfig(
        data_dir=data_dir.resolve(),
        catalog_csv=str(merged["catalog_csv"]),
        annotation_csv=str(merged["annotation_csv"]),
        round_digits=digits,
        contact_email=str(merged["contact_email"]),
        log_level=str(merged["log_level"]).upper(),
    )
