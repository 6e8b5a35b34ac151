from __future__ import annotations

import logging
import os
from decimal import Decimal
from pathlib import Path

import platformdirs
import yaml
from dotenv import load_dotenv

from smartpdv.models.cart import Coupon
from smartpdv.models.pix import PixMerchant
from smartpdv.utils.validators import require_valid_pix_key

APP_NAME = "smartpdv"

logger = logging.getLogger(__name__)


def _resolve_config_dir_for_dotenv() -> Path | None:
    """Resolve config dir for .env loading without depending on env vars from .env itself.

    Only checks sources available before .env is loaded (env var set in the
    shell, dev layout, an existing platformdirs directory).
    """
    from_env = os.environ.get("SMARTPDV_CONFIG_DIR")
    if from_env:
        return Path(from_env)
    project_root = Path(__file__).resolve().parent.parent.parent
    candidate = project_root / "config"
    if candidate.is_dir():
        return candidate
    pd = Path(platformdirs.user_config_dir(APP_NAME))
    if pd.is_dir():
        return pd
    return None


# Load .env: cwd first (highest priority), then config dir (won't override)
load_dotenv()
_cfg_dir = _resolve_config_dir_for_dotenv()
if _cfg_dir is not None:
    load_dotenv(_cfg_dir / ".env")


def _resolve_dir(env_var: str, default_subdir: str) -> Path:
    """Resolve a directory from env var, repo layout, or platform config dir.

    Priority: 1) env var, 2) dev repo layout, 3) platformdirs user directory.
    """
    from_env = os.environ.get(env_var)
    if from_env:
        return Path(from_env)
    # Development layout: src/smartpdv/config.py -> ../../.. = project root
    project_root = Path(__file__).resolve().parent.parent.parent
    candidate = project_root / default_subdir
    if candidate.is_dir():
        return candidate
    return Path(platformdirs.user_config_dir(APP_NAME))


def get_config_dir() -> Path:
    """Resolve config directory. Re-evaluated on each call to pick up env changes."""
    return _resolve_dir("SMARTPDV_CONFIG_DIR", "config")


# --- BR Code constants ---

PAYLOAD_FORMAT_INDICATOR = "01"
POINT_OF_INITIATION = "12"
PIX_GUI = "br.gov.bcb.pix"
MERCHANT_CATEGORY_CODE = "0000"
CURRENCY_CODE = "986"  # ISO 4217 BRL
COUNTRY_CODE = "BR"

MERCHANT_NAME_MAX = 25
MERCHANT_CITY_MAX = 15
TXID_LENGTH = 25

# --- Loyalty ---

LOYALTY_POINT_VALUE = Decimal("0.01")  # 1 ponto = R$ 0,01
LOYALTY_SPEND_PER_POINT = Decimal("10")  # 1 ponto a cada R$ 10,00

# --- Payment status source ---

PAYMENT_STATUS_TIMEOUT = 10

DEFAULT_MERCHANT = {
    "chave": "smartpdv@exemplo.com",
    "tipo_chave": "email",
    "beneficiario": "SmartPDV Store",
    "cidade": "SAO PAULO",
}


def get_status_url() -> str | None:
    """Return the payment-status endpoint from PIX_STATUS_URL, if configured."""
    return os.environ.get("PIX_STATUS_URL") or None


def get_status_token() -> str | None:
    return os.environ.get("PIX_STATUS_TOKEN") or None


def get_status_timeout() -> float:
    """Return the status request timeout in seconds (SMARTPDV_STATUS_TIMEOUT)."""
    raw = os.environ.get("SMARTPDV_STATUS_TIMEOUT")
    if not raw:
        return PAYMENT_STATUS_TIMEOUT
    try:
        return float(raw)
    except ValueError:
        logger.warning("SMARTPDV_STATUS_TIMEOUT invalido (%r), usando %ss", raw, PAYMENT_STATUS_TIMEOUT)
        return PAYMENT_STATUS_TIMEOUT


# --- YAML config ---


def load_yaml(path: Path) -> dict | list:
    """Load and parse a YAML file, returning the top-level value."""
    return yaml.safe_load(path.read_text())


def _save_yaml(path: Path, data: object) -> Path:
    """Write *data* as YAML to *path* (atomic write)."""
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp = path.with_suffix(".tmp")
    tmp.write_text(yaml.dump(data, default_flow_style=False, allow_unicode=True))
    os.replace(tmp, path)
    return path


def load_pix_merchant() -> PixMerchant:
    """Load the merchant PIX settings from config/pix.yaml.

    Falls back to DEFAULT_MERCHANT when the file does not exist.
    """
    path = get_config_dir() / "pix.yaml"
    if not path.exists():
        logger.debug("pix.yaml nao encontrado em %s, usando configuracao padrao", path.parent)
        return PixMerchant.from_dict(DEFAULT_MERCHANT)
    return PixMerchant.from_dict(load_yaml(path) or {})


def save_pix_merchant(merchant: PixMerchant) -> Path:
    """Validate the PIX key and save the merchant settings to config/pix.yaml."""
    require_valid_pix_key(merchant.key, merchant.key_type)
    return _save_yaml(get_config_dir() / "pix.yaml", merchant.to_dict())


def load_coupons() -> list[Coupon] | None:
    """Load the coupon catalog from config/coupons.yaml.

    Returns None when the file does not exist, so callers keep the built-in
    catalog.
    """
    path = get_config_dir() / "coupons.yaml"
    if not path.exists():
        return None
    data = load_yaml(path) or []
    return [Coupon.from_dict(d) for d in data]
