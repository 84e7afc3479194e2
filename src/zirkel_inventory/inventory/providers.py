"""Provider directory (PROVEEDORES sheet)."""

import logging
from typing import List, Optional

from zirkel_inventory.core import config
from zirkel_inventory.core.config import RetryPolicy
from zirkel_inventory.core.errors import ReconciliationError
from zirkel_inventory.core.retry import call_with_backoff
from zirkel_inventory.core.schema import Provider
from zirkel_inventory.integrations.ports import TabularStore

logger = logging.getLogger(__name__)


def get_providers(store: TabularStore, policy: Optional[RetryPolicy] = None) -> List[Provider]:
    """
    Read every provider from the PROVEEDORES sheet.

    Args:
        store: Spreadsheet holding the PROVEEDORES sheet
        policy: Backoff policy for rate-limited reads

    Returns:
        Providers in sheet order (header and blank rows skipped)

    Raises:
        RemoteServiceError: If the read fails
    """
    range_ = f"{config.PROVIDERS_SHEET_NAME}!{config.PROVIDERS_READ_RANGE}"
    rows = call_with_backoff(store.read, range_, policy=policy)

    providers = []
    for row in rows[1:]:
        provider = Provider.from_row(row)
        if provider.clave or provider.proveedor:
            providers.append(provider)

    logger.info(f"Loaded {len(providers)} provider(s)")
    return providers


def find_provider_code(providers: List[Provider], name_or_code: str) -> str:
    """
    Resolve a provider name or code to its code (case-insensitive).

    Raises:
        ReconciliationError: If no provider matches
    """
    wanted = (name_or_code or "").strip().lower()
    if wanted:
        for provider in providers:
            if provider.clave.strip().lower() == wanted:
                return provider.clave.strip()
        for provider in providers:
            if provider.clave and provider.proveedor.strip().lower() == wanted:
                return provider.clave.strip()
    raise ReconciliationError(f"Unknown provider: {name_or_code!r}")
