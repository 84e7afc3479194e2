"""Tests for the provider directory."""

import pytest

from zirkel_inventory.core.errors import ErrorKind, ReconciliationError, RemoteServiceError
from zirkel_inventory.inventory.providers import find_provider_code, get_providers


def test_get_providers(store):
    providers = get_providers(store)
    assert [p.clave for p in providers] == ["IMU", "GEX"]
    assert providers[0].razon_social == "Imágenes Urbanas SA de CV"
    assert store.calls[0] == ("read", "PROVEEDORES!A:AA")


def test_get_providers_skips_blank_rows(store):
    store.sheets["PROVEEDORES"].insert(2, ["", ""])
    assert len(get_providers(store)) == 2


def test_get_providers_retries_rate_limit(store, fast_retry):
    store.failures.append(RemoteServiceError("quota", kind=ErrorKind.RATE_LIMITED, status_code=429))
    assert len(get_providers(store, fast_retry)) == 2
    assert len(store.calls) == 2


def test_find_provider_code(store):
    providers = get_providers(store)
    assert find_provider_code(providers, "IMU") == "IMU"
    assert find_provider_code(providers, "gex") == "GEX"
    assert find_provider_code(providers, "imágenes urbanas") == "IMU"


def test_find_provider_code_unknown(store):
    providers = get_providers(store)
    with pytest.raises(ReconciliationError, match="Unknown provider"):
        find_provider_code(providers, "Otro Proveedor")
    with pytest.raises(ReconciliationError):
        find_provider_code(providers, "")
