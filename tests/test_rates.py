"""Tests for the failure-tolerant reference rate lookup."""
from decimal import Decimal

import httpx
import pytest

from financing_calc.config import EngineSettings
from financing_calc.data_models import GlobalRates
from financing_calc.rates import ReferenceRateProvider, refresh_global_rates

URL = "https://rates.example/wibor3m"


def _provider(handler, fallback="4.02") -> ReferenceRateProvider:
    client = httpx.Client(transport=httpx.MockTransport(handler))
    return ReferenceRateProvider(URL, Decimal(fallback), client=client)


def test_fetches_rate_from_json_object():
    provider = _provider(lambda request: httpx.Response(200, json={"rate": 5.12}))
    assert provider.current() == Decimal("5.12")
    assert provider.held_rate == Decimal("5.12")


def test_accepts_bare_number():
    provider = _provider(lambda request: httpx.Response(200, json=3.9))
    assert provider.current() == Decimal("3.9")


@pytest.mark.parametrize(
    "response",
    [
        httpx.Response(503, json={"error": "maintenance"}),
        httpx.Response(200, text="<html>not json</html>"),
        httpx.Response(200, json={"rate": "unknown"}),
        httpx.Response(200, json={"something": 1}),
    ],
)
def test_bad_responses_fall_back(response, caplog):
    provider = _provider(lambda request: response)
    assert provider.current() == Decimal("4.02")
    assert "Reference rate fetch" in caplog.text


def test_transport_error_keeps_last_good_rate():
    calls = {"count": 0}

    def handler(request):
        calls["count"] += 1
        if calls["count"] == 1:
            return httpx.Response(200, json={"rate": 5.5})
        raise httpx.ConnectError("connection refused", request=request)

    provider = _provider(handler)
    assert provider.current() == Decimal("5.5")
    assert provider.current() == Decimal("5.5")
    assert calls["count"] == 2


def test_without_url_returns_fallback_and_keeps_rates():
    provider = ReferenceRateProvider.from_settings(EngineSettings(reference_rate=Decimal("6.1")))
    assert not provider.enabled
    assert provider.current() == Decimal("6.1")

    rates = GlobalRates(reference_rate=Decimal("4.02"), inflation_rate=Decimal("3"))
    assert refresh_global_rates(rates, provider) is rates


def test_refresh_replaces_reference_rate_only():
    provider = _provider(lambda request: httpx.Response(200, json={"value": "5.85"}))
    rates = GlobalRates(reference_rate=Decimal("4.02"), inflation_rate=Decimal("3"))
    refreshed = refresh_global_rates(rates, provider)

    assert refreshed.reference_rate == Decimal("5.85")
    assert refreshed.inflation_rate == Decimal("3")
    assert rates.reference_rate == Decimal("4.02")
