from __future__ import annotations

import threading
from datetime import date, datetime, timezone
from http.server import BaseHTTPRequestHandler, HTTPServer
from urllib.parse import parse_qs, urlparse

import pytest

from surfcast.entities import ForecastRequest
from surfcast.providers import (
    OpenWeatherProvider,
    ProviderError,
    QuotaExceeded,
    RequestConfig,
    StormglassProvider,
    SurflineProvider,
    WindyProvider,
)

from tests.payloads import (
    BASE_EPOCH,
    OPENWEATHER_URL,
    STORMGLASS_URL,
    SURFLINE_URL,
    WINDY_URL,
    openweather_payload,
    stormglass_payload,
)


def query_of(request) -> dict:
    return parse_qs(urlparse(request.url).query)


def test_stormglass_request_and_normalization(requests_mock, coordinate):
    provider = StormglassProvider(base_url=STORMGLASS_URL)
    requests_mock.get(STORMGLASS_URL, json=stormglass_payload([0.9, 1.4]))

    raw = provider.fetch(coordinate, "sg-key")
    forecast = provider.normalize(raw)

    request = requests_mock.last_request
    assert request.headers["Authorization"] == "sg-key"
    query = query_of(request)
    assert query["params"] == ["waveHeight,wavePeriod,waveDirection,windSpeed,windDirection"]
    assert query["source"] == ["noaa"]
    assert query["lat"] == ["35.3"]
    assert query["lng"] == ["139.5"]

    assert len(forecast.hourly) == 2
    first = forecast.hourly[0]
    assert first.timestamp == datetime(2024, 5, 1, 0, tzinfo=timezone.utc)
    assert first.wave_height == 0.9
    assert first.wave_period == 9.0
    assert first.wind_speed == 3.0
    assert first.source == "stormglass"
    assert forecast.daily == ()


def test_stormglass_missing_source_values_become_none(requests_mock, coordinate):
    provider = StormglassProvider(base_url=STORMGLASS_URL)
    requests_mock.get(
        STORMGLASS_URL,
        json={"hours": [{"time": "2024-05-01T03:00:00+00:00", "waveHeight": {"sg": 1.1}}]},
    )

    forecast = provider.normalize(provider.fetch(coordinate, "sg-key"))

    hour = forecast.hourly[0]
    assert hour.wave_height is None
    assert hour.wind_speed is None


def test_stormglass_quota_exceeded(requests_mock, coordinate):
    provider = StormglassProvider(base_url=STORMGLASS_URL)
    requests_mock.get(STORMGLASS_URL, status_code=429, text="quota exceeded")

    with pytest.raises(QuotaExceeded) as excinfo:
        provider.fetch(coordinate, "sg-key")

    assert excinfo.value.provider == "stormglass"


def test_http_error_carries_provider_name(requests_mock, coordinate):
    provider = OpenWeatherProvider(base_url=OPENWEATHER_URL)
    requests_mock.get(OPENWEATHER_URL, status_code=401, text="invalid key")

    with pytest.raises(ProviderError) as excinfo:
        provider.fetch(coordinate, "bad-key")

    assert excinfo.value.provider == "openweathermap"
    assert excinfo.value.message == "HTTP 401"


def test_invalid_json_is_provider_error(requests_mock, coordinate):
    provider = StormglassProvider(base_url=STORMGLASS_URL)
    requests_mock.get(STORMGLASS_URL, text="<html>oops</html>")

    with pytest.raises(ProviderError, match="invalid json"):
        provider.fetch(coordinate, "sg-key")


def test_malformed_payload_is_provider_error(coordinate):
    provider = StormglassProvider(base_url=STORMGLASS_URL)

    with pytest.raises(ProviderError, match="malformed payload") as excinfo:
        provider.normalize({"hours": [{"time": "not a time"}]})

    assert excinfo.value.cause is not None


def test_empty_payload_is_provider_error():
    provider = StormglassProvider(base_url=STORMGLASS_URL)

    with pytest.raises(ProviderError, match="missing hourly data"):
        provider.normalize({"hours": []})


def test_connection_error_is_provider_error(requests_mock, coordinate):
    import requests

    provider = WindyProvider(base_url=WINDY_URL)
    requests_mock.get(WINDY_URL, exc=requests.ConnectionError("refused"))

    with pytest.raises(ProviderError, match="request failed"):
        provider.fetch(coordinate, "windy-key")


def test_timeout_is_provider_error(requests_mock, coordinate):
    import requests

    provider = WindyProvider(base_url=WINDY_URL)
    requests_mock.get(WINDY_URL, exc=requests.Timeout("slow"))

    with pytest.raises(ProviderError, match="timeout"):
        provider.fetch(coordinate, "windy-key")


def test_expired_deadline_fails_before_request(requests_mock, coordinate):
    provider = StormglassProvider(base_url=STORMGLASS_URL)
    requests_mock.get(STORMGLASS_URL, json=stormglass_payload([1.0]))

    with pytest.raises(ProviderError, match="deadline exceeded"):
        provider.fetch(coordinate, "sg-key", deadline=0.0)

    assert requests_mock.call_count == 0


def test_openweather_request_and_normalization(requests_mock, coordinate):
    provider = OpenWeatherProvider(base_url=OPENWEATHER_URL)
    requests_mock.get(OPENWEATHER_URL, json=openweather_payload([2.0, 6.5]))

    forecast = provider.normalize(provider.fetch(coordinate, "owm-key"))

    query = query_of(requests_mock.last_request)
    assert query["exclude"] == ["minutely,alerts"]
    assert query["units"] == ["metric"]
    assert query["appid"] == ["owm-key"]

    assert len(forecast.daily) == 1
    day = forecast.daily[0]
    assert day.date == date(2024, 5, 1)
    assert day.temperature_min == 14.5
    assert day.temperature_max == 21.0
    assert day.weather == "Clouds"
    assert day.weather_description == "scattered clouds"
    assert day.precipitation_probability == 0.35

    assert [hour.wind_speed for hour in forecast.hourly] == [2.0, 6.5]
    assert all(hour.wave_height is None for hour in forecast.hourly)
    assert forecast.hourly[1].timestamp == datetime.fromtimestamp(BASE_EPOCH + 3600, tz=timezone.utc)


def test_openweather_day_without_conditions():
    provider = OpenWeatherProvider(base_url=OPENWEATHER_URL)

    forecast = provider.normalize({"daily": [{"dt": BASE_EPOCH, "temp": {"min": 10, "max": 12}, "weather": []}]})

    assert forecast.daily[0].weather is None
    assert forecast.daily[0].wind_speed is None


def test_windy_request_and_vector_conversion(requests_mock, coordinate):
    provider = WindyProvider(base_url=WINDY_URL)
    requests_mock.get(
        WINDY_URL,
        json={
            "ts": [BASE_EPOCH * 1000, (BASE_EPOCH + 3600) * 1000],
            "units": {"wind_u-surface": "m*s-1", "waves_height-surface": "m"},
            "wind_u-surface": [0.0, -3.0],
            "wind_v-surface": [-5.0, -4.0],
            "waves_height-surface": [1.2, None],
            "waves_period-surface": [11.0, 10.0],
            "waves_direction-surface": [250.0, 255.0],
        },
    )

    forecast = provider.normalize(provider.fetch(coordinate, "windy-key"))

    query = query_of(requests_mock.last_request)
    assert query["model"] == ["gfs"]
    assert query["parameters"] == ["wind,waves"]
    assert query["key"] == ["windy-key"]

    first, second = forecast.hourly
    assert first.timestamp == datetime(2024, 5, 1, 0, tzinfo=timezone.utc)
    assert first.wind_speed == pytest.approx(5.0)
    assert first.wind_direction == pytest.approx(0.0)
    assert first.wave_height == 1.2
    assert second.wind_speed == pytest.approx(5.0)
    assert second.wind_direction == pytest.approx(36.9, abs=0.1)
    assert second.wave_height is None


def test_windy_without_wind_vectors():
    provider = WindyProvider(base_url=WINDY_URL)

    forecast = provider.normalize({"ts": [BASE_EPOCH * 1000], "waves_height-surface": [0.8]})

    assert forecast.hourly[0].wind_speed is None
    assert forecast.hourly[0].wave_height == 0.8


def test_surfline_converts_feet_and_picks_dominant_swell(requests_mock):
    provider = SurflineProvider(base_url=SURFLINE_URL)
    requests_mock.get(
        SURFLINE_URL,
        json={
            "associated": {"units": {"waveHeight": "FT"}},
            "data": {
                "wave": [
                    {
                        "timestamp": BASE_EPOCH,
                        "surf": {"min": 2, "max": 4},
                        "swells": [
                            {"height": 1.0, "period": 7, "direction": 180},
                            {"height": 2.5, "period": 12, "direction": 210},
                            {"height": 0, "period": 0, "direction": 0},
                        ],
                    }
                ]
            },
        },
    )

    forecast = provider.normalize(provider.fetch("5842041f4e65fad6a7708890"))

    assert query_of(requests_mock.last_request)["spotId"] == ["5842041f4e65fad6a7708890"]
    hour = forecast.hourly[0]
    assert hour.wave_height == pytest.approx(0.91)
    assert hour.wave_period == 12
    assert hour.wave_direction == 210
    assert hour.wind_speed is None


def test_surfline_metric_units_kept():
    provider = SurflineProvider(base_url=SURFLINE_URL)

    forecast = provider.normalize(
        {
            "associated": {"units": {"waveHeight": "M"}},
            "data": {"wave": [{"timestamp": BASE_EPOCH, "surf": {"min": 1.0, "max": 1.4}, "swells": []}]},
        }
    )

    assert forecast.hourly[0].wave_height == pytest.approx(1.2)
    assert forecast.hourly[0].wave_period is None


def test_point_provider_supports_only_with_credential(coordinate, credentials):
    provider = StormglassProvider(base_url=STORMGLASS_URL)

    assert provider.supports(ForecastRequest(coordinate=coordinate, credentials=credentials))
    assert not provider.supports(ForecastRequest(coordinate=coordinate))


def test_spot_provider_supports_only_with_spot(coordinate):
    provider = SurflineProvider(base_url=SURFLINE_URL)

    assert provider.supports(ForecastRequest(coordinate=coordinate, spot_id="abc"))
    assert not provider.supports(ForecastRequest(coordinate=coordinate))
    with pytest.raises(ProviderError, match="missing spot identifier"):
        provider.collect(ForecastRequest(coordinate=coordinate))


def test_collect_fetches_and_normalizes(requests_mock, coordinate, credentials):
    provider = StormglassProvider(base_url=STORMGLASS_URL)
    requests_mock.get(STORMGLASS_URL, json=stormglass_payload([1.0, 1.1, 1.2]))

    forecast = provider.collect(ForecastRequest(coordinate=coordinate, credentials=credentials))

    assert [hour.wave_height for hour in forecast.hourly] == [1.0, 1.1, 1.2]
    assert requests_mock.call_count == 1


@pytest.mark.parametrize(
    "provider, raw",
    [
        (WindyProvider(base_url=WINDY_URL), {"ts": [10**20], "waves_height-surface": [1.0]}),
        (StormglassProvider(base_url=STORMGLASS_URL), {"hours": [{"time": 10**20}]}),
        (SurflineProvider(base_url=SURFLINE_URL), {"data": {"wave": [{"timestamp": "not a time"}]}}),
    ],
)
def test_out_of_range_timestamps_are_malformed_payloads(provider, raw):
    with pytest.raises(ProviderError, match="malformed payload"):
        provider.normalize(raw)


class CountingHandler(BaseHTTPRequestHandler):
    def do_GET(self):
        self.server.hits += 1
        self.send_response(500)
        self.send_header("Content-Length", "0")
        self.end_headers()

    def log_message(self, format, *args):
        pass


@pytest.fixture
def failing_server():
    server = HTTPServer(("127.0.0.1", 0), CountingHandler)
    server.hits = 0
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    try:
        yield server
    finally:
        server.shutdown()
        server.server_close()


def test_fetch_sends_a_single_request_by_default(failing_server, coordinate):
    url = f"http://127.0.0.1:{failing_server.server_port}/point"
    provider = StormglassProvider(base_url=url)
    provider.session.trust_env = False

    with pytest.raises(ProviderError, match="HTTP 500"):
        provider.fetch(coordinate, "sg-key")

    assert failing_server.hits == 1


def test_transport_retries_are_opt_in(failing_server, coordinate):
    url = f"http://127.0.0.1:{failing_server.server_port}/point"
    provider = StormglassProvider(base_url=url, request_config=RequestConfig(retries=2, backoff_factor=0))
    provider.session.trust_env = False

    with pytest.raises(ProviderError, match="HTTP 500"):
        provider.fetch(coordinate, "sg-key")

    assert failing_server.hits == 3
