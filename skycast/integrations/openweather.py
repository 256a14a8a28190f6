"""OpenWeather API integration — implements WeatherPort.

Uses the Current Weather endpoint for conditions and the 5-day / 3-hour
Forecast endpoint for day-part temperatures and the weekly outlook.

Every failure (network error, non-2xx status, unexpected payload) is raised
as WeatherError with a message that can be shown to the user.
"""

from __future__ import annotations

import logging
from collections import OrderedDict
from datetime import datetime, timezone

import httpx

from skycast.ports.weather_port import WeatherError

logger = logging.getLogger(__name__)

_CURRENT_URL = "https://api.openweathermap.org/data/2.5/weather"
_FORECAST_URL = "https://api.openweathermap.org/data/2.5/forecast"
_TIMEOUT_SECONDS = 10

_ICON_EMOJI = {
    "01d": "☀️",
    "01n": "🌙",
    "02d": "🌤️",
    "02n": "🌙☁️",
    "03d": "☁️",
    "03n": "☁️",
    "04d": "☁️☁️",
    "04n": "☁️☁️",
    "09d": "🌧️",
    "09n": "🌧️",
    "10d": "🌦️",
    "10n": "🌧️🌙",
    "11d": "⛈️",
    "11n": "⛈️",
    "13d": "❄️",
    "13n": "❄️",
    "50d": "🌫️",
    "50n": "🌫️",
}

_WIND_DIRECTIONS = (
    "north", "north-east", "east", "south-east",
    "south", "south-west", "west", "north-west",
)

_WEEKDAY_NAMES = ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday")


# ---------------------------------------------------------------------------
# Pure formatting helpers
# ---------------------------------------------------------------------------


def weather_emoji(icon: str) -> str:
    return _ICON_EMOJI.get(icon, "🌡️")


def wind_direction(degrees: float) -> str:
    """Compass name for a meteorological wind direction in degrees."""
    return _WIND_DIRECTIONS[int(((degrees + 22.5) % 360) // 45)]


def clothing_recommendation(temp: float, condition: str) -> str:
    """What to wear for a temperature (°C) and OpenWeather 'main' condition."""
    wet = condition in ("Rain", "Drizzle")

    if temp < -25:
        return "🥶 Extremely cold! Wear thermal underwear, a warm sweater, a down jacket, insulated trousers, a hat, scarf, mittens and winter boots."
    if temp < -15:
        return "❄️ Very cold! A warm winter jacket, insulated trousers, layers, a warm hat, scarf, gloves and winter boots."
    if temp < -5:
        return "🧣 Cold. A winter jacket, warm sweater, hat, gloves and scarf. Consider thermal underwear for long walks."
    if temp < 5:
        if wet:
            return "🌧️ Cold and rainy. A warm waterproof jacket, hat, gloves and an umbrella. Waterproof shoes recommended."
        if condition == "Snow":
            return "🌨️ Cold and snowy. A warm winter jacket, hat, gloves, scarf and boots with a good grip."
        return "🧥 Chilly. A warm jacket, sweater or hoodie, a light hat and gloves."
    if temp < 10:
        if wet:
            return "🌂 Cool and rainy. A waterproof jacket or raincoat, an umbrella and waterproof shoes."
        return "🧶 Cool. A light jacket or thick sweater with jeans or trousers. Take an extra layer for the evening."
    if temp < 15:
        if wet:
            return "☔ Mild but rainy. Take an umbrella and a waterproof jacket over a light sweater."
        return "👕 Mild. A light jacket or sweater is enough. Take an extra layer if you'll be out all day."
    if temp < 20:
        if wet:
            return "🌦️ Warm but rainy. An umbrella and a light rain jacket over a T-shirt."
        return "👚 Warm. A T-shirt or shirt with light trousers. Take a cardigan for the evening."
    if temp < 25:
        if wet:
            return "🌤️ Quite warm but rainy. Light clothes and an umbrella."
        return "👗 Quite warm. Light clothes: a T-shirt, shorts or a skirt."
    if temp < 30:
        if wet:
            return "🌞 Hot with rain. The lightest clothes and an umbrella. Choose breathable fabrics."
        return "☀️ Hot. Light natural fabrics, a hat and sunscreen. Avoid direct sun."
    if wet:
        return "🔥 Very hot, rain possible. Minimal light-coloured clothing. An umbrella helps against sun and rain."
    return "🔥 Very hot! Minimal light-coloured clothing, a hat and sunscreen. Drink plenty of water and stay in the shade."


def _capitalize(text: str) -> str:
    return text[:1].upper() + text[1:]


def _fmt_temp(value: float | None) -> str:
    return "n/a" if value is None else f"{value:.1f}°C"


def temperatures_by_day_part(items: list[dict]) -> str:
    """First forecast temperature for morning (6-11), day (12-17) and evening (18-23).

    Hours are taken in UTC, as reported by the API.
    """
    if not items:
        return "No forecast data"

    parts: dict[str, float | None] = {"morning": None, "day": None, "evening": None}
    for item in items:
        hour = datetime.fromtimestamp(item["dt"], tz=timezone.utc).hour
        if 6 <= hour < 12:
            key = "morning"
        elif 12 <= hour < 18:
            key = "day"
        elif 18 <= hour < 24:
            key = "evening"
        else:
            continue
        if parts[key] is None:
            parts[key] = item["main"]["temp"]
        if all(v is not None for v in parts.values()):
            break

    return (
        f"🕒 Today: morning {_fmt_temp(parts['morning'])}, "
        f"day {_fmt_temp(parts['day'])}, evening {_fmt_temp(parts['evening'])}"
    )


def group_forecast_by_day(items: list[dict]) -> list[dict]:
    """Collapse 3-hour forecast items into one summary per calendar date.

    Returns dicts with keys: date (YYYY-MM-DD), weekday, min, max, descriptions.
    """
    days: OrderedDict[str, dict] = OrderedDict()
    for item in sorted(items, key=lambda i: i["dt"]):
        moment = datetime.fromtimestamp(item["dt"], tz=timezone.utc)
        date_str = item.get("dt_txt", "")[:10] or moment.strftime("%Y-%m-%d")
        day = days.setdefault(date_str, {
            "date": date_str,
            "weekday": _WEEKDAY_NAMES[moment.weekday()],
            "min": item["main"]["temp_min"],
            "max": item["main"]["temp_max"],
            "descriptions": set(),
        })
        day["min"] = min(day["min"], item["main"]["temp_min"])
        day["max"] = max(day["max"], item["main"]["temp_max"])
        if item.get("weather"):
            day["descriptions"].add(_capitalize(item["weather"][0]["description"]))

    result = []
    for day in days.values():
        day["descriptions"] = sorted(day["descriptions"])
        result.append(day)
    return result


def format_current(data: dict, forecast_items: list[dict] | None) -> str:
    main = data["main"]
    condition = data["weather"][0]
    wind = data.get("wind", {})
    sys_info = data.get("sys", {})

    def _clock(ts: int | None) -> str:
        if ts is None:
            return "n/a"
        return datetime.fromtimestamp(ts, tz=timezone.utc).strftime("%H:%M")

    by_time = temperatures_by_day_part(forecast_items) if forecast_items is not None else "No data"
    return "\n".join([
        f"{weather_emoji(condition.get('icon', ''))} {_capitalize(condition.get('description', ''))}",
        "",
        f"🌡 Temperature: {main['temp']:.1f}°C (feels like {main['feels_like']:.1f}°C)",
        by_time,
        f"🔸 Min: {main['temp_min']:.1f}°C, Max: {main['temp_max']:.1f}°C",
        f"💧 Humidity: {main['humidity']}%",
        f"🍃 Wind: {wind.get('speed', 0):.1f} m/s, {wind_direction(wind.get('deg', 0))}",
        f"☁️ Cloudiness: {data.get('clouds', {}).get('all', 0)}%",
        f"👁 Visibility: {data.get('visibility', 0) // 1000} km",
        f"🌅 Sunrise: {_clock(sys_info.get('sunrise'))}",
        f"🌇 Sunset: {_clock(sys_info.get('sunset'))}",
        "",
        f"Recommendation: {clothing_recommendation(main['temp'], condition.get('main', ''))}",
    ])


def format_weekly(items: list[dict]) -> str:
    if not items:
        return "No forecast data"

    blocks = []
    for day in group_forecast_by_day(items):
        _, month, dom = day["date"].split("-")
        blocks.append(
            f"{day['weekday']}, {dom}.{month}:\n"
            f"🌡 Temperature: {day['min']:.1f}°C — {day['max']:.1f}°C\n"
            f"🌤 Weather: {', '.join(day['descriptions'])}"
        )
    return "\n\n".join(blocks)


# ---------------------------------------------------------------------------
# Client
# ---------------------------------------------------------------------------


class OpenWeatherClient:
    """OpenWeather implementation of WeatherPort."""

    def __init__(
        self,
        api_key: str,
        timeout: float = _TIMEOUT_SECONDS,
        lang: str = "en",
        units: str = "metric",
    ) -> None:
        self._api_key = api_key
        self._timeout = timeout
        self._lang = lang
        self._units = units

    async def fetch(self, location: str) -> str:
        """Formatted current conditions for a city."""
        async with httpx.AsyncClient(timeout=self._timeout) as client:
            current = await self._get(client, _CURRENT_URL, location, "weather")
            try:
                forecast = await self._get(client, _FORECAST_URL, location, "forecast")
                forecast_items = forecast.get("list", [])
            except WeatherError as exc:
                logger.warning("Forecast unavailable for '%s': %s", location, exc)
                forecast_items = None

        try:
            return format_current(current, forecast_items)
        except (KeyError, IndexError, TypeError, ValueError) as exc:
            logger.error("Unexpected weather payload for '%s': %s", location, exc)
            raise WeatherError(f"Couldn't process the weather data: {exc}") from exc

    async def fetch_weekly(self, location: str) -> str:
        """Formatted 5-day outlook for a city."""
        async with httpx.AsyncClient(timeout=self._timeout) as client:
            forecast = await self._get(client, _FORECAST_URL, location, "forecast")

        try:
            return format_weekly(forecast.get("list", []))
        except (KeyError, IndexError, TypeError, ValueError) as exc:
            logger.error("Unexpected forecast payload for '%s': %s", location, exc)
            raise WeatherError(f"Couldn't process the forecast data: {exc}") from exc

    async def _get(self, client: httpx.AsyncClient, url: str, location: str, what: str) -> dict:
        params = {
            "q": location,
            "appid": self._api_key,
            "units": self._units,
            "lang": self._lang,
        }
        try:
            resp = await client.get(url, params=params)
        except httpx.HTTPError as exc:
            logger.error("OpenWeather %s request failed for '%s': %s", what, location, exc)
            raise WeatherError(f"Couldn't get the {what} data: {exc}") from exc

        if resp.status_code != 200:
            logger.error(
                "OpenWeather %s returned %d for '%s': %s",
                what, resp.status_code, location, resp.text,
            )
            raise WeatherError(
                f"Weather service unavailable ({resp.status_code}). The city name may be wrong."
            )

        try:
            data = resp.json()
        except ValueError as exc:
            raise WeatherError(f"Couldn't process the {what} data: {exc}") from exc

        if not isinstance(data, dict):
            logger.error("OpenWeather %s returned a non-object body for '%s'", what, location)
            raise WeatherError(f"Couldn't process the {what} data: unexpected response")
        return data
