"""Tool invocation: reminders and weather.

A query mentioning "remind" becomes a reminder due after a fixed delay.
Anything else is answered with a weather line from OpenWeatherMap when a
key is configured, or a canned line otherwise.
"""

import logging
import re
from datetime import datetime, timedelta, timezone

import httpx

from companion.core.exceptions import PersistenceFailedError
from companion.models.schemas import Reminder
from companion.services.fallback import FallbackStrategy
from companion.services.persistence import PersistenceService
from companion.services.session import CompanionSession

logger = logging.getLogger(__name__)


REMINDER_TRIGGER = re.compile(r"remind", re.IGNORECASE)
REMINDER_PREFIX = re.compile(r"remind me to|set reminder for", re.IGNORECASE)


def format_due_date(value: datetime) -> str:
    """Format like "Oct 18th"."""
    day = value.day
    if 11 <= day % 100 <= 13:
        suffix = "th"
    else:
        suffix = {1: "st", 2: "nd", 3: "rd"}.get(day % 10, "th")
    return f"{value.strftime('%b')} {day}{suffix}"


class ToolService:
    def __init__(
        self,
        persistence: PersistenceService | None = None,
        weather_api_key: str | None = None,
        weather_url: str = "https://api.openweathermap.org/data/2.5/weather",
        weather_city: str = "Tokyo",
        reminder_delay_hours: int = 24,
        timeout_seconds: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.persistence = persistence
        self.weather_api_key = weather_api_key
        self.weather_url = weather_url
        self.weather_city = weather_city
        self.reminder_delay = timedelta(hours=reminder_delay_hours)
        self.timeout_seconds = timeout_seconds
        self._transport = transport

    @property
    def weather_available(self) -> bool:
        return bool(self.weather_api_key and self.weather_api_key.strip())

    async def use_tool(self, session: CompanionSession, query: str) -> str:
        """Run the tool matching ``query`` for ``session``.

        The caller holds ``session.lock``.
        """
        if REMINDER_TRIGGER.search(query):
            return await self.create_reminder(session, query)
        return await self.get_weather()

    async def create_reminder(
        self,
        session: CompanionSession,
        query: str,
        now: datetime | None = None,
    ) -> str:
        task = REMINDER_PREFIX.sub("", query, count=1).strip() or query.strip()
        due_at = (now or datetime.now(timezone.utc)) + self.reminder_delay
        reminder = Reminder(task=task, due_at=due_at)

        session.add_reminder(reminder)
        if self.persistence is not None:
            try:
                await self.persistence.save_reminder(session.session_id, reminder)
            except PersistenceFailedError as e:
                logger.warning(f"Reminder kept in memory only: {e.message}")

        logger.info(f"Reminder created for session {session.session_id}, due {due_at.isoformat()}")
        return f'Reminder: "{task}" on {format_due_date(due_at)}!'

    async def get_weather(self) -> str:
        if not self.weather_available:
            return FallbackStrategy.WEATHER_UNAVAILABLE

        try:
            async with httpx.AsyncClient(
                timeout=self.timeout_seconds,
                transport=self._transport,
            ) as client:
                response = await client.get(
                    self.weather_url,
                    params={"q": self.weather_city, "appid": self.weather_api_key},
                )
                response.raise_for_status()
                description = response.json()["weather"][0]["description"]
        except (httpx.HTTPError, ValueError, KeyError, IndexError, TypeError) as e:
            logger.warning(f"Weather lookup failed: {e}")
            return FallbackStrategy.WEATHER_DOWN

        return FallbackStrategy.get_weather_line(description)
