"""Delayed, cooldown-gated yellow/red notifications."""
import asyncio
from typing import Callable, Optional

from noise_challenge.core.config import GameSettings
from noise_challenge.core.logging import logger
from noise_challenge.game.models import CooldownState, TrafficState, Transition
from noise_challenge.utils.formatting import minutes_to_seconds
from noise_challenge.utils.timers import resolve_loop

NotificationSink = Callable[[TrafficState], None]


class AlertDispatcher:
    """
    Decides when a state change should make a sound.

    Entering yellow or red schedules a notification sound_delay seconds
    later, unless that color already fired within cooldown_period minutes.
    Any further transition before the delay elapses cancels it.
    """

    def __init__(
        self,
        game_settings: GameSettings,
        sink: NotificationSink,
        loop: Optional[asyncio.AbstractEventLoop] = None
    ):
        self.settings = game_settings
        self.cooldowns = CooldownState()
        self._sink = sink
        self._loop = loop
        self._pending: Optional[asyncio.TimerHandle] = None
        self._pending_color: Optional[TrafficState] = None

    def update_settings(self, game_settings: GameSettings) -> None:
        self.settings = game_settings

    @property
    def pending_color(self) -> Optional[TrafficState]:
        return self._pending_color

    def _cooldown_elapsed(self, color: TrafficState, now: float) -> bool:
        last = self.cooldowns.last_fired(color)
        if last is None:
            return True
        return now - last >= minutes_to_seconds(self.settings.cooldown_period)

    def on_transition(self, transition: Transition) -> None:
        """Cancel any alert still waiting and schedule one for the new state."""
        self.cancel_pending()

        color = transition.current
        if color is TrafficState.GREEN:
            return

        loop = resolve_loop(self._loop)
        self._loop = loop
        if not self._cooldown_elapsed(color, loop.time()):
            logger.debug(f"{color.value} alert suppressed by cooldown")
            return

        self._pending_color = color
        self._pending = loop.call_later(self.settings.sound_delay, self._fire, color)

    def _fire(self, color: TrafficState) -> None:
        self._pending = None
        self._pending_color = None
        self.cooldowns.mark_fired(color, self._loop.time())
        logger.info(f"Firing {color.value} alert")
        try:
            self._sink(color)
        except Exception as e:
            logger.error(f"Notification sink failed for {color.value} alert: {e}", exc_info=True)

    def cancel_pending(self) -> None:
        if self._pending is not None:
            logger.debug(f"Cancelled pending {self._pending_color.value} alert")
            self._pending.cancel()
        self._pending = None
        self._pending_color = None

    def reset(self) -> None:
        """Forget cooldowns and drop any pending alert."""
        self.cancel_pending()
        self.cooldowns = CooldownState()
