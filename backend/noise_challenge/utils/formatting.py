"""Human-readable durations and game rules."""
import math

from noise_challenge.core.config import GameSettings


def format_duration(duration_in_seconds: int) -> str:
    """Format seconds as MM:SS (minutes are not wrapped at 60)."""
    minutes, seconds = divmod(int(duration_in_seconds), 60)
    return f"{minutes:02d}:{seconds:02d}"


def minutes_to_string(duration: float) -> str:
    """
    Describe a duration given in minutes.

    Examples:
        0.1 -> "6 seconds", 1 -> "1 minute", 2.5 -> "2 minutes, 30 seconds"
    """
    if duration < 1:
        seconds = math.ceil(round(duration * 60, 6))
        return f"{seconds} second{'' if seconds == 1 else 's'}"

    minutes = math.floor(duration)
    seconds = math.floor(round((duration - minutes) * 60, 6))
    minute_word = "minute" if minutes == 1 else "minutes"

    if seconds > 0:
        return f"{minutes} {minute_word}, {seconds} second{'' if seconds == 1 else 's'}"
    return f"{minutes} {minute_word}"


def minutes_to_seconds(minutes: float) -> float:
    return minutes * 60


def rules_summary(game_settings: GameSettings) -> str:
    """One-line description of how points are won and lost."""
    return (
        f"Earn {game_settings.add_points} point(s) for every "
        f"{minutes_to_string(game_settings.time_in_green)} in the green. "
        f"Lose {game_settings.lose_points} point(s) for every red alert."
    )
