"""REST endpoints for health, presets and session status."""
from fastapi import APIRouter, HTTPException
from noise_challenge.core.config import settings
from noise_challenge.game.presets import PRESETS
from noise_challenge.services.session_manager import session_manager
from noise_challenge.utils.formatting import rules_summary

VERSION = "0.1.0"

router = APIRouter()


@router.get("/health")
async def health_check():
    """
    Health check endpoint.

    Returns:
        Status, version and number of live streams
    """
    return {
        "status": "ok",
        "version": VERSION,
        "streams": await session_manager.get_stream_count()
    }


@router.get("/presets")
async def list_presets():
    """Calibration presets and their tuning constants."""
    return {key: preset.to_dict() for key, preset in PRESETS.items()}


@router.get("/settings/defaults")
async def default_settings():
    """Default game settings, as configured through the environment."""
    game_settings = settings.game_settings()
    return {
        "settings": game_settings.model_dump(),
        "rules": rules_summary(game_settings)
    }


@router.get("/sessions/{stream_id}")
async def get_session(stream_id: str):
    """
    Get the live view of a session.

    Args:
        stream_id: Stream identifier

    Returns:
        Level, state, score and calibration snapshot
    """
    entry = await session_manager.get(stream_id)

    if entry is None:
        raise HTTPException(status_code=404, detail=f"Stream {stream_id} not found")

    snapshot = entry.session.snapshot()
    snapshot["frame_count"] = entry.state.frame_count
    snapshot["connected_at"] = entry.state.created_at
    snapshot["last_frame_time"] = entry.state.last_frame_time
    return snapshot
