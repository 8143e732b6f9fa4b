"""FastAPI application entrypoint."""
from fastapi import FastAPI, WebSocket
from fastapi.middleware.cors import CORSMiddleware
from noise_challenge.api import rest_status, ws_noise
from noise_challenge.core.config import settings
from noise_challenge.core.logging import setup_logging, logger

# Setup logging
setup_logging()

# Create FastAPI app
app = FastAPI(
    title="Classroom Noise Challenge Backend",
    description="Real-time noise level, traffic light, calibration and scoring backend",
    version=rest_status.VERSION
)

# CORS middleware (allow frontend connections)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=False,  # Must be False when using "*" origins
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(rest_status.router)


# WebSocket endpoint
@app.websocket("/ws/noise")
async def websocket_endpoint(websocket: WebSocket):
    """WebSocket endpoint for audio streaming and game control."""
    # ws_noise.websocket_noise_endpoint already calls websocket.accept()
    await ws_noise.websocket_noise_endpoint(websocket)


@app.on_event("startup")
async def startup_event():
    """Log configuration on startup."""
    game_settings = settings.game_settings()
    logger.info(f"Starting Classroom Noise Challenge Backend on {settings.host}:{settings.port}")
    logger.info(f"Sample rate: {settings.sample_rate} Hz, Frame size: {settings.frame_size_ms} ms")
    logger.info(
        f"Default thresholds: yellow {game_settings.yellow_min_dec}, red {game_settings.red_min_dec}, "
        f"window {game_settings.average_window_size}"
    )


@app.on_event("shutdown")
async def shutdown_event():
    """Cleanup on shutdown."""
    logger.info("Shutting down Classroom Noise Challenge Backend")


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "noise_challenge.main:app",
        host=settings.host,
        port=settings.port,
        reload=True
    )
