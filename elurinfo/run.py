import signal
import sys

import uvicorn

from elurinfo.config.logging_setup import setup_logging
from elurinfo.config.settings import get_settings


def setup_signal_handlers():
    """Configure handlers for graceful shutdown."""
    def signal_handler(signum, frame):
        print(f"\n🛑 Received signal {signum}. Shutting down server...")
        # Uvicorn handles the lifespan shutdown on KeyboardInterrupt
        raise KeyboardInterrupt

    signal.signal(signal.SIGTERM, signal_handler)


def main():
    """Start the API server."""
    settings = get_settings()
    setup_logging(settings.log_config_path)

    if not settings.validate_provider_config():
        print("❌ FORECAST_PROVIDER=aemet requires AEMET_API_KEY")
        sys.exit(1)

    host = settings.elurinfo_host
    port = settings.elurinfo_port

    print(f"Starting ElurInfo API at http://{host}:{port}")
    print("Press CTRL+C to quit.")

    setup_signal_handlers()

    uvicorn.run(
        "elurinfo.main:app",
        host=host,
        port=port,
        log_config=None  # Use the logging configuration already loaded
    )


if __name__ == "__main__":
    main()
