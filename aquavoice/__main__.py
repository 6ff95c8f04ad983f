"""Entry point for running aquavoice as a module: python -m aquavoice"""

import logging
import sys
from pathlib import Path

from dotenv import load_dotenv

from aquavoice.app import DictationApp
from aquavoice.audio import AudioDeviceError
from aquavoice.config import Config


def setup_logging(verbose: bool) -> None:
    """Configure logging based on verbosity setting."""
    logging.basicConfig(
        level=logging.INFO if verbose else logging.WARNING,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )

    # Reduce noise from third-party libraries
    for name in ("urllib3", "httpx", "httpcore", "sounddevice", "uvicorn.access"):
        logging.getLogger(name).setLevel(logging.ERROR)


def main() -> int:
    """Main entry point."""
    env_path = Path.cwd() / ".env"
    if env_path.exists():
        load_dotenv(env_path)

    config = Config.from_env()
    setup_logging(config.verbose)

    app = DictationApp(config)

    try:
        app.run()
        return 0
    except KeyboardInterrupt:
        print("\n👋 Interrupted")
        return 130
    except AudioDeviceError as e:
        logging.error("Audio device unavailable: %s", e)
        return 1
    except Exception as e:
        logging.exception("Fatal error: %s", e)
        return 1
    finally:
        app.shutdown()


if __name__ == "__main__":
    sys.exit(main())
