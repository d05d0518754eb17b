"""Start the settings API with uvicorn."""

import sys

import uvicorn

from research_assistant.config import Config

# Unbuffered output
sys.stdout.reconfigure(encoding='utf-8')


if __name__ == "__main__":
    print(f"[run_server] Settings file: {Config.get_settings_path()}")
    uvicorn.run(
        "api.main:app",
        host="127.0.0.1",
        port=8000,
        reload=Config.is_debug(),
        log_level=Config.LOG_LEVEL.lower(),
    )
