#!/usr/bin/env python3
"""
ATM Teller Entry Point

Starts the FastAPI server with the teller session.
"""

import sys
from pathlib import Path

# Add the project root to Python path
project_root = Path(__file__).parent
sys.path.insert(0, str(project_root))

from atm_core.api import run_server
from atm_core.config import get_config


if __name__ == "__main__":
    cfg = get_config()
    print("🏧 Starting ATM Teller...")
    print(f"💰 Default balance {cfg.default_balance} {cfg.currency}, daily limit {cfg.default_daily_limit}")
    print(f"🌐 API available at: http://localhost:{cfg.api_port}")
    print(f"📚 Documentation at: http://localhost:{cfg.api_port}/docs")
    print()

    try:
        run_server(host=cfg.api_host, port=cfg.api_port, debug=False)
    except KeyboardInterrupt:
        print("\n👋 Shutting down ATM Teller...")
    except Exception as e:
        print(f"❌ Error starting server: {e}")
        sys.exit(1)
