"""
Run the keyword match API server.
"""

import sys

import uvicorn
from pydantic import ValidationError

from core.config import get_config

if __name__ == "__main__":
    try:
        config = get_config()
    except ValidationError as e:
        print(f"Configuration error: {e}")
        sys.exit(1)

    uvicorn.run(
        "api.main:app",
        host="0.0.0.0",
        port=8000,
        reload=not config.is_production,
        reload_includes=["*.py"],
        log_level=config.log_level.lower()
    )
