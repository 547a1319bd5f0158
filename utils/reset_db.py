#!/usr/bin/env python3
"""Delete the local SQLite database so the next run starts empty."""

import os
import sys
from pathlib import Path

from dotenv import load_dotenv


def main():
    load_dotenv()

    if os.getenv("DATABASE_URL"):
        print("ERROR: DATABASE_URL is set; reset only supports DATABASE_PATH databases", file=sys.stderr)
        sys.exit(1)

    db_path = Path(os.getenv("DATABASE_PATH", os.path.join("data", "agent.db")))

    if db_path.exists():
        db_path.unlink()
        print(f"Reset database at {db_path}")
    else:
        print(f"No database at {db_path}, nothing to reset")


if __name__ == "__main__":
    main()
