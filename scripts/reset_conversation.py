#!/usr/bin/env python3
"""Script to delete the stored conversation snapshot.

Usage:
  python scripts/reset_conversation.py [--force] [--database-url URL]
"""

import argparse
import sys
from pathlib import Path

# Add project root to sys.path so we can import chatbot packages
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from dotenv import load_dotenv

from chatbot.core.config import ClientConfig
from chatbot.core.database import delete_value, get_value, init_db
from chatbot.core.persistence import STORAGE_KEY


def reset_conversation(database_url: str, force: bool) -> bool:
    """Remove the snapshot row. Returns True if something was deleted."""
    print("Resetting stored conversation...")
    init_db(database_url)

    if get_value(STORAGE_KEY) is None:
        print("  [INFO] No stored conversation found.")
        return False

    if not force:
        confirm = input("  This will delete the saved chat transcript. Continue? [y/N]: ")
        if confirm.lower() != 'y':
            print("  Skipping reset.")
            return False

    delete_value(STORAGE_KEY)
    print("  [OK] Stored conversation deleted.")
    return True


def main():
    parser = argparse.ArgumentParser(description="Reset the ChatBot client's stored conversation.")
    parser.add_argument("--force", "-f", action="store_true", help="Skip confirmation prompt")
    parser.add_argument("--database-url", help="Override DATABASE_URL")
    args = parser.parse_args()

    # Load environment variables
    load_dotenv(project_root / ".env")
    database_url = args.database_url or ClientConfig.from_env().database_url

    reset_conversation(database_url, args.force)
    print("Done!")


if __name__ == "__main__":
    main()
