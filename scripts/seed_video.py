#!/usr/bin/env python3
"""
Development seed script for Tubely.

Inserts a video record owned by a user and prints a bearer token for that
user, so the upload endpoint can be exercised locally with curl.

Usage:
    python scripts/seed_video.py [options]

Options:
    --user-id UUID      Owner of the video (default: a new random UUID)
    --title TEXT        Video title (default: a generated sentence)
    --clean             Delete existing videos of the user first
    --help              Show this help message and exit

Settings (MONGODB_URI, MONGODB_DB_NAME, JWT_SECRET, ...) are read from the
environment and .env the same way the API reads them.

Example:
    $ python scripts/seed_video.py
    $ curl -H "Authorization: Bearer $TOKEN" \\
        -F "video=@boots.mp4;type=video/mp4" \\
        http://localhost:8091/api/v1/video_upload/$VIDEO_ID
"""

import argparse
import sys
import uuid

from datetime import UTC, datetime

from faker import Faker
from pymongo import MongoClient
from pymongo.errors import ConnectionFailure, PyMongoError, ServerSelectionTimeoutError

from app.config import get_settings
from app.core.auth import create_access_token
from app.core.database import VIDEOS_COLLECTION
from app.models.video import Video


CONNECTION_TIMEOUT_MS = 5000


def parse_arguments() -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Insert a Tubely video record and print an access token for its owner.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--user-id", type=uuid.UUID, default=None, help="Owner user UUID")
    parser.add_argument("--title", default=None, help="Video title")
    parser.add_argument(
        "--clean", action="store_true", help="Delete existing videos of the user first"
    )
    return parser.parse_args()


def main() -> int:
    args = parse_arguments()
    settings = get_settings()
    fake = Faker()

    user_id = args.user_id or uuid.uuid4()
    now = datetime.now(UTC)
    video = Video(
        _id=uuid.uuid4(),
        user_id=user_id,
        title=args.title or fake.sentence(nb_words=4).rstrip("."),
        description=fake.paragraph(nb_sentences=2),
        created_at=now,
        updated_at=now,
    )

    client: MongoClient = MongoClient(
        settings.mongodb_uri, serverSelectionTimeoutMS=CONNECTION_TIMEOUT_MS
    )
    try:
        client.admin.command("ping")
        videos = client[settings.mongodb_db_name][VIDEOS_COLLECTION]

        if args.clean:
            deleted = videos.delete_many({"user_id": str(user_id)}).deleted_count
            print(f"Deleted {deleted} existing video(s) for user {user_id}")

        videos.insert_one(video.to_document())
    except (ConnectionFailure, ServerSelectionTimeoutError) as e:
        print(f"ERROR: could not connect to MongoDB at {settings.mongodb_uri}: {e}", file=sys.stderr)
        return 1
    except PyMongoError as e:
        print(f"ERROR: could not insert video: {e}", file=sys.stderr)
        return 1
    finally:
        client.close()

    token = create_access_token(user_id, settings)

    print(f"USER_ID={user_id}")
    print(f"VIDEO_ID={video.id}")
    print(f"TOKEN={token}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
