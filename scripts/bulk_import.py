"""Bulk-import personality JSON files into the users table.

Each ``*.json`` file holds one personality record (``id``, ``age``,
``favorite_books`` [list], ``keystone_values`` [list], ``career``, ...).
Users whose generated email already exists are skipped.

Usage: python -m scripts.bulk_import [--dir personalities]
"""
import argparse
import asyncio
import json
import re
import sys
from pathlib import Path
from typing import Any

sys.path.insert(0, ".")

from sqlalchemy import select

from app.database import async_session_factory, engine
from app.models.user import User
from app.services.profile_service import calculate_completeness

DEFAULT_DIRS = [
    Path("personalities"),
    Path("..") / "personalities",
]

# JSON list fields joined into comma-separated text columns.
LIST_FIELDS = {
    "favorite_books": "favorite_books",
    "favorite_movies": "favorite_movies",
    "favorite_authors": "favorite_authors",
    "keystone_values": "keystone_values",
}

# JSON scalar fields copied as-is.
TEXT_FIELDS = {
    "gender": "gender",
    "nationality": "nationality",
    "cultural_upbringing": "cultural_upbringing",
    "career": "career",
    "industry": "industry",
    "hobbies": "hobbies",
    "interests": "interests",
    "life_philosophy": "life_philosophy",
    "relationship_goals": "relationship_goals",
    "preferred_communication_style": "preferred_communication_style",
    "looking_for_in_a_friend": "what_im_looking_for",
}


def display_name(personality_id: str) -> str:
    """``person01`` -> ``Person 01``; other ids pass through with the prefix removed."""
    stripped = re.sub(r"person", "", personality_id, count=1, flags=re.IGNORECASE)
    return re.sub(r"^(\d+)$", r"Person \1", stripped)


def personality_to_user(personality: dict[str, Any]) -> dict[str, Any]:
    """Map a personality record onto ``User`` column values."""
    pid = personality["id"]
    if not isinstance(pid, str) or not pid.strip():
        raise ValueError(f"Personality id must be a non-empty string, got {pid!r}")
    data: dict[str, Any] = {
        "name": display_name(pid),
        "email": f"{pid.lower()}@conekt.test",
        "age": personality.get("age") or None,
    }
    for source, column in LIST_FIELDS.items():
        values = personality.get(source)
        data[column] = ", ".join(values) if values else None
    for source, column in TEXT_FIELDS.items():
        data[column] = personality.get(source) or None

    data["profile_completeness"] = calculate_completeness(data)
    return data


def find_personalities_dir(explicit: str | None) -> Path | None:
    candidates = [Path(explicit)] if explicit else DEFAULT_DIRS
    for path in candidates:
        if path.is_dir():
            return path
    return None


async def bulk_import(directory: Path) -> dict[str, int]:
    results = {"success": 0, "skipped": 0, "errors": 0}
    files = sorted(directory.glob("*.json"))
    print(f"Found {len(files)} profile file(s) in {directory}")

    try:
        async with async_session_factory() as session:
            for path in files:
                try:
                    personality = json.loads(path.read_text(encoding="utf-8"))
                    user_data = personality_to_user(personality)

                    existing = await session.execute(
                        select(User).where(User.email == user_data["email"])
                    )
                    if existing.scalar_one_or_none() is not None:
                        print(f"  {user_data['email']} already exists, skipping.")
                        results["skipped"] += 1
                        continue

                    session.add(User(**user_data))
                    await session.commit()
                    print(
                        f"  Created {user_data['name']} ({user_data['email']}), "
                        f"completeness {user_data['profile_completeness']}%"
                    )
                    results["success"] += 1
                except Exception as exc:
                    # One bad file must not abort the rest of the import.
                    await session.rollback()
                    print(f"  Error processing {path.name}: {exc}")
                    results["errors"] += 1
    finally:
        await engine.dispose()

    return results


def main() -> int:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("--dir", default=None, help="Directory of personality JSON files")
    args = parser.parse_args()

    directory = find_personalities_dir(args.dir)
    if directory is None:
        print("Could not find a personalities directory.")
        return 1

    results = asyncio.run(bulk_import(directory))
    print(
        f"Done: {results['success']} created, {results['skipped']} skipped, "
        f"{results['errors']} errors."
    )
    return 0 if results["errors"] == 0 else 1


if __name__ == "__main__":
    sys.exit(main())
