"""CLI script to load courses from a JSON file into the backend DB.

Usage: python scripts/import_courses.py courses.json

The file holds a list of objects with `title` and optional `id`,
`description` and `content` keys. Courses whose id already exists are
skipped.
"""
import sys
import json
import argparse
import pathlib
from typing import List, Optional
# Ensure `backend/` is on sys.path so `lms` package imports work when running this script directly
ROOT = pathlib.Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))
from sqlmodel import Session
from lms import models, repositories
from lms.config import Settings
from lms.database import build_engine, create_db_and_tables


def import_courses(session: Session, items: List[dict]) -> dict:
    """Insert `items` as courses; returns created/skipped counts and errors."""
    repo = repositories.CourseRepository(session)
    created = 0
    skipped = 0
    errors = []
    for idx, item in enumerate(items):
        if not isinstance(item, dict) or not item.get('title'):
            errors.append({'index': idx, 'error': 'course needs a title'})
            continue
        if item.get('id') is not None and repo.get(item['id']):
            skipped += 1
            continue
        repo.create(models.Course(
            id=item.get('id'),
            title=item['title'],
            description=item.get('description'),
            content=item.get('content'),
        ))
        created += 1
    return {'created': created, 'skipped': skipped, 'errors': errors}


def main(path: pathlib.Path, database_url: Optional[str] = None):
    items = json.loads(path.read_text(encoding='utf-8'))
    if not isinstance(items, list):
        print(f'{path} must contain a JSON list of courses')
        return
    settings = Settings(DATABASE_URL=database_url) if database_url else Settings()
    engine = build_engine(settings)
    create_db_and_tables(engine)
    with Session(engine) as session:
        result = import_courses(session, items)
    print(f"Created {result['created']} courses, skipped {result['skipped']}, errors {len(result['errors'])}")
    for err in result['errors']:
        print(f"  item {err['index']}: {err['error']}")


if __name__ == '__main__':
    parser = argparse.ArgumentParser()
    parser.add_argument('path', type=pathlib.Path, help='JSON file with a list of courses')
    parser.add_argument('--database-url', help='Override DATABASE_URL')
    args = parser.parse_args()
    main(args.path, database_url=args.database_url)
