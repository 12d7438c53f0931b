"""Seed script to populate a local database with a demo account and its data.

Usage:
    PYTHONPATH=src python scripts/seed_data.py populate
    PYTHONPATH=src python scripts/seed_data.py populate --force
    PYTHONPATH=src python scripts/seed_data.py clear
"""

import argparse
import asyncio
import logging

from core.config import get_settings
from db.document_store import DocumentStore
from db.session import create_tables, get_engine, get_session_factory
from schemas.bookmark import BookmarkCreate
from schemas.category import CategoryCreate
from schemas.team import TeamCreate
from services.exceptions import EmailAlreadyInUseError
from services.identity_provider import IdentityProvider
from stores.bookmark_store import BookmarkStore
from stores.team_store import TeamStore
from stores.user_store import UserStore

logger = logging.getLogger('seed_data')

DEMO_EMAIL = 'demo@snaplink.dev'
DEMO_PASSWORD = 'snaplink-demo'

CATEGORIES = ['work', 'research', 'reading-list']

BOOKMARKS = [
    {
        'url': 'https://docs.python.org/3/',
        'title': 'Python Official Documentation',
        'description': 'Comprehensive reference for the Python programming language.',
        'tags': ['python', 'reference'],
        'category': 'work',
    },
    {
        'url': 'https://developer.mozilla.org/en-US/docs/Web/JavaScript',
        'title': 'MDN Web Docs - JavaScript',
        'description': 'The definitive resource for JavaScript documentation and web APIs.',
        'tags': ['javascript', 'reference', 'web-development'],
        'category': 'work',
    },
    {
        'url': 'https://arxiv.org/abs/1706.03762',
        'title': 'Attention Is All You Need',
        'description': 'The paper that introduced the Transformer architecture.',
        'tags': ['machine-learning', 'papers'],
        'category': 'research',
    },
    {
        'url': 'https://www.postgresql.org/docs/current/datatype-json.html',
        'title': 'PostgreSQL JSON Types',
        'tags': ['database'],
    },
    {
        'url': 'https://martinfowler.com/articles/patterns-of-distributed-systems/',
        'title': 'Patterns of Distributed Systems',
        'tags': ['architecture', 'distributed-systems'],
        'category': 'reading-list',
        'is_public': True,
    },
]

TEAM_BOOKMARKS = [
    {
        'url': 'https://12factor.net/',
        'title': 'The Twelve-Factor App',
        'tags': ['architecture', 'devops'],
        'category': 'work',
    },
    {
        'url': 'https://sre.google/sre-book/table-of-contents/',
        'title': 'Site Reliability Engineering',
        'tags': ['devops', 'books'],
        'category': 'reading-list',
    },
]


async def _sign_in_demo(users: UserStore, *, create: bool) -> None:
    await users.initialize()
    if create:
        try:
            await users.sign_up(DEMO_EMAIL, DEMO_PASSWORD)
            print(f'  Created demo account: {DEMO_EMAIL}')
            return
        except EmailAlreadyInUseError:
            logger.info('Demo account already exists, signing in instead')
    await users.sign_in(DEMO_EMAIL, DEMO_PASSWORD)
    print(f'  Signed in as {DEMO_EMAIL}')


async def clear_data(bookmarks: BookmarkStore, teams: TeamStore, owner_id: str) -> None:
    """Delete every bookmark, category and owned team of the signed-in account."""
    await bookmarks.fetch_all()
    await bookmarks.fetch_categories()
    await teams.fetch_all()

    bookmark_count = len(bookmarks.bookmarks)
    category_count = len(bookmarks.categories)
    owned = [t for t in teams.teams if t.owner_id == owner_id]

    for bookmark in bookmarks.bookmarks:
        await bookmarks.delete(bookmark.id)
    for category in bookmarks.categories:
        await bookmarks.delete_category(category.id)
    for team in owned:
        await teams.delete(team.id)

    print(f'  Deleted {bookmark_count} bookmarks, {category_count} categories, {len(owned)} teams')


async def has_existing_data(bookmarks: BookmarkStore, teams: TeamStore, owner_id: str) -> bool:
    """Whether the signed-in account already has bookmarks, categories or owned teams."""
    await bookmarks.fetch_all()
    await bookmarks.fetch_categories()
    await teams.fetch_all()
    return bool(
        bookmarks.bookmarks
        or bookmarks.categories
        or any(t.owner_id == owner_id for t in teams.teams),
    )


async def populate(force: bool = False) -> None:
    """Create the demo account, its bookmarks, categories and a team."""
    engine = get_engine()
    try:
        await create_tables(engine)
        session_factory = get_session_factory()
        documents = DocumentStore(session_factory)
        identity = IdentityProvider(session_factory)
        users = UserStore(documents, identity)
        bookmarks = BookmarkStore(documents, identity)
        teams = TeamStore(documents, identity)

        await _sign_in_demo(users, create=True)
        if await has_existing_data(bookmarks, teams, users.user.uid):
            if not force:
                print(
                    'Existing data found. Use --force to clear and re-populate, '
                    'or run "clear" first.',
                )
                return
            print('Existing data found, clearing first (--force)...')
            await clear_data(bookmarks, teams, users.user.uid)

        print('Populating seed data...')
        for name in CATEGORIES:
            await bookmarks.add_category(CategoryCreate(name=name))
        for data in BOOKMARKS:
            await bookmarks.add(BookmarkCreate(**data))

        team_id = await teams.create(
            TeamCreate(name='Platform', description='Shared reading for the platform team'),
        )
        for data in TEAM_BOOKMARKS:
            await bookmarks.add(BookmarkCreate(**data, team_id=team_id))

        print(
            f'  Created {len(CATEGORIES)} categories, '
            f'{len(BOOKMARKS) + len(TEAM_BOOKMARKS)} bookmarks, 1 team',
        )
        print('Seed data created successfully.')
    finally:
        await engine.dispose()


async def clear() -> None:
    """Clear all demo account data."""
    engine = get_engine()
    try:
        await create_tables(engine)
        session_factory = get_session_factory()
        documents = DocumentStore(session_factory)
        identity = IdentityProvider(session_factory)
        users = UserStore(documents, identity)

        print('Clearing data for demo account...')
        await _sign_in_demo(users, create=False)
        await clear_data(
            BookmarkStore(documents, identity),
            TeamStore(documents, identity),
            users.user.uid,
        )
        print('Clear complete.')
    finally:
        await engine.dispose()


def main() -> None:
    """CLI entry point."""
    logging.basicConfig(
        level=get_settings().log_level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    )

    parser = argparse.ArgumentParser(description='Seed the local database with demo data.')
    subparsers = parser.add_subparsers(dest='command', required=True)

    populate_parser = subparsers.add_parser('populate', help='Populate database with demo data')
    populate_parser.add_argument(
        '--force', action='store_true',
        help='Clear existing data before populating',
    )

    subparsers.add_parser('clear', help='Remove all demo account data')

    args = parser.parse_args()

    if args.command == 'populate':
        asyncio.run(populate(force=args.force))
    elif args.command == 'clear':
        asyncio.run(clear())


if __name__ == '__main__':
    main()
