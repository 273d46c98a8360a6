#!/usr/bin/env python3
"""Load seed websites and RSS feeds into the database. Idempotent."""

import json
import os
import sys

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from newsprism import create_app
from newsprism.extensions import db
from newsprism.models.rss_feed import RssFeed
from newsprism.models.website import Website


def _seed(model, rows, build):
    added = skipped = 0
    for row in rows:
        if model.query.filter_by(url=row['url']).first():
            skipped += 1
            continue
        db.session.add(build(row))
        added += 1
    db.session.commit()
    return added, skipped


def seed_websites(rows):
    """Skip existing websites by URL."""
    added, skipped = _seed(Website, rows, lambda w: Website(
        name=w['name'],
        url=w['url'],
        category=w.get('category', 'General'),
        country=w.get('country'),
        description=w.get('description'),
        neutrality_rating=w.get('neutrality_rating'),
        scraping_enabled=w.get('scraping_enabled', True),
    ))
    print(f"Websites: {added} added, {skipped} skipped (already exist)")


def seed_feeds(rows):
    """Skip existing feeds by URL."""
    added, skipped = _seed(RssFeed, rows, lambda f: RssFeed(
        name=f['name'],
        url=f['url'],
        category=f.get('category', 'General'),
        description=f.get('description'),
    ))
    print(f"RSS feeds: {added} added, {skipped} skipped (already exist)")


if __name__ == '__main__':
    app = create_app()
    project_root = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))

    with open(os.path.join(project_root, 'seed_sources.json')) as f:
        seed = json.load(f)

    with app.app_context():
        print("Seeding database...")
        seed_websites(seed.get('websites', []))
        seed_feeds(seed.get('rss_feeds', []))
        print("Done.")
