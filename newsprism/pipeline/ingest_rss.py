import logging

from flask import current_app

from newsprism.extensions import db
from newsprism.integrations.rss import fetch_feed
from newsprism.models.rss_feed import RssFeed
from newsprism.services.article_store import upsert_article
from newsprism.utils.dates import utcnow

logger = logging.getLogger(__name__)

FOCUS_INCLUDE_KEYWORDS = (
    'iran', 'tehran', 'politics', 'government', 'diplomacy',
    'sanctions', 'nuclear', 'regime', 'protest', 'economy',
)
EXCLUDE_KEYWORDS = ('sports', 'entertainment')


def feed_filters(feed, focus_category):
    """Keyword filters for one feed; only focus-category feeds are filtered."""
    if feed.category != focus_category:
        return None
    return {'include': FOCUS_INCLUDE_KEYWORDS, 'exclude': EXCLUDE_KEYWORDS}


def should_include(item, filters):
    if not filters:
        return True
    text = f"{item.get('title') or ''} {item.get('description') or ''}".lower()
    if any(k in text for k in filters['exclude']):
        return False
    if filters['include'] and not any(k in text for k in filters['include']):
        return False
    return True


def ingest_feed(feed, focus_category, items_per_feed=5):
    """
    Store new articles from the first `items_per_feed` items of one feed.
    Links already stored are left as they are. Returns (stored, seen).
    """
    items = fetch_feed(feed)
    filters = feed_filters(feed, focus_category)
    stored = 0
    for item in items[:items_per_feed]:
        if not should_include(item, filters):
            continue
        description = item['description']
        _, created = upsert_article(item['link'], {
            'title': item['title'],
            'description': description,
            'content': description,
            'author': item.get('author') or None,
            'source': feed.name,
            'category': feed.category or 'General',
            'pub_date': item.get('pub_date') or utcnow(),
        }, overwrite=False)
        if created:
            stored += 1
    return stored, len(items)


def run():
    """Pull every active RSS feed into the article store."""
    config = current_app.config
    focus = config.get('RELEVANCE_EXEMPT_CATEGORY', 'Iran-Specific')
    per_feed = config.get('RSS_ITEMS_PER_FEED', 5)

    feeds = RssFeed.query.filter_by(is_active=True).order_by(RssFeed.id).all()
    logger.info(f"[RSS] Starting for {len(feeds)} feeds")

    stored = errors = 0
    for feed in feeds:
        try:
            added, seen = ingest_feed(feed, focus, per_feed)
            stored += added
            logger.info(f"[RSS] {feed.name}: stored {added} of {seen} entries")
        except Exception as e:
            db.session.rollback()
            errors += 1
            logger.error(f"[RSS] Failed to process feed {feed.name}: {e}")

    logger.info(f"[RSS] Complete: {stored} articles stored, {errors} feeds failed")
    return {'feeds': len(feeds), 'articles_stored': stored, 'errors': errors}
