import logging
from calendar import timegm
from datetime import datetime, timezone

import feedparser

logger = logging.getLogger(__name__)


def fetch_feed(feed):
    """
    Fetch and parse an RSS feed for a given RssFeed row.
    Returns list of item dicts: title, link, description, pub_date.
    """
    try:
        parsed = feedparser.parse(feed.url, agent='Mozilla/5.0 (compatible; NewsprismBot/1.0)')
    except Exception as e:
        logger.error(f"Failed to parse feed {feed.url}: {e}")
        return []

    if parsed.bozo and not parsed.entries:
        logger.warning(f"Malformed feed {feed.url}: {parsed.bozo_exception}")
        return []

    items = []
    for entry in parsed.entries:
        link = entry.get('link')
        title = entry.get('title')
        if not link or not title:
            continue

        pub_date = None
        for attr in ('published_parsed', 'updated_parsed'):
            value = getattr(entry, attr, None)
            if value:
                try:
                    pub_date = datetime.fromtimestamp(timegm(value), tz=timezone.utc)
                    break
                except (ValueError, OverflowError, TypeError):
                    continue

        items.append({
            'title': title.strip(),
            'link': link.strip(),
            'description': (entry.get('summary') or entry.get('description') or '').strip(),
            'author': entry.get('author') or '',
            'pub_date': pub_date,
        })

    logger.info(f"[RSS] Fetched {len(items)} entries from {feed.name}")
    return items
