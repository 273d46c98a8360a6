import logging
from urllib.parse import urlparse

from flask import current_app

from newsprism.errors import ProviderError
from newsprism.extensions import db
from newsprism.integrations.scraper import build_scraper
from newsprism.models.article import Article
from newsprism.models.scrape_job import JobStatus, ScrapeJob
from newsprism.models.website import Website
from newsprism.services.relevance import RelevanceFilter
from newsprism.utils.batching import batched

logger = logging.getLogger(__name__)

SOCIAL_DOMAINS = ('twitter.com', 'facebook.com', 'linkedin.com', 'x.com', 'instagram.com')


def _is_candidate(link):
    """Reject homepages, mailto/tel links, unparsable URLs and social profiles."""
    try:
        parsed = urlparse(link)
    except ValueError:
        return False
    if parsed.scheme not in ('http', 'https'):
        return False
    if parsed.path in ('', '/'):
        return False
    host = (parsed.hostname or '').lower()
    return not any(host == d or host.endswith('.' + d) for d in SOCIAL_DOMAINS)


def filter_links(links, website_url):
    """Candidate links in first-seen order, de-duplicated, minus the site root."""
    root = website_url.rstrip('/')
    seen = set()
    out = []
    for link in links:
        link = link.strip()
        if not link or link in seen or link.rstrip('/') == root:
            continue
        seen.add(link)
        if _is_candidate(link):
            out.append(link)
    return out


def known_links(links, batch_size=100):
    """Subset of `links` already stored as an article link or a queued job URL."""
    known = set()
    for batch in batched(links, batch_size):
        known.update(row[0] for row in db.session.query(Article.link).filter(Article.link.in_(batch)))
        known.update(row[0] for row in db.session.query(ScrapeJob.url).filter(ScrapeJob.url.in_(batch)))
    return known


def discover_website(website, scraper, relevance, config):
    """Map one website and queue its new, relevant links. Returns count queued."""
    links = scraper.map_site(
        website.url,
        max_depth=config.get('MAP_MAX_DEPTH', 1),
        limit=config.get('MAP_LIMIT', 2000),
    )
    candidates = filter_links(links, website.url)
    known = known_links(candidates, config.get('DISCOVERY_LOOKUP_BATCH_SIZE', 100))
    fresh = [
        link for link in candidates
        if link not in known and relevance.url_is_relevant(link, website.category)
    ]

    for link in fresh:
        db.session.add(ScrapeJob(
            url=link,
            website_id=website.id,
            status=JobStatus.PENDING,
            attempts=0,
        ))
    db.session.commit()

    logger.info(
        f"[Discover] {website.name}: {len(links)} mapped, {len(candidates)} candidates, "
        f"{len(known)} known, {len(fresh)} queued"
    )
    return len(fresh)


def run(scraper=None):
    """Map every active, scrape-enabled website and enqueue new article URLs."""
    config = current_app.config
    scraper = scraper or build_scraper(config)
    relevance = RelevanceFilter.from_config(config)

    websites = Website.query.filter_by(is_active=True, scraping_enabled=True).order_by(Website.id).all()
    logger.info(f"[Discover] Starting for {len(websites)} websites")

    queued = 0
    errors = 0
    for website in websites:
        try:
            queued += discover_website(website, scraper, relevance, config)
        except ProviderError as e:
            db.session.rollback()
            errors += 1
            logger.error(f"[Discover] Mapping {website.name} failed: {e}")
        except Exception as e:
            db.session.rollback()
            errors += 1
            logger.error(f"[Discover] Failed to process {website.name}: {e}", exc_info=True)

    logger.info(f"[Discover] Complete: {queued} jobs queued, {errors} websites failed")
    return {
        'websites': len(websites),
        'jobs_queued': queued,
        'errors': errors,
    }
