import logging
from urllib.parse import urljoin, urlparse

import requests
from bs4 import BeautifulSoup
from pydantic import ValidationError

from newsprism import feature_flags
from newsprism.errors import ConfigurationError, ProviderError
from newsprism.integrations.schemas import ScrapeResult

logger = logging.getLogger(__name__)

USER_AGENT = 'NewsprismBot/1.0 (+https://github.com/newsprism)'
MAX_HTML_BYTES = 512 * 1024

# Structured fields requested from the extraction model on every scrape
ARTICLE_EXTRACTION_SCHEMA = {
    'type': 'object',
    'properties': {
        'title': {'type': 'string', 'description': 'Article title'},
        'author': {'type': 'string', 'description': 'Article author or byline'},
        'publishedDate': {'type': 'string', 'description': 'Article publication date in ISO format'},
        'summary': {'type': 'string', 'description': 'Article summary or description'},
        'content': {'type': 'string', 'description': 'Main article content'},
        'tags': {
            'type': 'array',
            'items': {'type': 'string'},
            'description': 'An array of relevant keywords or tags for the article',
        },
    },
}


class FirecrawlScraper:
    """Site mapping and page scraping through the Firecrawl HTTP API."""

    name = 'firecrawl'

    def __init__(self, api_key, base_url='https://api.firecrawl.dev/v1', timeout=60, session=None):
        if not api_key:
            raise ConfigurationError('Missing FIRECRAWL_API_KEY')
        self.api_key = api_key
        self.base_url = base_url.rstrip('/')
        self.timeout = timeout
        self.session = session or requests.Session()

    def _post(self, path, payload):
        try:
            resp = self.session.post(
                f"{self.base_url}/{path}",
                json=payload,
                headers={
                    'Authorization': f'Bearer {self.api_key}',
                    'Content-Type': 'application/json',
                },
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            raise ProviderError(self.name, f"{path} request failed: {e}") from e

        if not resp.ok:
            raise ProviderError(self.name, f"HTTP {resp.status_code} - {resp.text[:200]}")

        try:
            return resp.json()
        except ValueError as e:
            raise ProviderError(self.name, f"Invalid JSON response: {resp.text[:100]}") from e

    def map_site(self, url, max_depth=1, limit=2000):
        body = self._post('map', {
            'url': url,
            'includeSubdomains': False,
            'limit': limit,
            'crawlerOptions': {'maxDepth': max_depth, 'limit': limit},
        })
        if not body.get('success') or not isinstance(body.get('links'), list):
            raise ProviderError(self.name, body.get('error') or f'No links returned for {url}')
        return [link for link in body['links'] if isinstance(link, str)]

    def scrape(self, url):
        body = self._post('scrape', {
            'url': url,
            'formats': ['markdown', 'json'],
            'jsonOptions': {'schema': ARTICLE_EXTRACTION_SCHEMA},
        })
        if not body.get('success') or not body.get('data'):
            raise ProviderError(self.name, body.get('error') or f'Scraping failed for {url}')
        try:
            return ScrapeResult.model_validate(body['data'])
        except ValidationError as e:
            raise ProviderError(self.name, f"Malformed scrape payload: {e}") from e


class LocalScraper:
    """Direct fetch + readability extraction. No API key required."""

    name = 'local'

    def __init__(self, timeout=15, session=None):
        self.timeout = timeout
        self.session = session or requests.Session()

    def _fetch_html(self, url):
        try:
            resp = self.session.get(
                url,
                timeout=self.timeout,
                headers={'User-Agent': USER_AGENT},
                stream=True,
            )
            resp.raise_for_status()
            chunks = []
            total = 0
            for chunk in resp.iter_content(chunk_size=64 * 1024, decode_unicode=True):
                if isinstance(chunk, bytes):
                    chunk = chunk.decode(resp.encoding or 'utf-8', errors='replace')
                chunks.append(chunk)
                total += len(chunk)
                if total > MAX_HTML_BYTES:
                    logger.debug(f"Truncating HTML at {MAX_HTML_BYTES} bytes for {url}")
                    break
            resp.close()
        except requests.RequestException as e:
            raise ProviderError(self.name, f"Failed to fetch {url}: {e}") from e
        return ''.join(chunks)

    def map_site(self, url, max_depth=1, limit=2000):
        """Collect same-host links from the homepage (depth 1 only)."""
        html = self._fetch_html(url)
        soup = BeautifulSoup(html, 'lxml')
        host = urlparse(url).netloc
        seen = []
        for a in soup.find_all('a', href=True):
            link = urljoin(url, a['href']).split('#', 1)[0]
            if urlparse(link).netloc != host or link in seen:
                continue
            seen.append(link)
            if len(seen) >= limit:
                break
        return seen

    def scrape(self, url):
        html = self._fetch_html(url)
        text, title = _readable_text(html, url)
        metadata = _extract_meta(html)
        if title and not metadata.get('title'):
            metadata['title'] = title
        if not text:
            raise ProviderError(self.name, f"No readable content at {url}")
        return ScrapeResult.model_validate({'markdown': text, 'metadata': metadata})


class FallbackScraper:
    """Try the primary provider, then the secondary when the primary errors."""

    def __init__(self, primary, secondary):
        self.primary = primary
        self.secondary = secondary
        self.name = f"{primary.name}+{secondary.name}"

    def map_site(self, url, max_depth=1, limit=2000):
        try:
            return self.primary.map_site(url, max_depth=max_depth, limit=limit)
        except ProviderError as e:
            logger.warning(f"{e}; falling back to {self.secondary.name} map")
            return self.secondary.map_site(url, max_depth=max_depth, limit=limit)

    def scrape(self, url):
        try:
            return self.primary.scrape(url)
        except ProviderError as e:
            logger.warning(f"{e}; falling back to {self.secondary.name} scrape")
            return self.secondary.scrape(url)


def build_scraper(config):
    """Construct the configured scrape provider. Raises ConfigurationError."""
    provider = (config.get('SCRAPE_PROVIDER') or 'firecrawl').lower()
    timeout = config.get('PROVIDER_TIMEOUT_SECONDS', 60)

    if provider == 'local':
        return LocalScraper(timeout=timeout)
    if provider != 'firecrawl':
        raise ConfigurationError(f"Unknown SCRAPE_PROVIDER: {provider}")

    scraper = FirecrawlScraper(
        api_key=config.get('FIRECRAWL_API_KEY'),
        base_url=config.get('FIRECRAWL_BASE_URL', 'https://api.firecrawl.dev/v1'),
        timeout=timeout,
    )
    if feature_flags.is_enabled('local_scrape_fallback'):
        return FallbackScraper(scraper, LocalScraper(timeout=timeout))
    return scraper


def _readable_text(html, url):
    """Main text via readability-lxml, falling back to <article>/<main>/<body>."""
    try:
        from readability import Document
        doc = Document(html, url=url)
        soup = BeautifulSoup(doc.summary(), 'lxml')
        text = soup.get_text(separator=' ', strip=True)
        if len(text) >= 100:
            return text, doc.title()
    except Exception as e:
        logger.debug(f"Readability failed for {url}: {e}")

    soup = BeautifulSoup(html, 'lxml')
    title_tag = soup.find('title')
    title = title_tag.get_text(strip=True) if title_tag else None
    node = soup.find('article') or soup.find('main') or soup.find('body')
    return (node.get_text(separator=' ', strip=True) if node else ''), title


def _extract_meta(html):
    """Pull title/description/author/image/date from <meta> tags."""
    soup = BeautifulSoup(html, 'lxml')
    meta = {}
    wanted = {
        ('name', 'description'): 'description',
        ('name', 'author'): 'author',
        ('property', 'og:title'): 'ogTitle',
        ('property', 'og:description'): 'ogDescription',
        ('property', 'og:image'): 'ogImage',
        ('name', 'twitter:image'): 'twitter:image',
        ('property', 'article:published_time'): 'article:published_time',
        ('property', 'article:modified_time'): 'article:modified_time',
    }
    for (attr, key), field in wanted.items():
        tag = soup.find('meta', attrs={attr: key})
        if tag and tag.get('content'):
            meta[field] = tag['content'].strip()
    return meta
