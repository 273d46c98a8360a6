from datetime import datetime, timezone
from unittest.mock import MagicMock

import pytest
import requests

from newsprism import feature_flags
from newsprism.errors import ConfigurationError, ProviderError
from newsprism.integrations.schemas import ComparativeAnalysisLLM, ScrapeResult
from newsprism.integrations.scraper import (
    FallbackScraper,
    FirecrawlScraper,
    LocalScraper,
    build_scraper,
)

ARTICLE_HTML = """
<html><head>
<title>Vienna talks resume</title>
<meta name="description" content="Negotiators return to Vienna.">
<meta property="og:image" content="https://img.example/vienna.jpg">
<meta property="article:published_time" content="2026-10-18T09:00:00Z">
</head><body>
<a href="/politics/vienna">Vienna</a>
<a href="https://elsewhere.example/x">Other site</a>
<a href="/politics/vienna#comments">Comments</a>
<article><p>Iranian and European negotiators met in Vienna on Monday to discuss the future of the nuclear agreement and sanctions relief.</p></article>
</body></html>
"""


def _response(status=200, body=None, text=''):
    resp = MagicMock()
    resp.ok = status < 400
    resp.status_code = status
    resp.text = text
    if isinstance(body, Exception):
        resp.json.side_effect = body
    else:
        resp.json.return_value = body
    return resp


def _html_session(html):
    session = MagicMock()
    resp = session.get.return_value
    resp.iter_content.return_value = [html]
    resp.encoding = 'utf-8'
    return session


class TestFirecrawl:
    def test_requires_key(self):
        with pytest.raises(ConfigurationError):
            FirecrawlScraper(api_key=None)

    def test_map_returns_links(self):
        session = MagicMock()
        session.post.return_value = _response(body={'success': True, 'links': ['https://a.example/1', None]})
        scraper = FirecrawlScraper('key', session=session)

        assert scraper.map_site('https://a.example') == ['https://a.example/1']
        args, kwargs = session.post.call_args
        assert args[0].endswith('/map')
        assert kwargs['headers']['Authorization'] == 'Bearer key'

    def test_map_without_links(self):
        session = MagicMock()
        session.post.return_value = _response(body={'success': False, 'error': 'quota'})
        with pytest.raises(ProviderError, match='quota'):
            FirecrawlScraper('key', session=session).map_site('https://a.example')

    def test_http_error(self):
        session = MagicMock()
        session.post.return_value = _response(status=429, text='Too many requests')
        with pytest.raises(ProviderError, match='HTTP 429'):
            FirecrawlScraper('key', session=session).scrape('https://a.example/1')

    def test_transport_error(self):
        session = MagicMock()
        session.post.side_effect = requests.ConnectionError('refused')
        with pytest.raises(ProviderError):
            FirecrawlScraper('key', session=session).scrape('https://a.example/1')

    def test_invalid_json(self):
        session = MagicMock()
        session.post.return_value = _response(body=ValueError('no json'), text='<html>')
        with pytest.raises(ProviderError, match='Invalid JSON'):
            FirecrawlScraper('key', session=session).scrape('https://a.example/1')

    def test_scrape_parses_payload(self):
        session = MagicMock()
        session.post.return_value = _response(body={'success': True, 'data': {
            'markdown': '# Talks',
            'json': {'title': 'Talks resume', 'tags': 'iran, diplomacy'},
            'metadata': {'og:image': 'https://img.example/a.jpg'},
        }})
        result = FirecrawlScraper('key', session=session).scrape('https://a.example/1')

        fields = result.to_article_fields()
        assert fields['title'] == 'Talks resume'
        assert fields['tags'] == ['iran', 'diplomacy']
        assert fields['image_url'] == 'https://img.example/a.jpg'
        assert fields['content'] == '# Talks'


class TestLocalScraper:
    def test_map_same_host_links(self):
        scraper = LocalScraper(session=_html_session(ARTICLE_HTML))
        links = scraper.map_site('https://news.example/')
        assert links == ['https://news.example/politics/vienna']

    def test_scrape_extracts_text_and_meta(self):
        scraper = LocalScraper(session=_html_session(ARTICLE_HTML))
        fields = scraper.scrape('https://news.example/politics/vienna').to_article_fields()

        assert 'negotiators met in Vienna' in fields['content']
        assert fields['description'] == 'Negotiators return to Vienna.'
        assert fields['image_url'] == 'https://img.example/vienna.jpg'
        assert fields['pub_date'] == datetime(2026, 10, 18, 9, 0, tzinfo=timezone.utc)

    def test_fetch_error(self):
        session = MagicMock()
        session.get.side_effect = requests.Timeout('slow')
        with pytest.raises(ProviderError):
            LocalScraper(session=session).scrape('https://news.example/x')


class TestBuildScraper:
    def test_firecrawl_default(self):
        scraper = build_scraper({'FIRECRAWL_API_KEY': 'key'})
        assert isinstance(scraper, FirecrawlScraper)

    def test_firecrawl_missing_key(self):
        with pytest.raises(ConfigurationError):
            build_scraper({})

    def test_local(self):
        assert isinstance(build_scraper({'SCRAPE_PROVIDER': 'local'}), LocalScraper)

    def test_unknown_provider(self):
        with pytest.raises(ConfigurationError):
            build_scraper({'SCRAPE_PROVIDER': 'selenium'})

    def test_fallback_flag(self):
        feature_flags.set_flag('local_scrape_fallback', True)
        scraper = build_scraper({'FIRECRAWL_API_KEY': 'key'})
        assert isinstance(scraper, FallbackScraper)
        assert scraper.name == 'firecrawl+local'


class TestFallbackScraper:
    def test_uses_secondary_on_provider_error(self):
        primary, secondary = MagicMock(), MagicMock()
        primary.name, secondary.name = 'firecrawl', 'local'
        primary.scrape.side_effect = ProviderError('firecrawl', 'HTTP 500')
        secondary.scrape.return_value = 'page'

        assert FallbackScraper(primary, secondary).scrape('https://a.example/1') == 'page'

    def test_primary_success_skips_secondary(self):
        primary, secondary = MagicMock(), MagicMock()
        primary.map_site.return_value = ['https://a.example/1']

        assert FallbackScraper(primary, secondary).map_site('https://a.example') == ['https://a.example/1']
        secondary.map_site.assert_not_called()


class TestScrapeSchemas:
    def test_extraction_beats_metadata(self):
        result = ScrapeResult.model_validate({
            'json': {'title': 'Extracted', 'summary': 'Extracted summary', 'author': 'A. Writer'},
            'metadata': {'title': 'Meta', 'description': 'Meta description', 'author': 'Meta Author'},
        })
        fields = result.to_article_fields()
        assert fields['title'] == 'Extracted'
        assert fields['description'] == 'Extracted summary'
        assert fields['author'] == 'A. Writer'

    def test_metadata_fallback_and_list_values(self):
        result = ScrapeResult.model_validate({
            'json': None,
            'metadata': {'ogTitle': ['', 'OG title'], 'ogDescription': 'OG description'},
        })
        fields = result.to_article_fields()
        assert fields['title'] == 'OG title'
        assert fields['description'] == 'OG description'
        assert fields['content'] == ''

    def test_first_parseable_date_wins(self):
        result = ScrapeResult.model_validate({'metadata': {
            'publishedTime': 'not a date',
            'article:modified_time': 'Sat, 17 Oct 2026 10:00:00 GMT',
        }})
        assert result.to_article_fields()['pub_date'] == datetime(2026, 10, 17, 10, 0, tzinfo=timezone.utc)

    def test_sentiment_normalized(self):
        parsed = ComparativeAnalysisLLM.model_validate({
            'topic_title': 't',
            'aggregate_summary': 's',
            'source_perspectives': [
                {'source_name': 'A', 'sentiment': ' NEGATIVE '},
                {'source_name': 'B', 'sentiment': None, 'key_themes': 'single'},
            ],
        })
        assert [p.sentiment for p in parsed.source_perspectives] == ['negative', 'neutral']
        assert parsed.source_perspectives[1].key_themes == ['single']
