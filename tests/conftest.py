import math
import os
import pytest
from datetime import datetime, timezone
from unittest.mock import MagicMock

import numpy as np

# Set test env vars before importing app
os.environ['FF_RSS_INGESTION'] = 'true'
os.environ['FF_LOCAL_SCRAPE_FALLBACK'] = 'false'

from newsprism import create_app, feature_flags
from newsprism.errors import ProviderError
from newsprism.extensions import db as _db
from newsprism.integrations.schemas import ScrapeResult
from newsprism.models.article import Article
from newsprism.models.chunk import ArticleChunk
from newsprism.models.website import Website
from newsprism.utils.dates import utcnow
from newsprism.utils.serialization import embedding_to_bytes
from config import TestConfig

DIM = TestConfig.EMBEDDING_DIM


@pytest.fixture(scope='session')
def app():
    """Create app with test config."""
    app = create_app(TestConfig)
    return app


@pytest.fixture(autouse=True)
def setup_db(app):
    """Create tables before each test, drop after."""
    with app.app_context():
        _db.create_all()
        yield
        _db.session.rollback()
        _db.drop_all()


@pytest.fixture(autouse=True)
def reset_flags():
    feature_flags.init_flags({})
    yield
    feature_flags.init_flags({})


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def admin_headers(app):
    return {'X-Admin-Key': app.config['ADMIN_API_KEY']}


@pytest.fixture
def db_session(app):
    with app.app_context():
        yield _db.session


@pytest.fixture
def sample_websites(db_session):
    """One exempt-category outlet and one general outlet."""
    websites = [
        Website(
            name='Tehran Daily',
            url='https://tehran-daily.example',
            category='Iran-Specific',
            country='Iran',
            neutrality_rating=2.0,
        ),
        Website(
            name='World Wire',
            url='https://worldwire.example',
            category='General',
            country='United Kingdom',
            neutrality_rating=4.0,
        ),
    ]
    for w in websites:
        db_session.add(w)
    db_session.commit()
    return websites


def unit_vector(angle, dim=DIM):
    """Unit vector in the first two dimensions; cos(angle) against unit_vector(0)."""
    vec = np.zeros(dim, dtype=np.float32)
    vec[0] = math.cos(angle)
    vec[1] = math.sin(angle)
    return vec


def vector_with_similarity(sim, dim=DIM):
    """Vector whose cosine similarity with unit_vector(0) is `sim`."""
    return unit_vector(math.acos(sim), dim)


def make_article(db_session, link, source='World Wire', title='Nuclear talks resume', **kwargs):
    article = Article(
        link=link,
        title=title,
        source=source,
        description=kwargs.pop('description', 'Diplomats met in Vienna to discuss the nuclear deal.'),
        content=kwargs.pop('content', 'Iran and world powers resumed nuclear talks in Vienna on Monday.'),
        category=kwargs.pop('category', 'General'),
        pub_date=kwargs.pop('pub_date', datetime(2026, 10, 18, 12, 0, tzinfo=timezone.utc)),
        **kwargs,
    )
    db_session.add(article)
    db_session.commit()
    return article


def add_chunks(db_session, article, vectors):
    """Store pre-computed embedded chunks for an article."""
    for i, vec in enumerate(vectors):
        db_session.add(ArticleChunk(
            article_id=article.id,
            chunk_index=i,
            chunk_text=f"{article.title} chunk {i}",
            word_count=4,
            embedding_blob=embedding_to_bytes(vec),
            embedding_model='test-embedding',
            embedding_dim=len(vec),
            embedding_generated=True,
            embedding_generated_at=utcnow(),
        ))
    article.embedding_generated = True
    article.embedding_generated_at = utcnow()
    db_session.commit()


def embedding_response(vec):
    response = MagicMock()
    response.data = [MagicMock(embedding=list(map(float, vec)))]
    return response


def chat_response(content, prompt_tokens=100, completion_tokens=50):
    response = MagicMock()
    response.choices = [MagicMock(message=MagicMock(content=content))]
    response.usage = MagicMock(
        prompt_tokens=prompt_tokens,
        completion_tokens=completion_tokens,
        total_tokens=prompt_tokens + completion_tokens,
    )
    return response


def scrape_result(title='Nuclear talks resume in Vienna', markdown=None, **metadata):
    return ScrapeResult.model_validate({
        'markdown': markdown if markdown is not None else
        'Iranian and European negotiators met in Vienna to revive the nuclear deal.',
        'json': {'title': title, 'summary': 'Talks on the JCPOA resumed.', 'tags': ['diplomacy']},
        'metadata': metadata,
    })


class FakeScraper:
    """
    Stand-in scrape provider. `pages` maps url -> ScrapeResult or a list of
    outcomes consumed one per call (an Exception instance is raised).
    """

    name = 'fake'

    def __init__(self, links=None, pages=None):
        self.links = links or {}
        self.pages = pages or {}
        self.scraped = []
        self.mapped = []

    def map_site(self, url, max_depth=1, limit=2000):
        self.mapped.append(url)
        outcome = self.links.get(url, [])
        if isinstance(outcome, Exception):
            raise outcome
        return list(outcome)

    def scrape(self, url):
        self.scraped.append(url)
        outcome = self.pages.get(url)
        if isinstance(outcome, list):
            outcome = outcome.pop(0)
        if outcome is None:
            raise ProviderError(self.name, f"No page for {url}")
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


@pytest.fixture
def fake_scraper():
    return FakeScraper()
