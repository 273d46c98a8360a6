import threading
from datetime import datetime, timedelta, timezone
from unittest.mock import patch

import pytest

from newsprism.models.analysis import ComparativeAnalysis
from newsprism.models.scrape_job import JobStatus, ScrapeJob
from newsprism.routes import admin as admin_routes
from newsprism.utils.dates import utcnow
from conftest import add_chunks, make_article, unit_vector, vector_with_similarity


def _analysis(db_session, ids, created_at=None, topic='Vienna talks'):
    analysis = ComparativeAnalysis(
        topic_id='cluster_1_0',
        topic_summary=topic,
        aggregate_summary='Summary',
        source_perspectives=[{'source_name': 'World Wire', 'sentiment': 'neutral'}],
        article_ids=sorted(ids),
        total_articles=len(ids),
        similarity_threshold=0.5,
        created_at=created_at or utcnow(),
    )
    db_session.add(analysis)
    db_session.commit()
    return analysis


@pytest.fixture(autouse=True)
def clear_stage_state():
    admin_routes._stage_threads.clear()
    admin_routes._stage_results.clear()
    yield
    for thread in list(admin_routes._stage_threads.values()):
        thread.join(timeout=5)
    admin_routes._stage_threads.clear()
    admin_routes._stage_results.clear()


class TestHealthRoutes:
    def test_health(self, client):
        resp = client.get('/health')
        assert resp.status_code == 200
        assert resp.json['status'] == 'ok'

    def test_ready(self, client):
        resp = client.get('/ready')
        assert resp.status_code == 200
        assert resp.json['db'] is True


class TestArticleRoutes:
    def test_newest_first(self, client, db_session):
        make_article(db_session, 'https://a.example/old', pub_date=datetime(2026, 10, 1, tzinfo=timezone.utc))
        make_article(db_session, 'https://a.example/new', pub_date=datetime(2026, 10, 18, tzinfo=timezone.utc))

        resp = client.get('/api/articles')
        assert resp.status_code == 200
        links = [a['link'] for a in resp.json['articles']]
        assert links == ['https://a.example/new', 'https://a.example/old']
        assert resp.json['total'] == 2

    def test_filters(self, client, db_session, sample_websites):
        make_article(db_session, 'https://a.example/1', source='Tehran Daily', category='Iran-Specific',
                     tags=['nuclear', 'diplomacy'], website_id=sample_websites[0].id)
        make_article(db_session, 'https://a.example/2', source='World Wire', tags=['economy'])

        resp = client.get('/api/articles?source=Tehran%20Daily')
        assert [a['link'] for a in resp.json['articles']] == ['https://a.example/1']
        assert resp.json['articles'][0]['neutrality_rating'] == 2.0

        resp = client.get('/api/articles?category=General')
        assert [a['link'] for a in resp.json['articles']] == ['https://a.example/2']

        resp = client.get('/api/articles?tag=diplomacy')
        assert [a['link'] for a in resp.json['articles']] == ['https://a.example/1']

    def test_pagination(self, client, db_session):
        for i in range(5):
            make_article(db_session, f'https://a.example/{i}',
                         pub_date=datetime(2026, 10, 1 + i, tzinfo=timezone.utc))

        resp = client.get('/api/articles?page=2&per_page=2')
        assert [a['link'] for a in resp.json['articles']] == ['https://a.example/2', 'https://a.example/1']
        assert resp.json['pages'] == 3

    def test_per_page_capped(self, client):
        resp = client.get('/api/articles?per_page=1000')
        assert resp.json['per_page'] == 100

    def test_min_description_words(self, client, db_session):
        make_article(db_session, 'https://a.example/short', description='Too short')
        make_article(db_session, 'https://a.example/long',
                     description='one two three four five six seven eight nine ten eleven')

        resp = client.get('/api/articles?min_description_words=10')
        assert [a['link'] for a in resp.json['articles']] == ['https://a.example/long']
        assert resp.json['total'] == 1


class TestAnalysisRoutes:
    def test_list_resolves_articles(self, client, db_session):
        a = make_article(db_session, 'https://a.example/1', source='Tehran Daily')
        b = make_article(db_session, 'https://a.example/2')
        _analysis(db_session, [a.id, b.id])

        resp = client.get('/api/analyses')
        assert resp.status_code == 200
        item = resp.json['analyses'][0]
        assert item['article_ids'] == sorted([a.id, b.id])
        assert {x['source'] for x in item['articles']} == {'Tehran Daily', 'World Wire'}
        assert resp.json['has_more'] is False

    def test_hours_back_window(self, client, db_session):
        a = make_article(db_session, 'https://a.example/1')
        b = make_article(db_session, 'https://a.example/2')
        _analysis(db_session, [a.id, b.id], created_at=utcnow() - timedelta(days=10))

        assert client.get('/api/analyses').json['total'] == 0
        assert client.get('/api/analyses?hours_back=300').json['total'] == 1

    def test_hours_back_invalid(self, client):
        assert client.get('/api/analyses?hours_back=0').status_code == 400

    def test_hours_back_too_large(self, client):
        assert client.get('/api/analyses?hours_back=100000000000').status_code == 400

    def test_has_more(self, client, db_session):
        a = make_article(db_session, 'https://a.example/1')
        b = make_article(db_session, 'https://a.example/2')
        c = make_article(db_session, 'https://a.example/3')
        _analysis(db_session, [a.id, b.id])
        _analysis(db_session, [a.id, c.id])

        resp = client.get('/api/analyses?per_page=1')
        assert resp.json['has_more'] is True
        assert len(resp.json['analyses']) == 1

    def test_detail_and_missing(self, client, db_session):
        a = make_article(db_session, 'https://a.example/1')
        b = make_article(db_session, 'https://a.example/2')
        analysis = _analysis(db_session, [a.id, b.id])

        resp = client.get(f'/api/analyses/{analysis.id}')
        assert resp.status_code == 200
        assert len(resp.json['articles']) == 2
        assert client.get('/api/analyses/9999').status_code == 404


class TestAdminAuth:
    def test_missing_key(self, client):
        assert client.get('/api/admin/queue/status').status_code == 401

    def test_wrong_key(self, client):
        resp = client.get('/api/admin/queue/status', headers={'X-Admin-Key': 'nope'})
        assert resp.status_code == 401

    def test_bearer_token(self, client, app):
        resp = client.get('/api/admin/queue/status',
                          headers={'Authorization': f"Bearer {app.config['ADMIN_API_KEY']}"})
        assert resp.status_code == 200

    def test_disabled_without_configured_key(self, client, app, admin_headers):
        with patch.dict(app.config, {'ADMIN_API_KEY': None}):
            resp = client.get('/api/admin/queue/status', headers=admin_headers)
        assert resp.status_code == 503


class TestStageTrigger:
    def test_unknown_stage(self, client, admin_headers):
        resp = client.post('/api/admin/run/publish', headers=admin_headers)
        assert resp.status_code == 404
        assert 'scrape' in resp.json['stages']

    def test_trigger_and_conflict(self, client, admin_headers):
        release = threading.Event()
        started = threading.Event()

        def blocking_stage(name):
            started.set()
            release.wait(timeout=5)
            return {'processed': 0}

        with patch('newsprism.routes.admin.run_stage', side_effect=blocking_stage):
            first = client.post('/api/admin/run/scrape', headers=admin_headers)
            assert started.wait(timeout=5)
            second = client.post('/api/admin/run/scrape', headers=admin_headers)
            other = client.post('/api/admin/run/embed', headers=admin_headers)
            release.set()
            for thread in list(admin_routes._stage_threads.values()):
                thread.join(timeout=5)

        assert first.status_code == 202
        assert second.status_code == 409
        assert other.status_code == 202

        runs = client.get('/api/admin/runs', headers=admin_headers).json
        assert runs['scrape'] == {'running': False, 'last_result': {'processed': 0}}


class TestAdminStatus:
    def test_queue_status(self, client, admin_headers, db_session, sample_websites):
        site = sample_websites[0]
        for i, status in enumerate([JobStatus.PENDING, JobStatus.PENDING, JobStatus.FAILED]):
            db_session.add(ScrapeJob(url=f'https://tehran-daily.example/{i}', website_id=site.id, status=status))
        db_session.commit()

        resp = client.get('/api/admin/queue/status', headers=admin_headers)
        assert resp.json['total'] == 3
        assert resp.json['pending'] == 2
        assert resp.json['failed'] == 1
        assert resp.json['not-relevant'] == 0

    def test_embeddings_status(self, client, admin_headers, db_session):
        a = make_article(db_session, 'https://a.example/1')
        make_article(db_session, 'https://a.example/2')
        add_chunks(db_session, a, [unit_vector(0), unit_vector(0.2)])

        resp = client.get('/api/admin/embeddings/status', headers=admin_headers)
        assert resp.json['with_embeddings'] == 1
        assert resp.json['without_embeddings'] == 1
        assert resp.json['completion_percentage'] == 50.0
        assert resp.json['total_chunks'] == 2

    def test_websites(self, client, admin_headers, sample_websites):
        resp = client.get('/api/admin/websites', headers=admin_headers)
        assert [w['name'] for w in resp.json] == ['World Wire', 'Tehran Daily']


class TestSimilarityProbe:
    def test_requires_ids(self, client, admin_headers):
        assert client.get('/api/admin/similarity?a=1', headers=admin_headers).status_code == 400

    def test_requires_embeddings(self, client, admin_headers, db_session):
        a = make_article(db_session, 'https://a.example/1')
        b = make_article(db_session, 'https://a.example/2')
        add_chunks(db_session, a, [unit_vector(0)])

        resp = client.get(f'/api/admin/similarity?a={a.id}&b={b.id}', headers=admin_headers)
        assert resp.status_code == 400

    def test_reports_similarity(self, client, admin_headers, db_session):
        a = make_article(db_session, 'https://a.example/1')
        b = make_article(db_session, 'https://a.example/2')
        add_chunks(db_session, a, [unit_vector(0)])
        add_chunks(db_session, b, [vector_with_similarity(0.6)])

        resp = client.get(f'/api/admin/similarity?a={a.id}&b={b.id}', headers=admin_headers)
        assert resp.status_code == 200
        assert resp.json['max_similarity'] == pytest.approx(0.6, abs=1e-5)
        assert resp.json['total_comparisons'] == 1


class TestReembed:
    def test_missing_article(self, client, admin_headers):
        resp = client.post('/api/admin/embeddings/9999', headers=admin_headers)
        assert resp.status_code == 404

    def test_success(self, client, admin_headers, db_session):
        from conftest import embedding_response
        a = make_article(db_session, 'https://a.example/1')
        with patch('openai.OpenAI') as mock_client:
            mock_client.return_value.embeddings.create.return_value = embedding_response(unit_vector(0))
            resp = client.post(f'/api/admin/embeddings/{a.id}', headers=admin_headers)

        assert resp.status_code == 200
        assert resp.json['chunks_embedded'] == 1

    def test_provider_failure(self, client, admin_headers, db_session):
        a = make_article(db_session, 'https://a.example/1')
        with patch('openai.OpenAI') as mock_client:
            mock_client.return_value.embeddings.create.side_effect = RuntimeError('HTTP 500')
            resp = client.post(f'/api/admin/embeddings/{a.id}', headers=admin_headers)

        assert resp.status_code == 502

    def test_missing_openai_key(self, client, app, admin_headers, db_session):
        a = make_article(db_session, 'https://a.example/1')
        with patch.dict(app.config, {'OPENAI_API_KEY': None}):
            resp = client.post(f'/api/admin/embeddings/{a.id}', headers=admin_headers)
        assert resp.status_code == 503


class TestFlags:
    def test_list_and_toggle(self, client, admin_headers):
        resp = client.get('/api/admin/flags', headers=admin_headers)
        assert resp.json['rss_ingestion'] is True

        resp = client.put('/api/admin/flags/rss_ingestion', json={'value': False}, headers=admin_headers)
        assert resp.status_code == 200
        assert resp.json == {'flag': 'rss_ingestion', 'value': False}

    def test_toggle_requires_bool(self, client, admin_headers):
        resp = client.put('/api/admin/flags/rss_ingestion', json={'value': 'yes'}, headers=admin_headers)
        assert resp.status_code == 400
