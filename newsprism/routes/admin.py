import hmac
import threading
from functools import wraps

from flask import Blueprint, current_app, jsonify, request

from newsprism import feature_flags
from newsprism.errors import ConfigurationError, ProviderError
from newsprism.extensions import db
from newsprism.models.article import Article
from newsprism.models.chunk import ArticleChunk
from newsprism.models.scrape_job import JobStatus, ScrapeJob
from newsprism.models.website import Website
from newsprism.pipeline.runner import STAGES, run_stage
from newsprism.services.clustering_service import pair_similarity

admin_bp = Blueprint('admin', __name__)
_stage_threads = {}
_stage_results = {}
_stage_trigger_lock = threading.Lock()


def _extract_admin_token():
    auth_header = request.headers.get('Authorization', '')
    if auth_header.lower().startswith('bearer '):
        return auth_header.split(' ', 1)[1].strip()
    return (request.headers.get('X-Admin-Key') or '').strip()


def require_admin_key(func):
    """Require ADMIN_API_KEY for all admin endpoints."""
    @wraps(func)
    def wrapper(*args, **kwargs):
        configured_key = current_app.config.get('ADMIN_API_KEY')
        if not configured_key:
            return jsonify({'error': 'Admin API is disabled: ADMIN_API_KEY is not configured'}), 503

        presented_key = _extract_admin_token()
        if not presented_key or not hmac.compare_digest(presented_key, configured_key):
            return jsonify({'error': 'Unauthorized'}), 401

        return func(*args, **kwargs)

    return wrapper


def _stage_running(stage):
    thread = _stage_threads.get(stage)
    return bool(thread and thread.is_alive())


@admin_bp.route('/run/<stage>', methods=['POST'])
@require_admin_key
def trigger_stage(stage):
    """Start a stage on a background thread and return immediately."""
    if stage not in STAGES:
        return jsonify({'error': f'Unknown stage: {stage}', 'stages': sorted(STAGES)}), 404

    app = current_app._get_current_object()

    def run_in_thread():
        with app.app_context():
            _stage_results[stage] = run_stage(stage)

    with _stage_trigger_lock:
        if _stage_running(stage):
            return jsonify({'error': f'Stage {stage} already running'}), 409

        thread = threading.Thread(target=run_in_thread, name=f'stage-{stage}', daemon=True)
        _stage_threads[stage] = thread
        thread.start()

    return jsonify({'status': 'triggered', 'stage': stage}), 202


@admin_bp.route('/runs')
@require_admin_key
def list_runs():
    """Whether each stage is running, plus its last manual-run summary."""
    return jsonify({
        stage: {'running': _stage_running(stage), 'last_result': _stage_results.get(stage)}
        for stage in STAGES
    })


@admin_bp.route('/embeddings/<int:article_id>', methods=['POST'])
@require_admin_key
def reembed_article(article_id):
    """Re-embed one article synchronously."""
    from newsprism.pipeline.embed import embed_single

    try:
        result = embed_single(article_id)
    except ConfigurationError as e:
        return jsonify({'error': str(e)}), 503
    except ProviderError as e:
        db.session.rollback()
        return jsonify({'error': str(e)}), 502

    if result is None:
        return jsonify({'error': 'Article not found'}), 404
    status = 200 if result['chunks_embedded'] else 502
    return jsonify(result), status


@admin_bp.route('/queue/status')
@require_admin_key
def queue_status():
    counts = dict(
        db.session.query(ScrapeJob.status, db.func.count(ScrapeJob.id))
        .group_by(ScrapeJob.status).all()
    )
    by_status = {status: counts.get(status, 0) for status in JobStatus.ALL}
    return jsonify({'total': sum(by_status.values()), **by_status})


@admin_bp.route('/embeddings/status')
@require_admin_key
def embeddings_status():
    total = Article.query.count()
    embedded = Article.query.filter_by(embedding_generated=True).count()
    return jsonify({
        'total_articles': total,
        'with_embeddings': embedded,
        'without_embeddings': total - embedded,
        'completion_percentage': round(embedded / total * 100, 1) if total else 0.0,
        'total_chunks': ArticleChunk.query.count(),
    })


@admin_bp.route('/similarity')
@require_admin_key
def similarity_probe():
    """Average and max chunk similarity between two articles (?a=<id>&b=<id>)."""
    a = request.args.get('a', type=int)
    b = request.args.get('b', type=int)
    if a is None or b is None:
        return jsonify({'error': 'Query parameters "a" and "b" (article ids) required'}), 400

    def embedded_chunks(article_id):
        return ArticleChunk.query.filter(
            ArticleChunk.article_id == article_id,
            ArticleChunk.embedding_generated.is_(True),
        ).order_by(ArticleChunk.chunk_index).all()

    chunks_a = embedded_chunks(a)
    chunks_b = embedded_chunks(b)
    if not chunks_a or not chunks_b:
        return jsonify({'error': 'One or both articles have no embeddings'}), 400

    return jsonify({
        'article_1': a,
        'article_2': b,
        'chunks_1': len(chunks_a),
        'chunks_2': len(chunks_b),
        **pair_similarity(chunks_a, chunks_b),
    })


@admin_bp.route('/websites')
@require_admin_key
def list_websites():
    websites = Website.query.order_by(Website.category, Website.name).all()
    return jsonify([w.to_dict() for w in websites])


@admin_bp.route('/flags')
@require_admin_key
def list_flags():
    """List all feature flags."""
    return jsonify(feature_flags.all_flags())


@admin_bp.route('/flags/<key>', methods=['PUT'])
@require_admin_key
def toggle_flag(key):
    """Toggle a feature flag at runtime."""
    data = request.get_json(silent=True)
    if data is None or 'value' not in data:
        return jsonify({'error': 'JSON body with "value" (bool) required'}), 400

    if not isinstance(data['value'], bool):
        return jsonify({'error': '"value" must be a boolean'}), 400

    feature_flags.set_flag(key, data['value'])
    return jsonify({'flag': key, 'value': feature_flags.is_enabled(key)})
