from flask import Blueprint, jsonify, request

from newsprism.services.article_query_service import get_analysis, latest_analyses

analyses_bp = Blueprint('analyses', __name__)

MAX_HOURS_BACK = 24 * 365


@analyses_bp.route('')
def list_analyses():
    """Latest comparative analyses with their member articles (paginated)."""
    hours_back = request.args.get('hours_back', 168, type=int)
    if not 1 <= hours_back <= MAX_HOURS_BACK:
        return jsonify({'error': f'"hours_back" must be between 1 and {MAX_HOURS_BACK}'}), 400

    return jsonify(latest_analyses(
        page=request.args.get('page', 1, type=int),
        per_page=request.args.get('per_page', 10, type=int),
        hours_back=hours_back,
    ))


@analyses_bp.route('/<int:analysis_id>')
def get_one(analysis_id):
    payload = get_analysis(analysis_id)
    if payload is None:
        return jsonify({'error': 'Analysis not found'}), 404
    return jsonify(payload)
