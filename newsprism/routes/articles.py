from flask import Blueprint, jsonify, request

from newsprism.services.article_query_service import latest_articles

articles_bp = Blueprint('articles', __name__)


@articles_bp.route('')
def list_articles():
    """Latest articles, filterable by tag, source and category (paginated)."""
    return jsonify(latest_articles(
        tag=request.args.get('tag'),
        source=request.args.get('source'),
        category=request.args.get('category'),
        page=request.args.get('page', 1, type=int),
        per_page=request.args.get('per_page', 20, type=int),
        min_description_words=request.args.get('min_description_words', 0, type=int),
    ))
