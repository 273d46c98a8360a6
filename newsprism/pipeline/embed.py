import logging

from flask import current_app

from newsprism.extensions import db
from newsprism.models.article import Article
from newsprism.services.embedding_service import EmbeddingService

logger = logging.getLogger(__name__)


def pending_articles(limit):
    return Article.query.filter_by(embedding_generated=False).order_by(
        Article.created_at.asc(), Article.id.asc()
    ).limit(limit).all()


def run(service=None, limit=None):
    """Embed up to `limit` articles that have no embeddings yet."""
    config = current_app.config
    service = service or EmbeddingService(config)
    articles = pending_articles(limit or config.get('EMBEDDING_BATCH_LIMIT', 10))
    logger.info(f"[Embed] Starting batch of {len(articles)} articles")

    processed = errors = chunks = 0
    for article in articles:
        try:
            result = service.embed_article(article)
        except Exception as e:
            db.session.rollback()
            errors += 1
            logger.error(f"[Embed] Article {article.id} failed: {e}", exc_info=True)
            continue

        chunks += result['chunks_embedded']
        if result['chunks_embedded']:
            processed += 1
        else:
            errors += 1
            logger.error(f"[Embed] Article {article.id}: no chunk could be embedded")

    logger.info(f"[Embed] Complete: {processed} articles, {chunks} chunks, {errors} errors")
    return {
        'articles': len(articles),
        'processed': processed,
        'chunks_embedded': chunks,
        'errors': errors,
    }


def embed_single(article_id, service=None):
    """
    Re-embed one article regardless of its flag.
    Returns the embed summary, or None when the article does not exist.
    """
    article = db.session.get(Article, article_id)
    if article is None:
        return None
    service = service or EmbeddingService(current_app.config)
    result = service.embed_article(article)
    logger.info(f"[Embed] Single article {article_id}: {result}")
    return result
