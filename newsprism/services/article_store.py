import logging

from sqlalchemy.exc import IntegrityError

from newsprism.extensions import db
from newsprism.models.article import Article
from newsprism.utils.text import word_count

logger = logging.getLogger(__name__)

UPSERT_FIELDS = (
    'title', 'description', 'content', 'source', 'category', 'author',
    'pub_date', 'tags', 'image_url', 'website_id',
)
# Fields that feed the embedding input
EMBEDDED_FIELDS = ('title', 'description', 'content', 'source')


def _apply(article, fields):
    text_changed = any(
        name in fields and getattr(article, name) != fields[name]
        for name in EMBEDDED_FIELDS
    )
    for name in UPSERT_FIELDS:
        if name in fields:
            setattr(article, name, fields[name])
    article.word_count = word_count(article.content)
    if text_changed and article.embedding_generated:
        # Stored chunks no longer match the text; the embed stage regenerates them
        article.embedding_generated = False
        article.embedding_generated_at = None


def upsert_article(link, fields, overwrite=True):
    """
    Insert or overwrite the Article keyed by `link` and commit.
    Returns (article, created). With overwrite=False an existing row is left
    untouched. A concurrent insert of the same link is resolved by re-reading
    the winner (and overwriting it when allowed).
    """
    article = Article.query.filter_by(link=link).first()
    if article is not None:
        if overwrite:
            _apply(article, fields)
            db.session.commit()
        return article, False

    article = Article(link=link)
    _apply(article, fields)
    db.session.add(article)
    try:
        db.session.commit()
        return article, True
    except IntegrityError:
        db.session.rollback()
        logger.info(f"Article {link} inserted concurrently, {'updating' if overwrite else 'keeping'} it")
        article = Article.query.filter_by(link=link).one()
        if overwrite:
            _apply(article, fields)
            db.session.commit()
        return article, False
