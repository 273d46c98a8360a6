from datetime import timedelta

from newsprism.extensions import db
from newsprism.models.analysis import ComparativeAnalysis
from newsprism.models.article import Article
from newsprism.utils.batching import batched
from newsprism.utils.dates import utcnow
from newsprism.utils.text import word_count

MAX_PER_PAGE = 100
ID_LOOKUP_BATCH_SIZE = 100


def _clamp_page(page, per_page):
    page = max(page or 1, 1)
    per_page = min(max(per_page or 20, 1), MAX_PER_PAGE)
    return page, per_page


def _article_payload(article):
    payload = article.to_dict()
    payload['neutrality_rating'] = article.website.neutrality_rating if article.website else None
    return payload


def latest_articles(tag=None, source=None, category=None, page=1, per_page=20, min_description_words=0):
    """
    Newest articles first (publish date, then insert order).
    `tag` matches an exact entry of the tags list. `min_description_words`
    drops teaser-less rows, which the front page sets to 10.
    """
    page, per_page = _clamp_page(page, per_page)

    query = Article.query
    if source:
        query = query.filter(Article.source == source)
    if category:
        query = query.filter(Article.category == category)
    if tag:
        query = query.filter(db.cast(Article.tags, db.String).like(f'%"{tag}"%'))
    query = query.order_by(Article.pub_date.desc().nullslast(), Article.id.desc())

    if min_description_words:
        rows = [a for a in query.all() if word_count(a.description) >= min_description_words]
        total = len(rows)
        items = rows[(page - 1) * per_page:page * per_page]
    else:
        pagination = query.paginate(page=page, per_page=per_page, error_out=False)
        total = pagination.total
        items = pagination.items

    return {
        'articles': [_article_payload(a) for a in items],
        'total': total,
        'page': page,
        'per_page': per_page,
        'pages': (total + per_page - 1) // per_page,
    }


def _articles_by_id(ids):
    found = {}
    for batch in batched(sorted(set(ids)), ID_LOOKUP_BATCH_SIZE):
        for article in Article.query.filter(Article.id.in_(batch)).all():
            found[article.id] = article
    return found


def _resolve(analysis, articles):
    payload = analysis.to_dict()
    payload['articles'] = [
        {
            'id': articles[aid].id,
            'title': articles[aid].title,
            'source': articles[aid].source,
            'link': articles[aid].link,
        }
        for aid in analysis.article_ids or []
        if aid in articles
    ]
    return payload


def latest_analyses(page=1, per_page=10, hours_back=168):
    """Newest analyses within `hours_back`, each with its member articles resolved."""
    page, per_page = _clamp_page(page, per_page)
    cutoff = utcnow() - timedelta(hours=hours_back)

    pagination = ComparativeAnalysis.query.filter(
        ComparativeAnalysis.created_at >= cutoff
    ).order_by(
        ComparativeAnalysis.created_at.desc(), ComparativeAnalysis.id.desc()
    ).paginate(page=page, per_page=per_page, error_out=False)

    ids = [aid for a in pagination.items for aid in (a.article_ids or [])]
    articles = _articles_by_id(ids)
    return {
        'analyses': [_resolve(a, articles) for a in pagination.items],
        'total': pagination.total,
        'page': page,
        'per_page': per_page,
        'has_more': page < (pagination.pages or 0),
    }


def get_analysis(analysis_id):
    analysis = db.session.get(ComparativeAnalysis, analysis_id)
    if analysis is None:
        return None
    return _resolve(analysis, _articles_by_id(analysis.article_ids or []))
