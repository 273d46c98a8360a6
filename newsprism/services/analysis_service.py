import json
import logging

from flask import current_app
from pydantic import ValidationError

from newsprism.errors import BudgetExhaustedError, ProviderError
from newsprism.extensions import db
from newsprism.integrations.schemas import ComparativeAnalysisLLM
from newsprism.models.analysis import ComparativeAnalysis
from newsprism.utils.dates import utcnow
from newsprism.utils.text import strip_code_fence, truncate_chars

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = (
    'You are a geopolitical news analyst specializing in comparative media analysis. '
    'Always respond with valid JSON.'
)

ANALYSIS_PROMPT = """You are a geopolitical news analyst. Analyze the following articles about the same topic from different news sources and provide a comparative analysis.

Articles:
{articles}

Please provide your analysis in the following JSON format:
{{
  "topic_title": "A concise 3-6 word topic title/tag",
  "aggregate_summary": "A comprehensive 2-3 sentence summary of the overall topic/event",
  "source_perspectives": [
    {{
      "source_name": "Source name",
      "source_category": "Category (e.g., 'Iran-Specific', 'General')",
      "source_country": "Country",
      "perspective_summary": "How this source presents the topic (2-3 sentences)",
      "key_themes": ["theme1", "theme2", "theme3"],
      "sentiment": "positive/negative/neutral"
    }}
  ]
}}

Focus on identifying different perspectives, biases, emphasis, and framing between sources, especially between Iranian state media vs Western/international sources."""

FALLBACK_THEME = 'Analysis failed'


def find_existing_analysis(article_ids):
    """Return the stored analysis covering exactly this id set, or None."""
    wanted = sorted(set(article_ids))
    candidates = ComparativeAnalysis.query.filter_by(total_articles=len(wanted)).all()
    for analysis in candidates:
        if sorted(analysis.article_ids or []) == wanted:
            return analysis
    return None


def _article_units(cluster, max_chars):
    """One {title, source, content} unit per member article, in chunk order."""
    units = {}
    for chunk in cluster.chunks:
        unit = units.get(chunk.article_id)
        if unit is None:
            article = chunk.article
            unit = units[chunk.article_id] = {
                'title': getattr(article, 'title', '') or 'Untitled',
                'source': getattr(article, 'source', '') or 'Unknown',
                'parts': [],
            }
        if chunk.text:
            unit['parts'].append(chunk.text)

    return [
        {
            'title': u['title'],
            'source': u['source'],
            'content': truncate_chars(' '.join(u['parts']), max_chars),
        }
        for u in units.values()
    ]


def _source_groups(cluster):
    """source name -> {'article_ids': set, 'category': first seen category}."""
    groups = {}
    for chunk in cluster.chunks:
        article = chunk.article
        source = getattr(article, 'source', '') or 'Unknown'
        group = groups.setdefault(source, {'article_ids': set(), 'category': ''})
        group['article_ids'].add(chunk.article_id)
        if not group['category']:
            group['category'] = getattr(article, 'category', '') or ''
    return groups


def build_prompt(cluster, max_chars=2000):
    articles = '\n'.join(
        f"\n{i}. **{unit['title']}**\n   Source: {unit['source']}\n   Content: {unit['content']}\n"
        for i, unit in enumerate(_article_units(cluster, max_chars), start=1)
    )
    return ANALYSIS_PROMPT.format(articles=articles)


def parse_analysis(raw_text):
    """
    Parse a model response into ComparativeAnalysisLLM.
    Raises ValueError (incl. json.JSONDecodeError) or pydantic ValidationError.
    """
    text = strip_code_fence(raw_text)
    if not text:
        raise ValueError('Empty analysis response')
    return ComparativeAnalysisLLM.model_validate(json.loads(text))


def fallback_analysis(cluster):
    """Deterministic stand-in used when summarization or parsing fails."""
    total = cluster.total_articles
    perspectives = []
    for source, group in _source_groups(cluster).items():
        count = len(group['article_ids'])
        perspectives.append({
            'source_name': source,
            'source_category': group['category'],
            'source_country': '',
            'article_count': count,
            'perspective_summary': f"{count} articles from this source",
            'key_themes': [FALLBACK_THEME],
            'sentiment': 'neutral',
        })
    return {
        'topic_summary': f"Topic cluster with {total} articles",
        'aggregate_summary': f"Analysis of {total} related articles from multiple sources",
        'source_perspectives': perspectives,
        'is_fallback': True,
    }


class ComparativeAnalyzer:
    """Turns topic clusters into stored ComparativeAnalysis rows."""

    def __init__(self, llm, app_config=None):
        config = app_config or current_app.config
        self.llm = llm
        self.content_chars = config.get('ANALYSIS_CONTENT_CHARS', 2000)

    def summarize(self, cluster):
        """Fields for one cluster from the model, or the fallback on any failure."""
        try:
            result = self.llm.call(
                messages=[
                    {'role': 'system', 'content': SYSTEM_PROMPT},
                    {'role': 'user', 'content': build_prompt(cluster, self.content_chars)},
                ],
                purpose='comparative_analysis',
            )
            parsed = parse_analysis(result['content'])
        except (ProviderError, BudgetExhaustedError, ValueError, ValidationError) as e:
            logger.warning(f"[Analyze] {cluster.topic_id}: summarization failed, using fallback: {e}")
            return fallback_analysis(cluster)
        except Exception as e:
            db.session.rollback()
            logger.error(f"[Analyze] {cluster.topic_id}: unexpected summarization error, using fallback: {e}",
                         exc_info=True)
            return fallback_analysis(cluster)

        groups = _source_groups(cluster)
        perspectives = []
        for p in parsed.source_perspectives:
            entry = p.model_dump()
            group = groups.get(p.source_name)
            if group and not entry['article_count']:
                entry['article_count'] = len(group['article_ids'])
            perspectives.append(entry)

        return {
            'topic_summary': parsed.topic_title.strip(),
            'aggregate_summary': parsed.aggregate_summary.strip(),
            'source_perspectives': perspectives,
            'is_fallback': False,
        }

    def analyze(self, cluster):
        """
        Persist an analysis for `cluster` unless one already covers the same
        article set. Returns the new ComparativeAnalysis or None when skipped.
        """
        article_ids = cluster.article_ids
        if len(article_ids) < 2:
            return None

        if find_existing_analysis(article_ids) is not None:
            logger.info(f"[Analyze] Skipping cluster {article_ids}: analysis already exists")
            return None

        fields = self.summarize(cluster)
        analysis = ComparativeAnalysis(
            topic_id=cluster.topic_id,
            topic_summary=truncate_chars(fields['topic_summary'], 512),
            aggregate_summary=fields['aggregate_summary'],
            source_perspectives=fields['source_perspectives'],
            article_ids=article_ids,
            total_articles=len(article_ids),
            similarity_threshold=cluster.similarity_threshold,
            is_fallback=fields['is_fallback'],
            analysis_timestamp=utcnow(),
        )
        db.session.add(analysis)
        db.session.commit()
        logger.info(
            f"[Analyze] Saved {cluster.topic_id} ({len(article_ids)} articles"
            f"{', fallback' if analysis.is_fallback else ''})"
        )
        return analysis
