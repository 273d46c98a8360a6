import logging

logger = logging.getLogger(__name__)

EXEMPT_CATEGORY = 'Iran-Specific'

# Short list matched against the raw URL; content-level filtering is broader.
URL_KEYWORDS = (
    'iran', 'iranian', 'tehran', 'persian', 'khamenei', 'raisi', 'irgc', 'jcpoa',
    'nuclear', 'sanctions', 'israel-iran', 'hezbollah', 'houthis',
)

CONTENT_KEYWORDS = (
    # Country and nationality
    'iran', 'iranian', 'persia', 'persian',
    # Cities and regions
    'tehran', 'isfahan', 'mashhad', 'tabriz', 'shiraz', 'qom', 'karaj', 'ahvaz',
    # Government and politics
    'khamenei', 'raisi', 'rouhani', 'ahmadinejad', 'khatami', 'supreme leader',
    'islamic republic', 'majlis', 'guardian council', 'assembly of experts',
    # Military and security
    'irgc', 'revolutionary guard', 'quds force', 'basij', 'artesh',
    'iranian military', 'iranian forces',
    # Nuclear program
    'jcpoa', 'nuclear deal', 'iran nuclear', 'uranium enrichment', 'natanz', 'fordow',
    'centrifuge', 'heavy water', 'arak reactor',
    # Economy and sanctions
    'iran sanctions', 'iranian economy', 'oil embargo', 'swift ban',
    'iranian rial', 'economic pressure',
    # Regional conflicts and proxies
    'hezbollah', 'houthis', 'hamas', 'axis of resistance', 'proxy war',
    'lebanon', 'yemen', 'syria conflict', 'gaza',
    # International relations
    'israel-iran', 'iran-israel', 'us-iran', 'iran-us', 'iran-europe',
    'iran-china', 'iran-russia',
    # Protests and human rights
    'iran protests', 'mahsa amini', 'women life freedom', 'morality police',
    'iranian dissidents', 'political prisoners',
    # Energy and resources
    'iranian oil', 'persian gulf', 'strait of hormuz', 'south pars',
    # Culture and religion
    'shia', 'shiite', 'ayatollah', 'mullah', 'clerical establishment',
)


def _contains_any(text, keywords):
    haystack = (text or '').lower()
    return any(k in haystack for k in keywords)


class RelevanceFilter:
    """
    Decides whether a URL or scraped article is in scope.

    Websites in the exempt category are trusted wholesale. Everything else
    needs at least one keyword: URL mode checks the URL string, content mode
    checks title + description + body. Matching is case-insensitive substring.
    """

    def __init__(self, exempt_category=EXEMPT_CATEGORY, url_keywords=URL_KEYWORDS,
                 content_keywords=CONTENT_KEYWORDS):
        self.exempt_category = exempt_category
        self.url_keywords = tuple(k.lower() for k in url_keywords)
        self.content_keywords = tuple(k.lower() for k in content_keywords)

    @classmethod
    def from_config(cls, config):
        return cls(exempt_category=config.get('RELEVANCE_EXEMPT_CATEGORY', EXEMPT_CATEGORY))

    def is_exempt(self, category):
        return category == self.exempt_category

    def url_is_relevant(self, url, category):
        if self.is_exempt(category):
            return True
        return _contains_any(url, self.url_keywords)

    def content_is_relevant(self, title, description, content, category=None):
        if category is not None and self.is_exempt(category):
            return True
        relevant = _contains_any(f"{title or ''} {description or ''} {content or ''}", self.content_keywords)
        if not relevant:
            logger.debug("[Filter] No in-scope keywords found in content")
        return relevant
