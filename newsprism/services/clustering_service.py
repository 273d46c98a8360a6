import logging
import time
from collections import namedtuple

import numpy as np
from sklearn.cluster import AgglomerativeClustering
from sklearn.metrics.pairwise import cosine_similarity as pairwise_cosine

from newsprism.errors import ConfigurationError

logger = logging.getLogger(__name__)

GREEDY = 'greedy'
AGGLOMERATIVE = 'agglomerative'
STRATEGIES = (GREEDY, AGGLOMERATIVE)

# One embedded chunk as the clusterer sees it; `text` and `article` ride along for analysis
ChunkVector = namedtuple('ChunkVector', ['article_id', 'chunk_index', 'vector', 'text', 'article'])
ChunkVector.__new__.__defaults__ = ('', None)


class TopicCluster:
    """Chunks from two or more articles judged to cover the same story."""

    def __init__(self, topic_id, similarity_threshold, chunks):
        self.topic_id = topic_id
        self.similarity_threshold = similarity_threshold
        self.chunks = list(chunks)

    @property
    def article_ids(self):
        """Sorted, de-duplicated ids of the member articles."""
        return sorted({c.article_id for c in self.chunks})

    @property
    def total_articles(self):
        return len(self.article_ids)

    def __repr__(self):
        return f"<TopicCluster {self.topic_id} articles={self.article_ids}>"


def cosine_similarity(a, b):
    """dot(a, b) / (|a| * |b|), or 0.0 when either vector has zero norm."""
    a = np.asarray(a, dtype=np.float64)
    b = np.asarray(b, dtype=np.float64)
    norm = np.linalg.norm(a) * np.linalg.norm(b)
    if norm == 0:
        return 0.0
    return float(np.clip(np.dot(a, b) / norm, -1.0, 1.0))


def group_by_article(chunks):
    """Ordered mapping article_id -> [chunks], in order of first appearance."""
    groups = {}
    for chunk in chunks:
        groups.setdefault(chunk.article_id, []).append(chunk)
    return groups


def article_similarity_matrix(groups):
    """
    Article-by-article matrix of the maximum chunk-pair cosine similarity.
    Diagonal is 1.0. Zero-norm chunks compare as 0.0.
    """
    article_ids = list(groups)
    vectors = []
    owners = []
    for idx, article_id in enumerate(article_ids):
        for chunk in groups[article_id]:
            vectors.append(np.asarray(chunk.vector, dtype=np.float64))
            owners.append(idx)

    n = len(article_ids)
    if n == 0:
        return np.zeros((0, 0))

    chunk_sim = pairwise_cosine(np.vstack(vectors))
    owners = np.array(owners)
    matrix = np.zeros((n, n))
    for i in range(n):
        rows = chunk_sim[owners == i]
        for j in range(i + 1, n):
            matrix[i, j] = matrix[j, i] = rows[:, owners == j].max()
    np.fill_diagonal(matrix, 1.0)
    return matrix


def pair_similarity(chunks_a, chunks_b):
    """Average and max cosine similarity over all chunk pairs of two articles."""
    if not chunks_a or not chunks_b:
        raise ValueError('Both articles need at least one embedded chunk')
    scores = [cosine_similarity(a.vector, b.vector) for a in chunks_a for b in chunks_b]
    return {
        'average_similarity': sum(scores) / len(scores),
        'max_similarity': max(scores),
        'total_comparisons': len(scores),
    }


def _topic_id(stamp_ms, index):
    return f"cluster_{stamp_ms}_{index}"


def cluster_chunks(chunks, threshold):
    """
    Greedy seed-based grouping.

    Articles are visited in first-appearance order. Each unassigned article
    seeds a cluster and pulls in every later unassigned article whose best
    chunk pair against the seed reaches `threshold`. Assignment is final, so
    the result depends on input order. Only clusters spanning two or more
    articles are returned.
    """
    groups = group_by_article(chunks)
    if len(groups) < 2:
        return []

    article_ids = list(groups)
    matrix = article_similarity_matrix(groups)
    assigned = [False] * len(article_ids)
    stamp_ms = int(time.time() * 1000)

    clusters = []
    for i, article_id in enumerate(article_ids):
        if assigned[i]:
            continue
        assigned[i] = True
        members = [i]
        for j in range(i + 1, len(article_ids)):
            if not assigned[j] and matrix[i, j] >= threshold:
                members.append(j)
                assigned[j] = True

        if len(members) < 2:
            continue
        member_chunks = [c for m in members for c in groups[article_ids[m]]]
        clusters.append(TopicCluster(_topic_id(stamp_ms, i), threshold, member_chunks))

    logger.info(f"[Analyze] Greedy clustering: {len(groups)} articles -> {len(clusters)} clusters")
    return clusters


def cluster_chunks_agglomerative(chunks, threshold):
    """
    Average-linkage agglomerative clustering over the article-level
    max-similarity matrix, cut at distance 1 - threshold.
    Order-independent; same two-article minimum as the greedy strategy.
    """
    groups = group_by_article(chunks)
    if len(groups) < 2:
        return []

    article_ids = list(groups)
    distance_matrix = np.clip(1.0 - article_similarity_matrix(groups), 0, 2)
    np.fill_diagonal(distance_matrix, 0)

    clustering = AgglomerativeClustering(
        n_clusters=None,
        distance_threshold=1.0 - threshold,
        metric='precomputed',
        linkage='average',
    )
    labels = clustering.fit_predict(distance_matrix)

    by_label = {}
    for idx, label in enumerate(labels):
        by_label.setdefault(label, []).append(idx)

    stamp_ms = int(time.time() * 1000)
    clusters = []
    for members in sorted(by_label.values(), key=lambda m: m[0]):
        if len(members) < 2:
            continue
        member_chunks = [c for m in members for c in groups[article_ids[m]]]
        clusters.append(TopicCluster(_topic_id(stamp_ms, members[0]), threshold, member_chunks))

    logger.info(f"[Analyze] Agglomerative clustering: {len(groups)} articles -> {len(clusters)} clusters")
    return clusters


class ClusteringService:
    def __init__(self, threshold=0.5, strategy=GREEDY):
        if strategy not in STRATEGIES:
            raise ValueError(f"Unknown clustering strategy: {strategy}")
        self.threshold = threshold
        self.strategy = strategy

    @classmethod
    def from_config(cls, config, threshold=None):
        strategy = (config.get('CLUSTERING_STRATEGY') or GREEDY).lower()
        if strategy not in STRATEGIES:
            raise ConfigurationError(f"Unknown CLUSTERING_STRATEGY: {strategy}")
        if threshold is None:
            threshold = config.get('SIMILARITY_THRESHOLD', 0.5)
        return cls(threshold=threshold, strategy=strategy)

    def cluster(self, chunks):
        if self.strategy == AGGLOMERATIVE:
            return cluster_chunks_agglomerative(chunks, self.threshold)
        return cluster_chunks(chunks, self.threshold)
