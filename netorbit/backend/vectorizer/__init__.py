"""
vectorizer/__init__.py

Public API for the feature/embedding sub-package.
"""

from .features import FeatureVectorizer
from .hashing import murmur32
from .kmeans import NO_CLUSTER, OnlineKMeans
from .pca import OnlinePCA
from .projection import RandomProjector
from .scaler import OnlineScaler
from .scheduler import BatchScheduler
from .state import PipelineState
from .tokenizer import tokenize
from .vocabulary import VocabularyTracker

__all__ = [
    "BatchScheduler",
    "FeatureVectorizer",
    "NO_CLUSTER",
    "OnlineKMeans",
    "OnlinePCA",
    "OnlineScaler",
    "PipelineState",
    "RandomProjector",
    "VocabularyTracker",
    "murmur32",
    "tokenize",
]
