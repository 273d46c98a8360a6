import numpy as np


def embedding_to_bytes(vec):
    """Convert a vector (list or numpy array) to raw float32 bytes for DB storage."""
    return np.asarray(vec, dtype=np.float32).tobytes()


def bytes_to_embedding(data, dim=None):
    """Convert raw bytes back to a float32 numpy array."""
    vec = np.frombuffer(data, dtype=np.float32)
    if dim and vec.shape[0] != dim:
        raise ValueError(f"Embedding blob has {vec.shape[0]} values, expected {dim}")
    return vec
