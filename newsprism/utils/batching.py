def batched(items, size):
    """Yield successive lists of at most `size` items."""
    if size < 1:
        raise ValueError('batch size must be >= 1')
    batch = []
    for item in items:
        batch.append(item)
        if len(batch) >= size:
            yield batch
            batch = []
    if batch:
        yield batch
