import time


def pause(seconds):
    """Fixed delay between outbound provider calls."""
    if seconds and seconds > 0:
        time.sleep(seconds)
