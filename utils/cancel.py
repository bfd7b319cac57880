"""
utils/cancel.py
-----------------
Cooperative cancellation for the bulk loops (reset, stage move, import).
A token is checked before each iteration; a write already sent still lands.
"""

import threading


class CancelToken:
    """Advisory stop flag checked before each iteration of a bulk loop."""

    def __init__(self):
        self._event = threading.Event()

    def cancel(self):
        self._event.set()

    @property
    def cancelled(self):
        return self._event.is_set()


def is_cancelled(token):
    return token is not None and token.cancelled
