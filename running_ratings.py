import threading
from datetime import datetime, timedelta


class RunningRatings:
    """Serializes rating events per word.

    A rating is accepted only when no other rating for the same word is in
    flight and the previous one finished at least ``debounce_seconds`` ago.
    """

    def __init__(self, debounce_seconds: float = 1.0):
        self.debounce = timedelta(seconds=debounce_seconds)
        self._in_flight = set()
        self._last_finished = dict()
        self._lock = threading.Lock()

    def begin(self, word_id: str, now: datetime) -> bool:
        self._lock.acquire()
        self._last_finished = {wid: t for wid, t in self._last_finished.items() if now - t < self.debounce}
        if word_id in self._in_flight or word_id in self._last_finished:
            self._lock.release()
            return False
        self._in_flight.add(word_id)
        self._lock.release()
        return True

    def finish(self, word_id: str, now: datetime) -> None:
        self._lock.acquire()
        self._in_flight.discard(word_id)
        self._last_finished[word_id] = now
        self._lock.release()

    def cancel(self, word_id: str) -> None:
        """Ends an in-flight rating that was not applied, without starting the debounce window."""
        self._lock.acquire()
        self._in_flight.discard(word_id)
        self._lock.release()
