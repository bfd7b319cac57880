"""
utils/coalescer.py
-----------------
Debounced, per-key write buffering for checkbox toggles and text edits.

Every ``submit(key, value)`` (re)starts a quiet-period timer for that key;
only the last value submitted before the timer fires is written. Each key
owns a single mailbox slot and a version number that increases with every
submit while the key has work outstanding; an idle key is forgotten:

- a newer submit supersedes the pending value, it is never queued behind it;
- while a write for a key is in flight, the next ready value waits in the
  slot and is sent once the in-flight write returns, so two writes for the
  same key never race each other to the store.

Writes run on timer threads; ``submit`` never blocks on the network.
"""

import logging
import threading

logger = logging.getLogger(__name__)


class _Slot:
    __slots__ = ("value", "version", "timer", "ready", "in_flight")

    def __init__(self):
        self.value = None
        self.version = 0
        self.timer = None
        self.ready = False
        self.in_flight = False


class WriteCoalescer:

    def __init__(self, write, quiet_period=0.3, on_success=None, on_error=None,
                 should_flush=None, name="writes"):
        self.write = write
        self.quiet_period = quiet_period
        self.on_success = on_success
        self.on_error = on_error
        self.should_flush = should_flush
        self.name = name

        self._lock = threading.Lock()
        self._slots = {}
        self._versions = {}

    # ---------------- public API ----------------

    def submit(self, key, value):
        with self._lock:
            version = self._versions.get(key, 0) + 1
            self._versions[key] = version

            slot = self._slots.get(key)
            if slot is None:
                slot = self._slots[key] = _Slot()
            if slot.timer is not None:
                slot.timer.cancel()

            slot.value = value
            slot.version = version
            slot.ready = False

            timer = threading.Timer(self.quiet_period, self._on_timer, args=(key, version))
            timer.daemon = True
            slot.timer = timer
            timer.start()
        return version

    def version(self, key):
        with self._lock:
            return self._versions.get(key, 0)

    def pending_keys(self):
        with self._lock:
            return [k for k, s in self._slots.items() if s.timer is not None or s.ready]

    def flush(self):
        """
        Write every pending value now, on the calling thread. Keys whose
        write is already in flight on a timer thread are left to that
        thread, which picks up the ready value when it returns.
        """
        to_drain = []
        with self._lock:
            for key, slot in self._slots.items():
                if slot.timer is not None:
                    slot.timer.cancel()
                    slot.timer = None
                    slot.ready = True
                if slot.ready and not slot.in_flight:
                    slot.in_flight = True
                    to_drain.append(key)

        for key in to_drain:
            self._drain(key)

    def cancel_all(self):
        with self._lock:
            for slot in self._slots.values():
                if slot.timer is not None:
                    slot.timer.cancel()
            self._slots.clear()
            self._versions.clear()

    # ---------------- internals ----------------

    def _on_timer(self, key, version):
        with self._lock:
            slot = self._slots.get(key)
            if slot is None or slot.version != version:
                return  # superseded
            if slot.timer is not threading.current_thread():
                return  # cancelled by flush after it fired
            slot.timer = None
            slot.ready = True
            if slot.in_flight:
                return
            slot.in_flight = True
        self._drain(key)

    def _drain(self, key):
        while True:
            with self._lock:
                slot = self._slots.get(key)
                if slot is None:
                    return
                if not slot.ready:
                    slot.in_flight = False
                    if slot.timer is None:
                        del self._slots[key]
                        self._versions.pop(key, None)
                    return
                value, version = slot.value, slot.version
                slot.ready = False
            self._write_one(key, value, version)

    def _write_one(self, key, value, version):
        if self.should_flush is not None and not self.should_flush(key, value):
            logger.debug("%s: dropped %r for %r", self.name, value, key)
            return

        try:
            self.write(key, value)
        except Exception as e:
            logger.warning("%s: write for %r failed: %s", self.name, key, e)
            if self.on_error is not None:
                self.on_error(key, value, e)
            return

        if self.on_success is not None:
            self.on_success(key, value, version)
