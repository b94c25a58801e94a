# paniyal/services/decoy.py
"""
Failed-login tracking and the decoy "self-destruct" countdown.

After too many failed logins a client is sent to the decoy page instead of
getting another attempt. The countdown there is computed from the clock on
every read, so nothing runs in the background.
"""

import logging
import threading
import time
import uuid
from collections import deque
from dataclasses import dataclass
from typing import Callable, Dict

from fastapi import HTTPException, status

from paniyal.config.settings import settings

logger = logging.getLogger(__name__)


class LoginAttemptTracker:
    """Counts failed logins per client inside a sliding window"""

    def __init__(self, max_attempts: int = settings.LOGIN['max_attempts'],
                 window: int = settings.LOGIN['attempt_window'],
                 clock: Callable[[], float] = time.monotonic):
        self.max_attempts = max_attempts
        self.window = window
        self.clock = clock
        self._failures: Dict[str, deque] = {}
        self._lock = threading.Lock()

    def _prune(self, client: str) -> deque:
        failures = self._failures.get(client)
        if failures is None:
            return deque()
        cutoff = self.clock() - self.window
        while failures and failures[0] <= cutoff:
            failures.popleft()
        if not failures:
            del self._failures[client]
        return failures

    def failures(self, client: str) -> int:
        with self._lock:
            return len(self._prune(client))

    def is_locked(self, client: str) -> bool:
        return self.failures(client) >= self.max_attempts

    def record_failure(self, client: str) -> int:
        """Record a failed attempt and return the count inside the window"""
        with self._lock:
            self._prune(client)
            failures = self._failures.setdefault(client, deque())
            failures.append(self.clock())
            count = len(failures)
        logger.warning(f"Failed login from {client} ({count}/{self.max_attempts})")
        return count

    def tracked_clients(self) -> int:
        with self._lock:
            return len(self._failures)

    def reset(self, client: str):
        with self._lock:
            self._failures.pop(client, None)

    def clear(self):
        with self._lock:
            self._failures.clear()


@dataclass
class DecoySequence:
    id: str
    client: str
    started_at: float
    duration: int
    stopped: bool = False
    # Seconds on the clock when the countdown was stopped
    stopped_elapsed: float = 0.0

    def finished_at(self) -> float:
        if self.stopped:
            return self.started_at + self.stopped_elapsed
        return self.started_at + self.duration


class DecoyService:
    """Holds the running countdowns, at most one running per client"""

    def __init__(self, tracker: LoginAttemptTracker,
                 duration: int = settings.DECOY['duration'],
                 deactivation_code: str = settings.DECOY['deactivation_code'],
                 redirect_after_destruct: str = settings.DECOY['redirect_after_destruct'],
                 retention: int = settings.DECOY['retention'],
                 clock: Callable[[], float] = time.monotonic):
        self.tracker = tracker
        self.duration = duration
        self.deactivation_code = deactivation_code
        self.redirect_after_destruct = redirect_after_destruct
        self.retention = retention
        self.clock = clock
        self._sequences: Dict[str, DecoySequence] = {}
        self._lock = threading.Lock()

    def _is_running(self, sequence: DecoySequence) -> bool:
        return not sequence.stopped and self.time_left(sequence) > 0

    def _purge(self):
        """Forget sequences that finished more than `retention` seconds ago"""
        cutoff = self.clock() - self.retention
        expired = [
            sequence_id for sequence_id, sequence in self._sequences.items()
            if not self._is_running(sequence) and sequence.finished_at() <= cutoff
        ]
        for sequence_id in expired:
            del self._sequences[sequence_id]

    def start(self, client: str) -> DecoySequence:
        """Running sequence of `client`, or a new one"""
        with self._lock:
            self._purge()
            for sequence in self._sequences.values():
                if sequence.client == client and self._is_running(sequence):
                    return sequence
            sequence = DecoySequence(
                id=uuid.uuid4().hex,
                client=client,
                started_at=self.clock(),
                duration=self.duration,
            )
            self._sequences[sequence.id] = sequence
        logger.info(f"Decoy sequence {sequence.id} started for {client}")
        return sequence

    def active_sequences(self) -> int:
        with self._lock:
            return len(self._sequences)

    def clear(self):
        with self._lock:
            self._sequences.clear()

    def get(self, sequence_id: str) -> DecoySequence:
        with self._lock:
            self._purge()
            sequence = self._sequences.get(sequence_id)
        if sequence is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Sequence not found"
            )
        return sequence

    def time_left(self, sequence: DecoySequence) -> int:
        if sequence.stopped:
            return max(0, sequence.duration - int(sequence.stopped_elapsed))
        elapsed = self.clock() - sequence.started_at
        return max(0, sequence.duration - int(elapsed))

    def state(self, sequence: DecoySequence) -> dict:
        time_left = self.time_left(sequence)
        destructed = not sequence.stopped and time_left == 0
        return {
            "id": sequence.id,
            "duration": sequence.duration,
            "time_left": time_left,
            "stopped": sequence.stopped,
            "destructed": destructed,
            "redirect_to": self.redirect_after_destruct if destructed else None,
        }

    def abort(self, sequence_id: str, code: str) -> DecoySequence:
        """Stop the countdown when the deactivation code matches"""
        sequence = self.get(sequence_id)
        if sequence.stopped:
            return sequence
        if self.time_left(sequence) == 0:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="Sequence already completed"
            )
        if (code or "").strip() != self.deactivation_code:
            logger.warning(f"Wrong deactivation code for decoy sequence {sequence_id}")
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="ACCESS DENIED: Incorrect Deactivation Code!"
            )

        sequence.stopped_elapsed = self.clock() - sequence.started_at
        sequence.stopped = True
        self.tracker.reset(sequence.client)
        logger.info(f"Decoy sequence {sequence_id} aborted")
        return sequence


login_tracker = LoginAttemptTracker()
decoy_service = DecoyService(login_tracker)
