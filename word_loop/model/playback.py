from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from functools import partial
from typing import Callable, Optional, Protocol
import logging
import math

from PyQt5 import QtCore

from .entities import Segment, WindowConfig
from .sequence import SequenceState
from .video.player import Player


class PlaybackState(Enum):
    IDLE = "Idle"
    PLAYING = "Playing"
    ERROR = "Error"


class PollTimer(Protocol):
    def start(self, interval_ms: int) -> None: ...

    def cancel(self) -> None: ...

    def is_active(self) -> bool: ...


TimerFactory = Callable[[Callable[[], None]], PollTimer]


class QtPollTimer:
    """Repeating QTimer bound to one callback; cancelled timers are not reused."""

    def __init__(self, callback: Callable[[], None], parent: Optional[QtCore.QObject] = None) -> None:
        self._timer = QtCore.QTimer(parent)
        self._timer.setTimerType(QtCore.Qt.PreciseTimer)
        self._timer.timeout.connect(callback)

    def start(self, interval_ms: int) -> None:
        self._timer.start(int(interval_ms))

    def cancel(self) -> None:
        self._timer.stop()
        self._timer.deleteLater()

    def is_active(self) -> bool:
        return self._timer.isActive()


@dataclass
class Session:
    key: float
    segment: Segment
    generation: int
    timer: PollTimer
    repeat_count: int = 0
    failures: int = 0


class PlaybackController(QtCore.QObject):
    """Repeats one segment a fixed number of times, then advances.

    Completion is inferred by polling the player's position: the player gives
    no end-of-segment event and may report positions that lag behind the last
    seek. Each ``play`` starts a new session tagged with a generation number;
    a poll tick carrying an older generation is ignored, so a timer that fires
    after its session was replaced cannot advance anything.
    """

    state_changed = QtCore.pyqtSignal(object)
    segment_changed = QtCore.pyqtSignal(object)
    loop_progress = QtCore.pyqtSignal(int, int)

    def __init__(
        self,
        sequence: SequenceState,
        window_provider: Callable[[], WindowConfig],
        *,
        loops_per_segment: int = 2,
        auto_advance: bool = True,
        rate: float = 1.0,
        max_poll_failures: int = 25,
        timer_factory: Optional[TimerFactory] = None,
        parent: Optional[QtCore.QObject] = None,
    ) -> None:
        super().__init__(parent)
        self._sequence = sequence
        self._window_provider = window_provider
        self._loops = max(1, int(loops_per_segment))
        self._auto_advance = bool(auto_advance)
        self._rate = float(rate)
        self._max_poll_failures = max(1, int(max_poll_failures))
        self._timer_factory: TimerFactory = timer_factory or (lambda callback: QtPollTimer(callback, self))
        self._player: Optional[Player] = None
        self._session: Optional[Session] = None
        self._generation: int = 0
        self._state = PlaybackState.IDLE
        self._log = logging.getLogger(__name__)

    # ------------------------------------------------------------------
    # Configuration
    # ------------------------------------------------------------------
    @property
    def state(self) -> PlaybackState:
        return self._state

    @property
    def session(self) -> Optional[Session]:
        return self._session

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def active_key(self) -> Optional[float]:
        return self._session.key if self._session is not None else None

    @property
    def player(self) -> Optional[Player]:
        return self._player

    @property
    def loops_per_segment(self) -> int:
        return self._loops

    @loops_per_segment.setter
    def loops_per_segment(self, value: int) -> None:
        self._loops = max(1, int(value))

    @property
    def auto_advance(self) -> bool:
        return self._auto_advance

    @auto_advance.setter
    def auto_advance(self, value: bool) -> None:
        self._auto_advance = bool(value)

    @property
    def max_poll_failures(self) -> int:
        return self._max_poll_failures

    @max_poll_failures.setter
    def max_poll_failures(self, value: int) -> None:
        self._max_poll_failures = max(1, int(value))

    @property
    def rate(self) -> float:
        return self._rate

    def set_rate(self, multiplier: float) -> None:
        self._rate = float(multiplier)
        if self._player is not None:
            self._player.set_rate(self._rate)

    def attach_player(self, player: Player) -> None:
        self._player = player
        self._log.debug("PlaybackController: player attached")

    def detach_player(self) -> None:
        self._player = None
        self._log.debug("PlaybackController: player detached (session=%s)", self.active_key)

    # ------------------------------------------------------------------
    # Session control
    # ------------------------------------------------------------------
    def play(self, key: float) -> bool:
        segment = self._sequence.find(key)
        if segment is None:
            self._log.debug("PlaybackController: no playable segment at %s, ignoring", key)
            return False
        return self._start(segment)

    def play_first(self) -> bool:
        segment = self._sequence.first()
        if segment is None:
            return False
        return self._start(segment)

    def play_next(self) -> bool:
        if self._session is None:
            return False
        segment = self._sequence.next_after(self._session.key)
        if segment is None:
            return False
        return self._start(segment)

    def play_previous(self) -> bool:
        if self._session is None:
            return False
        segment = self._sequence.previous_before(self._session.key)
        if segment is None:
            segment = self._sequence.find(self._session.key)
        if segment is None:
            return False
        return self._start(segment)

    def stop(self) -> None:
        had_session = self._session is not None
        self._end_session()
        player = self._player
        if player is not None:
            try:
                player.pause()
            except Exception as exc:  # the handle may already be gone
                self._log.debug("PlaybackController: pause failed: %s", exc)
        self._set_state(PlaybackState.IDLE)
        if had_session:
            self.segment_changed.emit(None)

    def position(self) -> Optional[float]:
        """Current player position, or None when it cannot be read."""
        return self._read_position()

    def _start(self, segment: Segment) -> bool:
        self._end_session()
        generation = self._generation
        player = self._player
        if player is None:
            self._log.warning("PlaybackController: no player available for segment at %s", segment.start)
            self._set_state(PlaybackState.ERROR)
            self.segment_changed.emit(None)
            return False

        config = self._window_provider()
        player.set_rate(self._rate)
        player.seek(segment.start, True)
        player.play()

        timer = self._timer_factory(partial(self._on_poll, generation))
        self._session = Session(key=segment.key, segment=segment, generation=generation, timer=timer)
        self._sequence.active_key = segment.key
        timer.start(config.poll_interval_ms)
        self._log.debug(
            "PlaybackController: play %r [%.3f, %.3f] generation=%s",
            segment.display_label,
            segment.start,
            segment.end,
            generation,
        )
        self._set_state(PlaybackState.PLAYING)
        self.segment_changed.emit(segment)
        self.loop_progress.emit(0, self._loops)
        return True

    def _end_session(self) -> None:
        # Cancel before replacing; the generation bump covers a tick that is
        # already queued and can no longer be cancelled.
        if self._session is not None:
            self._session.timer.cancel()
        self._session = None
        self._sequence.active_key = None
        self._generation += 1

    # ------------------------------------------------------------------
    # Polling
    # ------------------------------------------------------------------
    def _on_poll(self, generation: int) -> None:
        session = self._session
        if session is None or session.generation != generation:
            self._log.debug(
                "PlaybackController: stale tick generation=%s (current=%s)", generation, self._generation
            )
            return

        position = self._read_position()
        if position is None:
            session.failures += 1
            if session.failures >= self._max_poll_failures:
                self._log.warning(
                    "PlaybackController: player unavailable for %s polls, giving up", session.failures
                )
                self._end_session()
                self._set_state(PlaybackState.ERROR)
                self.segment_changed.emit(None)
            return
        session.failures = 0

        # Window edits apply to the loop in progress.
        current = self._sequence.find(session.key)
        if current is not None:
            session.segment = current

        config = self._window_provider()
        if position < session.segment.end - config.end_tolerance:
            return

        session.repeat_count += 1
        self.loop_progress.emit(session.repeat_count, self._loops)
        if session.repeat_count < self._loops:
            player = self._player
            if player is not None:
                player.seek(session.segment.start, True)
                player.play()
            return

        if self._auto_advance:
            next_segment = self._sequence.next_after(session.key)
            if next_segment is not None:
                self._start(next_segment)
                return
            self._log.info("PlaybackController: sequence exhausted after %s", session.segment.display_label)
        self.stop()

    def _read_position(self) -> Optional[float]:
        player = self._player
        if player is None:
            return None
        try:
            value = float(player.current_time())
        except Exception as exc:  # the player is an external device
            self._log.debug("PlaybackController: position read failed: %s", exc)
            return None
        if not math.isfinite(value):
            return None
        return value

    def _set_state(self, state: PlaybackState) -> None:
        if state == self._state:
            return
        self._log.debug("PlaybackController: %s -> %s", self._state.value, state.value)
        self._state = state
        self.state_changed.emit(state)
