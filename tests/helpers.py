"""Test helpers: fake clock, stub HTTP session, track builders."""
from livedash.domain import Lyric, Track


class FakeClock:
    """Manually advanced clock for deterministic timing tests."""

    def __init__(self, now: float = 1_700_000_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> float:
        self.now += seconds
        return self.now


class StubResponse:
    def __init__(self, status_code=200, payload=None, json_error=None):
        self.status_code = status_code
        self._payload = payload
        self._json_error = json_error

    def json(self):
        if self._json_error:
            raise self._json_error
        return self._payload


class StubSession:
    """Stands in for requests.Session; returns queued responses in order."""

    def __init__(self, *responses):
        self.headers = {}
        self.calls = []
        self._responses = list(responses)

    def get(self, url, timeout=None):
        self.calls.append((url, timeout))
        response = self._responses.pop(0) if len(self._responses) > 1 else self._responses[0]
        if isinstance(response, Exception):
            raise response
        return response


def make_track(
    track_id: int = 1,
    started_at: float = 0.0,
    duration_sec: float = 10.0,
    lyrics: str = "[00:00.00]la\n[00:05.00]la la",
    lyrics_type: str = "synced",
    title: str = "Song",
) -> Track:
    return Track(
        id=track_id,
        title=title,
        artists=("Artist",),
        duration_sec=duration_sec,
        started_at=started_at,
        lyrics_type=lyrics_type,
        lyrics=lyrics,
    )


def lines_of(*pairs) -> list:
    return [Lyric(text=text, duration=duration) for text, duration in pairs]


