import pytest


class RecordingSleep:
    """Stand-in for asyncio.sleep that records requested delays."""

    def __init__(self):
        self.delays = []

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


class FlakyOperation:
    """Fails with ``error_factory(n)`` on calls up to ``fail_times``."""

    def __init__(self, fail_times: int, result="ok", error_factory=None):
        self.fail_times = fail_times
        self.result = result
        self.error_factory = error_factory or (lambda n: ValueError(f"failure {n}"))
        self.calls = []

    async def __call__(self, *args):
        self.calls.append(args)
        if len(self.calls) <= self.fail_times:
            raise self.error_factory(len(self.calls))
        return self.result


class ObservationSink:
    """Log target collecting (severity, message) pairs."""

    def __init__(self):
        self.records = []

    def record(self, severity, message):
        self.records.append((severity, message))


@pytest.fixture
def recording_sleep():
    return RecordingSleep()


@pytest.fixture
def sink():
    return ObservationSink()


@pytest.fixture
def flaky():
    return FlakyOperation
