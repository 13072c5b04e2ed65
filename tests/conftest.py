"""Shared pytest fixtures for the translation agent test suite."""
import pytest


class FakeStreamer:
    """Scripted completion streamer: one list of chunks per call."""

    def __init__(self, responses, fail_on_call=None, error=None):
        self.responses = list(responses)
        self.fail_on_call = fail_on_call
        self.error = error
        self.calls = []
        self.closed = False

    async def stream(self, prompt, system_message):
        self.calls.append((prompt, system_message))
        index = len(self.calls) - 1
        if self.error is not None and index == self.fail_on_call:
            raise self.error
        for chunk in self.responses[index]:
            yield chunk

    async def aclose(self):
        self.closed = True


@pytest.fixture
def make_streamer():
    """Build a FakeStreamer from scripted responses."""
    return FakeStreamer


@pytest.fixture
def three_stage_streamer():
    """A streamer scripted for one full translate, reflect, improve run."""
    return FakeStreamer(
        [
            ["Bon", "jour"],
            ["1. Add an exclamation mark."],
            ["Bonjour", " !"],
        ]
    )
