from app.models.chat import ProviderResult
from app.services.completion_gateway import CompletionGateway


class FakeGateway(CompletionGateway):
    """Records every conversation it is sent and replies with a canned result."""

    provider_name = "fake"

    def __init__(self, result: ProviderResult = None, api_key: str = "test-key"):
        super().__init__(model="fake-model", api_key=api_key)
        self.result = result or ProviderResult.ok("There are 2 students.", model="fake-model")
        self.calls = []

    def _complete(self, messages):
        self.calls.append(messages)
        return self.result
