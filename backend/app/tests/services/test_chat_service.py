from app.errors import ErrorKind
from app.models.chat import ChatTurn, ChatRole, ProviderResult
from app.models.student import StudentCandidate
from app.services.chat_service import ChatService
from app.services.prompt_builder import EMPTY_DATASET_MESSAGE
from app.services.student_store import StudentStore
from app.storage import InMemoryRepository

from helpers import FakeGateway


def seeded_store(count):
    store = StudentStore(InMemoryRepository())
    for i in range(1, count + 1):
        store.create(StudentCandidate(studentID="2025-{:03d}".format(i), fullName="Student {}".format(i)))
    return store


def test_empty_store_answers_without_upstream_call():
    gateway = FakeGateway()
    result = ChatService(seeded_store(0), gateway).answer("How many students?")

    assert result.success
    assert result.message == EMPTY_DATASET_MESSAGE
    assert gateway.calls == []


def test_missing_credential_checked_before_empty_store():
    gateway = FakeGateway(api_key=None)
    result = ChatService(seeded_store(0), gateway).answer("How many students?")

    assert not result.success
    assert result.error_kind == ErrorKind.CONFIGURATION_MISSING
    assert gateway.calls == []


def test_forwards_prompt_and_prior_turns():
    gateway = FakeGateway()
    prior = [ChatTurn(role=ChatRole.USER, content="Hi"), ChatTurn(role=ChatRole.ASSISTANT, content="Hello!")]

    result = ChatService(seeded_store(2), gateway).answer("How many students?", prior)

    assert result.success
    messages = gateway.calls[0]
    assert [m["role"] for m in messages] == ["system", "user", "assistant", "user"]
    assert "2025-002" in messages[0]["content"]
    assert messages[-1]["content"] == "How many students?"


def test_record_limit_applies_to_prompt():
    gateway = FakeGateway()
    ChatService(seeded_store(3), gateway, record_limit=1).answer("List everyone")

    system_prompt = gateway.calls[0][0]["content"]
    assert "2025-001" in system_prompt
    assert "2025-003" not in system_prompt
    assert "showing the first 1 of 3 records" in system_prompt


def test_upstream_failure_is_returned_unchanged():
    failure = ProviderResult.failure(ErrorKind.UPSTREAM_REJECTED, "Invalid API key", upstream_status=401)
    result = ChatService(seeded_store(1), FakeGateway(result=failure)).answer("q")
    assert result == failure
